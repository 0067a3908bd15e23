"""Test log level filtering, especially spew level."""

import pytest

from xbisect.core.log import ConsoleSink, FileSink, level_name, setup_logger


def _log_all(logger):
    logger.spew("SPEW message")
    logger.trace("TRACE message")
    logger.debug("DEBUG message")
    logger.info("INFO message")
    logger.warn("WARN message")
    logger.close()


@pytest.mark.parametrize(
    "level, included, excluded",
    [
        ("spew", ["SPEW", "TRACE", "DEBUG", "INFO", "WARN"], []),
        ("trace", ["TRACE", "DEBUG", "INFO", "WARN"], ["SPEW"]),
        ("debug", ["DEBUG", "INFO", "WARN"], ["SPEW", "TRACE"]),
        ("warn", ["WARN"], ["SPEW", "TRACE", "DEBUG", "INFO"]),
    ],
)
def test_file_level_filtering(tmp_path, level, included, excluded):
    """The file sink drops messages below its level."""
    log_file = tmp_path / f"{level}.log"

    logger = setup_logger(
        log_root=tmp_path,
        run_name="test",
        console=ConsoleSink(enabled=False),
        file=FileSink(enabled=True, level=level, path=str(log_file)),
    )
    _log_all(logger)

    content = log_file.read_text()
    for name in included:
        assert f"{name} message" in content
    for name in excluded:
        assert f"{name} message" not in content


def test_level_cascades_to_sinks(tmp_path):
    """Sinks without their own level take the logger's."""
    logger = setup_logger(
        log_root=tmp_path,
        run_name="test",
        console=ConsoleSink(enabled=False),
        file=FileSink(enabled=True, path=str(tmp_path / "x.log")),
        level="debug",
    )
    try:
        assert logger.file.level == "debug"
        assert logger.console.level == "debug"
    finally:
        logger.close()


def test_file_path_template(tmp_path):
    """{log_root} and {run_name} are filled into the file path."""
    logger = setup_logger(
        log_root=tmp_path,
        run_name="named",
        console=ConsoleSink(enabled=False),
        file=FileSink(enabled=True),
    )
    logger.info("templated path")
    logger.close()

    assert "templated path" in (tmp_path / "named.log").read_text()


def test_level_name():
    assert level_name(9) == "info"
    assert level_name(17) == "error"
    assert level_name(3) == "trace"
    assert level_name(1) == "spew"
    assert level_name(0) == "unknown"


def test_console_colors():
    assert ConsoleSink(colors="always").use_colors()
    assert not ConsoleSink(colors="never").use_colors()
