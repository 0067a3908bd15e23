"""Logger with console and file sinks on top of logfire."""

from __future__ import annotations

import contextlib
from abc import abstractmethod
from pathlib import Path
from typing import Any

import logfire
from opentelemetry.proto.logs.v1 import logs_pb2
from opentelemetry.sdk.trace import ReadableSpan
from opentelemetry.sdk.trace.export import SpanExporter, SpanExportResult
from pydantic import Field, PrivateAttr, model_validator

from xbisect.core.base import BaseConfig

# Private storage for the configured logger instance
_current_logger: Logger | None = None


class _LoggerProxy:
    """Forwards attribute access to _current_logger.

    Before setup_logger() runs every logging call is a no-op, so library
    code can log unconditionally.
    """
    def __getattr__(self, name):
        if _current_logger is None:
            def _noop(*args, **kwargs):  # noqa: ARG001
                pass
            return _noop
        return getattr(_current_logger, name)

    def __enter__(self):
        if _current_logger is None:
            return self
        return _current_logger.__enter__()

    def __exit__(self, *args):
        if _current_logger is None:
            return False
        return _current_logger.__exit__(*args)


# Module-level logger - this is what gets imported everywhere
logger = _LoggerProxy()


class LevelFilteringExporter(SpanExporter):
    """Span exporter that drops spans below a minimum log level."""

    # Level names to OpenTelemetry severity numbers
    _level_thresholds = {
        'spew': logs_pb2.SEVERITY_NUMBER_TRACE,    # 1 - most verbose
        'trace': logs_pb2.SEVERITY_NUMBER_TRACE3,  # 3
        'debug': logs_pb2.SEVERITY_NUMBER_DEBUG,   # 5
        'info': logs_pb2.SEVERITY_NUMBER_INFO,     # 9
        'warn': logs_pb2.SEVERITY_NUMBER_WARN,     # 13
        'error': logs_pb2.SEVERITY_NUMBER_ERROR,   # 17
        'fatal': logs_pb2.SEVERITY_NUMBER_FATAL,   # 21
    }

    def __init__(self, exporter: SpanExporter, min_level: str | None):
        """Initialize filtering exporter.

        Args:
            exporter: Exporter that receives the spans that pass
            min_level: Minimum level name (spew, trace, debug, ...)
        """
        self._exporter = exporter
        self._min_severity = self._level_thresholds.get(
            (min_level or "info").lower(), logs_pb2.SEVERITY_NUMBER_INFO
        )

    def export(self, spans: list[ReadableSpan]) -> SpanExportResult:
        """Forward spans whose severity is at or above the threshold."""
        filtered = []
        for span in spans:
            attrs = span.attributes or {}
            level_num = attrs.get(
                'logfire.level_num', logs_pb2.SEVERITY_NUMBER_INFO
            )
            if level_num >= self._min_severity:
                filtered.append(span)

        if filtered:
            return self._exporter.export(filtered)
        return SpanExportResult.SUCCESS

    def shutdown(self) -> None:
        self._exporter.shutdown()

    def force_flush(self, timeout_millis: int = 30000) -> bool:
        return self._exporter.force_flush(timeout_millis)


def level_name(level_num: int) -> str:
    """Map an OpenTelemetry severity number back to a level name."""
    for name in ['fatal', 'error', 'warn', 'info', 'debug', 'trace', 'spew']:
        if level_num >= LevelFilteringExporter._level_thresholds[name]:
            return name
    return "unknown"


class Sink(BaseConfig):
    """Base class for log output sinks.

    Inherits from BaseConfig, so close() is reached through the
    cleanup cascade.
    """

    enabled: bool = Field(default=True, description="Enable this sink")
    level: str | None = Field(
        default=None,
        description=(
            "Log level for this sink. If None, inherits from Logger.level. "
            "Valid: spew, trace, debug, info, warn, error, fatal"
        )
    )

    _processor: Any = PrivateAttr(default=None)

    @abstractmethod
    def create_processor(self, log_root: Path, run_name: str):
        """Create the span processor for this sink, or None."""
        pass

    def close(self):
        if self._processor:
            with contextlib.suppress(Exception):
                self._processor.shutdown()


class ConsoleSink(Sink):
    """Console output sink."""

    verbose: bool = Field(
        default=False,
        description="Show full span details"
    )
    colors: str = Field(
        default="auto",
        description="Color mode: auto, always, never"
    )

    def create_processor(self, log_root: Path, run_name: str):
        """Console is configured through logfire.configure()."""
        return None

    def use_colors(self) -> bool:
        """Resolve the color mode against the current stdout."""
        if self.colors == "always":
            return True
        if self.colors == "never":
            return False
        import sys
        return sys.stdout.isatty()


class FileSink(Sink):
    """File output sink."""

    enabled: bool = Field(
        default=False,
        description="Enable file logging"
    )
    path: str = Field(
        default="{log_root}/{run_name}.log",
        description="Log file path template"
    )
    format_template: str = Field(
        default="{timestamp:%Y-%m-%d %H:%M:%S} [{level}] {message}",
        description="Line template: timestamp, level, message"
    )

    _file: Any = PrivateAttr(default=None)

    def _format_span(self, span) -> str:
        from datetime import datetime, timezone

        attrs = span.attributes or {}
        level_num = attrs.get(
            "logfire.level_num", logs_pb2.SEVERITY_NUMBER_INFO
        )
        formatted = self.format_template.format(
            timestamp=datetime.fromtimestamp(
                span.start_time / 1e9, tz=timezone.utc
            ),
            level=level_name(level_num),
            message=attrs.get("logfire.msg", span.name),
        )

        # Keyword arguments passed to logger calls
        extra = ' '.join(
            f"{key}={value!r}"
            for key, value in sorted(attrs.items())
            if "." not in key
        )
        if extra:
            formatted = f"{formatted} │ {extra}"
        return formatted + '\n'

    def create_processor(self, log_root: Path, run_name: str):
        from opentelemetry.sdk.trace.export import (
            BatchSpanProcessor,
            ConsoleSpanExporter,
        )

        log_path = Path(
            self.path.format(log_root=log_root, run_name=run_name)
        )
        log_path.parent.mkdir(parents=True, exist_ok=True)

        # Line buffered; stays open for the lifetime of the sink
        self._file = open(log_path, "a", buffering=1, encoding="utf-8")  # noqa: SIM115

        base_exporter = ConsoleSpanExporter(
            out=self._file,
            formatter=self._format_span
        )
        return BatchSpanProcessor(
            LevelFilteringExporter(base_exporter, self.level)
        )

    def close(self):
        """Flush the processor into the file, then close the file."""
        super().close()

        if self._file and not self._file.closed:
            with contextlib.suppress(Exception):
                self._file.flush()
                self._file.close()


class Logger(BaseConfig):
    """Logger with console and file sinks.

    Closing the logger (directly or by leaving a 'with' block) closes
    every sink through the BaseCloseable cascade.
    """

    level: str = Field(
        default="info",
        description=(
            "Default log level for all sinks. Individual sinks can override. "
            "Valid: spew, trace, debug, info, warn, error, fatal"
        )
    )
    console: ConsoleSink = Field(
        default_factory=ConsoleSink,
        description="Console output configuration"
    )
    file: FileSink = Field(
        default_factory=FileSink,
        description="File logging configuration"
    )

    @model_validator(mode='after')
    def _cascade_level_to_sinks(self) -> 'Logger':
        for sink in [self.console, self.file]:
            if sink.level is None:
                sink.level = self.level
        return self

    def setup(self, log_root: Path, run_name: str):
        """Create processors for enabled sinks and configure logfire.

        Args:
            log_root: Root directory for log files
            run_name: Name used for the service and file path template
        """
        for sink in [self.console, self.file]:
            if sink.enabled:
                sink._processor = sink.create_processor(log_root, run_name)

        processors = [
            sink._processor
            for sink in [self.file]
            if sink.enabled and sink._processor
        ]

        console_config = (
            logfire.ConsoleOptions(
                # logfire has no level below trace
                min_log_level=(
                    "trace" if self.console.level == "spew"
                    else self.console.level
                ),
                verbose=self.console.verbose,
                colors=self.console.colors,
                include_timestamps=False,
            )
            if self.console.enabled
            else False
        )

        logfire.configure(
            service_name=run_name,
            send_to_logfire=False,
            console=console_config,
            additional_span_processors=processors if processors else None,
        )

    def info(self, msg: str, **kwargs):
        logfire.info(msg, **kwargs)

    def debug(self, msg: str, **kwargs):
        logfire.debug(msg, **kwargs)

    def trace(self, msg: str, **kwargs):
        self._log_num('trace', msg, kwargs)

    def spew(self, msg: str, **kwargs):
        """Log below trace, for per-line stream chatter."""
        self._log_num('spew', msg, kwargs)

    def warn(self, msg: str, **kwargs):
        logfire.warn(msg, **kwargs)

    def error(self, msg: str, **kwargs):
        logfire.error(msg, **kwargs)

    def log(self, level: str, msg: str, **kwargs):
        if level in ('trace', 'spew'):
            self._log_num(level, msg, kwargs)
        else:
            logfire.log(level, msg, attributes=kwargs or None)

    @staticmethod
    def _log_num(level: str, msg: str, attributes: dict):
        logfire.log(
            level=LevelFilteringExporter._level_thresholds[level],
            msg_template=msg,
            attributes=attributes or None,
        )


def setup_logger(
    log_root: Path,
    run_name: str = "xbisect",
    console: ConsoleSink | None = None,
    file: FileSink | None = None,
    level: str = "info",
) -> Logger:
    """Initialize the global logger singleton.

    Called by Config after loading; tests call it directly.

    Args:
        log_root: Root directory for log files
        run_name: Service name and file path component
        console: Console sink config (or None for defaults)
        file: File sink config (or None for defaults)
        level: Default level for sinks that do not set their own

    Returns:
        The initialized global logger instance
    """
    global _current_logger

    if _current_logger is not None:
        _current_logger.close()

    _current_logger = Logger(
        level=level,
        console=console or ConsoleSink(),
        file=file or FileSink(),
    )
    _current_logger.setup(log_root, run_name)

    return _current_logger
