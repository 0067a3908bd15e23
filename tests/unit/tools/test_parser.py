"""Tests for the bisect output stream parser."""

import io

import pytest

from xbisect.core.errors import ProtocolError
from xbisect.tools.parser import (
    STREAM_DUMP_END,
    STREAM_DUMP_START,
    ParseState,
    StreamParser,
    consume,
)

ANNOUNCE = "Bisecting: 3 revisions left to test after this (roughly 2 steps)"


def feed_all(parser, lines):
    for line in lines:
        parser.feed(line + "\n")
    return parser


def summary(parser):
    return {
        revision: [(s.name, s.passed, s.exit_status) for s in result.steps]
        for revision, result in parser.results.items()
    }


def test_announced_revision_collects_steps():
    """Announcement, [hash] line and two markers give one revision with
    two steps in order."""
    parser = feed_all(StreamParser("aaa111"), [
        ANNOUNCE,
        "[ccc333] Fix the frobnicator",
        "xbisect step=build PASS",
        "xbisect step=test FAIL res=1",
    ])

    assert summary(parser) == {
        "ccc333": [("build", True, 0), ("test", False, 1)],
    }
    assert parser.state is ParseState.IDLE


def test_initial_literal_opens_initial_revision():
    parser = feed_all(StreamParser("aaa111"), [
        "Running bisect on current hash",
        "xbisect step=build PASS",
    ])

    assert summary(parser) == {"aaa111": [("build", True, 0)]}


def test_later_initial_literals_are_informational():
    """Only the first literal opens a revision; the wrapper prints it on
    every invocation."""
    parser = feed_all(StreamParser("aaa111"), [
        "Running bisect on current hash",
        "xbisect step=build PASS",
        ANNOUNCE,
        "[ccc333] subject",
        "Running bisect on current hash",
        "xbisect step=build FAIL res=2",
    ])

    assert summary(parser) == {
        "aaa111": [("build", True, 0)],
        "ccc333": [("build", False, 2)],
    }
    assert parser.initial_markers == 2


def test_literal_after_announcement_does_not_open_initial():
    parser = feed_all(StreamParser("aaa111"), [
        ANNOUNCE,
        "[ccc333] subject",
        "Running bisect on current hash",
        "xbisect step=build PASS",
    ])

    assert list(parser.results) == ["ccc333"]


def test_singular_announcement():
    parser = feed_all(StreamParser("aaa111"), [
        "Bisecting: 1 revision left to test after this (roughly 1 step)",
        "[ddd444] subject",
    ])

    assert list(parser.results) == ["ddd444"]


def test_duplicate_revision_fails():
    parser = feed_all(StreamParser("aaa111"), [ANNOUNCE, "[ccc333] one"])

    with pytest.raises(ProtocolError, match="duplicate revision"):
        feed_all(parser, [ANNOUNCE, "[ccc333] again"])


def test_initial_revision_announced_again_is_duplicate():
    parser = feed_all(StreamParser("aaa111"), [
        "Running bisect on current hash",
    ])

    with pytest.raises(ProtocolError, match="duplicate revision"):
        feed_all(parser, [ANNOUNCE, "[aaa111] subject"])


def test_marker_before_revision_fails():
    with pytest.raises(ProtocolError, match="before revision"):
        feed_all(StreamParser("aaa111"), ["xbisect step=build PASS"])


def test_malformed_announcement_fails():
    with pytest.raises(ProtocolError, match="Malformed revision announcement"):
        feed_all(StreamParser("aaa111"), [ANNOUNCE, "not a revision line"])


@pytest.mark.parametrize("line", [
    "xbisect step=build MAYBE",
    "xbisect step=build FAIL",
    "xbisect step=build FAIL res=x",
    "xbisect step=bad.name PASS",
])
def test_malformed_marker_fails(line):
    parser = feed_all(StreamParser("aaa111"), [
        "Running bisect on current hash",
    ])

    with pytest.raises(ProtocolError, match="Malformed step marker"):
        parser.feed(line)


def test_unrelated_output_is_ignored():
    """Step script chatter between markers changes nothing."""
    parser = feed_all(StreamParser("aaa111"), [
        "Running bisect on current hash",
        "make: Entering directory",
        "[not a revision] because no announcement came first",
        "xbisect step=build PASS",
        "Bisecting: looks similar but is not an announcement",
    ])

    assert summary(parser) == {"aaa111": [("build", True, 0)]}
    assert parser.state is ParseState.IDLE


def test_first_bad_commit_recorded():
    parser = feed_all(StreamParser("aaa111"), [
        "Running bisect on current hash",
        "xbisect step=build FAIL res=1",
        "aaa111 is the first bad commit",
    ])

    assert parser.first_bad_revision == "aaa111"
    assert list(parser.results) == ["aaa111"]


def test_consume_tees_every_line_to_sink():
    stream = [
        b"Running bisect on current hash\n",
        b"xbisect step=build PASS\n",
        b"some output\n",
    ]
    sink = io.BytesIO()

    parser = consume(stream, StreamParser("aaa111"), sink)

    assert summary(parser) == {"aaa111": [("build", True, 0)]}
    assert sink.getvalue() == (
        STREAM_DUMP_START + b"".join(stream) + STREAM_DUMP_END
    )


def test_consume_drains_after_protocol_error():
    """The rest of the stream still reaches the sink."""
    stream = [
        b"xbisect step=build PASS\n",
        b"after the error\n",
        b"still more\n",
    ]
    sink = io.BytesIO()

    with pytest.raises(ProtocolError):
        consume(iter(stream), StreamParser("aaa111"), sink)

    assert sink.getvalue() == (
        STREAM_DUMP_START + b"".join(stream) + STREAM_DUMP_END
    )


def test_consume_decodes_invalid_utf8():
    sink = io.BytesIO()
    stream = [b"\xff\xfe garbage\n", b"Running bisect on current hash\n"]

    parser = consume(stream, StreamParser("aaa111"), sink)

    assert list(parser.results) == ["aaa111"]


def test_marker_after_unterminated_step_output():
    """A step that prints without a trailing newline shares its line
    with the marker."""
    parser = feed_all(StreamParser("aaa111"), [
        "Running bisect on current hash",
        "built buildxbisect step=build PASS",
        "tested testxbisect step=test FAIL res=4",
    ])

    assert summary(parser) == {
        "aaa111": [("build", True, 0), ("test", False, 4)],
    }


def test_malformed_marker_after_step_output():
    parser = feed_all(StreamParser("aaa111"), [
        "Running bisect on current hash",
    ])

    with pytest.raises(ProtocolError, match="Malformed step marker"):
        parser.feed("outputxbisect step=build SOMETIMES")
