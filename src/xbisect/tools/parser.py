"""Parse the streamed output of git bisect run into per-revision results.

git bisect run offers no structured channel. Its stdout interleaves
git's own progress lines, whatever the step scripts print, and the
marker lines the wrapper script injects:

    Running bisect on current hash          (wrapper, every invocation)
    xbisect step=build PASS                 (wrapper, per step)
    xbisect step=test FAIL res=1
    Bisecting: 3 revisions left to test after this (roughly 2 steps)
    [0123abcd...] commit subject            (git, names the next revision)
"""

import re
from enum import Enum
from typing import BinaryIO, Iterable

from xbisect.core.errors import ProtocolError
from xbisect.core.log import logger
from xbisect.core.result import RevisionResult, StepResult
from xbisect.tools.script import INITIAL_HASH_LITERAL, MARKER_PREFIX

ANNOUNCEMENT_RE = re.compile(
    r"^Bisecting: [0-9]+ revisions? left to test after this "
    r"\(roughly [0-9]+ steps?\)$"
)
REVISION_LINE_RE = re.compile(r"^\[(?P<revision>[^\]]+)\] .*$")
MARKER_RE = re.compile(
    r"xbisect step=(?P<step>[a-zA-Z0-9_-]+) "
    r"(?:(?P<passed>PASS)|FAIL res=(?P<status>[0-9]+))$"
)
FIRST_BAD_RE = re.compile(r"^(?P<revision>[0-9a-fA-F]+) is the first bad commit$")

STREAM_DUMP_START = b"BISECT STREAM DUMP START>>>\n"
STREAM_DUMP_END = b"BISECT STREAM DUMP END>>>\n"


class ParseState(Enum):
    """Where the parser is in the revision-announcement protocol."""

    IDLE = "idle"
    AWAITING_REVISION_LINE = "awaiting_revision_line"


class StreamParser:
    """Line-at-a-time state machine over git bisect run output.

    Attributes:
        initial_revision: HEAD before git bisect run started; the
            revision tested first, which git never announces
        results: Revision -> RevisionResult, in the order revisions
            were opened
        current: The RevisionResult step markers attach to
        state: IDLE, or AWAITING_REVISION_LINE right after a
            progress announcement
        announced_revisions: Revisions opened from announcements
        initial_markers: Initial-hash literals seen so far
        first_bad_revision: Set when git reports the culprit
    """

    def __init__(self, initial_revision: str):
        self.initial_revision = initial_revision
        self.results: dict[str, RevisionResult] = {}
        self.current: RevisionResult | None = None
        self.state = ParseState.IDLE
        self.announced_revisions = 0
        self.initial_markers = 0
        self.first_bad_revision: str | None = None
        self.lineno = 0

    def feed(self, line: str) -> None:
        """Consume one line of output.

        Raises:
            ProtocolError: On a malformed revision announcement, a
                result before any revision, a malformed step marker,
                or a duplicate revision
        """
        self.lineno += 1
        line = line.strip()

        if self.state is ParseState.AWAITING_REVISION_LINE:
            match = REVISION_LINE_RE.match(line)
            if match is None:
                raise ProtocolError(
                    f"Malformed revision announcement at line "
                    f"{self.lineno}: {line!r}"
                )
            self.state = ParseState.IDLE
            self.announced_revisions += 1
            self._open(match.group("revision"))
            return

        if ANNOUNCEMENT_RE.match(line):
            self.state = ParseState.AWAITING_REVISION_LINE
        elif MARKER_PREFIX in line:
            # Step output without a trailing newline shares the
            # marker's line
            self._record(line)
        elif line == INITIAL_HASH_LITERAL:
            # Only the very first literal identifies a revision: every
            # later revision is announced by git before the wrapper
            # runs again.
            if self.announced_revisions == 0 and self.initial_markers == 0:
                self._open(self.initial_revision)
            self.initial_markers += 1
        else:
            match = FIRST_BAD_RE.match(line)
            if match:
                self.first_bad_revision = match.group("revision")

    def _record(self, line: str) -> None:
        match = MARKER_RE.search(line)
        if match is None:
            raise ProtocolError(
                f"Malformed step marker at line {self.lineno}: {line!r}"
            )
        if self.current is None:
            raise ProtocolError(
                f"Found bisect result before revision at line "
                f"{self.lineno}: {line!r}"
            )

        passed = match.group("passed") is not None
        result = StepResult(
            name=match.group("step"),
            passed=passed,
            exit_status=0 if passed else int(match.group("status")),
        )
        self.current.steps.append(result)
        logger.debug(
            "Step result",
            revision=self.current.revision,
            step=result.name,
            passed=result.passed,
            exit_status=result.exit_status,
        )

    def _open(self, revision: str) -> None:
        if revision in self.results:
            raise ProtocolError(f"Detected duplicate revision: {revision}")
        self.current = RevisionResult(revision=revision)
        self.results[revision] = self.current
        logger.info("Testing revision {revision}", revision=revision)


def consume(
    stream: Iterable[bytes],
    parser: StreamParser,
    sink: BinaryIO,
) -> StreamParser:
    """Read a live byte stream line by line into parser.

    Every line is written to sink before it is parsed. On a protocol
    violation parsing stops but the rest of the stream is still
    drained into sink, so the child never blocks on a full pipe and
    the log keeps a full copy of its output.

    Returns:
        parser, after the stream is exhausted

    Raises:
        ProtocolError: From the parser, after draining
    """
    lines = iter(stream)
    sink.write(STREAM_DUMP_START)
    try:
        for raw in lines:
            sink.write(raw)
            line = raw.decode("utf-8", errors="replace")
            logger.spew("bisect output", line=line.rstrip())
            parser.feed(line)
    except ProtocolError:
        for raw in lines:
            sink.write(raw)
        raise
    finally:
        sink.write(STREAM_DUMP_END)
    return parser
