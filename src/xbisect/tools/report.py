"""Render parsed bisect results as console lines."""

from xbisect.core.result import RevisionResult, StepResult

COLOR_RED = "\033[31m"
COLOR_GREEN = "\033[32m"
COLOR_CYAN = "\033[36m"
COLOR_GRAY = "\033[37m"
FONT_BOLD = "\033[1m"
CONSOLE_RESET = "\033[0m"


def status_label(step: StepResult, skip_exit_code: int = 125) -> str:
    """PASS, SKIP (failed with the skip exit code) or FAIL."""
    if step.passed:
        return "PASS"
    if step.exit_status == skip_exit_code:
        return "SKIP"
    return "FAIL"


_LABEL_COLORS = {
    "PASS": COLOR_GREEN,
    "SKIP": COLOR_GRAY,
    "FAIL": COLOR_RED,
}


def render(
    results: dict[str, RevisionResult],
    skip_exit_code: int = 125,
    colors: bool = False,
    first_bad_revision: str | None = None,
) -> list[str]:
    """One line per (revision, step): '<revision> <step> <label>'.

    Args:
        results: Parsed results in the order revisions were tested
        skip_exit_code: Exit status rendered as SKIP
        colors: Wrap step names and labels in ANSI colors
        first_bad_revision: Appended as a final line when known

    Returns:
        Report lines, without trailing newlines
    """
    lines = []
    for revision, result in results.items():
        for step in result.steps:
            label = status_label(step, skip_exit_code)
            name = step.name
            if colors:
                label = f"{FONT_BOLD}{_LABEL_COLORS[label]}{label}{CONSOLE_RESET}"
                name = f"{COLOR_CYAN}{name}{CONSOLE_RESET}"
            lines.append(f"{revision} {name} {label}")

    if first_bad_revision:
        lines.append(f"First bad revision: {first_bad_revision}")
    return lines
