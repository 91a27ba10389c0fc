"""Bounded previews of tool output."""

from shellgate.agent.tools.base import ToolDisplayPreview

ELLIPSIS = "…"

DEFAULT_PREVIEW_HEAD_LINES = 5
DEFAULT_PREVIEW_TAIL_LINES = 2
DEFAULT_PREVIEW_MAX_LINE_LENGTH = 160


def _trim_line(line: str, max_length: int) -> str:
    trimmed = line.rstrip()
    if len(trimmed) <= max_length:
        return trimmed
    return trimmed[:max(0, max_length - 1)] + ELLIPSIS


def create_output_preview(
    content: str,
    head_lines: int = DEFAULT_PREVIEW_HEAD_LINES,
    tail_lines: int = DEFAULT_PREVIEW_TAIL_LINES,
    max_line_length: int = DEFAULT_PREVIEW_MAX_LINE_LENGTH,
) -> ToolDisplayPreview | None:
    """
    Build a head/tail excerpt of output for display.

    Blank lines are skipped. When there are more than ``head_lines +
    tail_lines`` lines, the middle is replaced by a single ellipsis line.
    Returns None when there is nothing to show.
    """
    if not content or not content.strip():
        return None

    lines = [
        line
        for line in content.replace("\r\n", "\n").split("\n")
        if line.strip()
    ]
    if not lines:
        return None

    if len(lines) <= head_lines + tail_lines:
        return ToolDisplayPreview(
            lines=[_trim_line(line, max_line_length) for line in lines],
            truncated=False,
        )

    head = lines[:head_lines]
    tail = lines[len(lines) - tail_lines:] if tail_lines > 0 else []

    return ToolDisplayPreview(
        lines=[
            *(_trim_line(line, max_line_length) for line in head),
            ELLIPSIS,
            *(_trim_line(line, max_line_length) for line in tail),
        ],
        truncated=True,
    )
