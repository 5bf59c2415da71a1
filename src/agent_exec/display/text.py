"""Text layout helpers for the console formatter.

Handles indentation, framed content blocks with wrapping, and the small
time and duration strings that prefix most event lines. Styling goes
through ``click.style`` so it is stripped automatically off a TTY.
"""

import shutil
from datetime import datetime

import click

from agent_exec.core.duration import format_duration

CONTENT_INDENT = "    "
DEFAULT_TERMINAL_WIDTH = 80
MIN_FRAME_WIDTH = 40

BOX = ("┌", "┐", "└", "┘", "─", "│")
BLANK_BOX = (" ", " ", " ", " ", " ", " ")

# Lines are only broken at these characters, and only in the right half.
BREAK_CHARS = " ,-"


def get_terminal_width() -> int:
    """Return the terminal width, or DEFAULT_TERMINAL_WIDTH if unknown."""
    width = shutil.get_terminal_size(fallback=(DEFAULT_TERMINAL_WIDTH, 24)).columns
    return width if width > 0 else DEFAULT_TERMINAL_WIDTH


def wrap_line(line: str, width: int) -> list[str]:
    """Split ``line`` into chunks of at most ``width`` characters.

    A chunk ends just after a space, comma or hyphen found in the right
    half of the window. When no such break exists the remainder is kept
    whole, even if it overflows.
    """
    if len(line) <= width:
        return [line]

    chunks: list[str] = []
    remaining = line
    while remaining:
        if len(remaining) <= width:
            chunks.append(remaining)
            break

        break_point = -1
        for i in range(width - 1, width // 2, -1):
            if i < len(remaining) and remaining[i] in BREAK_CHARS:
                break_point = i + 1
                break

        if break_point == -1:
            chunks.append(remaining)
            break

        chunks.append(remaining[:break_point])
        remaining = remaining[break_point:].lstrip(" ")
    return chunks


class TextFormatter:
    """Layout primitives shared by every event formatter."""

    def __init__(self, terminal_width: int | None = None) -> None:
        self.terminal_width = terminal_width or get_terminal_width()

    def indent(self, content: str) -> str:
        """Prefix every line of ``content`` with CONTENT_INDENT."""
        if not content:
            return content
        return "\n".join(CONTENT_INDENT + line for line in content.split("\n"))

    def frame(self, content: str, border: bool = False, style: dict | None = None) -> str:
        """Render ``content`` inside a frame.

        Args:
            content: Text to frame; empty content renders as "".
            border: Draw box characters instead of an invisible frame.
            style: ``click.style`` keyword arguments applied to each text line.
        """
        if not content:
            return ""

        top_left, top_right, bottom_left, bottom_right, horizontal, vertical = (
            BOX if border else BLANK_BOX
        )
        lines = content.split("\n")

        max_frame = max(self.terminal_width - len(CONTENT_INDENT) - 4 - 2, MIN_FRAME_WIDTH)
        frame_width = max(max((len(line) for line in lines), default=0) + 2, MIN_FRAME_WIDTH)
        frame_width = min(frame_width, max_frame)
        content_width = frame_width - 2

        edge = click.style(vertical, dim=True)
        out = [
            "\n"
            + CONTENT_INDENT
            + click.style(top_left + horizontal * frame_width + top_right, dim=True)
            + "\n"
        ]
        for line in lines:
            for chunk in wrap_line(line, content_width):
                padding = " " * max(0, content_width - len(chunk))
                text = click.style(chunk, **style) if style and chunk else chunk
                out.append(f"{CONTENT_INDENT}{edge} {text}{padding} {edge}\n")
        out.append(
            CONTENT_INDENT
            + click.style(bottom_left + horizontal * frame_width + bottom_right, dim=True)
            + "\n"
        )
        return "".join(out)

    def format_duration(self, seconds: float) -> str:
        return format_duration(seconds)

    def format_time(self, now: datetime | None = None) -> str:
        """Current wall-clock time as HH:MM:SS."""
        return (now or datetime.now()).strftime("%H:%M:%S")

    def reverse(self, text: str, style: dict | None = None) -> str:
        """Render ``text`` as a reverse-video banner in ``style``."""
        return click.style(text, reverse=True, **(style or {}))
