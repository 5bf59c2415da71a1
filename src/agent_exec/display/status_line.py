"""Status block pinned below the scrolling event output.

Wraps another formatter. Before each event the four-line block is erased,
the wrapped formatter prints, and the block is redrawn with the latest
iteration, directory, branch, elapsed time, base URL and prompt.
"""

import os
import threading
import time
from pathlib import Path
from typing import TextIO

from agent_exec.core.duration import format_elapsed
from agent_exec.core.events import Event, EventKind
from agent_exec.display.text import get_terminal_width

STATUS_LINES = 4
PROMPT_PREVIEW = 80


class StatusLineFormatter:
    """Keeps a status block at the bottom of a TTY."""

    def __init__(
        self,
        wrapped,
        stream: TextIO,
        enabled: bool = True,
        is_tty: bool | None = None,
        terminal_width: int | None = None,
    ) -> None:
        self.wrapped = wrapped
        self.stream = stream
        self._lock = threading.Lock()
        if is_tty is None:
            is_tty = hasattr(stream, "isatty") and stream.isatty()
        self.enabled = enabled and is_tty
        self.terminal_width = terminal_width or get_terminal_width()

        self.status_visible = False
        self.iteration = 0
        self.total = 0
        self.is_evolve = False
        self.branch = ""
        self.prompt = ""
        self.cwd = os.getcwd()
        self.base_url = os.environ.get("ANTHROPIC_BASE_URL", "")
        self.started = time.monotonic()

    def format(self, event: Event) -> None:
        with self._lock:
            self.update_state(event)
            self._clear()
            self.wrapped.format(event)
            self._draw()

    def flush(self) -> None:
        with self._lock:
            self._clear()
            self.wrapped.flush()

    def update_state(self, event: Event) -> None:
        """Track the fields shown in the status block."""
        data = event.data
        if event.kind == EventKind.RUN_STARTED:
            self.cwd = data.cwd or self.cwd
            self.prompt = data.prompt
        elif event.kind == EventKind.ITERATION_STARTED:
            self.iteration, self.total, self.is_evolve = data.current, data.total, False
        elif event.kind == EventKind.ROUND_STARTED:
            self.iteration, self.total, self.is_evolve = data.round, data.total, True
        elif event.kind in (EventKind.BRANCH_CREATED, EventKind.BRANCH_CHECKED_OUT):
            self.branch = data.name

    def build_block(self) -> list[str]:
        """Return the four status lines (the first is a blank divider)."""
        parts = []
        if self.iteration > 0 and self.total > 0:
            label = "Round" if self.is_evolve else "Iter"
            parts.append(f"{label} {self.iteration}/{self.total}")
        if self.cwd:
            parts.append(f"CWD: {Path(self.cwd).name}")
        if self.branch:
            parts.append(f"Git Branch: {self.branch}")
        parts.append(f"Time: {format_elapsed(time.monotonic() - self.started)}")

        base_url = f"Base URL: {self.base_url}" if self.base_url else ""

        prompt_line = ""
        if self.prompt:
            prompt = (
                self.prompt.replace("\n", "\\n").replace("\r", "\\r").replace("\t", "\\t")
            )
            if len(prompt) > PROMPT_PREVIEW:
                prompt = prompt[:PROMPT_PREVIEW] + "..."
            prompt_line = f'Prompt: "{prompt}"'

        return ["", ", ".join(parts), base_url, prompt_line]

    def _fit(self, line: str) -> str:
        width = self.terminal_width
        if len(line) <= width:
            return line
        if width > 3:
            return line[: width - 3] + "..."
        return line[:width]

    def _draw(self) -> None:
        if not self.enabled:
            return
        for line in self.build_block():
            self.stream.write(self._fit(line) + "\n")
        self.stream.flush()
        self.status_visible = True

    def _clear(self) -> None:
        if not self.status_visible:
            return
        # Up to the first status line, blank each line, then return to the top.
        self.stream.write(f"\033[{STATUS_LINES}A")
        for i in range(STATUS_LINES):
            self.stream.write("\r\033[K")
            if i < STATUS_LINES - 1:
                self.stream.write("\n")
        self.stream.write(f"\r\033[{STATUS_LINES - 1}A")
        self.stream.flush()
        self.status_visible = False
