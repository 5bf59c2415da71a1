"""Console formatter: renders events as coloured, framed text."""

from typing import TextIO

import click

from agent_exec.core.events import Event
from agent_exec.display.content import ContentFilter
from agent_exec.display.formatters import FORMATTERS, FormatContext
from agent_exec.display.text import TextFormatter


class ConsoleFormatter:
    """Writes one block per event, separated by a blank line.

    Colours are emitted through click, which strips them when ``stream``
    is not a terminal unless ``color`` forces them on or off.
    """

    def __init__(
        self,
        stream: TextIO,
        verbose: bool = False,
        color: bool | None = None,
        terminal_width: int | None = None,
    ) -> None:
        self.stream = stream
        self.verbose = verbose
        self.color = color
        self.context = FormatContext(
            text=TextFormatter(terminal_width),
            content_filter=ContentFilter(verbose),
            verbose=verbose,
        )

    def render(self, event: Event) -> str:
        """Return the text for ``event`` without writing it."""
        formatter = FORMATTERS.get(event.kind)
        if formatter is None:
            raise ValueError(f"no formatter registered for event {event.kind!r}")
        return formatter(event, self.context)

    def format(self, event: Event) -> None:
        output = self.render(event)
        click.echo("\n" + output.rstrip("\n"), file=self.stream, color=self.color)

    def flush(self) -> None:
        self.stream.flush()
