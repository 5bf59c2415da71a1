"""Event consumer that drives a formatter from a background thread."""

import threading
from typing import Protocol

import click

from agent_exec.core.events import Emitter, Event


class EventFormatter(Protocol):
    def format(self, event: Event) -> None: ...

    def flush(self) -> None: ...


class Display:
    """Drains an emitter's stream into a formatter.

    Call ``start()`` before the controller runs and ``wait()`` after the
    emitter has been closed; ``wait()`` returns once every queued event has
    been formatted and the formatter flushed.
    """

    def __init__(self, formatter: EventFormatter, emitter: Emitter) -> None:
        self.formatter = formatter
        self.emitter = emitter
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        self._thread = threading.Thread(target=self._consume, name="agent-exec-display", daemon=True)
        self._thread.start()

    def _consume(self) -> None:
        for event in self.emitter.subscribe():
            try:
                self.formatter.format(event)
            except Exception as e:
                # A rendering bug must not stall the producer.
                click.echo(f"[display] format error: {e}", err=True)
        try:
            self.formatter.flush()
        except (OSError, ValueError) as e:
            click.echo(f"[display] flush error: {e}", err=True)

    def wait(self, timeout: float | None = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)
