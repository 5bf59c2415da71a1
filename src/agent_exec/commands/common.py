"""Pieces shared by the loop and evolve commands."""

import sys
from contextlib import contextmanager
from typing import Iterator

import click

from agent_exec.core.duration import parse_duration
from agent_exec.core.errors import AgentExecError, Interrupted
from agent_exec.core.events import EVENT_BUFFER_SIZE, EventBus
from agent_exec.display.console import ConsoleFormatter
from agent_exec.display.display import Display
from agent_exec.display.status_line import StatusLineFormatter

EXIT_ERROR = 1
EXIT_INTERRUPTED = 130


class DurationParamType(click.ParamType):
    """Accepts Go-style durations (``30s``, ``2h30m``) and returns seconds."""

    name = "duration"

    def convert(self, value, param, ctx):
        if isinstance(value, (int, float)):
            if value < 0:
                self.fail(f"negative duration: {value}", param, ctx)
            return float(value)
        try:
            return parse_duration(value)
        except ValueError as e:
            self.fail(str(e), param, ctx)


DURATION = DurationParamType()


def verbose_option(f):
    return click.option(
        "-v",
        "--verbose",
        is_flag=True,
        envvar="AGENT_EXEC_VERBOSE",
        help="Show verbose output including full tool inputs and results",
    )(f)


def status_line_option(f):
    return click.option(
        "--status-line/--no-status-line",
        default=True,
        envvar="AGENT_EXEC_STATUS_LINE",
        show_default=True,
        help="Show an updating status block (TTY only)",
    )(f)


@contextmanager
def display_session(verbose: bool, status_line: bool) -> Iterator[EventBus]:
    """Run the body with an event bus drained by a console display.

    The bus is closed and the display drained on the way out, whatever
    the body raised.
    """
    bus = EventBus(EVENT_BUFFER_SIZE)
    formatter = ConsoleFormatter(sys.stdout, verbose=verbose)
    if status_line:
        formatter = StatusLineFormatter(formatter, sys.stdout, enabled=True)
    display = Display(formatter, bus)
    display.start()
    try:
        yield bus
    finally:
        bus.close()
        display.wait()


def exit_on_error(e: AgentExecError) -> None:
    """Report ``e`` and exit with the matching status."""
    if isinstance(e, Interrupted):
        raise SystemExit(EXIT_INTERRUPTED)
    click.echo(f"Error: {e}", err=True)
    raise SystemExit(EXIT_ERROR)
