"""Loop command for agent-exec.

Runs the same prompt through Claude Code several times in a row.
"""

import click

from agent_exec.commands.common import (
    DURATION,
    display_session,
    exit_on_error,
    status_line_option,
    verbose_option,
)
from agent_exec.core.claude import PromptOptions
from agent_exec.core.errors import AgentExecError
from agent_exec.core.loop import run_prompt_loop
from agent_exec.core.validate import validate_loop_args


@click.command()
@click.argument("prompt")
@click.option(
    "-n",
    "--iterations",
    type=click.IntRange(min=1),
    default=1,
    show_default=True,
    help="Number of times to execute the prompt",
)
@click.option(
    "-s",
    "--sleep",
    type=DURATION,
    default="0",
    help="Sleep duration between iterations (e.g., 30s, 1m, 2h30m)",
)
@click.option("--system-prompt", default="", help="Replace the entire system prompt sent to Claude")
@click.option(
    "--append-system-prompt",
    default="",
    help="Append additional instructions to the default system prompt",
)
@verbose_option
@status_line_option
def loop(
    prompt: str,
    iterations: int,
    sleep: float,
    system_prompt: str,
    append_system_prompt: str,
    verbose: bool,
    status_line: bool,
) -> None:
    """Run the same prompt multiple times.

    Each iteration runs Claude Code headless with PROMPT. A failed
    iteration is reported and the loop continues. Ctrl-C stops before the
    next iteration (exit status 130).

    Examples:

        agent-exec loop "improve code quality" -n 5 -s 30s

        agent-exec loop "fix the failing tests" --append-system-prompt "Be brief."
    """
    try:
        validate_loop_args(iterations, prompt)
    except AgentExecError as e:
        exit_on_error(e)

    options = PromptOptions(
        system_prompt=system_prompt,
        append_system_prompt=append_system_prompt,
    )

    try:
        with display_session(verbose, status_line) as bus:
            run_prompt_loop(iterations, sleep, prompt, options, bus)
    except AgentExecError as e:
        exit_on_error(e)
