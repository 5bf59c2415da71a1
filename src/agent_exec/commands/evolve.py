"""Evolve command for agent-exec.

Tournament-style code evolution using git branches as sandboxes.
"""

import click

from agent_exec.commands.common import (
    DURATION,
    display_session,
    exit_on_error,
    status_line_option,
    verbose_option,
)
from agent_exec.core.errors import AgentExecError
from agent_exec.core.evolve import (
    DEFAULT_COMPARE_ERROR_RETRIES,
    DEFAULT_COMPARE_PROMPT,
    DEFAULT_EVOLVE_ITERATIONS,
    DEFAULT_IMPROVE_PROMPT,
    EvolveConfig,
    run_evolve,
)


@click.command()
@click.argument("prompt")
@click.option(
    "-i",
    "--improve",
    "improve_prompt",
    default=DEFAULT_IMPROVE_PROMPT,
    show_default=True,
    help="Prompt for creating improved challenger implementations",
)
@click.option(
    "-c",
    "--compare",
    "compare_prompt",
    default=DEFAULT_COMPARE_PROMPT,
    show_default=True,
    help="Prompt for comparing and selecting the worse implementation",
)
@click.option(
    "-n",
    "--iterations",
    type=click.IntRange(min=1),
    default=DEFAULT_EVOLVE_ITERATIONS,
    show_default=True,
    help="Number of evolution rounds to run",
)
@click.option(
    "-s",
    "--sleep",
    type=DURATION,
    default="0",
    help="Sleep duration between evolution rounds (e.g., 30s, 1m)",
)
@click.option(
    "--compare-error-retries",
    type=click.IntRange(min=0),
    default=DEFAULT_COMPARE_ERROR_RETRIES,
    show_default=True,
    help="Retry attempts when the comparison answer names no branch",
)
@click.option("--system-prompt", default="", help="Replace the system prompt for the initial implementation")
@click.option(
    "--append-system-prompt",
    default="",
    help="Append to the default system prompt for the initial implementation",
)
@click.option("--improve-system-prompt", default="", help="Replace the system prompt for improvement steps")
@click.option(
    "--append-improve-system-prompt",
    default="",
    help="Append to the default system prompt for improvement steps",
)
@click.option("--compare-system-prompt", default="", help="Replace the system prompt for comparison steps")
@click.option(
    "--append-compare-system-prompt",
    default="",
    help="Append to the default system prompt for comparison steps",
)
@click.option(
    "--debug-keep-branches",
    is_flag=True,
    help="Keep losing branches for debugging instead of deleting them",
)
@verbose_option
@status_line_option
def evolve(
    prompt: str,
    improve_prompt: str,
    compare_prompt: str,
    iterations: int,
    sleep: float,
    compare_error_retries: int,
    system_prompt: str,
    append_system_prompt: str,
    improve_system_prompt: str,
    append_improve_system_prompt: str,
    compare_system_prompt: str,
    append_compare_system_prompt: str,
    debug_keep_branches: bool,
    verbose: bool,
    status_line: bool,
) -> None:
    """Tournament-style code evolution using git branches.

    Creates an initial implementation of PROMPT on a new branch, then runs
    rounds of:

    \b
      1. Create a challenger branch from the current winner
      2. Run the improvement prompt on the challenger
      3. Ask Claude which branch is worse and delete it
      4. Repeat with the winner

    The final winner is left checked out. Run from a clean git working tree.

    Example:

        agent-exec evolve "implement a snake game" -n 3
    """
    config = EvolveConfig(
        plan=prompt,
        improve_prompt=improve_prompt,
        compare_prompt=compare_prompt,
        iterations=iterations,
        sleep=sleep,
        compare_error_retries=compare_error_retries,
        debug_keep_branches=debug_keep_branches,
        plan_system_prompt=system_prompt,
        plan_append_system_prompt=append_system_prompt,
        improve_system_prompt=improve_system_prompt,
        improve_append_system_prompt=append_improve_system_prompt,
        compare_system_prompt=compare_system_prompt,
        compare_append_system_prompt=append_compare_system_prompt,
    )

    try:
        config.validate()
    except AgentExecError as e:
        exit_on_error(e)

    try:
        with display_session(verbose, status_line) as bus:
            run_evolve(config, bus)
    except AgentExecError as e:
        exit_on_error(e)
