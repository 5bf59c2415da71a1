"""agent-exec command line entry point."""

import logging

import click

from agent_exec.commands.evolve import evolve
from agent_exec.commands.loop import loop

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def configure_logging(level: str) -> None:
    """Send agent_exec log records to stderr at ``level``."""
    logger = logging.getLogger("agent_exec")
    logger.setLevel(level)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    logger.propagate = False


@click.group()
@click.version_option(package_name="agent-exec")
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="WARNING",
    envvar="AGENT_EXEC_LOG_LEVEL",
    show_default=True,
    help="Diagnostic log level (stderr)",
)
def main(log_level: str) -> None:
    """Automated iterative improvement with Claude Code.

    Runs Claude Code headless and renders its stream as readable terminal
    output, trading time and tokens for better results.
    """
    configure_logging(log_level.upper())


main.add_command(loop)
main.add_command(evolve)


if __name__ == "__main__":
    main()
