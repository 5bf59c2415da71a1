"""Input validation shared by the loop and evolve controllers."""

from agent_exec.core.errors import InvalidInput


def validate_prompt(prompt: str) -> None:
    """Reject empty and whitespace-only prompts."""
    if not prompt:
        raise InvalidInput("prompt cannot be empty")
    if not prompt.strip():
        raise InvalidInput("prompt cannot be whitespace-only")


def validate_loop_args(iterations: int, prompt: str) -> None:
    """Validate the iteration count and the prompt for a loop run."""
    if iterations < 1:
        raise InvalidInput("iterations must be a positive number")
    validate_prompt(prompt)
