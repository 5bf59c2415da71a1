"""Judge prompt construction and response parsing for evolve comparisons."""

from agent_exec.core.errors import JudgementParseError

# Wording is load-bearing: the judge's success rate depends on it.
COMPARE_TEMPLATE = (
    "{prompt}\n\n"
    "Branch names to compare:\n"
    "- {first}\n"
    "- {second}\n\n"
    "Respond with ONLY the branch name that should be DELETED (the worse one)."
)


def build_compare_prompt(compare_prompt: str, first: str, second: str) -> str:
    """Append the two candidate branch names and the answer directive."""
    return COMPARE_TEMPLATE.format(prompt=compare_prompt, first=first, second=second)


def parse_loser(response: str, first: str, second: str) -> str:
    """Extract the branch the judge wants deleted.

    If exactly one name appears anywhere in the response it wins. Otherwise
    the trimmed last line must equal one of the names exactly.

    Raises:
        JudgementParseError: If neither rule yields a name.
    """
    response = response.strip()

    has_first = first in response
    has_second = second in response
    if has_first and not has_second:
        return first
    if has_second and not has_first:
        return second

    last_line = response.split("\n")[-1].strip()
    if last_line == first:
        return first
    if last_line == second:
        return second

    raise JudgementParseError("could not parse loser branch from response")
