"""Content trimming for non-verbose console output."""

from typing import Any

MAX_CODE_BLOCK_LINES = 10
MAX_CODE_BLOCK_CHARS = 5000
HIDDEN_PLACEHOLDER = "<hidden, use --verbose to see>"

# Tool inputs whose bulk is file contents rather than intent.
TOOL_INPUT_FILTERS: dict[str, tuple[str, ...]] = {
    "Write": ("content",),
    "Edit": ("new_string", "old_string"),
}


class ContentFilter:
    """Hides bulky tool inputs and truncates long blocks unless verbose."""

    def __init__(self, verbose: bool = False) -> None:
        self.verbose = verbose

    def filter_tool_input(self, tool_name: str, tool_input: dict[str, Any]) -> dict[str, Any]:
        """Return a copy of ``tool_input`` with filtered fields replaced."""
        if self.verbose:
            return tool_input

        filtered = dict(tool_input)
        for field in TOOL_INPUT_FILTERS.get(tool_name, ()):
            if field in filtered:
                filtered[field] = HIDDEN_PLACEHOLDER
        return filtered

    def limit(self, content: str) -> str:
        """Truncate ``content`` to MAX_CODE_BLOCK_LINES and MAX_CODE_BLOCK_CHARS."""
        if self.verbose:
            return content

        lines = content.split("\n")
        if len(lines) > MAX_CODE_BLOCK_LINES:
            hidden = len(lines) - MAX_CODE_BLOCK_LINES
            lines = lines[:MAX_CODE_BLOCK_LINES]
            lines.append(f"... ({hidden} more lines hidden, use --verbose to see all)")
        result = "\n".join(lines)

        if len(result) > MAX_CODE_BLOCK_CHARS:
            hidden_chars = len(content) - MAX_CODE_BLOCK_CHARS
            result = (
                result[:MAX_CODE_BLOCK_CHARS]
                + f"\n... ({hidden_chars} more characters hidden, use --verbose to see all)"
            )
        return result
