"""Error types for agent-exec.

Every failure the controllers can surface derives from ``AgentExecError`` so
the command layer can map it to an exit status in one place.
"""


class AgentExecError(Exception):
    """Base class for agent-exec failures."""

    pass


class InvalidInput(AgentExecError):
    """Raised when a prompt or iteration count is rejected up front."""

    pass


class ChildFailure(AgentExecError):
    """Raised when the claude subprocess cannot start or exits non-zero."""

    def __init__(self, message: str, returncode: int | None = None) -> None:
        super().__init__(message)
        self.returncode = returncode


class StreamParseError(AgentExecError):
    """Raised when a stdout line from claude is not valid JSON."""

    def __init__(self, message: str, line: str = "") -> None:
        super().__init__(message)
        self.line = line


class JudgementParseError(AgentExecError):
    """Raised when a single judge response names neither or both branches."""

    pass


class UnparsableJudgement(AgentExecError):
    """Raised when every comparison attempt failed to name a loser."""

    pass


class GitError(AgentExecError):
    """Raised when a git command fails."""

    def __init__(self, message: str, command: list[str] | None = None, output: str = "") -> None:
        super().__init__(message)
        self.command = command or []
        self.output = output


class Interrupted(AgentExecError):
    """Raised when SIGINT/SIGTERM was observed at a suspension point."""

    def __init__(self, completed: int = 0, total: int = 0) -> None:
        super().__init__("interrupted")
        self.completed = completed
        self.total = total
