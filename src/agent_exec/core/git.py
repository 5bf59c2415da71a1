"""git wrapper for agent-exec.

Provides the handful of branch operations the evolve controller needs.
Every successful mutation emits one event; any failure raises GitError
carrying the command's combined output.
"""

import logging
import secrets
import subprocess
import time
from pathlib import Path

from agent_exec.core.errors import GitError
from agent_exec.core.events import (
    BranchCheckedOut,
    BranchCreated,
    BranchDeleted,
    CommitsSquashed,
    Emitter,
    EventKind,
)

logger = logging.getLogger(__name__)

BRANCH_PREFIX = "impl-"


def random_branch_name() -> str:
    """Generate a branch name like ``impl-a3f9c2`` (3 random bytes).

    Falls back to a timestamp-derived name if the system RNG is unavailable.
    """
    try:
        return BRANCH_PREFIX + secrets.token_hex(3)
    except OSError:
        return f"{BRANCH_PREFIX}{time.time_ns() % 1_000_000}"


class GitClient:
    """Runs git in ``cwd`` and reports mutations to an emitter."""

    def __init__(self, emitter: Emitter, cwd: Path | None = None) -> None:
        self.emitter = emitter
        self.cwd = cwd

    def _run(self, args: list[str], error: str) -> str:
        """Run ``git <args>`` and return stdout+stderr.

        Raises:
            GitError: If git exits non-zero or cannot be started.
        """
        cmd = ["git", *args]
        logger.debug("running %s", cmd)
        try:
            result = subprocess.run(
                cmd,
                cwd=self.cwd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
            )
        except OSError as e:
            raise GitError(f"{error}: {e}", command=cmd) from e

        if result.returncode != 0:
            output = result.stdout.strip()
            raise GitError(f"{error}: {output}", command=cmd, output=output)
        return result.stdout

    def current_branch(self) -> str:
        """Return the name of the checked-out branch."""
        output = self._run(
            ["rev-parse", "--abbrev-ref", "HEAD"], "failed to get current branch"
        )
        branch = output.strip()
        if not branch:
            raise GitError("failed to get current branch: empty output")
        return branch

    def create_branch(self, name: str) -> None:
        """Create ``name`` at HEAD and check it out."""
        self._run(["checkout", "-b", name], f"failed to create branch {name}")
        self.emitter.emit(EventKind.BRANCH_CREATED, BranchCreated(name=name, base=""))

    def create_branch_from(self, name: str, base: str) -> None:
        """Create ``name`` at ``base`` and check it out."""
        self._run(
            ["checkout", "-b", name, base],
            f"failed to create branch {name} from {base}",
        )
        self.emitter.emit(EventKind.BRANCH_CREATED, BranchCreated(name=name, base=base))

    def checkout(self, name: str) -> None:
        """Switch to ``name``."""
        self._run(["checkout", name], f"failed to checkout {name}")
        self.emitter.emit(EventKind.BRANCH_CHECKED_OUT, BranchCheckedOut(name=name))

    def delete_branch(self, name: str) -> None:
        """Force-delete ``name``."""
        self._run(["branch", "-D", name], f"failed to delete branch {name}")
        self.emitter.emit(EventKind.BRANCH_DELETED, BranchDeleted(name=name))

    def squash_since(self, base: str, message: str) -> None:
        """Collapse everything since the merge-base with ``base`` into one commit.

        The reset is soft so the working tree survives, and ``add -A`` picks
        up files claude created but never staged.
        """
        merge_base = self._run(
            ["merge-base", base, "HEAD"], f"failed to find merge base with {base}"
        ).strip()
        self._run(["reset", "--soft", merge_base], f"failed to reset to base {base}")
        self._run(["add", "-A"], "failed to stage changes for squash")
        self._run(["commit", "-m", message], "failed to commit squashed changes")
        self.emitter.emit(EventKind.COMMITS_SQUASHED, CommitsSquashed(branch=base))
