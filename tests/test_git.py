"""Tests for the git wrapper, run against a real throwaway repository."""

import re
from unittest.mock import patch

import pytest

from agent_exec.core.errors import GitError
from agent_exec.core.events import EventKind
from agent_exec.core.git import GitClient, random_branch_name


def test_random_branch_name_format():
    """Test names look like impl-xxxxxx with six hex digits."""
    name = random_branch_name()
    assert re.fullmatch(r"impl-[0-9a-f]{6}", name)


def test_random_branch_name_fallback():
    """Test the timestamp fallback when the RNG is unavailable."""
    with patch("agent_exec.core.git.secrets.token_hex", side_effect=OSError("no entropy")):
        name = random_branch_name()
    assert name.startswith("impl-")


def test_current_branch(git_repo, recorder):
    assert GitClient(recorder).current_branch() == "main"


def test_create_branch_checks_out(git_repo, recorder):
    """Test create_branch switches to the new branch and emits once."""
    client = GitClient(recorder)
    client.create_branch("impl-aaaaaa")

    assert client.current_branch() == "impl-aaaaaa"
    assert recorder.kinds() == [EventKind.BRANCH_CREATED]
    assert recorder.events[0].data.name == "impl-aaaaaa"
    assert recorder.events[0].data.base == ""


def test_create_branch_from_base(git_repo, recorder):
    """Test create_branch_from records the base branch."""
    client = GitClient(recorder, cwd=git_repo)
    client.create_branch("impl-aaaaaa")
    client.checkout("main")
    client.create_branch_from("impl-bbbbbb", "impl-aaaaaa")

    assert client.current_branch() == "impl-bbbbbb"
    created = recorder.of_kind(EventKind.BRANCH_CREATED)
    assert created[-1].name == "impl-bbbbbb"
    assert created[-1].base == "impl-aaaaaa"


def test_create_branch_duplicate_fails(git_repo, recorder):
    """Test a failing command raises GitError carrying git's output."""
    client = GitClient(recorder)
    client.create_branch("impl-aaaaaa")

    with pytest.raises(GitError) as exc_info:
        client.create_branch("impl-aaaaaa")

    assert "failed to create branch impl-aaaaaa" in str(exc_info.value)
    assert exc_info.value.output
    assert exc_info.value.command[:3] == ["git", "checkout", "-b"]
    # No event for the failed mutation
    assert recorder.kinds() == [EventKind.BRANCH_CREATED]


def test_checkout_and_delete(git_repo, recorder, run_git):
    client = GitClient(recorder)
    client.create_branch("impl-aaaaaa")
    client.checkout("main")
    client.delete_branch("impl-aaaaaa")

    assert "impl-aaaaaa" not in run_git(git_repo, "branch", "--list")
    assert recorder.kinds() == [
        EventKind.BRANCH_CREATED,
        EventKind.BRANCH_CHECKED_OUT,
        EventKind.BRANCH_DELETED,
    ]


def test_checkout_missing_branch(git_repo, recorder):
    with pytest.raises(GitError, match="failed to checkout nope"):
        GitClient(recorder).checkout("nope")


def test_squash_since_makes_single_commit(git_repo, recorder, run_git):
    """Test several commits collapse into one on top of the merge-base."""
    client = GitClient(recorder)
    base_sha = run_git(git_repo, "rev-parse", "main").strip()
    client.create_branch("impl-aaaaaa")

    for i in range(3):
        (git_repo / f"file{i}.txt").write_text(f"{i}\n")
        run_git(git_repo, "add", ".")
        run_git(git_repo, "commit", "-q", "-m", f"wip {i}")

    client.squash_since("main", "implement: thing")

    log = run_git(git_repo, "log", "--format=%s", f"{base_sha}..HEAD").splitlines()
    assert log == ["implement: thing"]
    assert run_git(git_repo, "rev-parse", "HEAD~1").strip() == base_sha
    squashed = recorder.of_kind(EventKind.COMMITS_SQUASHED)
    assert squashed[0].branch == "main"


def test_squash_since_keeps_untracked_files(git_repo, recorder, run_git):
    """Test files never staged by the agent end up in the squashed commit."""
    client = GitClient(recorder)
    client.create_branch("impl-aaaaaa")
    (git_repo / "new_module.py").write_text("print('hi')\n")
    (git_repo / "README.md").write_text("changed\n")

    client.squash_since("main", "implement: thing")

    files = run_git(git_repo, "show", "--name-only", "--format=", "HEAD").split()
    assert sorted(files) == ["README.md", "new_module.py"]
    assert run_git(git_repo, "status", "--porcelain") == ""
    assert (git_repo / "new_module.py").exists()


def test_squash_since_nothing_to_commit(git_repo, recorder):
    """Test squashing with no changes fails rather than silently succeeding."""
    client = GitClient(recorder)
    client.create_branch("impl-aaaaaa")

    with pytest.raises(GitError, match="failed to commit squashed changes"):
        client.squash_since("main", "implement: nothing")
    assert EventKind.COMMITS_SQUASHED not in recorder.kinds()


def test_git_not_a_repository(tmp_path, recorder, monkeypatch):
    """Test running outside a repository raises GitError."""
    monkeypatch.setenv("GIT_CEILING_DIRECTORIES", str(tmp_path))
    with pytest.raises(GitError, match="failed to get current branch"):
        GitClient(recorder, cwd=tmp_path).current_branch()
