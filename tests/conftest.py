"""Shared pytest fixtures for agent-exec tests."""

import logging
import shutil
import stat
import subprocess
import sys
from datetime import datetime

import orjson
import pytest

from agent_exec.core.claude import CLAUDE_BIN_ENV
from agent_exec.core.events import Event, EventKind


class RecordingEmitter:
    """Emitter that keeps every event in memory."""

    def __init__(self):
        self.events: list[Event] = []
        self.closed = False

    def emit(self, kind, data):
        if self.closed:
            return
        self.events.append(Event(kind=kind, timestamp=datetime.now(), data=data))

    def subscribe(self):
        return iter(list(self.events))

    def close(self):
        self.closed = True

    def kinds(self) -> list[EventKind]:
        return [event.kind for event in self.events]

    def of_kind(self, kind: EventKind) -> list:
        return [event.data for event in self.events if event.kind == kind]


@pytest.fixture
def recorder():
    """A fresh RecordingEmitter."""
    return RecordingEmitter()


def git_available() -> bool:
    return shutil.which("git") is not None


def git(cwd, *args) -> str:
    """Run git in ``cwd`` and return stdout, failing the test on error."""
    result = subprocess.run(
        ["git", *args], cwd=cwd, capture_output=True, text=True, check=True
    )
    return result.stdout


@pytest.fixture
def run_git():
    """The ``git`` helper, for tests that inspect repository state."""
    return git


@pytest.fixture
def git_repo(tmp_path, monkeypatch):
    """A throwaway repository on branch ``main`` with one commit.

    The working directory is switched into the repository and git's global
    config is isolated so commits work on any machine.
    """
    if not git_available():
        pytest.skip("git not installed")

    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")

    repo = tmp_path / "repo"
    repo.mkdir()
    git(repo, "init", "-q")
    git(repo, "symbolic-ref", "HEAD", "refs/heads/main")
    git(repo, "config", "user.email", "test@example.com")
    git(repo, "config", "user.name", "Test")
    git(repo, "config", "commit.gpgsign", "false")
    (repo / "README.md").write_text("hello\n")
    git(repo, "add", "README.md")
    git(repo, "commit", "-q", "-m", "initial")

    monkeypatch.chdir(repo)
    return repo


FAKE_CLAUDE = """\
#!{python}
import json
import sys

with open({argv_path!r}, "w") as f:
    json.dump(sys.argv[1:], f)
sys.stdout.write({stdout!r})
sys.stdout.flush()
sys.exit({exit_code})
"""


@pytest.fixture
def fake_claude(tmp_path, monkeypatch):
    """Factory installing a fake claude executable.

    Call it with the frames (dicts, or raw strings for malformed lines) the
    fake should print and its exit status. Returns the path of a JSON file
    that will hold the argv the fake was started with.
    """

    def install(frames, exit_code=0):
        lines = []
        for frame in frames:
            if isinstance(frame, str):
                lines.append(frame)
            else:
                lines.append(orjson.dumps(frame).decode())
        argv_path = tmp_path / "claude-argv.json"
        script = tmp_path / "fake-claude"
        script.write_text(
            FAKE_CLAUDE.format(
                python=sys.executable,
                argv_path=str(argv_path),
                stdout="".join(line + "\n" for line in lines),
                exit_code=exit_code,
            )
        )
        script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        monkeypatch.setenv(CLAUDE_BIN_ENV, str(script))
        return argv_path

    return install


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the caller's environment from leaking into command defaults."""
    for name in (
        "AGENT_EXEC_VERBOSE",
        "AGENT_EXEC_STATUS_LINE",
        "AGENT_EXEC_LOG_LEVEL",
        "ANTHROPIC_BASE_URL",
        CLAUDE_BIN_ENV,
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def reset_logging():
    """Undo configure_logging so handlers never outlive a CliRunner stream."""
    yield
    logger = logging.getLogger("agent_exec")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
