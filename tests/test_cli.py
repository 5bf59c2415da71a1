"""Tests for the agent-exec command line."""

import logging
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from agent_exec.cli import main
from agent_exec.commands.common import DURATION
from agent_exec.core.errors import ChildFailure, GitError, Interrupted, UnparsableJudgement
from agent_exec.core.events import EventKind, LoopStarted
from agent_exec.core.evolve import DEFAULT_COMPARE_PROMPT, DEFAULT_IMPROVE_PROMPT
from agent_exec.core.loop import LoopResult


@pytest.fixture
def runner():
    """Create a Click CLI test runner."""
    return CliRunner()


def test_help_lists_commands(runner):
    result = runner.invoke(main, ["--help"])
    assert result.exit_code == 0
    assert "loop" in result.output
    assert "evolve" in result.output


def test_duration_param_type():
    assert DURATION.convert("2h30m", None, None) == 9000.0
    assert DURATION.convert(5, None, None) == 5.0


# --- loop command tests ---


@patch("agent_exec.commands.loop.run_prompt_loop")
def test_loop_passes_arguments(mock_loop, runner):
    """Test the loop command forwards parsed options to the controller."""
    mock_loop.return_value = LoopResult(total=5, successful=5, failed=0)

    result = runner.invoke(
        main,
        [
            "loop",
            "improve code quality",
            "-n",
            "5",
            "-s",
            "1m30s",
            "--system-prompt",
            "sys",
            "--append-system-prompt",
            "extra",
            "--no-status-line",
        ],
    )

    assert result.exit_code == 0, result.output
    iterations, sleep, prompt, options, emitter = mock_loop.call_args[0]
    assert iterations == 5
    assert sleep == 90.0
    assert prompt == "improve code quality"
    assert options.system_prompt == "sys"
    assert options.append_system_prompt == "extra"


@patch("agent_exec.commands.loop.run_prompt_loop")
def test_loop_defaults(mock_loop, runner):
    mock_loop.return_value = LoopResult(total=1, successful=1, failed=0)
    result = runner.invoke(main, ["loop", "do it"])
    assert result.exit_code == 0
    iterations, sleep, _, options, _ = mock_loop.call_args[0]
    assert (iterations, sleep) == (1, 0.0)
    assert (options.system_prompt, options.append_system_prompt) == ("", "")


@patch("agent_exec.commands.loop.run_prompt_loop")
def test_loop_renders_events(mock_loop, runner):
    """Test events emitted by the controller reach stdout."""

    def emit_some(iterations, sleep, prompt, options, emitter):
        emitter.emit(EventKind.LOOP_STARTED, LoopStarted(total=iterations))
        return LoopResult(total=iterations, successful=iterations, failed=0)

    mock_loop.side_effect = emit_some
    result = runner.invoke(main, ["loop", "do it", "-n", "2"])

    assert result.exit_code == 0
    assert "Loop Started" in result.output
    assert "Iterations: 2" in result.output


@pytest.mark.parametrize(
    "prompt,message",
    [("", "prompt cannot be empty"), ("   ", "prompt cannot be whitespace-only")],
)
@patch("agent_exec.commands.loop.run_prompt_loop")
def test_loop_blank_prompt(mock_loop, runner, prompt, message):
    result = runner.invoke(main, ["loop", prompt])
    assert result.exit_code == 1
    assert f"Error: {message}" in result.output
    mock_loop.assert_not_called()


@pytest.mark.parametrize("args", [["-n", "0"], ["-n", "abc"], ["-s", "soon"], ["-s", "-5s"]])
@patch("agent_exec.commands.loop.run_prompt_loop")
def test_loop_usage_errors(mock_loop, runner, args):
    """Test bad option values are click usage errors."""
    result = runner.invoke(main, ["loop", "do it", *args])
    assert result.exit_code == 2
    mock_loop.assert_not_called()


@patch("agent_exec.commands.loop.run_prompt_loop")
def test_loop_interrupted_exit_code(mock_loop, runner):
    mock_loop.side_effect = Interrupted(completed=1, total=3)
    result = runner.invoke(main, ["loop", "do it", "-n", "3"])
    assert result.exit_code == 130
    assert "Error:" not in result.output


@patch("agent_exec.commands.loop.run_prompt_loop")
def test_loop_failure_exit_code(mock_loop, runner):
    mock_loop.side_effect = ChildFailure("failed to start claude CLI: not found")
    result = runner.invoke(main, ["loop", "do it"])
    assert result.exit_code == 1
    assert "Error: failed to start claude CLI: not found" in result.output


@patch("agent_exec.commands.loop.run_prompt_loop")
def test_loop_verbose_from_env(mock_loop, runner, monkeypatch):
    """Test AGENT_EXEC_VERBOSE turns on verbose output."""
    mock_loop.return_value = LoopResult(total=1, successful=1, failed=0)
    monkeypatch.setenv("AGENT_EXEC_VERBOSE", "1")
    with patch("agent_exec.commands.common.ConsoleFormatter") as mock_console:
        result = runner.invoke(main, ["loop", "do it", "--no-status-line"])
    assert result.exit_code == 0
    assert mock_console.call_args.kwargs["verbose"] is True


def test_loop_end_to_end_with_fake_claude(runner, fake_claude, tmp_path, monkeypatch):
    """Test a real loop run against a fake claude executable."""
    monkeypatch.chdir(tmp_path)
    fake_claude(
        [
            {"type": "assistant", "message": {"content": [{"type": "text", "text": "Working on it"}]}},
            {"type": "result", "duration_ms": 1200, "result": "done"},
        ]
    )

    result = runner.invoke(main, ["loop", "do it", "-n", "2", "--no-status-line"])

    assert result.exit_code == 0, result.output
    assert result.output.count("Working on it") == 2
    assert "Loop completed: 2/2 successful, 0 failed" in result.output


def test_loop_end_to_end_failed_iterations_still_exit_zero(runner, fake_claude, tmp_path, monkeypatch):
    """Test failed iterations are reported but do not fail the command."""
    monkeypatch.chdir(tmp_path)
    fake_claude([], exit_code=1)

    result = runner.invoke(main, ["loop", "do it", "-n", "2", "--no-status-line"])

    assert result.exit_code == 0
    assert "failed: claude CLI failed: exit status 1" in result.output
    assert "0/2 successful, 2 failed" in result.output


# --- evolve command tests ---


@patch("agent_exec.commands.evolve.run_evolve")
def test_evolve_defaults(mock_evolve, runner):
    mock_evolve.return_value = "impl-abc123"
    result = runner.invoke(main, ["evolve", "implement a snake game"])

    assert result.exit_code == 0, result.output
    config = mock_evolve.call_args[0][0]
    assert config.plan == "implement a snake game"
    assert config.improve_prompt == DEFAULT_IMPROVE_PROMPT
    assert config.compare_prompt == DEFAULT_COMPARE_PROMPT
    assert config.iterations == 3
    assert config.sleep == 0.0
    assert config.compare_error_retries == 3
    assert config.debug_keep_branches is False


@patch("agent_exec.commands.evolve.run_evolve")
def test_evolve_passes_all_options(mock_evolve, runner):
    mock_evolve.return_value = "impl-abc123"
    result = runner.invoke(
        main,
        [
            "evolve",
            "build it",
            "-n",
            "5",
            "-s",
            "10s",
            "-i",
            "make it faster",
            "-c",
            "which is slower?",
            "--compare-error-retries",
            "0",
            "--system-prompt",
            "p-sys",
            "--append-system-prompt",
            "p-app",
            "--improve-system-prompt",
            "i-sys",
            "--append-improve-system-prompt",
            "i-app",
            "--compare-system-prompt",
            "c-sys",
            "--append-compare-system-prompt",
            "c-app",
            "--debug-keep-branches",
        ],
    )

    assert result.exit_code == 0, result.output
    config = mock_evolve.call_args[0][0]
    assert config.iterations == 5
    assert config.sleep == 10.0
    assert config.improve_prompt == "make it faster"
    assert config.compare_prompt == "which is slower?"
    assert config.compare_error_retries == 0
    assert config.debug_keep_branches is True
    assert (config.plan_options.system_prompt, config.plan_options.append_system_prompt) == (
        "p-sys",
        "p-app",
    )
    assert (config.improve_options.system_prompt, config.improve_options.append_system_prompt) == (
        "i-sys",
        "i-app",
    )
    assert (config.compare_options.system_prompt, config.compare_options.append_system_prompt) == (
        "c-sys",
        "c-app",
    )


@patch("agent_exec.commands.evolve.run_evolve")
def test_evolve_blank_improve_prompt(mock_evolve, runner):
    result = runner.invoke(main, ["evolve", "build it", "-i", "  "])
    assert result.exit_code == 1
    assert "Error: prompt cannot be whitespace-only" in result.output
    mock_evolve.assert_not_called()


@patch("agent_exec.commands.evolve.run_evolve")
def test_evolve_negative_retries_usage_error(mock_evolve, runner):
    result = runner.invoke(main, ["evolve", "build it", "--compare-error-retries", "-1"])
    assert result.exit_code == 2
    mock_evolve.assert_not_called()


@pytest.mark.parametrize(
    "error,code",
    [
        (Interrupted(completed=1, total=3), 130),
        (GitError("failed to get current branch: fatal: not a git repository"), 1),
        (UnparsableJudgement("failed to parse comparison result after 3 retries"), 1),
    ],
)
@patch("agent_exec.commands.evolve.run_evolve")
def test_evolve_exit_codes(mock_evolve, runner, error, code):
    mock_evolve.side_effect = error
    result = runner.invoke(main, ["evolve", "build it"])
    assert result.exit_code == code
    if code == 1:
        assert f"Error: {error}" in result.output


# --- logging tests ---


@patch("agent_exec.commands.loop.run_prompt_loop")
def test_log_level_option(mock_loop, runner):
    mock_loop.return_value = LoopResult(total=1, successful=1, failed=0)
    result = runner.invoke(main, ["--log-level", "debug", "loop", "do it"])
    assert result.exit_code == 0
    assert logging.getLogger("agent_exec").level == logging.DEBUG


@patch("agent_exec.commands.loop.run_prompt_loop")
def test_log_level_from_env(mock_loop, runner, monkeypatch):
    mock_loop.return_value = LoopResult(total=1, successful=1, failed=0)
    monkeypatch.setenv("AGENT_EXEC_LOG_LEVEL", "ERROR")
    result = runner.invoke(main, ["loop", "do it"])
    assert result.exit_code == 0
    assert logging.getLogger("agent_exec").level == logging.ERROR
