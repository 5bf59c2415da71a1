"""Claude Code child invoker.

Runs ``claude`` in headless stream-json mode, turns each stdout frame into
events, and returns the final result text.
"""

import logging
import os
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable

import orjson

from agent_exec.core.errors import ChildFailure, StreamParseError
from agent_exec.core.events import (
    AssistantText,
    Emitter,
    EventKind,
    ExecutionResult,
    RunStarted,
    ToolResult,
    ToolUse,
)
from agent_exec.core.validate import validate_prompt

logger = logging.getLogger(__name__)

CLAUDE_BIN_ENV = "AGENT_EXEC_CLAUDE_BIN"
DEFAULT_CLAUDE_BIN = "claude"

# stdout is read line by line; a single frame may not exceed this.
MAX_LINE_BYTES = 10 * 1024 * 1024
READ_BUFFER_BYTES = 1024 * 1024


@dataclass
class PromptOptions:
    """Optional system prompt shaping for one claude invocation.

    Empty strings mean "leave Claude Code's default alone".
    """

    system_prompt: str = ""
    append_system_prompt: str = ""


def build_claude_args(prompt: str, options: PromptOptions | None = None) -> list[str]:
    """Build the claude CLI arguments (without the executable)."""
    options = options or PromptOptions()
    args = ["--verbose", "--output-format", "stream-json", "-p", prompt]
    if options.system_prompt:
        args.extend(["--system-prompt", options.system_prompt])
    if options.append_system_prompt:
        args.extend(["--append-system-prompt", options.append_system_prompt])
    return args


def get_claude_bin() -> str:
    """Return the claude executable, honouring AGENT_EXEC_CLAUDE_BIN."""
    return os.environ.get(CLAUDE_BIN_ENV) or DEFAULT_CLAUDE_BIN


def content_to_string(content: Any) -> str:
    """Coerce a tool_result ``content`` field to text.

    Strings pass through, arrays are concatenated element by element,
    anything else (including a missing field) becomes an empty string.
    """
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return "".join(_element_to_string(item) for item in content)
    return ""


def _element_to_string(item: Any) -> str:
    if isinstance(item, str):
        return item
    if isinstance(item, bool):
        return "true" if item else "false"
    if item is None:
        return ""
    if isinstance(item, (int, float)):
        return str(item)
    return orjson.dumps(item).decode()


def _content_items(frame: dict) -> list:
    message = frame.get("message")
    if not isinstance(message, dict):
        return []
    content = message.get("content")
    return content if isinstance(content, list) else []


def handle_frame(frame: dict, emitter: Emitter) -> str | None:
    """Emit events for one decoded frame.

    Returns:
        The frame's result text if it is a ``result`` frame carrying one.
    """
    frame_type = frame.get("type")

    if frame_type == "assistant":
        for item in _content_items(frame):
            if not isinstance(item, dict):
                continue
            if item.get("type") == "text":
                text = _element_to_string(item.get("text", ""))
                emitter.emit(EventKind.ASSISTANT_TEXT, AssistantText(text=text))
            elif item.get("type") == "tool_use":
                tool_input = item.get("input")
                emitter.emit(
                    EventKind.TOOL_USE,
                    ToolUse(
                        name=item.get("name", ""),
                        input=tool_input if isinstance(tool_input, dict) else {},
                    ),
                )

    elif frame_type == "user":
        for item in _content_items(frame):
            if not isinstance(item, dict) or item.get("type") != "tool_result":
                continue
            text = content_to_string(item.get("content"))
            if text:
                emitter.emit(EventKind.TOOL_RESULT, ToolResult(content=text))

    elif frame_type == "result":
        duration_ms = frame.get("duration_ms")
        if isinstance(duration_ms, (int, float)) and not isinstance(duration_ms, bool) and duration_ms > 0:
            emitter.emit(EventKind.EXECUTION_RESULT, ExecutionResult(duration=duration_ms * 1e-3))
        result = frame.get("result")
        if isinstance(result, str) and result:
            return result

    return None


def parse_stream(lines: Iterable[bytes | str], emitter: Emitter) -> str:
    """Consume claude's stream-json output and emit events.

    Args:
        lines: Raw stdout lines, with or without trailing newlines.
        emitter: Destination for the derived events.

    Returns:
        The last non-empty ``result`` text, or "" if there was none.

    Raises:
        StreamParseError: On the first line that is not a JSON object or that
            exceeds MAX_LINE_BYTES.
    """
    final_text = ""
    for raw in lines:
        if len(raw) > MAX_LINE_BYTES:
            raise StreamParseError(
                f"stream line exceeds {MAX_LINE_BYTES} bytes", line=_preview(raw)
            )
        line = raw.strip()
        if not line:
            continue
        try:
            frame = orjson.loads(line)
        except orjson.JSONDecodeError as e:
            raise StreamParseError(f"invalid JSON from claude: {e}", line=_preview(line)) from e
        if not isinstance(frame, dict):
            raise StreamParseError(
                f"expected a JSON object from claude, got {type(frame).__name__}",
                line=_preview(line),
            )
        result = handle_frame(frame, emitter)
        if result is not None:
            final_text = result
    return final_text


def _preview(line: bytes | str, limit: int = 200) -> str:
    text = line.decode(errors="replace") if isinstance(line, bytes) else line
    return text[:limit]


def get_cwd_info() -> tuple[str, str]:
    """Return the working directory and a bracketed listing of its entries."""
    cwd = Path.cwd()
    names = sorted(entry.name for entry in cwd.iterdir())
    return str(cwd), " [" + ", ".join(names) + "]"


def run_prompt(prompt: str, options: PromptOptions | None, emitter: Emitter) -> str:
    """Run one claude invocation to completion.

    Emits RUN_STARTED followed by the events derived from claude's output.
    stderr is inherited and no stdin is provided.

    Returns:
        The final result text ("" if claude never reported one).

    Raises:
        InvalidInput: If the prompt is empty or whitespace-only.
        StreamParseError: If claude writes a line that is not JSON.
        ChildFailure: If claude cannot be started or exits non-zero.
    """
    validate_prompt(prompt)

    cwd, file_list = get_cwd_info()
    emitter.emit(
        EventKind.RUN_STARTED,
        RunStarted(
            prompt=prompt,
            cwd=cwd,
            base_url=os.environ.get("ANTHROPIC_BASE_URL", ""),
            file_list=file_list,
        ),
    )

    cmd = [get_claude_bin(), *build_claude_args(prompt, options)]
    logger.debug("running %s", cmd)

    try:
        proc = subprocess.Popen(
            cmd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=None,
            bufsize=READ_BUFFER_BYTES,
        )
    except OSError as e:
        raise ChildFailure(f"failed to start claude CLI: {e}") from e

    try:
        final_text = parse_stream(proc.stdout, emitter)
    except StreamParseError:
        # Stop reading; closing the pipe lets a still-writing child exit.
        proc.stdout.close()
        proc.wait()
        raise
    finally:
        if not proc.stdout.closed:
            proc.stdout.close()

    returncode = proc.wait()
    if returncode != 0:
        raise ChildFailure(f"claude CLI failed: exit status {returncode}", returncode=returncode)

    return final_text
