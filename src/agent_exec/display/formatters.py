"""Per-event formatters for the console display.

Each formatter turns one event into a block of text. ``FORMATTERS`` maps
every ``EventKind`` to its formatter; ``EVENT_STYLES`` gives the colour.
"""

from dataclasses import dataclass
from typing import Callable

import click
import orjson

from agent_exec.core.events import Event, EventKind
from agent_exec.display.content import ContentFilter
from agent_exec.display.text import TextFormatter


@dataclass
class FormatContext:
    """Dependencies handed to every formatter."""

    text: TextFormatter
    content_filter: ContentFilter
    verbose: bool = False

    def stamp(self) -> str:
        return f"[{self.text.format_time()}] "


FormatFn = Callable[[Event, FormatContext], str]

_HEADLINE = {"fg": "yellow", "bold": True}
_SUCCESS = {"fg": "green", "bold": True}
_FAILURE = {"fg": "red", "bold": True}
_GIT = {"fg": "magenta"}

EVENT_STYLES: dict[EventKind, dict] = {
    EventKind.RUN_STARTED: {"fg": "cyan", "bold": True},
    EventKind.LOOP_STARTED: _HEADLINE,
    EventKind.ITERATION_STARTED: _HEADLINE,
    EventKind.EVOLVE_STARTED: _HEADLINE,
    EventKind.ROUND_STARTED: _HEADLINE,
    EventKind.IMPROVEMENT_STARTED: _HEADLINE,
    EventKind.COMPARISON_STARTED: _HEADLINE,
    EventKind.SLEEP_STARTED: _HEADLINE,
    EventKind.EXECUTION_RESULT: _SUCCESS,
    EventKind.LOOP_COMPLETED: _SUCCESS,
    EventKind.EVOLVE_COMPLETED: _SUCCESS,
    EventKind.ITERATION_COMPLETED: _SUCCESS,
    EventKind.WINNER_SELECTED: _SUCCESS,
    EventKind.ITERATION_FAILED: _FAILURE,
    EventKind.LOOP_INTERRUPTED: _FAILURE,
    EventKind.EVOLVE_INTERRUPTED: _FAILURE,
    EventKind.ASSISTANT_TEXT: {"fg": "magenta"},
    EventKind.COMPARISON_RETRY: {"fg": "magenta"},
    EventKind.BRANCH_CREATED: _GIT,
    EventKind.BRANCH_CHECKED_OUT: _GIT,
    EventKind.BRANCH_DELETED: _GIT,
    EventKind.COMMITS_SQUASHED: _GIT,
}


def style_for(kind: EventKind) -> dict:
    return EVENT_STYLES.get(kind, {})


def _styled(event: Event, message: str) -> str:
    return click.style(message, **style_for(event.kind))


def _banner(event: Event, ctx: FormatContext, message: str) -> str:
    return ctx.text.reverse(message, style_for(event.kind))


# ---------------------------------------------------------------------------
# claude runs
# ---------------------------------------------------------------------------


def format_run_started(event: Event, ctx: FormatContext) -> str:
    data = event.data
    output = _styled(event, "🚀 Run Prompt Started") + ctx.text.frame(data.prompt, border=True)
    if data.base_url:
        url = click.style(data.base_url, bold=True, underline=True)
        output += ctx.text.indent(f"🌐 Base URL: {url}") + "\n"
    if data.cwd:
        output += ctx.text.indent(f"📁 Working Directory: {data.cwd}") + "\n"
    if data.file_list:
        output += ctx.text.indent(f"📄 File List: {data.file_list}") + "\n"
    return output


def format_assistant_text(event: Event, ctx: FormatContext) -> str:
    title = _styled(event, f"💬 {ctx.stamp()}Assistant")
    return title + ctx.text.frame(event.data.text, style=style_for(event.kind))


def format_tool_use(event: Event, ctx: FormatContext) -> str:
    data = event.data
    tool_input = ctx.content_filter.filter_tool_input(data.name, data.input)
    pretty = orjson.dumps(tool_input, option=orjson.OPT_INDENT_2, default=str).decode()
    title = _styled(event, f"🔧 {ctx.stamp()}Tool: {data.name}")
    return title + ctx.text.frame(ctx.content_filter.limit(pretty))


def format_tool_result(event: Event, ctx: FormatContext) -> str:
    title = _styled(event, f"📋 {ctx.stamp()}Tool Result")
    return title + ctx.text.frame(ctx.content_filter.limit(event.data.content))


def format_execution_result(event: Event, ctx: FormatContext) -> str:
    duration = ctx.text.format_duration(event.data.duration)
    return _styled(event, f"⏱️ Execution completed in {duration}")


# ---------------------------------------------------------------------------
# loop
# ---------------------------------------------------------------------------


def format_loop_started(event: Event, ctx: FormatContext) -> str:
    return (
        _banner(event, ctx, "🔄 Loop Started")
        + "\n"
        + ctx.text.indent(f"🔢 Iterations: {event.data.total}")
    )


def format_iteration_started(event: Event, ctx: FormatContext) -> str:
    data = event.data
    return _banner(
        event, ctx, f"▶️ {ctx.stamp()}Iteration {data.current}/{data.total} started"
    )


def format_iteration_completed(event: Event, ctx: FormatContext) -> str:
    data = event.data
    duration = ctx.text.format_duration(data.duration)
    return _banner(
        event,
        ctx,
        f"✅ {ctx.stamp()}Iteration {data.current}/{data.total} completed in {duration}",
    )


def format_iteration_failed(event: Event, ctx: FormatContext) -> str:
    data = event.data
    error = data.error or "unknown error"
    return _banner(
        event, ctx, f"❌ {ctx.stamp()}Iteration {data.current}/{data.total} failed: {error}"
    )


def format_loop_completed(event: Event, ctx: FormatContext) -> str:
    data = event.data
    duration = ctx.text.format_duration(data.total_duration)
    return _banner(
        event,
        ctx,
        f"🏁 Loop completed: {data.successful}/{data.total} successful, "
        f"{data.failed} failed (Total: {duration})",
    )


def format_loop_interrupted(event: Event, ctx: FormatContext) -> str:
    data = event.data
    return _banner(
        event,
        ctx,
        f"⚠️ Loop interrupted: {data.completed}/{data.total} iterations completed",
    )


def format_sleep_started(event: Event, ctx: FormatContext) -> str:
    duration = ctx.text.format_duration(event.data.duration)
    return _styled(event, f"💤 {ctx.stamp()}Sleeping for {duration}")


# ---------------------------------------------------------------------------
# evolve
# ---------------------------------------------------------------------------


def format_evolve_started(event: Event, ctx: FormatContext) -> str:
    return (
        _banner(event, ctx, "🧬 Evolution Started")
        + "\n"
        + ctx.text.indent(f"🔢 Iterations: {event.data.total}")
    )


def format_round_started(event: Event, ctx: FormatContext) -> str:
    data = event.data
    return _banner(event, ctx, f"🎯 Round {data.round}/{data.total}")


def format_improvement_started(event: Event, ctx: FormatContext) -> str:
    return _styled(event, f"🔨 {ctx.stamp()}Improving branch: {event.data.branch}")


def format_comparison_started(event: Event, ctx: FormatContext) -> str:
    data = event.data
    return _styled(event, f"⚖️ {ctx.stamp()}Comparing: {data.winner} vs {data.challenger}")


def format_comparison_retry(event: Event, ctx: FormatContext) -> str:
    data = event.data
    return _styled(
        event, f"🔁 {ctx.stamp()}Comparison retry {data.attempt}/{data.max_attempts}"
    )


def format_winner_selected(event: Event, ctx: FormatContext) -> str:
    data = event.data
    return _styled(event, f"🏆 {ctx.stamp()}Winner: {data.winner} (eliminated: {data.loser})")


def format_evolve_completed(event: Event, ctx: FormatContext) -> str:
    data = event.data
    duration = ctx.text.format_duration(data.total_duration)
    return _banner(
        event,
        ctx,
        f"🎉 Evolution completed, final branch: {data.final_branch} "
        f"(total duration: {duration})",
    )


def format_evolve_interrupted(event: Event, ctx: FormatContext) -> str:
    data = event.data
    message = f"🛑 Evolution interrupted: {data.completed}/{data.total} rounds completed"
    if data.winner:
        message += f", current winner: {data.winner}"
    return _banner(event, ctx, message)


# ---------------------------------------------------------------------------
# git
# ---------------------------------------------------------------------------


def format_branch_created(event: Event, ctx: FormatContext) -> str:
    data = event.data
    message = f"🌿 {ctx.stamp()}Branch created: {data.name}"
    if data.base:
        message += f" (from {data.base})"
    return _styled(event, message)


def format_branch_checked_out(event: Event, ctx: FormatContext) -> str:
    return _styled(event, f"🔀 {ctx.stamp()}Checked out branch: {event.data.name}")


def format_branch_deleted(event: Event, ctx: FormatContext) -> str:
    return _styled(event, f"🗑️ {ctx.stamp()}Branch deleted: {event.data.name}")


def format_commits_squashed(event: Event, ctx: FormatContext) -> str:
    return _styled(event, f"📦 {ctx.stamp()}Commits squashed on branch: {event.data.branch}")


FORMATTERS: dict[EventKind, FormatFn] = {
    EventKind.RUN_STARTED: format_run_started,
    EventKind.ASSISTANT_TEXT: format_assistant_text,
    EventKind.TOOL_USE: format_tool_use,
    EventKind.TOOL_RESULT: format_tool_result,
    EventKind.EXECUTION_RESULT: format_execution_result,
    EventKind.LOOP_STARTED: format_loop_started,
    EventKind.ITERATION_STARTED: format_iteration_started,
    EventKind.ITERATION_COMPLETED: format_iteration_completed,
    EventKind.ITERATION_FAILED: format_iteration_failed,
    EventKind.LOOP_COMPLETED: format_loop_completed,
    EventKind.LOOP_INTERRUPTED: format_loop_interrupted,
    EventKind.SLEEP_STARTED: format_sleep_started,
    EventKind.EVOLVE_STARTED: format_evolve_started,
    EventKind.ROUND_STARTED: format_round_started,
    EventKind.IMPROVEMENT_STARTED: format_improvement_started,
    EventKind.COMPARISON_STARTED: format_comparison_started,
    EventKind.COMPARISON_RETRY: format_comparison_retry,
    EventKind.WINNER_SELECTED: format_winner_selected,
    EventKind.EVOLVE_COMPLETED: format_evolve_completed,
    EventKind.EVOLVE_INTERRUPTED: format_evolve_interrupted,
    EventKind.BRANCH_CREATED: format_branch_created,
    EventKind.BRANCH_CHECKED_OUT: format_branch_checked_out,
    EventKind.BRANCH_DELETED: format_branch_deleted,
    EventKind.COMMITS_SQUASHED: format_commits_squashed,
}
