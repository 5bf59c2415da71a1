"""Event bus for agent-exec.

Controllers, the child invoker and the git client emit typed events onto a
bounded FIFO. A single presentation consumer drains it on its own thread.

Ordering is exactly the order of ``emit`` calls. Once the bus is closed,
further emits are dropped and the subscriber stream ends.
"""

from __future__ import annotations

import queue
import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Iterator, Protocol

EVENT_BUFFER_SIZE = 100


class EventKind(str, Enum):
    """Every event the core can emit."""

    RUN_STARTED = "run_started"

    ASSISTANT_TEXT = "assistant_text"
    TOOL_USE = "tool_use"
    TOOL_RESULT = "tool_result"
    EXECUTION_RESULT = "execution_result"

    LOOP_STARTED = "loop_started"
    ITERATION_STARTED = "iteration_started"
    ITERATION_COMPLETED = "iteration_completed"
    ITERATION_FAILED = "iteration_failed"
    LOOP_COMPLETED = "loop_completed"
    LOOP_INTERRUPTED = "loop_interrupted"
    SLEEP_STARTED = "sleep_started"

    EVOLVE_STARTED = "evolve_started"
    ROUND_STARTED = "round_started"
    IMPROVEMENT_STARTED = "improvement_started"
    COMPARISON_STARTED = "comparison_started"
    COMPARISON_RETRY = "comparison_retry"
    WINNER_SELECTED = "winner_selected"
    EVOLVE_COMPLETED = "evolve_completed"
    EVOLVE_INTERRUPTED = "evolve_interrupted"

    BRANCH_CREATED = "branch_created"
    BRANCH_CHECKED_OUT = "branch_checked_out"
    BRANCH_DELETED = "branch_deleted"
    COMMITS_SQUASHED = "commits_squashed"


# ---------------------------------------------------------------------------
# Payloads
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RunStarted:
    prompt: str
    cwd: str = ""
    base_url: str = ""
    file_list: str = ""


@dataclass(frozen=True)
class AssistantText:
    text: str


@dataclass(frozen=True)
class ToolUse:
    name: str
    input: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ToolResult:
    content: str


@dataclass(frozen=True)
class ExecutionResult:
    duration: float  # seconds


@dataclass(frozen=True)
class LoopStarted:
    total: int


@dataclass(frozen=True)
class IterationStarted:
    current: int
    total: int


@dataclass(frozen=True)
class IterationCompleted:
    current: int
    total: int
    duration: float


@dataclass(frozen=True)
class IterationFailed:
    current: int
    total: int
    error: str


@dataclass(frozen=True)
class LoopCompleted:
    total: int
    successful: int
    failed: int
    total_duration: float = 0.0  # never tracked; kept for schema stability


@dataclass(frozen=True)
class LoopInterrupted:
    completed: int
    total: int


@dataclass(frozen=True)
class SleepStarted:
    duration: float


@dataclass(frozen=True)
class EvolveStarted:
    total: int


@dataclass(frozen=True)
class RoundStarted:
    round: int
    total: int


@dataclass(frozen=True)
class ImprovementStarted:
    branch: str


@dataclass(frozen=True)
class ComparisonStarted:
    winner: str
    challenger: str


@dataclass(frozen=True)
class ComparisonRetry:
    attempt: int
    max_attempts: int


@dataclass(frozen=True)
class WinnerSelected:
    winner: str
    loser: str


@dataclass(frozen=True)
class EvolveCompleted:
    final_branch: str
    total_rounds: int
    total_duration: float = 0.0


@dataclass(frozen=True)
class EvolveInterrupted:
    completed: int
    total: int
    winner: str


@dataclass(frozen=True)
class BranchCreated:
    name: str
    base: str = ""


@dataclass(frozen=True)
class BranchCheckedOut:
    name: str


@dataclass(frozen=True)
class BranchDeleted:
    name: str


@dataclass(frozen=True)
class CommitsSquashed:
    # Carries the base the squash was computed against, not the squashed branch.
    branch: str


@dataclass(frozen=True)
class Event:
    """A single emitted event."""

    kind: EventKind
    timestamp: datetime
    data: Any


# ---------------------------------------------------------------------------
# Emitters
# ---------------------------------------------------------------------------


class Emitter(Protocol):
    def emit(self, kind: EventKind, data: Any) -> None: ...

    def subscribe(self) -> Iterator[Event]: ...

    def close(self) -> None: ...


_CLOSED = object()


class EventBus:
    """Bounded FIFO with one consumer.

    ``emit`` blocks while the buffer is full, so a consumer that stops
    draining stalls the producer after ``buffer_size`` events.
    """

    def __init__(self, buffer_size: int = EVENT_BUFFER_SIZE) -> None:
        self._queue: queue.Queue = queue.Queue(maxsize=buffer_size)
        self._lock = threading.Lock()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def emit(self, kind: EventKind, data: Any) -> None:
        """Queue an event. Dropped silently once the bus is closed."""
        with self._lock:
            if self._closed:
                return
            event = Event(kind=kind, timestamp=datetime.now(), data=data)
            self._queue.put(event)

    def subscribe(self) -> Iterator[Event]:
        """Yield events in emission order until the bus is closed."""
        while True:
            item = self._queue.get()
            if item is _CLOSED:
                return
            yield item

    def close(self) -> None:
        """Close the bus. Idempotent."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._queue.put(_CLOSED)


class NullEmitter:
    """Emitter that discards everything."""

    def emit(self, kind: EventKind, data: Any) -> None:
        pass

    def subscribe(self) -> Iterator[Event]:
        return iter(())

    def close(self) -> None:
        pass
