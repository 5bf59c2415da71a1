"""Loop controller for agent-exec.

Runs the same prompt a fixed number of times, optionally sleeping between
iterations. A failed iteration is reported and the loop moves on; only an
interrupt ends the run early.
"""

import logging
import time
from dataclasses import dataclass

from agent_exec.core.claude import PromptOptions, run_prompt
from agent_exec.core.errors import AgentExecError, Interrupted
from agent_exec.core.events import (
    Emitter,
    EventKind,
    IterationCompleted,
    IterationFailed,
    IterationStarted,
    LoopCompleted,
    LoopInterrupted,
    LoopStarted,
    SleepStarted,
)
from agent_exec.core.signals import InterruptWatcher
from agent_exec.core.validate import validate_loop_args

logger = logging.getLogger(__name__)


@dataclass
class LoopResult:
    """Tally of a loop run that ran to completion."""

    total: int
    successful: int
    failed: int


def run_prompt_loop(
    iterations: int,
    sleep: float,
    prompt: str,
    options: PromptOptions | None,
    emitter: Emitter,
    watcher: InterruptWatcher | None = None,
) -> LoopResult:
    """Execute ``prompt`` ``iterations`` times.

    Args:
        iterations: Number of runs, at least 1.
        sleep: Seconds to wait between runs (not after the last one).
        prompt: Prompt passed to claude on every run.
        options: System prompt shaping for every run.
        emitter: Destination for loop and claude events.
        watcher: Interrupt source; a fresh one is installed if omitted.

    Returns:
        LoopResult with success and failure counts.

    Raises:
        InvalidInput: If iterations < 1 or the prompt is blank.
        Interrupted: If SIGINT/SIGTERM arrived before an iteration or
            during a sleep.
    """
    validate_loop_args(iterations, prompt)
    options = options or PromptOptions()
    failed = 0

    with watcher or InterruptWatcher() as interrupts:
        emitter.emit(EventKind.LOOP_STARTED, LoopStarted(total=iterations))

        for i in range(1, iterations + 1):
            if interrupts.interrupted:
                emitter.emit(
                    EventKind.LOOP_INTERRUPTED,
                    LoopInterrupted(completed=i - 1, total=iterations),
                )
                raise Interrupted(completed=i - 1, total=iterations)

            emitter.emit(
                EventKind.ITERATION_STARTED, IterationStarted(current=i, total=iterations)
            )

            started = time.monotonic()
            try:
                run_prompt(prompt, options, emitter)
            except AgentExecError as e:
                logger.debug("iteration %d/%d failed: %s", i, iterations, e)
                emitter.emit(
                    EventKind.ITERATION_FAILED,
                    IterationFailed(current=i, total=iterations, error=str(e)),
                )
                failed += 1
            else:
                emitter.emit(
                    EventKind.ITERATION_COMPLETED,
                    IterationCompleted(
                        current=i,
                        total=iterations,
                        duration=time.monotonic() - started,
                    ),
                )

            if i < iterations and sleep > 0:
                emitter.emit(EventKind.SLEEP_STARTED, SleepStarted(duration=sleep))
                if interrupts.wait(sleep):
                    emitter.emit(
                        EventKind.LOOP_INTERRUPTED,
                        LoopInterrupted(completed=i, total=iterations),
                    )
                    raise Interrupted(completed=i, total=iterations)

        emitter.emit(
            EventKind.LOOP_COMPLETED,
            LoopCompleted(
                total=iterations,
                successful=iterations - failed,
                failed=failed,
                total_duration=0.0,
            ),
        )

    return LoopResult(total=iterations, successful=iterations - failed, failed=failed)
