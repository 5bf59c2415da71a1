"""Evolve controller: a single-elimination tournament over git branches.

The initial implementation lands on a fresh ``impl-xxxxxx`` branch. Each
round forks a challenger from the current winner, asks claude to improve
it, then asks claude (from the original branch, so neither candidate is
checked out) which of the two should be deleted. The survivor carries on.

Every branch is squashed against the original branch after claude has
touched it, so each candidate is a single commit on top of the merge-base.
"""

import logging
from dataclasses import dataclass

from agent_exec.core.claude import PromptOptions, run_prompt
from agent_exec.core.errors import (
    AgentExecError,
    InvalidInput,
    Interrupted,
    JudgementParseError,
    UnparsableJudgement,
)
from agent_exec.core.events import (
    ComparisonRetry,
    ComparisonStarted,
    Emitter,
    EventKind,
    EvolveCompleted,
    EvolveInterrupted,
    EvolveStarted,
    ImprovementStarted,
    RoundStarted,
    SleepStarted,
    WinnerSelected,
)
from agent_exec.core.git import GitClient, random_branch_name
from agent_exec.core.judge import build_compare_prompt, parse_loser
from agent_exec.core.signals import InterruptWatcher
from agent_exec.core.validate import validate_prompt

logger = logging.getLogger(__name__)

DEFAULT_IMPROVE_PROMPT = "improve the code quality and fix any issues"
DEFAULT_COMPARE_PROMPT = "compare these two implementations and determine which is worse"
DEFAULT_EVOLVE_ITERATIONS = 3
DEFAULT_COMPARE_ERROR_RETRIES = 3

COMMIT_SUBJECT_LIMIT = 50


@dataclass
class EvolveConfig:
    """Everything one evolve run needs."""

    plan: str
    improve_prompt: str = DEFAULT_IMPROVE_PROMPT
    compare_prompt: str = DEFAULT_COMPARE_PROMPT
    iterations: int = DEFAULT_EVOLVE_ITERATIONS
    sleep: float = 0.0
    compare_error_retries: int = DEFAULT_COMPARE_ERROR_RETRIES
    debug_keep_branches: bool = False

    plan_system_prompt: str = ""
    plan_append_system_prompt: str = ""
    improve_system_prompt: str = ""
    improve_append_system_prompt: str = ""
    compare_system_prompt: str = ""
    compare_append_system_prompt: str = ""

    @property
    def plan_options(self) -> PromptOptions:
        return PromptOptions(self.plan_system_prompt, self.plan_append_system_prompt)

    @property
    def improve_options(self) -> PromptOptions:
        return PromptOptions(self.improve_system_prompt, self.improve_append_system_prompt)

    @property
    def compare_options(self) -> PromptOptions:
        return PromptOptions(self.compare_system_prompt, self.compare_append_system_prompt)

    def validate(self) -> None:
        """Reject configurations the tournament cannot run."""
        if self.iterations < 1:
            raise InvalidInput("iterations must be a positive number")
        if self.compare_error_retries < 0:
            raise InvalidInput("compare error retries must be non-negative")
        if self.sleep < 0:
            raise InvalidInput("sleep must be non-negative")
        validate_prompt(self.plan)
        validate_prompt(self.improve_prompt)
        validate_prompt(self.compare_prompt)


def truncate(text: str, max_len: int) -> str:
    """Shorten ``text`` to ``max_len`` characters, ending in "..." if cut."""
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


class Tournament:
    """State for one evolve run.

    ``winner`` is the current champion once the initial implementation has
    been squashed; before that it is empty.
    """

    def __init__(
        self,
        config: EvolveConfig,
        emitter: Emitter,
        git: GitClient,
        interrupts: InterruptWatcher,
    ) -> None:
        self.config = config
        self.emitter = emitter
        self.git = git
        self.interrupts = interrupts
        self.original_branch = ""
        self.winner = ""

    # -- helpers ------------------------------------------------------------

    def _interrupt(self, completed: int) -> Interrupted:
        total = self.config.iterations
        self.emitter.emit(
            EventKind.EVOLVE_INTERRUPTED,
            EvolveInterrupted(completed=completed, total=total, winner=self.winner),
        )
        return Interrupted(completed=completed, total=total)

    def _check_interrupt(self, completed: int) -> None:
        if self.interrupts.interrupted:
            raise self._interrupt(completed)

    def _run_claude(self, prompt: str, options: PromptOptions, completed: int) -> str:
        """Run claude; a failure caused by Ctrl-C is reported as an interrupt."""
        try:
            return run_prompt(prompt, options, self.emitter)
        except AgentExecError:
            if self.interrupts.interrupted:
                raise self._interrupt(completed) from None
            raise

    # -- states -------------------------------------------------------------

    def implement(self) -> None:
        """INIT -> IMPLEMENTED: build the first candidate from the plan."""
        self.original_branch = self.git.current_branch()

        self.emitter.emit(EventKind.EVOLVE_STARTED, EvolveStarted(total=self.config.iterations))
        self._check_interrupt(0)

        first = random_branch_name()
        self.git.create_branch(first)
        self._run_claude(self.config.plan, self.config.plan_options, 0)
        self.git.squash_since(
            self.original_branch,
            "implement: " + truncate(self.config.plan, COMMIT_SUBJECT_LIMIT),
        )
        self.winner = first

    def improve(self, round_num: int) -> str:
        """Fork a challenger from the winner and let claude improve it."""
        challenger = random_branch_name()
        self.git.create_branch_from(challenger, self.winner)
        self.emitter.emit(EventKind.IMPROVEMENT_STARTED, ImprovementStarted(branch=challenger))
        self._run_claude(self.config.improve_prompt, self.config.improve_options, round_num - 1)
        self.git.squash_since(self.original_branch, f"improve: round {round_num}")
        return challenger

    def compare(self, challenger: str, round_num: int) -> str:
        """Ask claude which candidate to delete; return the loser's name.

        Raises:
            UnparsableJudgement: If no attempt produced a usable answer.
        """
        winner = self.winner
        retries = self.config.compare_error_retries

        self.emitter.emit(
            EventKind.COMPARISON_STARTED,
            ComparisonStarted(winner=winner, challenger=challenger),
        )
        self.git.checkout(self.original_branch)

        prompt = build_compare_prompt(self.config.compare_prompt, winner, challenger)
        for attempt in range(retries + 1):
            if attempt > 0:
                self.emitter.emit(
                    EventKind.COMPARISON_RETRY,
                    ComparisonRetry(attempt=attempt, max_attempts=retries),
                )
            response = self._run_claude(prompt, self.config.compare_options, round_num - 1)
            try:
                return parse_loser(response, winner, challenger)
            except JudgementParseError:
                logger.warning(
                    "round %d: judge response named neither or both branches (attempt %d/%d)",
                    round_num,
                    attempt + 1,
                    retries + 1,
                )

        raise UnparsableJudgement(
            f"failed to parse comparison result after {retries} retries: "
            "could not parse loser branch from response"
        )

    def select(self, challenger: str, loser: str) -> None:
        """Crown the survivor, check it out and drop the loser."""
        new_winner = challenger if loser == self.winner else self.winner
        self.emitter.emit(
            EventKind.WINNER_SELECTED, WinnerSelected(winner=new_winner, loser=loser)
        )
        self.git.checkout(new_winner)
        if not self.config.debug_keep_branches:
            self.git.delete_branch(loser)
        self.winner = new_winner

    def run(self) -> str:
        """Play the whole tournament and return the final branch."""
        total = self.config.iterations
        self.implement()

        for round_num in range(1, total + 1):
            self._check_interrupt(round_num - 1)
            self.emitter.emit(EventKind.ROUND_STARTED, RoundStarted(round=round_num, total=total))

            challenger = self.improve(round_num)
            loser = self.compare(challenger, round_num)
            self.select(challenger, loser)

            if round_num < total and self.config.sleep > 0:
                self.emitter.emit(EventKind.SLEEP_STARTED, SleepStarted(duration=self.config.sleep))
                if self.interrupts.wait(self.config.sleep):
                    raise self._interrupt(round_num)

        self.emitter.emit(
            EventKind.EVOLVE_COMPLETED,
            EvolveCompleted(final_branch=self.winner, total_rounds=total, total_duration=0.0),
        )
        return self.winner


def run_evolve(
    config: EvolveConfig,
    emitter: Emitter,
    git: GitClient | None = None,
    watcher: InterruptWatcher | None = None,
) -> str:
    """Run an evolve tournament.

    Returns:
        The name of the final winning branch, which is left checked out.

    Raises:
        InvalidInput: If the configuration is rejected.
        Interrupted: If SIGINT/SIGTERM arrived at a suspension point.
        GitError: If any git operation fails.
        ChildFailure / StreamParseError: If a claude run fails.
        UnparsableJudgement: If the judge never named a loser.
    """
    config.validate()
    git = git or GitClient(emitter)
    with watcher or InterruptWatcher() as interrupts:
        return Tournament(config, emitter, git, interrupts).run()
