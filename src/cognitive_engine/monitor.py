# monitor.py
# Self-monitor — owns the execution memory ledger and answers the four
# policy questions asked during every assessment:
#
#   is it stuck?  should it pivot?  should it ask the user?  should it delegate?
#
# The monitor mutates only its own memory and never touches the plan.
# Assessments are recomputed on demand; only their inputs are checkpointed.
#
# Two clocks gate human escalation: the iteration counter (published by the
# agent through set_iteration) and wall time (the injected clock). Both must
# agree before a question is allowed.

import json
import time
from collections import deque
from collections.abc import Callable
from typing import Any

from pydantic import ValidationError

from cognitive_engine import display
from cognitive_engine.config import MonitorConfig
from cognitive_engine.models import (
    Checkpoint,
    DelegationRecord,
    ExecutionMemory,
    FailedAttempt,
    PivotRecord,
    SelfAssessment,
    StrategicPlan,
    ToolCallRecord,
)
from cognitive_engine.tools import SPAWN_AGENT_TOOL

PROGRESS_SAMPLE = 5
PROGRESSING_RATE = 0.3
SAME_TOOL_FAILURES = 4
REPEATED_ACTION_WINDOW = 7
REPEATED_ACTION_MAX_UNIQUE = 2
SIGNATURE_INPUT_PREFIX = 100
LOW_CONFIDENCE = 0.3


class CheckpointError(Exception):
    """Raised when checkpoint state cannot be validated for restore."""


def _progress_score(record: ToolCallRecord) -> int:
    return 1 if record.success and record.insights_gained else 0


def _signature(record: ToolCallRecord) -> str:
    rendered = json.dumps(record.input, default=str)
    return f"{record.tool}:{rendered[:SIGNATURE_INPUT_PREFIX]}"


class SelfMonitor:
    """
    Execution memory plus stall/pivot/escalation/delegation policy.

    One monitor belongs to exactly one task. Use reset() to reuse it, or
    restore_from_checkpoint() on a fresh instance to resume.
    """

    def __init__(
        self,
        config: MonitorConfig | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.config = config or MonitorConfig()
        self._clock = clock
        self.reset()

    # ------------------------------------------------------------------
    # Counters
    # ------------------------------------------------------------------

    @property
    def current_iteration(self) -> int:
        return self._current_iteration

    @property
    def user_questions_asked(self) -> int:
        return self._user_questions_asked

    @property
    def progress_window(self) -> list[int]:
        return list(self._progress_window)

    @property
    def memory(self) -> ExecutionMemory:
        """Deep copy of the ledger for logging and summaries."""
        return self._memory.model_copy(deep=True)

    def set_iteration(self, iteration: int) -> None:
        if iteration < self._current_iteration:
            raise ValueError(
                f"Iteration cannot move backwards ({self._current_iteration} → {iteration}). "
                "Use reset() or restore_from_checkpoint()."
            )
        self._current_iteration = iteration

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def record_tool_call(self, record: ToolCallRecord) -> None:
        self._memory.tool_call_history.append(record)
        self._progress_window.append(_progress_score(record))

    def record_discovery(self, fact: str) -> None:
        if fact in self._memory.discovered_facts:
            return
        self._memory.discovered_facts.append(fact)
        display.discovery(fact)

    def complete_phase(self, phase_id: str) -> None:
        if phase_id in self._memory.completed_phases:
            return
        self._memory.completed_phases.append(phase_id)
        display.phase_complete(phase_id)

    def record_failure(self, phase: str, tool: str, error: str) -> None:
        self._memory.failed_attempts.append(
            FailedAttempt(phase=phase, tool=tool, error=error, timestamp=self._clock())
        )
        display.failure_recorded(phase, tool, error)

    def record_pivot(self, from_strategy: str, to_strategy: str, reason: str) -> None:
        self._memory.pivots.append(
            PivotRecord(
                from_strategy=from_strategy,
                to_strategy=to_strategy,
                reason=reason,
                timestamp=self._clock(),
            )
        )
        display.pivot(from_strategy, to_strategy, reason)

    def record_delegation(self, subtask: str, agent_id: str, status: str = "pending") -> None:
        self._memory.delegations.append(
            DelegationRecord(subtask=subtask, agent_id=agent_id, status=status)
        )

    def record_user_question_asked(self) -> None:
        self._last_user_question_time = self._clock()
        self._user_questions_asked += 1
        display.user_question(self._user_questions_asked, self.config.max_user_questions_per_task)

    def can_ask_user(self) -> bool:
        """Rate-limit check only; does not consider whether the agent is stuck."""
        return (
            self._user_questions_asked < self.config.max_user_questions_per_task
            and self._cooldown_elapsed()
        )

    # ------------------------------------------------------------------
    # Assessment
    # ------------------------------------------------------------------

    def assess(self, current_phase_id: str, plan: StrategicPlan) -> SelfAssessment:
        sample = list(self._progress_window)[-PROGRESS_SAMPLE:]
        progress_rate = sum(sample) / len(sample) if sample else 0.0

        is_stuck = self.detect_stuck()
        should_pivot = self.should_pivot(plan)
        should_ask_user = self.should_ask_user()
        should_delegate = self.should_delegate(current_phase_id, plan)

        return SelfAssessment(
            is_progressing=progress_rate > PROGRESSING_RATE,
            progress_rate=progress_rate,
            is_stuck=is_stuck,
            stuck_reason=self.stuck_reason() if is_stuck else None,
            should_pivot=should_pivot,
            pivot_suggestion=self.pivot_suggestion(plan) if should_pivot else None,
            should_ask_user=should_ask_user,
            question_for_user=self.question_for_user() if should_ask_user else None,
            should_delegate=should_delegate,
            delegation_target=(
                self.delegation_target(current_phase_id, plan) if should_delegate else None
            ),
            confidence_in_approach=self.calculate_confidence(plan),
        )

    def _repeated_tool_failure(self) -> FailedAttempt | None:
        recent = self._memory.failed_attempts[-SAME_TOOL_FAILURES:]
        if len(recent) < SAME_TOOL_FAILURES:
            return None
        if all(attempt.tool == recent[0].tool for attempt in recent):
            return recent[-1]
        return None

    def _no_progress(self) -> bool:
        threshold = self.config.stuck_threshold
        recent = list(self._progress_window)[-threshold:]
        return len(recent) >= threshold and not any(recent)

    def _repeating_actions(self) -> bool:
        recent = self._memory.tool_call_history[-REPEATED_ACTION_WINDOW:]
        if len(recent) < self.config.stuck_same_action_threshold:
            return False
        return len({_signature(record) for record in recent}) <= REPEATED_ACTION_MAX_UNIQUE

    def detect_stuck(self) -> bool:
        if self._current_iteration < self.config.stuck_iteration_floor:
            return False
        return (
            self._repeated_tool_failure() is not None
            or self._no_progress()
            or self._repeating_actions()
        )

    def stuck_reason(self) -> str:
        failure = self._repeated_tool_failure()
        if failure is not None:
            return f"Repeated failures with {failure.tool}: {failure.error}"
        if self._no_progress():
            return "No meaningful progress in recent iterations"
        return "Repeating same actions without results"

    def should_pivot(self, plan: StrategicPlan) -> bool:
        if self.detect_stuck() and plan.approach.fallback_strategy:
            return True
        return self.calculate_confidence(plan) < LOW_CONFIDENCE

    def pivot_suggestion(self, plan: StrategicPlan) -> str:
        if plan.approach.fallback_strategy:
            return plan.approach.fallback_strategy
        recent = self._memory.failed_attempts[-3:]
        if any(attempt.tool == SPAWN_AGENT_TOOL for attempt in recent):
            return "Delegation failing - try direct execution instead"
        return "Try a different approach or break task into smaller pieces"

    def _cooldown_elapsed(self) -> bool:
        if self._last_user_question_time is None:
            return True
        elapsed = self._clock() - self._last_user_question_time
        return elapsed >= self.config.user_question_cooldown_seconds

    def should_ask_user(self) -> bool:
        if self._current_iteration < self.config.stuck_iteration_threshold:
            return False
        if not self.can_ask_user():
            return False
        if not self.detect_stuck():
            return False
        return len(self._memory.pivots) >= 2 or len(self._memory.failed_attempts) >= 5

    def question_for_user(self) -> str:
        if self._memory.failed_attempts:
            tool = self._memory.failed_attempts[-1].tool
            return (
                f"I'm having trouble with {tool}. Should I try a different approach, "
                "or can you provide more guidance?"
            )
        return "I'm not making progress. Could you clarify the task or suggest a different approach?"

    def should_delegate(self, current_phase_id: str, plan: StrategicPlan) -> bool:
        phase = plan.phase(current_phase_id)
        if phase is None or not phase.can_delegate:
            return False
        if any(record.subtask == phase.id for record in self._memory.delegations):
            return False
        return phase.estimated_iterations > 5

    def delegation_target(self, current_phase_id: str, plan: StrategicPlan) -> str:
        phase = plan.phase(current_phase_id)
        return phase.description if phase else current_phase_id

    def calculate_confidence(self, plan: StrategicPlan) -> float:
        memory = self._memory
        confidence = (
            plan.approach.confidence
            - 0.05 * len(memory.failed_attempts)
            - 0.1 * len(memory.pivots)
            + 0.05 * len(memory.completed_phases)
            + min(0.02 * len(memory.discovered_facts), 0.1)
        )
        return max(0.0, min(1.0, confidence))

    # ------------------------------------------------------------------
    # Summary / checkpoint
    # ------------------------------------------------------------------

    def summary(self) -> str:
        memory = self._memory
        return "\n".join([
            f"Tool calls: {len(memory.tool_call_history)}",
            f"Discoveries: {len(memory.discovered_facts)}",
            f"Phases completed: {len(memory.completed_phases)}",
            f"Failed attempts: {len(memory.failed_attempts)}",
            f"Strategy pivots: {len(memory.pivots)}",
            f"Delegations: {len(memory.delegations)}",
            f"User questions asked: {self._user_questions_asked}"
            f"/{self.config.max_user_questions_per_task}",
        ])

    def get_state_for_checkpoint(self) -> Checkpoint:
        memory = self.memory
        limit = self.config.checkpoint_history_limit
        history = memory.tool_call_history[-limit:] if limit else []
        return Checkpoint(
            tool_call_history=history,
            failed_attempts=memory.failed_attempts,
            pivots=memory.pivots,
            completed_phases=memory.completed_phases,
            discoveries=memory.discovered_facts,
            user_questions_asked=self._user_questions_asked,
            current_iteration=self._current_iteration,
        )

    def restore_from_checkpoint(self, state: Checkpoint | dict[str, Any]) -> None:
        """
        Replace all monitor state with the checkpointed memory and counters.

        The progress window is rebuilt from the restored (possibly truncated)
        tool-call history, never taken from the checkpoint directly.
        """
        try:
            checkpoint = Checkpoint.model_validate(
                state.model_dump() if isinstance(state, Checkpoint) else state
            )
        except ValidationError as exc:
            raise CheckpointError(f"Checkpoint state is invalid: {exc}") from exc

        self.reset()
        self._memory.tool_call_history = checkpoint.tool_call_history
        self._memory.failed_attempts = checkpoint.failed_attempts
        self._memory.pivots = checkpoint.pivots
        self._memory.completed_phases = list(dict.fromkeys(checkpoint.completed_phases))
        self._memory.discovered_facts = list(dict.fromkeys(checkpoint.discoveries))
        self._user_questions_asked = min(
            checkpoint.user_questions_asked, self.config.max_user_questions_per_task
        )
        self._current_iteration = checkpoint.current_iteration

        self._progress_window = deque(
            (_progress_score(record) for record in checkpoint.tool_call_history),
            maxlen=self.config.progress_window_size,
        )
        display.checkpoint_restored(self._current_iteration, len(checkpoint.tool_call_history))

    def reset(self) -> None:
        self._memory = ExecutionMemory()
        self._progress_window: deque[int] = deque(maxlen=self.config.progress_window_size)
        self._last_user_question_time: float | None = None
        self._user_questions_asked = 0
        self._current_iteration = 0
