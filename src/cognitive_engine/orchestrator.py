# orchestrator.py
# Cognitive agent — the bounded iteration loop.
#
# Control flow:
#   environment probe + tool inventory → strategic plan
#   → phase-by-phase reasoning exchanges (list order, no scheduling)
#   → self-assessment every N iterations (stall / pivot / escalate / delegate)
#   → terminal ExecutionSummary
#
# Termination is guaranteed only by the iteration caps: each phase gets
# estimated_iterations × 2 exchanges and the whole task gets max_iterations.
# Any exception is caught once, at the top of execute(), and turned into a
# failed summary. All terminal output is delegated to display.py.

import json
import re
import time
from collections.abc import Callable
from typing import Any

from cognitive_engine import display
from cognitive_engine.config import AgentConfig
from cognitive_engine.context import gather_context
from cognitive_engine.llm import ReasoningClient
from cognitive_engine.models import (
    AgentState,
    Checkpoint,
    EnvironmentContext,
    ExecutionPhase,
    ExecutionSummary,
    IterationOutcome,
    ReasoningResponse,
    StrategicPlan,
    ToolCallRecord,
    ToolInventory,
)
from cognitive_engine.monitor import SelfMonitor
from cognitive_engine.planner import StrategicPlanner
from cognitive_engine.tools import build_tool_inventory, extract_insights, to_function_schemas

ToolExecutor = Callable[[str, dict], Any]
Notifier = Callable[[str], None]
EnvironmentProbe = Callable[[str | None], EnvironmentContext]
InventoryBuilder = Callable[[bool], ToolInventory]

END_TURN = "stop"
PHASE_COMPLETE_PATTERN = re.compile(
    r"phase complete|phase finished|moving to next|completed this phase", re.IGNORECASE
)
TASK_COMPLETE_PATTERN = re.compile(
    r"task complete|all done|finished|completed successfully", re.IGNORECASE
)


# ---------------------------------------------------------------------------
# Prompts
# ---------------------------------------------------------------------------

COGNITIVE_SYSTEM_PROMPT = """\
You are a cognitive agent: a strategic assistant that understands a task, \
plans how to approach it, and adapts while executing.

Rules:
1. Follow the strategic plan phase by phase, in order.
2. Use tools strategically, not reactively.
3. State discoveries and insights as you make them.
4. If you are stuck, say so and consider the fallback strategy.
5. When a phase is complete, explicitly say "Phase complete".
6. When the entire task is done, say "Task complete" and summarize your findings.\
"""

CONTINUE_PROMPT = (
    'Continue with phase "{name}". Completion criteria: {criteria}. '
    'Say "Phase complete" once they are met.'
)


def render_instructions(task: str, plan: StrategicPlan, context: EnvironmentContext) -> str:
    """Render the instruction block that seeds the conversation."""
    approach = plan.approach
    git = f"{context.git_branch} ({context.git_status})" if context.has_git else "No git"

    lines = [
        "## CURRENT CONTEXT",
        f"- Working Directory: {context.working_directory}",
        f"- Project Type: {context.project_type}",
        f"- Git Status: {git}",
        f"- Key Files: {', '.join(context.key_files[:5]) or 'None'}",
        "",
        "## STRATEGIC PLAN",
        plan.task_understanding,
        f"Approach: {approach.approach} ({approach.confidence * 100:.0f}% confidence)",
        f"Reasoning: {approach.reasoning}",
    ]
    if approach.fallback_strategy:
        lines.append(f"Fallback: {approach.fallback_strategy}")

    lines += ["", "## EXECUTION PHASES"]
    for index, phase in enumerate(plan.phases, start=1):
        lines += [
            f"{index}. {phase.name}",
            f"   - {phase.description}",
            f"   - Tools: {', '.join(phase.tools) or 'None (reasoning only)'}",
            f"   - Completion: {phase.completion_criteria}",
        ]

    lines += [
        "",
        "## TOOL STRATEGY",
        f"Primary Tools: {', '.join(plan.tool_strategy.primary) or 'None'}",
        f"Avoid Using: {', '.join(plan.tool_strategy.avoid_using) or 'None'}",
        "",
        "## YOUR TASK",
        task,
        "",
        "## SUCCESS CRITERIA",
        *[f"- {criterion}" for criterion in plan.success_criteria],
        "",
        f"Begin execution. Start with Phase 1: {plan.phases[0].name}.",
    ]
    return "\n".join(lines)


def _tool_message(call_id: str, payload: Any) -> dict:
    return {"role": "tool", "tool_call_id": call_id, "content": json.dumps(payload, default=str)}


def detect_phase_completion(text: str, phase: ExecutionPhase) -> bool:
    if PHASE_COMPLETE_PATTERN.search(text):
        return True
    return f"{phase.name.lower()} complete" in text.lower()


def detect_task_completion(response: ReasoningResponse) -> bool:
    return response.stop_reason == END_TURN and bool(TASK_COMPLETE_PATTERN.search(response.text))


# ---------------------------------------------------------------------------
# CognitiveAgent
# ---------------------------------------------------------------------------


class CognitiveAgent:
    """
    Drives one task end-to-end against a reasoning service.

    Every collaborator is injected; one agent owns exactly one monitor.
    Run several tasks concurrently with several agents.

    Example:
        agent = CognitiveAgent(ReasoningClient(), notifier=ConsoleNotifier())
        summary = agent.execute("Analyze the codebase architecture")
    """

    def __init__(
        self,
        reasoning: ReasoningClient,
        *,
        planner: StrategicPlanner | None = None,
        monitor: SelfMonitor | None = None,
        probe: EnvironmentProbe = gather_context,
        inventory_builder: InventoryBuilder = build_tool_inventory,
        tool_executor: ToolExecutor | None = None,
        notifier: Notifier | None = None,
        config: AgentConfig | None = None,
    ) -> None:
        self.reasoning = reasoning
        self.planner = planner or StrategicPlanner()
        self.monitor = monitor or SelfMonitor()
        self.probe = probe
        self.inventory_builder = inventory_builder
        self.tool_executor = tool_executor
        self.notifier = notifier
        self.config = config or AgentConfig()
        self.state: AgentState | None = None

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def execute(
        self,
        task: str,
        *,
        working_dir: str | None = None,
        has_trello: bool = False,
    ) -> ExecutionSummary:
        """
        Full pipeline entry point.

        Returns an ExecutionSummary in all cases. Failures are reported once
        to the notifier and carry whatever counters had accumulated.
        """
        display.agent_start(task)
        self.state = None

        try:
            self._notify("🔍 Gathering context\nAnalyzing environment...")
            context = self.probe(working_dir)
            inventory = self.inventory_builder(has_trello)
            display.context_gathered(context.project_type, len(context.key_files))

            self._notify("🧠 Strategic planning\nDetermining best approach...")
            plan = self.planner.create_plan(task, context, inventory)
            self.state = AgentState(
                context=context,
                inventory=inventory,
                plan=plan,
                current_phase=plan.phases[0].id,
                iteration=self.monitor.current_iteration,
            )
            self._notify(self._plan_notification(plan))

            summary = self.execute_plan(task, plan, context, inventory)

        except Exception as exc:
            error = str(exc) or type(exc).__name__
            display.agent_failed(error)
            self._notify(f"❌ Agent failed\n{error}")
            summary = self._summary(success=False, message=error)

        display.monitor_summary(self.monitor.summary())
        display.execution_summary(summary)
        return summary

    # ------------------------------------------------------------------
    # Phase loop
    # ------------------------------------------------------------------

    def execute_plan(
        self,
        task: str,
        plan: StrategicPlan,
        context: EnvironmentContext,
        inventory: ToolInventory,
    ) -> ExecutionSummary:
        state = self.state
        history: list[dict] = [
            {"role": "system", "content": COGNITIVE_SYSTEM_PROMPT},
            {"role": "user", "content": render_instructions(task, plan, context)},
        ]
        tool_schemas = to_function_schemas(inventory) if self.tool_executor else None
        already_completed = set(self.monitor.memory.completed_phases)
        total = len(plan.phases)

        for index, phase in enumerate(plan.phases):
            if phase.id in already_completed:
                continue

            state.current_phase = phase.id
            display.phase_start(phase, index, total)
            self._notify(
                f"🔄 Phase: {phase.name}\n{phase.description}\n"
                f"Tools: {', '.join(phase.tools) or 'reasoning only'}"
            )

            phase_complete = False
            phase_iterations = 0
            max_phase_iterations = phase.estimated_iterations * 2

            while (
                not phase_complete
                and phase_iterations < max_phase_iterations
                and state.iteration < self.config.max_iterations
            ):
                state.iteration += 1
                phase_iterations += 1
                self.monitor.set_iteration(state.iteration)

                if state.iteration % self.config.progress_check_interval == 0:
                    self._check_progress(phase, plan)

                display.reasoning_call(state.iteration, phase_iterations)
                outcome = self.execute_iteration(history, phase, tool_schemas)

                if outcome.phase_complete:
                    phase_complete = True
                    self.monitor.complete_phase(phase.id)

                if outcome.task_complete:
                    return self._summary(
                        success=True,
                        message=outcome.final_message or "Task completed successfully",
                    )

            if not phase_complete:
                display.phase_budget_exhausted(phase.id, max_phase_iterations)

        return self._summary(success=True, message="All phases completed")

    def _check_progress(self, phase: ExecutionPhase, plan: StrategicPlan) -> None:
        assessment = self.monitor.assess(phase.id, plan)
        self.state.assessment = assessment

        if assessment.is_stuck:
            display.stuck_detected(assessment.stuck_reason)
            if assessment.should_pivot and assessment.pivot_suggestion:
                self.monitor.record_pivot(
                    plan.approach.approach, "alternative", assessment.pivot_suggestion
                )
            if assessment.should_ask_user and self.state.iteration > self.config.escalation_floor:
                self._notify(f"❓ Need input\n{assessment.question_for_user}")
                self.monitor.record_user_question_asked()

        if assessment.should_delegate and self.config.delegation_enabled:
            display.delegation_opportunity(assessment.delegation_target)

    # ------------------------------------------------------------------
    # Single exchange
    # ------------------------------------------------------------------

    def execute_iteration(
        self,
        history: list[dict],
        phase: ExecutionPhase,
        tool_schemas: list[dict] | None = None,
    ) -> IterationOutcome:
        """One reasoning exchange plus any tool calls it requested."""
        response = self.reasoning.exchange(history, tools=tool_schemas)
        history.append(response.message or {"role": "assistant", "content": response.text})

        if response.tool_calls:
            self._run_tools(response, phase, history)
        else:
            history.append({
                "role": "user",
                "content": CONTINUE_PROMPT.format(
                    name=phase.name, criteria=phase.completion_criteria
                ),
            })

        task_complete = detect_task_completion(response)
        return IterationOutcome(
            phase_complete=detect_phase_completion(response.text, phase),
            task_complete=task_complete,
            final_message=response.text if task_complete else None,
        )

    def _run_tools(
        self,
        response: ReasoningResponse,
        phase: ExecutionPhase,
        history: list[dict],
    ) -> None:
        for call in response.tool_calls:
            display.tool_call(call.name, call.arguments)

            if self.tool_executor is None:
                error = "No tool executor configured"
                self.monitor.record_failure(phase.id, call.name, error)
                history.append(_tool_message(call.id, {"error": error}))
                continue

            started = time.monotonic()
            try:
                result = self.tool_executor(call.name, call.arguments)
            except Exception as exc:
                error = str(exc) or type(exc).__name__
                self.monitor.record_failure(phase.id, call.name, error)
                display.tool_result(call.name, False, time.monotonic() - started)
                history.append(_tool_message(call.id, {"error": error}))
                continue

            duration = time.monotonic() - started
            failed = isinstance(result, dict) and bool(result.get("error") or result.get("failed"))
            insights = extract_insights(call.name, result)
            self.monitor.record_tool_call(
                ToolCallRecord(
                    tool=call.name,
                    input=call.arguments,
                    output=result,
                    success=not failed,
                    timestamp=time.time(),
                    duration=duration,
                    insights_gained=insights,
                )
            )
            for insight in insights:
                self.monitor.record_discovery(insight)

            display.tool_result(call.name, not failed, duration)
            history.append(_tool_message(call.id, result))

    # ------------------------------------------------------------------
    # Checkpointing
    # ------------------------------------------------------------------

    def checkpoint(self) -> Checkpoint:
        return self.monitor.get_state_for_checkpoint()

    def resume_from(self, checkpoint: Checkpoint | dict) -> None:
        """Restore monitor state before execute(); completed phases are skipped."""
        self.monitor.restore_from_checkpoint(checkpoint)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _summary(self, success: bool, message: str) -> ExecutionSummary:
        memory = self.monitor.memory
        plan = self.state.plan if self.state else None
        return ExecutionSummary(
            success=success,
            message=message,
            iterations=self.state.iteration if self.state else self.monitor.current_iteration,
            tool_calls=len(memory.tool_call_history),
            phases_completed=len(memory.completed_phases),
            total_phases=len(plan.phases) if plan else 0,
            discoveries=list(memory.discovered_facts),
            approach=plan.approach.approach if plan else None,
            confidence=self.monitor.calculate_confidence(plan) if plan else None,
        )

    @staticmethod
    def _plan_notification(plan: StrategicPlan) -> str:
        lines = [
            "📋 Strategic plan created",
            f"Approach: {plan.approach.approach}",
            f"Confidence: {plan.approach.confidence * 100:.0f}%",
            f"Phases: {len(plan.phases)}",
            f"Complexity: {plan.estimated_complexity}",
            f"Primary tools: {', '.join(plan.tool_strategy.primary) or 'none'}",
        ]
        risk = plan.risk_assessment
        if risk.level != "low":
            lines.append(f"⚠️ Risk: {risk.level} - {', '.join(risk.concerns)}")
        return "\n".join(lines)

    def _notify(self, message: str) -> None:
        if self.notifier is None:
            return
        try:
            self.notifier(message)
        except Exception as exc:
            display.notification_failed(str(exc) or type(exc).__name__)
