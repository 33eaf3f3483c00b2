# planner.py
# Strategic planner — turns task text into a StrategicPlan.
#
# Pure function of (task, environment, inventory). Approach selection is an
# ordered rule table (first match wins); phases come from canned templates;
# tool strategy, risk, success criteria and complexity are derived from the
# generated phase list. Every branch returns a valid plan.

import re
from collections import Counter
from collections.abc import Callable

from cognitive_engine import display
from cognitive_engine.models import (
    Complexity,
    EnvironmentContext,
    ExecutionPhase,
    RiskAssessment,
    StrategicPlan,
    ThinkingStyle,
    ToolInventory,
    ToolSequence,
    ToolStrategy,
)
from cognitive_engine.tools import BASH_TOOL, DEPLOY_TOOL, SPAWN_AGENT_TOOL

CODEBASE_PATTERN = re.compile(r"codebase|repo|project|architecture")
DEPLOYMENT_PATTERN = re.compile(r"deploy|ship|release")


# ---------------------------------------------------------------------------
# Approach rules
# ---------------------------------------------------------------------------


def _any(*patterns: str) -> Callable[[str], bool]:
    compiled = [re.compile(p) for p in patterns]
    return lambda task: any(p.search(task) for p in compiled)


needs_exploration = _any(
    r"analyze|review|audit|examine|understand|investigate|assess|evaluate",
    r"how does|what is|explain|describe",
    r"improve|optimize|refactor|fix.*issues",
    CODEBASE_PATTERN.pattern,
)

_implementation_signal = _any(
    r"implement|build|create|develop",
    r"full|complete|entire|comprehensive",
    r"feature|system|module|service",
)


def benefits_from_delegation(task: str) -> bool:
    is_large = len(task) > 100 or " and " in task
    return _implementation_signal(task) and is_large


needs_planning = _any(
    r" and |then |after |step|phase",
    r"multiple|several|all|each",
    r"deploy|migrate|upgrade",
)

APPROACH_RULES: list[tuple[Callable[[str], bool], ThinkingStyle]] = [
    (
        needs_exploration,
        ThinkingStyle(
            approach="explore-first",
            confidence=0.9,
            reasoning="Task requires understanding codebase/context before execution",
            fallback_strategy="If exploration reveals simpler scope, switch to execute-direct",
        ),
    ),
    (
        benefits_from_delegation,
        ThinkingStyle(
            approach="delegate",
            confidence=0.85,
            reasoning="Complex implementation task suitable for an autonomous sub-agent",
            fallback_strategy="If delegation fails, fall back to plan-first with manual execution",
        ),
    ),
    (
        needs_planning,
        ThinkingStyle(
            approach="plan-first",
            confidence=0.85,
            reasoning="Multi-step task with clear scope - benefits from upfront planning",
            fallback_strategy="If plan proves incorrect, pause and re-plan",
        ),
    ),
]

DEFAULT_APPROACH = ThinkingStyle(
    approach="execute-direct",
    confidence=0.95,
    reasoning="Straightforward task with clear objective - no planning overhead needed",
    fallback_strategy="If task proves more complex, switch to plan-first",
)


def determine_approach(task: str) -> ThinkingStyle:
    lower = task.lower()
    for predicate, style in APPROACH_RULES:
        if predicate(lower):
            return style
    return DEFAULT_APPROACH


# ---------------------------------------------------------------------------
# Phase templates
# ---------------------------------------------------------------------------


def _chain(phases: list[ExecutionPhase]) -> list[ExecutionPhase]:
    """Each phase depends on the one before it. Informational only."""
    for previous, phase in zip(phases, phases[1:]):
        phase.dependencies = [previous.id]
    return phases


def _phase(phase_id: str, name: str, description: str, phase_type: str, iterations: int,
           criteria: str, tools: list[str] | None = None,
           strategies: dict[str, str] | None = None, **flags: bool) -> ExecutionPhase:
    return ExecutionPhase(
        id=phase_id,
        name=name,
        description=description,
        type=phase_type,
        tools=tools or [],
        tool_strategies=strategies or {},
        estimated_iterations=iterations,
        completion_criteria=criteria,
        can_parallelize=flags.get("parallel", False),
        can_delegate=flags.get("delegable", False),
    )


def _trello_enabled(inventory: ToolInventory) -> bool:
    return "trello" in inventory.configured


def exploration_phases(task: str, inventory: ToolInventory) -> list[ExecutionPhase]:
    if CODEBASE_PATTERN.search(task.lower()):
        synthesis_tools = (
            ["trello_create_card", "trello_add_checklist"] if _trello_enabled(inventory) else []
        )
        return _chain([
            _phase("understand_structure", "Understand Project Structure",
                   "Map the project layout, identify key directories and patterns",
                   "exploration", 3, "Have clear mental model of project structure",
                   [BASH_TOOL], {BASH_TOOL: "Use tree, find, ls to explore. "
                                            "Look at manifests, entry points, src structure."}),
            _phase("identify_components", "Identify Key Components",
                   "Find main modules, services, utilities and their relationships",
                   "exploration", 5, "Identified all major components and dependencies",
                   [BASH_TOOL], {BASH_TOOL: "Read key files, grep for imports, "
                                            "understand module boundaries"}),
            _phase("deep_analysis", "Deep Code Analysis",
                   "Analyze code quality, patterns, potential issues",
                   "exploration", 8, "Comprehensive understanding of code quality and issues",
                   [BASH_TOOL], {BASH_TOOL: "Look for TODOs, FIXMEs, complex functions, "
                                            "missing tests, code smells"},
                   parallel=True, delegable=True),
            _phase("synthesize_findings", "Synthesize Findings",
                   "Organize discoveries into actionable insights",
                   "planning", 3, "Organized list of findings and recommendations",
                   synthesis_tools,
                   {"trello_create_card": "Create cards for each recommendation category",
                    "trello_add_checklist": "Add specific action items as checklist items"}),
            _phase("present_results", "Present Results",
                   "Format and communicate findings to user",
                   "reporting", 1, "User has received comprehensive analysis"),
        ])

    return _chain([
        _phase("gather_context", "Gather Context",
               "Understand the current state and what we're working with",
               "exploration", 3, "Sufficient context to proceed",
               [BASH_TOOL], {BASH_TOOL: "Explore relevant files and gather information"}),
        _phase("analyze", "Analyze", "Analyze gathered information",
               "exploration", 4, "Analysis complete", [BASH_TOOL]),
        _phase("report", "Report Findings", "Present analysis results",
               "reporting", 1, "User informed of findings"),
    ])


def delegation_phases(task: str, inventory: ToolInventory) -> list[ExecutionPhase]:
    report_tools = (
        ["trello_update_card", "trello_add_comment"] if _trello_enabled(inventory) else []
    )
    return _chain([
        _phase("prepare_delegation", "Prepare for Delegation",
               "Gather context and prepare clear instructions for sub-agent",
               "planning", 3, "Clear task description and context files identified",
               [BASH_TOOL], {BASH_TOOL: "Gather relevant file paths, understand current state"}),
        _phase("spawn_agent", "Spawn Sub-Agent", "Launch autonomous agent with prepared task",
               "execution", 1, "Agent spawned and running",
               [SPAWN_AGENT_TOOL], {SPAWN_AGENT_TOOL: "Provide clear task, workspace path, "
                                                      "context files, and requirements"}),
        _phase("monitor_agent", "Monitor Agent Progress",
               "Track agent progress and handle any issues",
               "verification", 10, "Agent completed or failed",
               ["get_claude_status", "get_claude_output"],
               {"get_claude_status": "Check every few seconds for completion",
                "get_claude_output": "Review output for errors or issues"}),
        _phase("verify_results", "Verify Results", "Check that agent completed task correctly",
               "verification", 3, "Results verified and acceptable",
               [BASH_TOOL], {BASH_TOOL: "Run tests, check for expected changes, validate output"}),
        _phase("report_completion", "Report Completion",
               "Inform user of results and any follow-up needed",
               "reporting", 1, "User informed of completion", report_tools),
    ])


def planned_phases(task: str, inventory: ToolInventory) -> list[ExecutionPhase]:
    if DEPLOYMENT_PATTERN.search(task.lower()):
        report_tools = ["trello_update_card"] if _trello_enabled(inventory) else []
        return _chain([
            _phase("pre_deploy_check", "Pre-Deployment Checks",
                   "Verify prerequisites and current state",
                   "verification", 3, "All checks pass",
                   [BASH_TOOL, "list_containers"],
                   {BASH_TOOL: "Check git status, run tests, verify build",
                    "list_containers": "Check current running containers"},
                   parallel=True),
            _phase("build", "Build", "Build the application", "execution", 2, "Build succeeds",
                   [BASH_TOOL], {BASH_TOOL: "Run the project's build command"}),
            _phase("deploy", "Deploy", "Deploy to target environment",
                   "execution", 2, "Deployment command succeeds",
                   [DEPLOY_TOOL], {DEPLOY_TOOL: "Deploy with appropriate config, env vars, ports"}),
            _phase("verify_deploy", "Verify Deployment", "Confirm deployment is healthy",
                   "verification", 3, "Container healthy and responding",
                   ["get_container_logs", "get_container_stats", BASH_TOOL],
                   {"get_container_logs": "Check for startup errors",
                    "get_container_stats": "Verify resource usage is normal",
                    BASH_TOOL: "Test endpoints if applicable"},
                   parallel=True),
            _phase("report_deploy", "Report Status", "Notify of deployment status",
                   "reporting", 1, "Status communicated", report_tools),
        ])

    return _chain([
        _phase("understand_task", "Understand Task", "Parse and understand all requirements",
               "planning", 1, "Clear understanding of requirements"),
        _phase("execute_steps", "Execute Steps", "Execute each step of the task",
               "execution", 5, "All steps complete", [BASH_TOOL], delegable=True),
        _phase("verify", "Verify Results", "Confirm task completed correctly",
               "verification", 2, "Results verified", [BASH_TOOL]),
    ])


def direct_phases(task: str, inventory: ToolInventory) -> list[ExecutionPhase]:
    return _chain([
        _phase("execute", "Execute Task", "Directly execute the requested task",
               "execution", 3, "Task complete", select_tools_for_task(task, inventory)),
        _phase("confirm", "Confirm Completion", "Verify and report results",
               "verification", 1, "Results confirmed"),
    ])


PHASE_TEMPLATES: dict[str, Callable[[str, ToolInventory], list[ExecutionPhase]]] = {
    "explore-first": exploration_phases,
    "delegate": delegation_phases,
    "plan-first": planned_phases,
    "execute-direct": direct_phases,
}


# ---------------------------------------------------------------------------
# Derivations
# ---------------------------------------------------------------------------


def select_tools_for_task(task: str, inventory: ToolInventory) -> list[str]:
    lower = task.lower()
    selected = [BASH_TOOL]

    if re.search(r"trello|card|board|list", lower):
        selected += [tool.name for tool in inventory.available if tool.name.startswith("trello_")]
    if re.search(r"deploy|container|docker", lower):
        selected += [DEPLOY_TOOL, "list_containers"]
    if re.search(r"logs|status|stats", lower):
        selected += ["get_container_logs", "get_container_stats", "list_containers"]

    return list(dict.fromkeys(selected))


def create_tool_strategy(task: str, phases: list[ExecutionPhase]) -> ToolStrategy:
    usage = Counter(tool for phase in phases for tool in phase.tools)
    unique = list(usage)

    primary = [tool for tool in unique if usage[tool] >= 2 or tool == BASH_TOOL]
    secondary = [tool for tool in unique if tool not in primary]

    lower = task.lower()
    avoid: list[str] = []
    if "deploy" not in lower:
        avoid.append(DEPLOY_TOOL)
    if "agent" not in lower and "implement" not in lower:
        avoid.append(SPAWN_AGENT_TOOL)

    sequencing = [
        ToolSequence(
            phase=phase.id,
            tools=list(phase.tools),
            rationale=(
                phase.tool_strategies.get(phase.tools[0], "Standard tool usage")
                if phase.tools else "Standard tool usage"
            ),
        )
        for phase in phases
    ]
    return ToolStrategy(primary=primary, secondary=secondary, avoid_using=avoid,
                        sequencing=sequencing)


def assess_risks(phases: list[ExecutionPhase], inventory: ToolInventory) -> RiskAssessment:
    concerns: list[str] = []
    mitigations: list[str] = []

    if any(DEPLOY_TOOL in phase.tools for phase in phases):
        concerns.append("Deployment affects production environment")
        mitigations.append("Verify build before deploying, check logs after")

    if any(SPAWN_AGENT_TOOL in phase.tools for phase in phases):
        concerns.append("Delegated agent operates autonomously")
        mitigations.append("Monitor agent progress, set timeout, verify results")

    def _has_side_effects(name: str) -> bool:
        info = inventory.find(name)
        return bool(info and info.side_effects)

    if any(
        phase.type == "execution" and any(_has_side_effects(tool) for tool in phase.tools)
        for phase in phases
    ):
        concerns.append("Task involves state-changing operations")
        mitigations.append("Verify changes after each operation")

    if not concerns:
        level = "low"
    elif len(concerns) <= 2:
        level = "medium"
    else:
        level = "high"
    return RiskAssessment(level=level, concerns=concerns, mitigations=mitigations)


def define_success_criteria(task: str, phases: list[ExecutionPhase]) -> list[str]:
    lower = task.lower()
    criteria = [f"All {len(phases)} phases completed successfully"]

    if re.search(r"analyze|review", lower):
        criteria += ["Comprehensive analysis delivered", "Actionable recommendations provided"]
    if "deploy" in lower:
        criteria += ["Container running and healthy", "No errors in logs"]
    if re.search(r"create|build|implement", lower):
        criteria += ["Implementation complete", "Tests pass (if applicable)"]

    criteria.append("User satisfied with results")
    return criteria


def estimate_complexity(phases: list[ExecutionPhase]) -> Complexity:
    total = sum(phase.estimated_iterations for phase in phases)
    has_delegation = any(phase.can_delegate for phase in phases)
    has_deployment = any(DEPLOY_TOOL in phase.tools for phase in phases)

    if total <= 3:
        return "trivial"
    if total <= 8 and not has_delegation and not has_deployment:
        return "simple"
    if total <= 15:
        return "moderate"
    if total <= 30 or has_delegation:
        return "complex"
    return "very_complex"


def summarize_task_understanding(task: str, environment: EnvironmentContext) -> str:
    excerpt = task[:100] + ("..." if len(task) > 100 else "")
    parts = [
        f"Task: {excerpt}",
        f"Project: {environment.project_type} ({environment.project_name or 'unnamed'})",
    ]
    if environment.has_git:
        parts.append(f"Git: {environment.git_branch} ({environment.git_status})")
    return " | ".join(parts)


# ---------------------------------------------------------------------------
# StrategicPlanner
# ---------------------------------------------------------------------------


class StrategicPlanner:
    """
    Builds a StrategicPlan for a task.

    Stateless; one instance can plan any number of tasks.

    Example:
        plan = StrategicPlanner().create_plan(task, environment, inventory)
    """

    def create_plan(
        self,
        task: str,
        environment: EnvironmentContext,
        inventory: ToolInventory,
    ) -> StrategicPlan:
        approach = determine_approach(task)
        phases = PHASE_TEMPLATES[approach.approach](task, inventory)

        plan = StrategicPlan(
            task_understanding=summarize_task_understanding(task, environment),
            approach=approach,
            phases=phases,
            tool_strategy=create_tool_strategy(task, phases),
            risk_assessment=assess_risks(phases, inventory),
            success_criteria=define_success_criteria(task, phases),
            estimated_complexity=estimate_complexity(phases),
        )
        display.plan_created(plan)
        return plan


def create_plan(
    task: str,
    environment: EnvironmentContext,
    inventory: ToolInventory,
) -> StrategicPlan:
    return StrategicPlanner().create_plan(task, environment, inventory)
