import pytest
from pydantic import ValidationError

from cognitive_engine.models import EnvironmentContext, ExecutionPhase
from cognitive_engine.planner import (
    StrategicPlanner,
    create_plan,
    determine_approach,
    estimate_complexity,
    select_tools_for_task,
    summarize_task_understanding,
)
from cognitive_engine.tools import build_tool_inventory


@pytest.fixture
def environment():
    return EnvironmentContext(working_directory="/srv/app", project_type="python")


@pytest.fixture
def inventory():
    return build_tool_inventory(has_trello=False)


# ---------------------------------------------------------------------------
# Approach classification
# ---------------------------------------------------------------------------

def test_codebase_analysis_is_explore_first_with_five_phases(environment, inventory):
    plan = create_plan("Please analyze the codebase architecture", environment, inventory)

    assert plan.approach.approach == "explore-first"
    assert plan.approach.confidence == 0.9
    assert len(plan.phases) == 5
    assert plan.phases[-1].type == "reporting"
    assert plan.phases[-1].tools == []


def test_generic_exploration_uses_three_phase_template(environment, inventory):
    plan = create_plan("Explain how caching works", environment, inventory)

    assert plan.approach.approach == "explore-first"
    assert [p.id for p in plan.phases] == ["gather_context", "analyze", "report"]


def test_plain_task_is_execute_direct(environment, inventory):
    plan = create_plan("Echo hello world", environment, inventory)

    assert plan.approach.approach == "execute-direct"
    assert plan.approach.confidence == 0.95
    assert len(plan.phases) == 2
    assert plan.phases[0].tools == ["execute_bash"]


def test_large_implementation_task_is_delegated(environment, inventory):
    task = "Implement a full authentication service with JWT tokens and refresh rotation"
    plan = create_plan(task, environment, inventory)

    assert plan.approach.approach == "delegate"
    assert plan.approach.confidence == 0.85
    assert [p.id for p in plan.phases][1] == "spawn_agent"
    assert "spawn_claude_agent" not in plan.tool_strategy.avoid_using
    assert "deploy_to_hetzner" in plan.tool_strategy.avoid_using
    assert plan.risk_assessment.level == "medium"
    assert plan.estimated_complexity == "complex"


def test_short_implementation_task_is_not_delegated():
    assert determine_approach("Build it").approach == "execute-direct"


def test_deployment_task_uses_deployment_template(environment, inventory):
    plan = create_plan("Deploy the latest build to staging", environment, inventory)

    assert plan.approach.approach == "plan-first"
    assert [p.id for p in plan.phases] == [
        "pre_deploy_check", "build", "deploy", "verify_deploy", "report_deploy",
    ]
    assert "Deployment affects production environment" in plan.risk_assessment.concerns
    assert plan.estimated_complexity == "moderate"
    assert "Container running and healthy" in plan.success_criteria


def test_generic_multi_step_task_uses_planned_template(environment, inventory):
    plan = create_plan("Rename the files then update the imports", environment, inventory)

    assert plan.approach.approach == "plan-first"
    assert [p.id for p in plan.phases] == ["understand_task", "execute_steps", "verify"]
    assert plan.estimated_complexity == "moderate"


def test_first_matching_rule_wins():
    # Exploration is checked before planning.
    assert determine_approach("Review the deploy scripts").approach == "explore-first"


def test_approach_is_immutable(environment, inventory):
    plan = create_plan("Echo hello world", environment, inventory)

    with pytest.raises(ValidationError):
        plan.approach.confidence = 0.1
    assert determine_approach("Echo hello world").confidence == 0.95


# ---------------------------------------------------------------------------
# Templates and derivations
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("task", [
    "Analyze the codebase architecture",
    "Explain how caching works",
    "Implement a full authentication service with JWT tokens and refresh rotation",
    "Deploy the latest build to staging",
    "Rename the files then update the imports",
    "Echo hello world",
])
def test_every_template_ends_with_reporting_or_verification(task, environment, inventory):
    plan = create_plan(task, environment, inventory)
    assert plan.phases[-1].type in {"reporting", "verification"}


def test_phase_dependencies_chain_in_list_order(environment, inventory):
    plan = create_plan("Analyze the codebase architecture", environment, inventory)

    assert plan.phases[0].dependencies == []
    for previous, phase in zip(plan.phases, plan.phases[1:]):
        assert phase.dependencies == [previous.id]


def test_trello_tools_only_when_configured(environment):
    without = create_plan("Analyze the codebase", environment, build_tool_inventory(False))
    with_trello = create_plan("Analyze the codebase", environment, build_tool_inventory(True))

    assert without.phase("synthesize_findings").tools == []
    assert with_trello.phase("synthesize_findings").tools == [
        "trello_create_card", "trello_add_checklist",
    ]
    assert "trello_create_card" in with_trello.tool_strategy.secondary


def test_tool_strategy_primary_and_sequencing(environment, inventory):
    plan = create_plan("Analyze the codebase architecture", environment, inventory)

    assert plan.tool_strategy.primary == ["execute_bash"]
    assert plan.tool_strategy.secondary == []
    assert plan.tool_strategy.sequencing[0].phase == "understand_structure"
    assert plan.tool_strategy.sequencing[-1].rationale == "Standard tool usage"


def test_select_tools_for_task_deduplicates(inventory):
    tools = select_tools_for_task("Show docker container logs", inventory)

    assert tools == [
        "execute_bash", "deploy_to_hetzner", "list_containers",
        "get_container_logs", "get_container_stats",
    ]


def test_direct_plan_with_bash_has_side_effect_risk(environment, inventory):
    plan = create_plan("Echo hello world", environment, inventory)

    assert plan.risk_assessment.level == "medium"
    assert plan.risk_assessment.concerns == ["Task involves state-changing operations"]


def _phases(*budgets, delegable=False):
    return [
        ExecutionPhase(id=f"p{i}", name=f"P{i}", description="", type="execution",
                       estimated_iterations=b, completion_criteria="done", can_delegate=delegable)
        for i, b in enumerate(budgets)
    ]


@pytest.mark.parametrize("budgets, delegable, expected", [
    ((1, 2), False, "trivial"),
    ((3, 5), False, "simple"),
    ((3, 5), True, "moderate"),
    ((10, 5), False, "moderate"),
    ((20, 10), False, "complex"),
    ((20, 20), True, "complex"),
    ((20, 20), False, "very_complex"),
])
def test_estimate_complexity_buckets(budgets, delegable, expected):
    assert estimate_complexity(_phases(*budgets, delegable=delegable)) == expected


def test_task_understanding_includes_git_and_truncates():
    env = EnvironmentContext(
        working_directory="/srv/app", project_type="node", project_name="web",
        has_git=True, git_branch="main", git_status="clean",
    )
    summary = summarize_task_understanding("x" * 150, env)

    assert summary.startswith("Task: " + "x" * 100 + "...")
    assert "Project: node (web)" in summary
    assert summary.endswith("Git: main (clean)")


def test_planner_is_stateless(environment, inventory):
    planner = StrategicPlanner()
    first = planner.create_plan("Echo hello world", environment, inventory)
    second = planner.create_plan("Echo hello world", environment, inventory)

    assert first == second
