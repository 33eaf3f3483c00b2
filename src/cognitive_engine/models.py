# models.py
# Data contracts for the cognitive task-execution engine.
# Pure schema and validation; no business logic.

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

ApproachName = Literal["explore-first", "delegate", "plan-first", "execute-direct"]
PhaseType = Literal["exploration", "planning", "execution", "verification", "reporting"]
ToolCategory = Literal[
    "exploration",
    "creation",
    "modification",
    "execution",
    "deployment",
    "monitoring",
    "communication",
    "delegation",
]
Complexity = Literal["trivial", "simple", "moderate", "complex", "very_complex"]
RiskLevel = Literal["low", "medium", "high"]


# ---------------------------------------------------------------------------
# Collaborator boundary
# ---------------------------------------------------------------------------


class EnvironmentContext(BaseModel):
    """Snapshot of the working directory the task runs against."""

    working_directory: str
    project_type: Literal["node", "python", "go", "rust", "mixed", "unknown"] = "unknown"
    project_name: str | None = None
    has_git: bool = False
    git_branch: str | None = None
    git_status: Literal["clean", "dirty", "unknown"] | None = None
    has_docker: bool = False
    package_manager: str | None = None
    main_entry_point: str | None = None
    key_files: list[str] = Field(default_factory=list)
    recently_modified: list[str] = Field(default_factory=list)


class ToolInfo(BaseModel):
    """Catalog entry for an executable tool."""

    name: str
    category: ToolCategory
    description: str = ""
    capabilities: list[str] = Field(default_factory=list)
    prerequisites: list[str] = Field(default_factory=list)
    complexity: Literal["simple", "moderate", "complex"] = "simple"
    side_effects: bool = Field(default=False, description="Does this tool change state?")
    parameters: dict = Field(
        default_factory=lambda: {"type": "object", "properties": {}},
        description="JSON schema of the tool arguments.",
    )


class ToolInventory(BaseModel):
    available: list[ToolInfo] = Field(default_factory=list)
    configured: list[str] = Field(
        default_factory=list, description="Tool or integration names ready to use."
    )
    recommended: list[str] = Field(default_factory=list)

    def find(self, name: str) -> ToolInfo | None:
        return next((tool for tool in self.available if tool.name == name), None)


# ---------------------------------------------------------------------------
# Plan
# ---------------------------------------------------------------------------


class ThinkingStyle(BaseModel):
    """The approach chosen once per task."""

    model_config = ConfigDict(frozen=True)

    approach: ApproachName
    confidence: float = Field(..., ge=0.0, le=1.0)
    reasoning: str
    fallback_strategy: str | None = None


class ExecutionPhase(BaseModel):
    """An ordered unit of plan execution."""

    id: str
    name: str
    description: str
    type: PhaseType
    tools: list[str] = Field(default_factory=list)
    tool_strategies: dict[str, str] = Field(
        default_factory=dict, description="How to use each tool in this phase."
    )
    can_parallelize: bool = False
    can_delegate: bool = False
    estimated_iterations: int = Field(..., ge=1)
    completion_criteria: str
    dependencies: list[str] = Field(
        default_factory=list,
        description="Informational only. Phases always run in list order.",
    )


class ToolSequence(BaseModel):
    phase: str
    tools: list[str]
    rationale: str


class ToolStrategy(BaseModel):
    primary: list[str] = Field(default_factory=list)
    secondary: list[str] = Field(default_factory=list)
    avoid_using: list[str] = Field(default_factory=list)
    sequencing: list[ToolSequence] = Field(default_factory=list)


class RiskAssessment(BaseModel):
    level: RiskLevel
    concerns: list[str] = Field(default_factory=list)
    mitigations: list[str] = Field(default_factory=list)


class StrategicPlan(BaseModel):
    task_understanding: str
    approach: ThinkingStyle
    phases: list[ExecutionPhase] = Field(..., min_length=1)
    tool_strategy: ToolStrategy
    risk_assessment: RiskAssessment
    success_criteria: list[str]
    estimated_complexity: Complexity

    def phase(self, phase_id: str) -> ExecutionPhase | None:
        return next((phase for phase in self.phases if phase.id == phase_id), None)


# ---------------------------------------------------------------------------
# Execution memory
# ---------------------------------------------------------------------------


class ToolCallRecord(BaseModel):
    tool: str
    input: Any = None
    output: Any = None
    success: bool
    timestamp: float = 0.0
    duration: float = Field(default=0.0, description="Seconds spent in the tool.")
    insights_gained: list[str] = Field(default_factory=list)


class FailedAttempt(BaseModel):
    phase: str
    tool: str
    error: str
    timestamp: float


class PivotRecord(BaseModel):
    from_strategy: str
    to_strategy: str
    reason: str
    timestamp: float


class DelegationRecord(BaseModel):
    subtask: str
    agent_id: str
    status: Literal["pending", "running", "completed", "failed"] = "pending"
    result: Any = None


class ExecutionMemory(BaseModel):
    """Append-only ledger owned by the monitor."""

    tool_call_history: list[ToolCallRecord] = Field(default_factory=list)
    discovered_facts: list[str] = Field(default_factory=list)
    completed_phases: list[str] = Field(default_factory=list)
    failed_attempts: list[FailedAttempt] = Field(default_factory=list)
    pivots: list[PivotRecord] = Field(default_factory=list)
    delegations: list[DelegationRecord] = Field(default_factory=list)


class SelfAssessment(BaseModel):
    is_progressing: bool
    progress_rate: float = Field(..., ge=0.0, le=1.0)
    is_stuck: bool
    stuck_reason: str | None = None
    should_pivot: bool
    pivot_suggestion: str | None = None
    should_ask_user: bool
    question_for_user: str | None = None
    should_delegate: bool
    delegation_target: str | None = None
    confidence_in_approach: float = Field(..., ge=0.0, le=1.0)


class Checkpoint(BaseModel):
    """Serializable subset of execution memory needed to resume monitoring."""

    tool_call_history: list[ToolCallRecord] = Field(default_factory=list)
    failed_attempts: list[FailedAttempt] = Field(default_factory=list)
    pivots: list[PivotRecord] = Field(default_factory=list)
    completed_phases: list[str] = Field(default_factory=list)
    discoveries: list[str] = Field(default_factory=list)
    user_questions_asked: int = Field(default=0, ge=0)
    current_iteration: int = Field(default=0, ge=0)


# ---------------------------------------------------------------------------
# Reasoning exchange
# ---------------------------------------------------------------------------


class ToolRequest(BaseModel):
    """A tool invocation requested by the reasoning service."""

    id: str
    name: str
    arguments: dict = Field(default_factory=dict)


class ReasoningResponse(BaseModel):
    text: str = ""
    stop_reason: str | None = None
    tool_calls: list[ToolRequest] = Field(default_factory=list)
    message: dict = Field(
        default_factory=dict, description="Assistant message to append to the history."
    )


class IterationOutcome(BaseModel):
    phase_complete: bool = False
    task_complete: bool = False
    final_message: str | None = None


class AgentState(BaseModel):
    """Live view of one task run, exposed for inspection."""

    context: EnvironmentContext
    inventory: ToolInventory
    plan: StrategicPlan
    current_phase: str = ""
    iteration: int = 0
    assessment: SelfAssessment | None = None


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------


class ExecutionSummary(BaseModel):
    """Terminal result of one task."""

    success: bool
    message: str
    iterations: int = 0
    tool_calls: int = 0
    phases_completed: int = 0
    total_phases: int = 0
    discoveries: list[str] = Field(default_factory=list)
    approach: ApproachName | None = None
    confidence: float | None = None
