# config.py
# Runtime settings. Values come from the environment (and .env, if present);
# everything has a working default so the engine runs unconfigured.

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()

DEFAULT_MODEL = "anthropic/claude-3.5-haiku"
OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


class MonitorConfig(BaseModel):
    """Thresholds for self-assessment and human escalation."""

    stuck_threshold: int = Field(default=5, ge=1)
    stuck_same_action_threshold: int = Field(default=5, ge=1)
    stuck_iteration_floor: int = Field(default=5, ge=0)
    progress_window_size: int = Field(default=10, ge=1)
    user_question_cooldown_seconds: float = Field(default=60.0, ge=0)
    max_user_questions_per_task: int = Field(default=3, ge=0)
    stuck_iteration_threshold: int = Field(default=15, ge=0)
    checkpoint_history_limit: int = Field(default=20, ge=0)

    @classmethod
    def from_env(cls) -> "MonitorConfig":
        return cls(
            user_question_cooldown_seconds=_env_int("USER_QUESTION_COOLDOWN_MS", 60_000) / 1000,
            max_user_questions_per_task=_env_int("MAX_USER_QUESTIONS_PER_TASK", 3),
            stuck_iteration_threshold=_env_int("STUCK_ITERATION_THRESHOLD", 15),
        )


class AgentConfig(BaseModel):
    """Iteration budget and reasoning-service wiring for the orchestrator."""

    max_iterations: int = Field(default=100, ge=1)
    progress_check_interval: int = Field(default=5, ge=1)
    delegation_enabled: bool = True
    escalation_floor: int = Field(
        default=10, ge=0, description="Global iterations required before asking the user."
    )
    model: str = DEFAULT_MODEL
    base_url: str = OPENROUTER_BASE_URL
    api_key: str | None = None
    max_tokens: int = 4096

    @classmethod
    def from_env(cls) -> "AgentConfig":
        return cls(
            max_iterations=_env_int("COGNITIVE_MAX_ITERATIONS", 100),
            model=os.getenv("COGNITIVE_MODEL", DEFAULT_MODEL),
            base_url=os.getenv("COGNITIVE_BASE_URL", OPENROUTER_BASE_URL),
            api_key=os.getenv("OPENROUTER_API_KEY"),
        )
