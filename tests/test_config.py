from cognitive_engine.config import DEFAULT_MODEL, AgentConfig, MonitorConfig


def test_monitor_config_from_env(monkeypatch):
    monkeypatch.setenv("USER_QUESTION_COOLDOWN_MS", "30000")
    monkeypatch.setenv("MAX_USER_QUESTIONS_PER_TASK", "5")
    monkeypatch.setenv("STUCK_ITERATION_THRESHOLD", "20")

    config = MonitorConfig.from_env()

    assert config.user_question_cooldown_seconds == 30.0
    assert config.max_user_questions_per_task == 5
    assert config.stuck_iteration_threshold == 20
    assert config.stuck_threshold == 5


def test_monitor_config_ignores_garbage(monkeypatch):
    monkeypatch.setenv("MAX_USER_QUESTIONS_PER_TASK", "lots")
    monkeypatch.delenv("USER_QUESTION_COOLDOWN_MS", raising=False)

    config = MonitorConfig.from_env()

    assert config.max_user_questions_per_task == 3
    assert config.user_question_cooldown_seconds == 60.0


def test_agent_config_from_env(monkeypatch):
    monkeypatch.setenv("COGNITIVE_MAX_ITERATIONS", "40")
    monkeypatch.setenv("OPENROUTER_API_KEY", "sk-test")
    monkeypatch.delenv("COGNITIVE_MODEL", raising=False)

    config = AgentConfig.from_env()

    assert config.max_iterations == 40
    assert config.api_key == "sk-test"
    assert config.model == DEFAULT_MODEL
    assert config.progress_check_interval == 5
