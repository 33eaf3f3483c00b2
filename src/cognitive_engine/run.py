# run.py
# Entry point. Config and wiring only — no logic lives here.
#
# Model and endpoint come from the environment (see config.py); any
# OpenRouter-supported model works.
# https://openrouter.ai/models

import os
import sys

from cognitive_engine.config import AgentConfig, MonitorConfig
from cognitive_engine.llm import ReasoningClient
from cognitive_engine.monitor import SelfMonitor
from cognitive_engine.notify import ConsoleNotifier, WebhookNotifier
from cognitive_engine.orchestrator import CognitiveAgent

# Sample tasks, one per approach.
TASKS = [
    # explore-first, codebase template (5 phases)
    "Analyze the codebase architecture and point out the riskiest modules.",

    # plan-first, deployment template
    "Deploy the latest build to staging.",

    # execute-direct (2 phases)
    "Echo hello world.",
]


def main() -> None:
    config = AgentConfig.from_env()
    webhook = os.getenv("COGNITIVE_WEBHOOK_URL", "").strip()
    notifier = WebhookNotifier(webhook) if webhook else ConsoleNotifier()
    tasks = sys.argv[1:] or TASKS

    for task in tasks:
        agent = CognitiveAgent(
            ReasoningClient(config),
            monitor=SelfMonitor(MonitorConfig.from_env()),
            notifier=notifier,
            config=config,
        )
        summary = agent.execute(task)
        print(f"\n[RESULT]\n{summary.model_dump_json(indent=2)}\n")


if __name__ == "__main__":
    main()
