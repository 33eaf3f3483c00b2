# llm.py
# Reasoning-service client.
#
# The agent treats the model as an opaque oracle: it sends the accumulated
# message history and gets back text, a stop reason and any tool requests.
# No retry or backoff lives here. A failed exchange surfaces as
# ReasoningError and is handled once at the top of the agent.

import json
from typing import Any

from openai import OpenAI, OpenAIError

from cognitive_engine.config import AgentConfig
from cognitive_engine.models import ReasoningResponse, ToolRequest


class ReasoningError(Exception):
    """Raised when the reasoning service cannot produce a response."""


def _parse_arguments(raw: str | None) -> dict:
    if not raw:
        return {}
    try:
        parsed = json.loads(raw, strict=False)
    except json.JSONDecodeError:
        return {"raw": raw}
    return parsed if isinstance(parsed, dict) else {"value": parsed}


class ReasoningClient:
    """
    Chat-completions wrapper pointed at OpenRouter by default.

    Example:
        client = ReasoningClient(AgentConfig.from_env())
        response = client.exchange([{"role": "user", "content": "hello"}])
    """

    def __init__(self, config: AgentConfig | None = None, client: Any = None) -> None:
        self.config = config or AgentConfig.from_env()
        self._client = client or OpenAI(base_url=self.config.base_url, api_key=self.config.api_key)

    def exchange(
        self,
        messages: list[dict],
        tools: list[dict] | None = None,
    ) -> ReasoningResponse:
        request: dict[str, Any] = {
            "model": self.config.model,
            "messages": messages,
            "max_tokens": self.config.max_tokens,
        }
        if tools:
            request["tools"] = tools

        try:
            completion = self._client.chat.completions.create(**request)
        except OpenAIError as exc:
            raise ReasoningError(f"Reasoning service call failed: {exc}") from exc

        if not completion.choices:
            raise ReasoningError("Reasoning service returned no choices.")

        choice = completion.choices[0]
        message = choice.message
        text = (message.content or "").strip()

        tool_calls = [
            ToolRequest(
                id=call.id,
                name=call.function.name,
                arguments=_parse_arguments(call.function.arguments),
            )
            for call in (message.tool_calls or [])
        ]

        history_entry: dict[str, Any] = {"role": "assistant", "content": text}
        if tool_calls:
            history_entry["tool_calls"] = [
                {
                    "id": call.id,
                    "type": "function",
                    "function": {"name": call.name, "arguments": json.dumps(call.arguments)},
                }
                for call in tool_calls
            ]

        return ReasoningResponse(
            text=text,
            stop_reason=choice.finish_reason,
            tool_calls=tool_calls,
            message=history_entry,
        )
