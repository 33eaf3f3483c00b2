from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from openai import OpenAIError

from cognitive_engine.config import AgentConfig
from cognitive_engine.llm import ReasoningClient, ReasoningError, _parse_arguments


def _completion(content="", finish_reason="stop", tool_calls=None):
    message = SimpleNamespace(content=content, tool_calls=tool_calls)
    return SimpleNamespace(choices=[SimpleNamespace(finish_reason=finish_reason, message=message)])


def _tool_call(call_id, name, arguments):
    return SimpleNamespace(id=call_id, function=SimpleNamespace(name=name, arguments=arguments))


@pytest.fixture
def openai_client():
    return MagicMock()


@pytest.fixture
def client(openai_client):
    return ReasoningClient(AgentConfig(model="test/model", max_tokens=256), client=openai_client)


# ---------------------------------------------------------------------------
# Exchange
# ---------------------------------------------------------------------------

def test_plain_text_response(client, openai_client):
    openai_client.chat.completions.create.return_value = _completion("  Task complete.  ")
    messages = [{"role": "user", "content": "hi"}]

    response = client.exchange(messages)

    assert response.text == "Task complete."
    assert response.stop_reason == "stop"
    assert response.tool_calls == []
    assert response.message == {"role": "assistant", "content": "Task complete."}
    openai_client.chat.completions.create.assert_called_once_with(
        model="test/model", messages=messages, max_tokens=256,
    )


def test_tools_are_forwarded(client, openai_client):
    openai_client.chat.completions.create.return_value = _completion("ok")
    tools = [{"type": "function", "function": {"name": "execute_bash"}}]

    client.exchange([], tools=tools)

    assert openai_client.chat.completions.create.call_args.kwargs["tools"] == tools


def test_tool_calls_are_parsed(client, openai_client):
    openai_client.chat.completions.create.return_value = _completion(
        content=None,
        finish_reason="tool_calls",
        tool_calls=[_tool_call("call_1", "execute_bash", '{"command": "ls -la"}')],
    )

    response = client.exchange([])

    assert response.text == ""
    assert response.stop_reason == "tool_calls"
    assert response.tool_calls[0].id == "call_1"
    assert response.tool_calls[0].name == "execute_bash"
    assert response.tool_calls[0].arguments == {"command": "ls -la"}
    assert response.message["tool_calls"][0]["function"]["name"] == "execute_bash"


def test_service_error_becomes_reasoning_error(client, openai_client):
    openai_client.chat.completions.create.side_effect = OpenAIError("rate limited")

    with pytest.raises(ReasoningError, match="rate limited"):
        client.exchange([])


def test_empty_choices_raise(client, openai_client):
    openai_client.chat.completions.create.return_value = SimpleNamespace(choices=[])

    with pytest.raises(ReasoningError, match="no choices"):
        client.exchange([])


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("raw, expected", [
    (None, {}),
    ("", {}),
    ('{"path": "src"}', {"path": "src"}),
    ("[1, 2]", {"value": [1, 2]}),
    ("not json", {"raw": "not json"}),
])
def test_parse_arguments(raw, expected):
    assert _parse_arguments(raw) == expected
