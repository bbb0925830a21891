"""Tests for the provider boundary."""

import json
import threading
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import httpx
import pytest
from openai import APIError

from gpdb.core.config import Settings
from gpdb.core.errors import ConfigurationError
from gpdb.services.llm_connector import (
    OpenAIProvider,
    create_provider,
    from_openai_message,
    to_openai_messages,
    to_openai_tool,
)


def tool_call(name, arguments, call_id="call_1"):
    return SimpleNamespace(id=call_id, function=SimpleNamespace(name=name, arguments=arguments))


def completion(content=None, tool_calls=None):
    message = SimpleNamespace(content=content, tool_calls=tool_calls)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


DECLARATION = {
    "name": "evaluate_code",
    "description": "Run code.",
    "parameters": {"type": "object", "properties": {"code": {"type": "string"}}},
}


class TestTranslation:

    def test_to_openai_messages(self):
        messages = [
            {"role": "user", "content": "q"},
            {"role": "tool_call", "id": "c1", "name": "evaluate_code", "args": {"code": "1"}},
            {"role": "tool_result", "id": "c1", "name": "evaluate_code", "result": {"result": "1"}},
            {"role": "assistant", "content": "one"},
        ]
        converted = to_openai_messages(messages, "system")

        assert converted[0] == {"role": "system", "content": "system"}
        assert converted[1] == {"role": "user", "content": "q"}
        assert converted[2]["tool_calls"][0]["function"] == {"name": "evaluate_code", "arguments": '{"code": "1"}'}
        assert converted[3] == {"role": "tool", "tool_call_id": "c1", "content": '{"result": "1"}'}
        assert converted[4] == {"role": "assistant", "content": "one"}

    def test_empty_assistant_turn_is_dropped(self):
        messages = [
            {"role": "user", "content": "q"},
            {"role": "assistant", "content": ""},
            {"role": "tool_call", "id": "c1", "name": "evaluate_code", "args": {}},
            {"role": "tool_result", "id": "c1", "name": "evaluate_code", "result": 1},
        ]
        converted = to_openai_messages(messages, "system")

        assert [entry["role"] for entry in converted] == ["system", "user", "assistant", "tool"]
        assert converted[2]["content"] is None
        assert converted[2]["tool_calls"][0]["id"] == "c1"

    def test_to_openai_tool(self):
        assert to_openai_tool(DECLARATION) == {"type": "function", "function": DECLARATION}

    def test_from_openai_message(self):
        message = SimpleNamespace(content="checking", tool_calls=[tool_call("evaluate_code", '{"code": "x"}')])
        response = from_openai_message(message)
        assert response.text == "checking"
        assert response.function_calls[0].name == "evaluate_code"
        assert response.function_calls[0].args == {"code": "x"}
        assert response.function_calls[0].id == "call_1"

    def test_bad_arguments_become_empty(self):
        message = SimpleNamespace(content=None, tool_calls=[tool_call("evaluate_code", "{oops")])
        response = from_openai_message(message)
        assert response.text is None
        assert response.function_calls[0].args == {}


class TestOpenAIProvider:

    @pytest.fixture
    def client(self):
        return MagicMock()

    def test_sends_tools(self, client):
        client.chat.completions.create.return_value = completion(content="hi")
        response = OpenAIProvider(client, "gpt-test").chat([{"role": "user", "content": "q"}], "sys", [DECLARATION])

        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-test"
        assert kwargs["tool_choice"] == "auto"
        assert kwargs["tools"] == [to_openai_tool(DECLARATION)]
        assert response.text == "hi"

    def test_no_tools_omits_tool_choice(self, client):
        client.chat.completions.create.return_value = completion(content="summary")
        OpenAIProvider(client, "gpt-test").chat([], "sys", [])
        kwargs = client.chat.completions.create.call_args.kwargs
        assert "tools" not in kwargs
        assert "tool_choice" not in kwargs

    def test_api_error(self, client):
        request = httpx.Request("POST", "https://api.example.com/v1/chat/completions")
        client.chat.completions.create.side_effect = APIError("boom", request, body={"message": "rate limited"})
        response = OpenAIProvider(client, "gpt-test").chat([], "sys", [])
        assert response.error == "rate limited"
        assert response.function_calls == []

    def test_unexpected_error(self, client):
        client.chat.completions.create.side_effect = ConnectionResetError("reset")
        response = OpenAIProvider(client, "gpt-test").chat([], "sys", [])
        assert response.error == "ConnectionResetError: reset"

    def test_cancelled_before_request(self, client):
        cancel_event = threading.Event()
        cancel_event.set()
        response = OpenAIProvider(client, "gpt-test").chat([], "sys", [], cancel_event=cancel_event)
        assert response.error == "Request cancelled"
        client.chat.completions.create.assert_not_called()

    def test_no_choices(self, client):
        client.chat.completions.create.return_value = SimpleNamespace(choices=[])
        assert OpenAIProvider(client, "gpt-test").chat([], "sys", []) is None


class TestCreateProvider:

    def test_unknown_provider(self):
        with pytest.raises(ConfigurationError, match="Unsupported LLM provider"):
            create_provider(Settings(LLM_PROVIDER="mystery"))

    def test_missing_key(self):
        with pytest.raises(ConfigurationError, match="GPDB_GEMINI_API_KEY"):
            create_provider(Settings(LLM_PROVIDER="gemini"))

    def test_deepseek(self):
        with patch("gpdb.services.llm_connector.OpenAI") as client_class:
            provider = create_provider(Settings(LLM_PROVIDER="deepseek", DEEPSEEK_API_KEY="sk-deep"))

        client_class.assert_called_once_with(api_key="sk-deep", base_url="https://api.deepseek.com", timeout=120.0)
        assert provider.model == "deepseek-chat"

    def test_ollama_needs_no_key(self):
        with patch("gpdb.services.llm_connector.OpenAI") as client_class:
            provider = create_provider(Settings(LLM_PROVIDER="ollama"))

        assert client_class.call_args.kwargs["api_key"] == "ollama"
        assert provider.model == "llama3.1"
