# gpdb/services/llm_connector.py
# The provider boundary: the only place where vendor request and response
# shapes are translated to and from gpdb's normalized form.

import json
import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from openai import APIError, OpenAI

from gpdb.core.config import Settings
from gpdb.core.errors import ConfigurationError
from gpdb.models.common import FunctionCall, ProviderResponse
from gpdb.utils.logger import console

# Endpoints reachable through the OpenAI-compatible chat completions API.
SUPPORTED_PROVIDERS = ("OPENAI", "DEEPSEEK", "GEMINI", "CLAUDE", "OLLAMA")
KEYLESS_PROVIDERS = ("OLLAMA",)


class BaseProvider(ABC):
    """
    Base class for LLM providers. Implement `chat` to add a new backend.

    `messages` is the normalized transcript: dicts with role "user",
    "assistant", "tool_call" or "tool_result". `tools` are declarations of the
    form {name, description, parameters}. `cancel_event` is set when the user
    interrupts; providers that can poll should abandon the request when it is.
    """

    @abstractmethod
    def chat(
        self,
        messages: List[Dict[str, Any]],
        system_prompt: str,
        tools: List[Dict[str, Any]],
        binding: Any = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> Optional[ProviderResponse]:
        """Sends one request and returns the structured response."""


class OpenAIProvider(BaseProvider):
    """A provider for any endpoint speaking the OpenAI chat completions API."""

    def __init__(self, client: OpenAI, model: str, temperature: float = 0.0):
        self.client = client
        self.model = model
        self.temperature = temperature

    def chat(self, messages, system_prompt, tools, binding=None, cancel_event=None):
        if cancel_event is not None and cancel_event.is_set():
            return ProviderResponse(error="Request cancelled")

        request_params: Dict[str, Any] = {
            "model": self.model,
            "messages": to_openai_messages(messages, system_prompt),
            "temperature": self.temperature,
        }
        if tools:
            request_params["tools"] = [to_openai_tool(tool) for tool in tools]
            request_params["tool_choice"] = "auto"

        try:
            response = self.client.chat.completions.create(**request_params)
        except APIError as e:
            message = str(e.body) if e.body is not None else "Unknown API Error"
            if isinstance(e.body, dict):
                message = e.body.get("message", message)
            console.error(f"An API error occurred: {message}")
            return ProviderResponse(error=message)
        except Exception as e:
            console.exception("An unexpected error occurred while calling the LLM.")
            return ProviderResponse(error=f"{type(e).__name__}: {e}")

        if not response.choices:
            return None
        return from_openai_message(response.choices[0].message, raw=response)


def to_openai_messages(messages: List[Dict[str, Any]], system_prompt: str) -> List[Dict[str, Any]]:
    """Translates the normalized transcript into chat completion messages."""
    converted: List[Dict[str, Any]] = [{"role": "system", "content": system_prompt}]
    for message in messages:
        role = message["role"]
        if role == "assistant" and not message.get("content"):
            # Text-less turns only own tool calls, which are sent on their own.
            continue
        if role in ("user", "assistant"):
            converted.append({"role": role, "content": message.get("content") or ""})
        elif role == "tool_call":
            converted.append({
                "role": "assistant",
                "content": None,
                "tool_calls": [{
                    "id": message["id"],
                    "type": "function",
                    "function": {
                        "name": message["name"],
                        "arguments": json.dumps(message.get("args") or {}, default=str),
                    },
                }],
            })
        elif role == "tool_result":
            converted.append({
                "role": "tool",
                "tool_call_id": message["id"],
                "content": json.dumps(message.get("result"), default=str, ensure_ascii=False),
            })
    return converted


def to_openai_tool(declaration: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "type": "function",
        "function": {
            "name": declaration["name"],
            "description": declaration["description"],
            "parameters": declaration["parameters"],
        },
    }


def from_openai_message(message: Any, raw: Any = None) -> ProviderResponse:
    function_calls = []
    for tool_call in message.tool_calls or []:
        function_calls.append(FunctionCall(
            name=tool_call.function.name,
            args=_parse_arguments(tool_call.function.name, tool_call.function.arguments),
            id=tool_call.id or None,
        ))
    return ProviderResponse(text=message.content or None, function_calls=function_calls, raw=raw)


def _parse_arguments(name: str, arguments: Optional[str]) -> Dict[str, Any]:
    if not arguments:
        return {}
    try:
        parsed = json.loads(arguments)
    except json.JSONDecodeError:
        console.warning(f"Could not decode arguments for tool '{name}': {arguments!r}")
        return {}
    return parsed if isinstance(parsed, dict) else {}


def create_provider(settings: Settings) -> BaseProvider:
    """
    Acts as a factory for the provider selected by LLM_PROVIDER.

    Raises:
        ConfigurationError: If the provider is unknown or has no API key.
    """
    name = settings.LLM_PROVIDER.upper()
    if name not in SUPPORTED_PROVIDERS:
        raise ConfigurationError(
            f"Unsupported LLM provider: {settings.LLM_PROVIDER}. "
            f"Set GPDB_LLM_PROVIDER to one of {', '.join(SUPPORTED_PROVIDERS)}."
        )

    api_key = getattr(settings, f"{name}_API_KEY")
    if not api_key:
        if name not in KEYLESS_PROVIDERS:
            raise ConfigurationError(
                f"No API key configured for {name}. Set GPDB_{name}_API_KEY in your "
                f"environment or in a .gpdb.env file."
            )
        api_key = "ollama"

    client = OpenAI(
        api_key=api_key,
        base_url=getattr(settings, f"{name}_BASE_URL"),
        timeout=settings.REQUEST_TIMEOUT,
    )
    model = getattr(settings, f"{name}_MODEL")
    console.debug(f"Using provider {name} with model {model}.")
    return OpenAIProvider(client, model)
