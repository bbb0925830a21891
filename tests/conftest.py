"""Shared pytest fixtures and configuration."""

import os
from typing import Any, Callable, Dict, List, Optional, Union

import pytest
from pydantic import BaseModel

from gpdb.core.auto_continue import AutoContinueController
from gpdb.core.binding import Binding
from gpdb.core.config import get_settings
from gpdb.core.conversation_history import ConversationHistory
from gpdb.core.orchestrator import OrchestrationLoop
from gpdb.core.tool_registry import ToolRegistry
from gpdb.models.common import FunctionCall, ProviderResponse
from gpdb.services.llm_connector import BaseProvider
from gpdb.tools.base_tool import BaseTool, ToolContext

Scripted = Union[ProviderResponse, None, BaseException, Callable[[], Optional[ProviderResponse]]]


class StubProvider(BaseProvider):
    """Replays scripted responses and records every request it receives."""

    def __init__(self, responses: Optional[List[Scripted]] = None, default: Scripted = None):
        self.responses = list(responses or [])
        self.default = default
        self.requests: List[Dict[str, Any]] = []

    def chat(self, messages, system_prompt, tools, binding=None, cancel_event=None):
        self.requests.append({
            "messages": messages,
            "system_prompt": system_prompt,
            "tools": [tool["name"] for tool in tools],
            "binding": binding,
        })
        item = self.responses.pop(0) if self.responses else self.default
        if isinstance(item, BaseException):
            raise item
        if callable(item):
            return item()
        return item


def text(content: str) -> ProviderResponse:
    return ProviderResponse(text=content)


def call(name: str, text_: Optional[str] = None, call_id: Optional[str] = None, **args) -> ProviderResponse:
    return ProviderResponse(text=text_, function_calls=[FunctionCall(name=name, args=args, id=call_id)])


class EchoInput(BaseModel):
    value: str = ""


class EchoTool(BaseTool):
    name = "echo"
    description = "Returns its argument."
    args_schema = EchoInput

    def execute(self, context: ToolContext, value: str = ""):
        return {"echo": value}


class BoomTool(BaseTool):
    name = "boom"
    description = "Always fails."
    args_schema = EchoInput

    def execute(self, context: ToolContext, value: str = ""):
        raise ValueError("kaboom")


class ArmTool(BaseTool):
    name = "arm"
    description = "Arms auto-continue."
    args_schema = EchoInput

    def execute(self, context: ToolContext, value: str = ""):
        context.auto_continue.request()
        return {"success": True}


@pytest.fixture(autouse=True)
def isolate_environment_variables(monkeypatch, tmp_path):
    """Keep GPDB_* variables and .gpdb.env files of the developer out of the tests."""
    for name in list(os.environ):
        if name.startswith("GPDB_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr("gpdb.core.config.find_env_file", lambda start_dir=None: None)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def emitted() -> List[str]:
    return []


@pytest.fixture
def registry() -> ToolRegistry:
    return ToolRegistry([EchoTool(), BoomTool(), ArmTool()])


@pytest.fixture
def history() -> ConversationHistory:
    return ConversationHistory()


@pytest.fixture
def controller() -> AutoContinueController:
    return AutoContinueController()


@pytest.fixture
def binding() -> Binding:
    namespace = {"x": 41}
    return Binding(globals=namespace, locals=namespace)


@pytest.fixture
def make_loop(registry, history, controller, emitted):
    """Builds an OrchestrationLoop around a StubProvider."""

    def factory(provider: StubProvider, **kwargs) -> OrchestrationLoop:
        return OrchestrationLoop(
            provider=provider,
            registry=kwargs.pop("registry", registry),
            history=history,
            auto_continue=controller,
            emit=emitted.append,
            **kwargs,
        )

    return factory
