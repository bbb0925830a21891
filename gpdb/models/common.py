# gpdb/models/common.py
# The common models shared by the conversation history, the providers and
# session persistence.

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Literal, Optional
from uuid import uuid4

from pydantic import BaseModel, Field

# Roles of settled transcript entries as they appear in session files.
Role = Literal["user", "model"]

ContextSnapshot = Dict[str, Any]


def new_call_id() -> str:
    """Synthesizes a tool call id for providers that do not supply one."""
    return f"call_{uuid4().hex[:12]}"


class Mode(str, Enum):
    """The host the engine is serving, chosen explicitly by the host."""
    INTERACTIVE = "interactive"
    BREAKPOINT = "breakpoint"
    FRAMEWORK = "framework"


class ToolCallRecord(BaseModel):
    """
    A tool call issued by the model together with the result it produced.
    Attributes:
        id (str): The unique ID of the tool call.
        name (str): The name of the tool that was called.
        args (dict): The arguments the model passed.
        result (Any): The structured result; may carry an "error" key.
        metadata (dict): Optional provider-specific data kept for round-trips.
    """
    id: str = Field(default_factory=new_call_id, description="The unique ID of the tool call.")
    name: str = Field(..., description="The name of the tool that was called.")
    args: Dict[str, Any] = Field(default_factory=dict, description="The arguments of the call.")
    result: Any = Field(default=None, description="The structured result of the call.")
    metadata: Optional[Dict[str, Any]] = Field(default=None, description="Optional provider data.")

    def to_dict(self) -> Dict[str, Any]:
        data = self.model_dump()
        if data["metadata"] is None:
            del data["metadata"]
        return data


class Message(BaseModel):
    """
    A settled entry of the conversation.
    Attributes:
        role (Role): "user" or "model".
        content (Optional[str]): The text of the message.
        tool_calls (Optional[List[ToolCallRecord]]): The tool calls that led up to
            this assistant message, in the order they were made.
    """
    role: Role = Field(..., description="The role of the message sender.")
    content: Optional[str] = Field(default=None, description="The content of the message.")
    tool_calls: Optional[List[ToolCallRecord]] = Field(default=None, description="Tool calls owned by this message.")

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"role": self.role, "content": self.content}
        if self.tool_calls:
            data["tool_calls"] = [tool_call.to_dict() for tool_call in self.tool_calls]
        return data


class FunctionCall(BaseModel):
    """A function call as returned by a provider. `id` is optional."""
    name: str
    args: Dict[str, Any] = Field(default_factory=dict)
    id: Optional[str] = None


class ProviderResponse(BaseModel):
    """
    The structured response of a provider.
    An error together with function calls is a soft error: the calls are
    still dispatched. An error without function calls ends the turn.
    """
    text: Optional[str] = None
    function_calls: List[FunctionCall] = Field(default_factory=list)
    error: Optional[str] = None
    raw: Any = Field(default=None, exclude=True)

    @property
    def has_function_calls(self) -> bool:
        return bool(self.function_calls)


class PersistedSession(BaseModel):
    """The content of a session file."""
    session_id: str
    saved_at: datetime
    messages: List[Message] = Field(default_factory=list)


class SessionInfo(BaseModel):
    """One row of the session listing."""
    id: str
    saved_at: datetime
    message_count: int


@dataclass
class Capabilities:
    """
    What a host hands to the engine for one question.
    Attributes:
        binding: The execution handle tools run against.
        mode: The host mode (interactive console, breakpoint, framework shell).
        capture_context: Re-captures a fresh context snapshot for continuation rounds.
    """
    binding: Any = None
    mode: Mode = Mode.INTERACTIVE
    capture_context: Optional[Callable[[], ContextSnapshot]] = None

    @property
    def debug_mode(self) -> bool:
        return self.mode is Mode.BREAKPOINT
