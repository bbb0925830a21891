# gpdb/tools/base_tool.py
# The base class for all tools the model can call.

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Type

from pydantic import BaseModel, ValidationError

from gpdb.models.common import Mode

if TYPE_CHECKING:
    from gpdb.core.auto_continue import AutoContinueController
    from gpdb.core.binding import Binding
    from gpdb.services.session_history import SessionHistory

MAX_REPR_LENGTH = 1000


@dataclass
class ToolContext:
    """
    Everything a tool may touch while it runs.
    Attributes:
        binding: The execution handle of the host (None when the host has none).
        mode: The current host mode.
        auto_continue: The session's auto-continue controller.
        session_history: The session's input log.
        pending_commands: Host commands queued for execution after the turn.
    """
    binding: Optional["Binding"] = None
    mode: Mode = Mode.INTERACTIVE
    auto_continue: Optional["AutoContinueController"] = None
    session_history: Optional["SessionHistory"] = None
    pending_commands: List[str] = field(default_factory=list)


def error_result(exc: BaseException) -> Dict[str, Any]:
    return {"error": f"{type(exc).__name__}: {exc}"}


def safe_repr(value: Any, max_length: int = MAX_REPR_LENGTH) -> str:
    """repr() that never raises and is truncated to max_length characters."""
    try:
        rendered = repr(value)
    except Exception as e:
        return f"<{type(value).__name__} (repr failed: {e})>"
    if len(rendered) > max_length:
        return rendered[:max_length] + "..."
    return rendered


class BaseTool(ABC):
    """
    Abstract Base Class for all tools.

    This class defines a standard interface that all tools must implement.
    Attributes:
        name (str): The name of the tool, used for identification.
        description (str): A brief description of what the tool does.
        args_schema (Type[BaseModel]): A Pydantic model defining the arguments
            that the tool accepts, which will be validated before execution.
        exits_loop (bool): Whether a successful call ends the current request
            batch so the host can carry out the action first.
    """
    name: str
    description: str
    args_schema: Type[BaseModel]
    exits_loop: bool = False

    def available(self, mode: Mode) -> bool:
        """Override to restrict the tool to some host modes."""
        return True

    @abstractmethod
    def execute(self, context: ToolContext, **kwargs) -> Dict[str, Any]:
        """
        The core logic of the tool. This method must be implemented by all subclasses.

        Args:
            context: The tool context, including the host's binding.
            **kwargs: The arguments for the tool, validated against args_schema.

        Returns:
            A dict describing the result. An "error" key signals failure to the model.
        """

    def run(self, context: ToolContext, args: Dict[str, Any]) -> Dict[str, Any]:
        """
        Validates the arguments and executes the tool. Never raises for
        ordinary exceptions: validation errors and failures of the tool body
        are returned as {"error": "<Class>: <message>"}.
        """
        try:
            validated = self.args_schema.model_validate(args or {})
        except ValidationError as e:
            return {"error": f"ValidationError: invalid arguments for {self.name}: {_describe_errors(e)}"}

        try:
            return self.execute(context, **validated.model_dump())
        except Exception as e:
            return error_result(e)

    def get_definition(self) -> Dict[str, Any]:
        """Returns the provider-agnostic declaration of this tool."""
        return {
            "name": self.name,
            "description": self.description,
            "parameters": self.args_schema.model_json_schema(),
        }

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r}>"


def _describe_errors(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"]) or "arguments"
        parts.append(f"{location}: {item['msg']}")
    return "; ".join(parts)
