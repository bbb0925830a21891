# gpdb/core/tool_registry.py
# Holds the tools the model may call and resolves them by name.

from typing import Any, Dict, List, Optional

from gpdb.core.errors import ToolRegistrationError
from gpdb.models.common import Mode
from gpdb.tools.base_tool import BaseTool
from gpdb.utils.logger import console


class ToolRegistry:
    """
    A registry of tool instances keyed by their name.

    Availability is asked of each tool every time the registry is queried,
    because it depends on the host mode, which changes at runtime (e.g. when
    a debugger session starts).
    """

    def __init__(self, tools: Optional[List[BaseTool]] = None):
        self._tools: Dict[str, BaseTool] = {}
        for tool in tools or []:
            self.register(tool)

    def register(self, tool: BaseTool) -> BaseTool:
        """Registers a tool. Registering the same tool again is a no-op."""
        existing = self._tools.get(tool.name)
        if existing is not None:
            if type(existing) is type(tool):
                console.debug(f"Tool '{tool.name}' is already registered.")
                return existing
            raise ToolRegistrationError(
                f"Tool name '{tool.name}' is already used by {type(existing).__name__}."
            )
        self._tools[tool.name] = tool
        console.debug(f"Successfully registered tool: '{tool.name}'")
        return tool

    @property
    def tools(self) -> List[BaseTool]:
        return list(self._tools.values())

    def available_tools(self, mode: Mode = Mode.INTERACTIVE) -> List[BaseTool]:
        return [tool for tool in self._tools.values() if tool.available(mode)]

    def find(self, name: str, mode: Optional[Mode] = None) -> Optional[BaseTool]:
        """Resolves a tool by name; with a mode, unavailable tools do not resolve."""
        tool = self._tools.get(name)
        if tool is None:
            return None
        if mode is not None and not tool.available(mode):
            return None
        return tool

    def declarations(self, mode: Mode = Mode.INTERACTIVE) -> List[Dict[str, Any]]:
        """Returns the definitions of the available tools, for sending to the provider."""
        return [tool.get_definition() for tool in self.available_tools(mode)]


def default_registry() -> ToolRegistry:
    """Creates a registry holding the built-in tools."""
    from gpdb.tools import BUILTIN_TOOLS

    registry = ToolRegistry([tool_class() for tool_class in BUILTIN_TOOLS])
    console.debug(f"Tool registry ready with {len(registry.tools)} tools: {[t.name for t in registry.tools]}")
    return registry
