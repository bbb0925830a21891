"""Tests for ToolRegistry."""

import pytest

from gpdb.core.errors import ToolRegistrationError
from gpdb.core.tool_registry import ToolRegistry, default_registry
from gpdb.models.common import Mode
from gpdb.tools.base_tool import BaseTool, ToolContext

from conftest import EchoInput, EchoTool


class OtherEchoTool(BaseTool):
    name = "echo"
    description = "A different tool claiming the same name."
    args_schema = EchoInput

    def execute(self, context: ToolContext, value: str = ""):
        return {}


class BreakpointOnlyTool(EchoTool):
    name = "breakpoint_only"

    def available(self, mode: Mode) -> bool:
        return mode is Mode.BREAKPOINT


class TestToolRegistry:

    def test_register_is_idempotent(self):
        once = ToolRegistry([EchoTool()])
        twice = ToolRegistry([EchoTool()])
        twice.register(EchoTool())
        assert [t.name for t in once.available_tools()] == [t.name for t in twice.available_tools()]
        assert len(twice.tools) == 1

    def test_name_collision_raises(self):
        registry = ToolRegistry([EchoTool()])
        with pytest.raises(ToolRegistrationError):
            registry.register(OtherEchoTool())

    def test_availability_is_evaluated_per_query(self):
        registry = ToolRegistry([EchoTool(), BreakpointOnlyTool()])
        assert [t.name for t in registry.available_tools(Mode.INTERACTIVE)] == ["echo"]
        assert [t.name for t in registry.available_tools(Mode.BREAKPOINT)] == ["echo", "breakpoint_only"]

    def test_find(self):
        registry = ToolRegistry([BreakpointOnlyTool()])
        assert registry.find("breakpoint_only") is not None
        assert registry.find("breakpoint_only", Mode.INTERACTIVE) is None
        assert registry.find("breakpoint_only", Mode.BREAKPOINT) is not None
        assert registry.find("missing") is None

    def test_declarations(self):
        registry = ToolRegistry([EchoTool()])
        declaration = registry.declarations()[0]
        assert declaration["name"] == "echo"
        assert declaration["description"] == "Returns its argument."
        assert declaration["parameters"]["properties"]["value"]["type"] == "string"

    def test_default_registry_modes(self):
        registry = default_registry()
        interactive = {t.name for t in registry.available_tools(Mode.INTERACTIVE)}
        breakpoint_ = {t.name for t in registry.available_tools(Mode.BREAKPOINT)}

        assert "continue_analysis" in interactive
        assert "run_debug_command" not in interactive
        assert "run_debug_command" in breakpoint_
        assert "continue_analysis" not in breakpoint_
        assert {"evaluate_code", "read_file", "find_file"} <= interactive & breakpoint_

    def test_framework_info_only_in_framework_mode(self):
        registry = default_registry()
        assert registry.find("framework_info", Mode.FRAMEWORK) is not None
        assert registry.find("framework_info", Mode.INTERACTIVE) is None
        assert registry.find("framework_info", Mode.BREAKPOINT) is None
