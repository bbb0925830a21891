# gpdb/tools/inspect_object_tool.py
# A tool to describe an object reachable from the current frame.

import inspect
from typing import Type

from pydantic import BaseModel, Field

from .base_tool import BaseTool, ToolContext, safe_repr

MAX_ATTRIBUTES = 30


class InspectObjectInput(BaseModel):
    """Input model for the Inspect Object tool."""
    expression: str = Field(..., description="An expression evaluating to the object, e.g. 'user' or 'self.items[0]'.")


class InspectObjectTool(BaseTool):
    """
    Evaluates an expression and reports the resulting object's type, repr,
    attributes and, for callables, signature and source file.
    """
    name: str = "inspect_object"
    description: str = "Inspect an object in detail: type, repr, attribute values, methods, " \
        "and for functions or classes their signature and defining file."
    args_schema: Type[BaseModel] = InspectObjectInput

    def execute(self, context: ToolContext, expression: str):
        if context.binding is None:
            return {"error": "No binding available for inspection"}

        value, _ = context.binding.evaluate(expression)
        result = {
            "expression": expression,
            "type": f"{type(value).__module__}.{type(value).__qualname__}",
            "repr": safe_repr(value),
        }

        attributes = getattr(value, "__dict__", None)
        if isinstance(attributes, dict):
            result["attributes"] = {
                key: safe_repr(attr, max_length=200)
                for key, attr in list(attributes.items())[:MAX_ATTRIBUTES]
            }

        public = [name for name in dir(value) if not name.startswith("_")]
        result["methods"] = [name for name in public if callable(getattr(value, name, None))][:MAX_ATTRIBUTES]

        if callable(value):
            try:
                result["signature"] = str(inspect.signature(value))
            except (TypeError, ValueError):
                pass
            source_file = inspect.getsourcefile(value) if inspect.isfunction(value) or inspect.isclass(value) else None
            if source_file:
                result["source_file"] = source_file
        return result
