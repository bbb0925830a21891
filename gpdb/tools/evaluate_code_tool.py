# gpdb/tools/evaluate_code_tool.py
# A tool to execute Python code in the host's current frame.

import traceback
from typing import Type

from pydantic import BaseModel, Field

from gpdb.utils.logger import console
from .base_tool import BaseTool, ToolContext, safe_repr

MAX_TRACEBACK_LINES = 5


class EvaluateCodeInput(BaseModel):
    """
    Input model for the EvaluateCodeTool.
    Attributes:
        code (str): The Python expression or statements to execute.
    """
    code: str = Field(..., description="Python code to execute, e.g. 'len(items)', "
                                       "'[x * 2 for x in data]' or 'total = sum(prices)'.")


class EvaluateCodeTool(BaseTool):
    """
    Executes arbitrary Python code against the current binding and returns the
    result, its type and anything printed to stdout.
    """
    name: str = "evaluate_code"
    description: str = "Execute Python code in the current context and return the result. " \
        "Use this to call functions, inspect objects, test conditions or verify a hypothesis."
    args_schema: Type[BaseModel] = EvaluateCodeInput

    def execute(self, context: ToolContext, code: str):
        if context.binding is None:
            return {"code": code, "error": "No binding available for code evaluation", "success": False}

        console.debug(f"Executing tool '{self.name}' with code: {code!r}")
        try:
            value, stdout = context.binding.evaluate(code)
        except SyntaxError as e:
            return {"code": code, "error": f"SyntaxError: {e}", "success": False}
        except Exception as e:
            frames = traceback.format_exception(type(e), e, e.__traceback__)
            return {
                "code": code,
                "error": f"{type(e).__name__}: {e}",
                "backtrace": [line.rstrip() for line in frames[-MAX_TRACEBACK_LINES:]],
                "success": False,
            }

        response = {
            "code": code,
            "result": safe_repr(value),
            "result_type": type(value).__name__,
            "success": True,
        }
        if stdout:
            # Also print captured output to the real console for user visibility
            console.emit(stdout.rstrip("\n"))
            response["stdout"] = stdout
        return response
