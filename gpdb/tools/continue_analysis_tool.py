# gpdb/tools/continue_analysis_tool.py
# A tool through which the model asks to be re-invoked with refreshed context.

from typing import Type

from pydantic import BaseModel, Field

from gpdb.models.common import Mode
from .base_tool import BaseTool, ToolContext


class ContinueAnalysisInput(BaseModel):
    """Input model for the Continue Analysis tool."""
    reason: str = Field(..., description="Why a context refresh is needed and what will be checked next.")


class ContinueAnalysisTool(BaseTool):
    """
    Arms auto-continuation: once the current answer is complete the model is
    called again with freshly captured variables. In the debugger the same
    effect is obtained through run_debug_command's auto_continue flag.
    """
    name: str = "continue_analysis"
    description: str = "Request to be re-invoked with a refreshed context (updated local variables, " \
        "last exception, etc.). Use this after executing code that changes state, when you need " \
        "to see the full updated picture before deciding your next action."
    args_schema: Type[BaseModel] = ContinueAnalysisInput

    def available(self, mode: Mode) -> bool:
        return mode is not Mode.BREAKPOINT

    def execute(self, context: ToolContext, reason: str):
        if context.auto_continue is None:
            return {"error": "Auto-continue is not supported by this host"}

        context.auto_continue.request()
        return {
            "success": True,
            "message": "You will be re-invoked with updated context after this response.",
            "reason": reason,
        }
