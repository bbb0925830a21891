# gpdb/tools/session_history_tool.py
# A tool to query the line-numbered input log of the current session.

from typing import Literal, Optional, Type

from pydantic import BaseModel, Field

from .base_tool import BaseTool, ToolContext


class SessionHistoryInput(BaseModel):
    """Input model for the Session History tool."""
    action: Literal["get_line", "get_range", "get_method", "full_history", "list_ai_conversations"] = Field(
        ..., description="get_line (single line), get_range (line range), get_method (function source), "
                         "full_history (all inputs), list_ai_conversations (previous AI questions and answers)")
    line: Optional[int] = Field(default=None, description="Line number for get_line.")
    start_line: Optional[int] = Field(default=None, description="Start line for get_range.")
    end_line: Optional[int] = Field(default=None, description="End line for get_range.")
    method_name: Optional[str] = Field(default=None, description="Function name for get_method.")


class SessionHistoryTool(BaseTool):
    """Looks up inputs, function definitions and AI conversations of this session."""
    name: str = "get_session_history"
    description: str = "Get the history of this console or debugger session: specific lines, line " \
        "ranges, function definitions typed by the user, previous AI conversations or the full history."
    args_schema: Type[BaseModel] = SessionHistoryInput

    def execute(self, context: ToolContext, action: str, line: Optional[int] = None,
                start_line: Optional[int] = None, end_line: Optional[int] = None,
                method_name: Optional[str] = None):
        history = context.session_history
        if history is None:
            return {"error": "No session history available"}

        if action == "get_line":
            if line is None:
                return {"error": "line parameter is required"}
            entry = history.find_by_line(line)
            if entry is None:
                return {"error": f"Line {line} not found in session history"}
            return {"line": entry.line_no, "code": entry.code}

        if action == "get_range":
            if start_line is None or end_line is None:
                return {"error": "start_line and end_line parameters are required"}
            entries = history.find_by_line_range(start_line, end_line)
            if not entries:
                return {"error": f"No entries found in range {start_line}-{end_line}"}
            return {
                "range": f"{start_line}-{end_line}",
                "entries": [{"line": entry.line_no, "code": entry.code} for entry in entries],
            }

        if action == "get_method":
            if not method_name:
                return {"error": "method_name parameter is required"}
            method = history.find_method(method_name)
            if method is None:
                return {"error": f"Function '{method_name}' not found in session history"}
            return {"method_name": method.name, "start_line": method.start_line,
                    "end_line": method.end_line, "source": method.code}

        if action == "list_ai_conversations":
            conversations = history.ai_conversations()
            if not conversations:
                return {"message": "No AI conversations in this session"}
            return {"count": len(conversations), "conversations": conversations}

        lines = history.all_with_line_numbers()
        if not lines:
            return {"message": "No history in this session"}
        return {"count": len(lines), "history": lines}
