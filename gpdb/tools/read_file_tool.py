# gpdb/tools/read_file_tool.py
# A tool to read source files, optionally restricted to a line range.

from pathlib import Path
from typing import Optional, Type

from pydantic import BaseModel, Field

from .base_tool import BaseTool, ToolContext

MAX_LINES = 500


class ReadFileInput(BaseModel):
    """
    Input model for the ReadFileTool.
    Attributes:
        path (str): Absolute path, or path relative to the working directory.
        start_line (int): First line to return (1-based).
        end_line (int): Last line to return (inclusive).
    """
    path: str = Field(..., description="Path of the file to read.")
    start_line: Optional[int] = Field(default=None, ge=1, description="First line to read (1-based).")
    end_line: Optional[int] = Field(default=None, ge=1, description="Last line to read (inclusive).")


class ReadFileTool(BaseTool):
    """Reads a text file and returns its numbered lines."""
    name: str = "read_file"
    description: str = "Read a source file. Optionally restrict to a line range. " \
        "Lines are returned with their line numbers."
    args_schema: Type[BaseModel] = ReadFileInput

    def execute(self, context: ToolContext, path: str, start_line: Optional[int] = None,
                end_line: Optional[int] = None):
        file_path = Path(path).expanduser()
        if not file_path.is_file():
            return {"error": f"File not found: {path}"}

        lines = file_path.read_text(encoding="utf-8", errors="replace").splitlines()
        first = start_line or 1
        requested_last = min(end_line or len(lines), len(lines))
        last = min(requested_last, first + MAX_LINES - 1)
        selected = lines[first - 1:last]

        return {
            "path": str(file_path.resolve()),
            "total_lines": len(lines),
            "start_line": first,
            "end_line": first + len(selected) - 1,
            "content": "\n".join(f"{number}: {line}" for number, line in enumerate(selected, start=first)),
            "truncated": last < requested_last,
        }
