# gpdb/tools/find_file_tool.py
# A tool to locate files in the project by glob pattern.

import os
from pathlib import Path
from typing import Optional, Type

from pydantic import BaseModel, Field

from .base_tool import BaseTool, ToolContext

MAX_RESULTS = 20


class FindFileInput(BaseModel):
    """Input model for the Find File tool."""
    pattern: str = Field(..., description="File name pattern (glob), e.g. 'models.py', '**/test_*.py', 'app/*.py'.")
    directory: Optional[str] = Field(default=None, description="Directory to search in (defaults to the working directory).")


class FindFileTool(BaseTool):
    """
    Finds files by glob pattern. A pattern without a directory part is
    searched recursively.
    """
    name: str = "find_file"
    description: str = "Find files in the project by name pattern. Supports glob patterns " \
        "like '*.py' or '**/*user*.py'."
    args_schema: Type[BaseModel] = FindFileInput

    def execute(self, context: ToolContext, pattern: str, directory: Optional[str] = None):
        base_dir = Path(directory).expanduser() if directory else Path.cwd()
        if not base_dir.is_absolute():
            base_dir = Path.cwd() / base_dir
        if not base_dir.is_dir():
            return {"error": f"Directory not found: {base_dir}"}

        search = pattern if "/" in pattern else f"**/{pattern}"
        files = sorted(str(path.relative_to(base_dir)) for path in base_dir.glob(search) if path.is_file())

        return {
            "pattern": pattern,
            "base_directory": str(base_dir),
            "files": files[:MAX_RESULTS],
            "count": min(len(files), MAX_RESULTS),
            "truncated": len(files) > MAX_RESULTS,
        }


class GetCurrentDirectoryInput(BaseModel):
    """The tool takes no arguments."""


class GetCurrentDirectoryTool(BaseTool):
    """Reports the working directory and the home directory."""
    name: str = "get_current_directory"
    description: str = "Get the current working directory. Use this when the user asks " \
        "about the current directory or project location."
    args_schema: Type[BaseModel] = GetCurrentDirectoryInput

    def execute(self, context: ToolContext):
        return {"current_directory": os.getcwd(), "home_directory": str(Path.home())}
