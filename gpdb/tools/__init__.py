from .base_tool import BaseTool, ToolContext
from .continue_analysis_tool import ContinueAnalysisTool
from .evaluate_code_tool import EvaluateCodeTool
from .find_file_tool import FindFileTool, GetCurrentDirectoryTool
from .framework_info_tool import FrameworkInfoTool
from .inspect_object_tool import InspectObjectTool
from .read_file_tool import ReadFileTool
from .run_debug_command_tool import RunDebugCommandTool
from .session_history_tool import SessionHistoryTool

BUILTIN_TOOLS = [
    EvaluateCodeTool,
    InspectObjectTool,
    ReadFileTool,
    FindFileTool,
    GetCurrentDirectoryTool,
    SessionHistoryTool,
    ContinueAnalysisTool,
    RunDebugCommandTool,
    FrameworkInfoTool,
]

__all__ = ["BaseTool", "ToolContext", "BUILTIN_TOOLS"] + [tool.__name__ for tool in BUILTIN_TOOLS]
