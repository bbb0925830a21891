# gpdb/tools/run_debug_command_tool.py
# A tool that queues a pdb command for the host debugger.

from typing import Type

from pydantic import BaseModel, Field

from gpdb.models.common import Mode
from gpdb.utils.logger import console
from .base_tool import BaseTool, ToolContext


class RunDebugCommandInput(BaseModel):
    """
    Input model for the RunDebugCommandTool.
    Attributes:
        command (str): One pdb command.
        auto_continue (bool): Re-invoke the model once the command has run.
    """
    command: str = Field(..., description="The debugger command to execute. Examples: 'n', 's', 'c', "
                                          "'r', 'u', 'd', 'b app.py:14', 'b app.py:14, x == 1', 'w'.")
    auto_continue: bool = Field(default=False, description="Set to true to be re-invoked after the command "
                                                           "executes to see the new state.")


class RunDebugCommandTool(BaseTool):
    """
    Queues a debugger command. Stepping changes the frame the model is
    reasoning about, so a successful call ends the current request batch and
    hands control back to pdb, which runs the command.
    """
    name: str = "run_debug_command"
    description: str = "Execute a pdb debugger command. Use this whenever the user asks to step, " \
        "continue, set breakpoints or perform any debugger action. One command per call; " \
        "conditional breakpoints use pdb syntax, e.g. 'b app.py:14, x == 1'."
    args_schema: Type[BaseModel] = RunDebugCommandInput
    exits_loop: bool = True

    def available(self, mode: Mode) -> bool:
        return mode is Mode.BREAKPOINT

    def execute(self, context: ToolContext, command: str, auto_continue: bool = False):
        command = command.strip()
        if not command:
            return {"error": "ValueError: command must not be empty"}
        if ";;" in command:
            return {"error": "ValueError: pass exactly one debugger command per call"}

        context.pending_commands.append(command)
        if auto_continue and context.auto_continue is not None:
            context.auto_continue.request()
        console.debug(f"Queued debugger command {command!r} (auto_continue={auto_continue}).")

        if auto_continue:
            message = f"Command '{command}' will be executed. You will be re-invoked with updated context."
        else:
            message = f"Command '{command}' will be executed after this response."
        return {"success": True, "command": command, "auto_continue": auto_continue, "message": message}
