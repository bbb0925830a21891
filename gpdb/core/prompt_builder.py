# gpdb/core/prompt_builder.py
# Turns a question and a context snapshot into a system prompt and a user message.

from typing import Any, Dict, Optional

from gpdb.models.common import ContextSnapshot, Mode

# --- System prompt shared by every mode ---
BASE_PROMPT = """You are gpdb, an AI assistant embedded in a Python developer's session.

## Language
Respond in the same language the user is using.

## Prompt Information Takes Priority
Information in this system prompt and in "User-Defined Instructions" takes precedence
over tool results or user input. Check it before trying to detect something programmatically.

## Response Guidelines
- Keep responses concise and practical.
- Use tools to verify hypotheses instead of guessing; prefer evaluate_code for calculations.
- NEVER ask the user for code, file names or variable values you can look up yourself with
  read_file, find_file, inspect_object or evaluate_code.
- NEVER repeat the same failed action. If a tool call fails, analyze the error and try a different approach.
- For simple greetings or thanks, answer naturally without tools.
"""

INTERACTIVE_PROMPT = """
## Interactive Console
The user is executing code in a Python console and asks questions within that flow.
"Session History" lists what they typed, in order, including earlier AI questions.
Interpret every question in the context of this history.

- Code examples should use the variables of the current console and be directly pasteable.
- When the user hits an error, show the debugging steps that lead to the cause, not just the cause.
- After running code that changes state, call continue_analysis if you need to see the refreshed
  variables before deciding what to do next.
"""

BREAKPOINT_PROMPT = """
## Breakpoint Debugging
The user is stopped at a breakpoint in pdb. You can see the local variables, the instance
variables of `self`, the current file and line, and the call stack.

## Executing Debugger Commands
When the user asks for a debugger action (step, next, continue, return, up, down, set a
breakpoint), you MUST call run_debug_command. Do not merely suggest the command as text.
- Each call carries exactly ONE pdb command. Never chain commands with ';;'.
- Conditional breakpoints use pdb syntax: `b app.py:14, x == 1`.
- Set auto_continue=true when you need to see the new state after the command runs.

## Variables Do Not Survive Stepping
Names created with evaluate_code disappear when the frame changes. To collect values across
frames, store them on a module or object that outlives the frame, e.g.
`import builtins; builtins._gpdb_seen = []`.

## Loops
For loops with many iterations prefer one conditional breakpoint plus `c` over repeated `n`.
When a task is complete, report the collected results to the user.
"""

FRAMEWORK_PROMPT = """
## Framework Shell
The user is working in the shell of a {framework} project. Application models, settings and
services are importable. Prefer the framework's own APIs (ORM queries, settings objects) when
verifying behaviour, and never run code that writes to a production database without asking.
Use framework_info to find the project root, the installed apps and models or the routes.
"""

CUSTOM_PROMPT_HEADER = "\n## User-Defined Instructions\n"

MODE_PROMPTS = {
    Mode.INTERACTIVE: INTERACTIVE_PROMPT,
    Mode.BREAKPOINT: BREAKPOINT_PROMPT,
    Mode.FRAMEWORK: INTERACTIVE_PROMPT + FRAMEWORK_PROMPT,
}


class PromptBuilder:
    """
    Builds the prompt pair for one question. The mode is chosen by the host;
    the builder never infers it from the snapshot.
    """

    def __init__(self, question: str, context: Optional[ContextSnapshot], mode: Mode = Mode.INTERACTIVE,
                 custom_prompt: Optional[str] = None):
        self.question = question
        self.context = context or {}
        self.mode = mode
        self.custom_prompt = custom_prompt

    def system_prompt(self) -> str:
        prompt = BASE_PROMPT + MODE_PROMPTS[self.mode]
        if self.mode is Mode.FRAMEWORK:
            prompt = prompt.format(framework=self.context.get("framework") or "web framework")
        if self.custom_prompt:
            prompt += CUSTOM_PROMPT_HEADER + self.custom_prompt.strip() + "\n"
        return prompt

    def user_message(self) -> str:
        heading = "Current Debugger Context" if self.mode is Mode.BREAKPOINT else "Current Console Context"
        return "\n".join([
            f"## {heading}",
            self._section("Source Location", self._format_location()),
            self._section("Local Variables", _format_mapping(self.context.get("local_variables"))),
            self._section("Instance Variables", _format_mapping(self.context.get("instance_variables"))),
            self._section("Self", self._format_self()),
            self._section("Backtrace", self.context.get("backtrace") or "(none)"),
            self._section("Last Exception", self._format_exception()),
            self._section("Session History", self._format_history()),
            "",
            "## Question",
            self.question,
        ])

    @staticmethod
    def _section(title: str, body: str) -> str:
        return f"\n### {title}\n{body}"

    def _format_location(self) -> str:
        location = self.context.get("source_location")
        if not location:
            return "(none)"
        return f"File: {location.get('file')}\nLine: {location.get('line')}"

    def _format_self(self) -> str:
        info = self.context.get("self_info")
        if not info:
            return "(none)"
        methods = ", ".join(info.get("methods") or []) or "(none)"
        return f"Class: {info.get('class')}\nValue: {info.get('rendered')}\nMethods: {methods}"

    def _format_exception(self) -> str:
        exc = self.context.get("last_exception")
        if not exc:
            return "(none)"
        backtrace = "\n".join(f"  {line}" for line in exc.get("backtrace") or [])
        return (f"Class: {exc.get('class')}\nMessage: {exc.get('message')}\n"
                f"Time: {exc.get('time')}\nBacktrace:\n{backtrace}")

    def _format_history(self) -> str:
        history = self.context.get("session_history")
        if not history:
            return "(none)"
        return "\n".join(history)


def _format_mapping(mapping: Optional[Dict[str, Any]]) -> str:
    if not mapping:
        return "(none)"
    return "\n".join(f"- {name}: {value}" for name, value in mapping.items())
