# gpdb/core/orchestrator.py
# The tool-calling loop: sends the transcript to the provider, dispatches the
# tool calls it returns and re-invokes the model when auto-continue is armed.

from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from gpdb.core.auto_continue import AutoContinueController, sigint_guard
from gpdb.core.conversation_history import ConversationHistory
from gpdb.core.prompt_builder import PromptBuilder
from gpdb.core.tool_registry import ToolRegistry
from gpdb.models.common import Capabilities, ContextSnapshot, FunctionCall, ProviderResponse, new_call_id
from gpdb.services.llm_connector import BaseProvider
from gpdb.services.session_history import SessionHistory
from gpdb.tools.base_tool import ToolContext, error_result, safe_repr
from gpdb.utils.logger import NOTICE_PREFIX, console

MAX_TOOL_ITERATIONS = 10

CONTINUATION_PROMPT = (
    "(auto-continue: The previous action has completed. "
    "Analyze the new state and continue your task.)"
)

LIMIT_SUMMARY_PROMPT = (
    "The auto-continue limit has been reached. Do not call any tools. Briefly summarize "
    "what you have done so far, what you found, and what remains to be done."
)

INTERRUPT_SUMMARY_PROMPT = (
    "The user interrupted you. Do not call any tools. Briefly state your progress so far "
    "and what you would do next."
)


class TurnOutcome(str, Enum):
    """How a turn ended."""
    COMPLETED = "completed"
    LOOP_EXIT = "loop_exit"
    FAILED = "failed"
    INTERRUPTED = "interrupted"
    LIMIT_REACHED = "limit_reached"


class OrchestrationLoop:
    """
    Drives one conversation: request, tool dispatch, response.

    All user-visible text goes through `emit`, so the same loop serves the
    console, the debugger and tests. Nothing raised by a tool or by the
    provider escapes `run` or `continue_after_action`; every failure ends as
    a recorded tool result or a "[gpdb]" notice.
    """

    def __init__(
        self,
        provider: BaseProvider,
        registry: ToolRegistry,
        history: ConversationHistory,
        auto_continue: AutoContinueController,
        session_history: Optional[SessionHistory] = None,
        pending_commands: Optional[List[str]] = None,
        custom_prompt: Optional[str] = None,
        summarize_on_interrupt: bool = True,
        emit: Optional[Callable[[str], None]] = None,
        max_tool_iterations: int = MAX_TOOL_ITERATIONS,
        show_tool_calls: bool = False,
    ):
        self.provider = provider
        self.registry = registry
        self.history = history
        self.auto_continue = auto_continue
        self.session_history = session_history
        self.pending_commands = pending_commands if pending_commands is not None else []
        self.custom_prompt = custom_prompt
        self.summarize_on_interrupt = summarize_on_interrupt
        self.emit = emit or console.emit
        self.max_tool_iterations = max_tool_iterations
        self.show_tool_calls = show_tool_calls
        self.last_answer: Optional[str] = None
        self._system_prompt: Optional[str] = None

    def run(self, question: str, context: Optional[ContextSnapshot], capabilities: Capabilities) -> TurnOutcome:
        """Answers a fresh user question."""
        self.auto_continue.start_question()
        self.last_answer = None

        builder = PromptBuilder(question, context, capabilities.mode, self.custom_prompt)
        self._system_prompt = builder.system_prompt()
        self.history.add_user_message(builder.user_message())
        console.debug(f"Question recorded ({len(self.history)} messages in history).")
        return self._drive(capabilities)

    def continue_after_action(self, capabilities: Capabilities) -> Optional[TurnOutcome]:
        """
        Runs the continuation the model armed before a loop-exiting tool
        handed control to the host. Returns None when nothing is armed.
        """
        if not self.auto_continue.active:
            return None
        self.last_answer = None
        if not self._begin_continuation(capabilities):
            return TurnOutcome.LIMIT_REACHED
        return self._drive(capabilities)

    def _drive(self, capabilities: Capabilities) -> TurnOutcome:
        while True:
            outcome = self._tool_loop(capabilities)
            if outcome is TurnOutcome.INTERRUPTED:
                self._handle_interrupt(capabilities)
                return outcome
            # A loop-exiting tool leaves auto-continue armed for the host.
            if outcome is not TurnOutcome.COMPLETED or not self.auto_continue.active:
                return outcome
            if not self._begin_continuation(capabilities):
                return TurnOutcome.LIMIT_REACHED

    def _begin_continuation(self, capabilities: Capabilities) -> bool:
        if not self.auto_continue.begin_round():
            self._notice(f"Auto-continue limit reached ({self.auto_continue.max_iterations})")
            self._summarize(capabilities, LIMIT_SUMMARY_PROMPT)
            return False

        console.debug(f"Auto-continue round {self.auto_continue.iteration_count}/{self.auto_continue.max_iterations}")
        context = self._capture(capabilities)
        if context is None:
            self.history.add_user_message(CONTINUATION_PROMPT)
        else:
            builder = PromptBuilder(CONTINUATION_PROMPT, context, capabilities.mode, self.custom_prompt)
            self._system_prompt = builder.system_prompt()
            self.history.add_user_message(builder.user_message())
        return True

    def _tool_loop(self, capabilities: Capabilities) -> TurnOutcome:
        mode = capabilities.mode
        declarations = self.registry.declarations(mode)
        tool_context = ToolContext(
            binding=capabilities.binding,
            mode=mode,
            auto_continue=self.auto_continue,
            session_history=self.session_history,
            pending_commands=self.pending_commands,
        )
        if self._system_prompt is None:
            self._system_prompt = PromptBuilder("", None, mode, self.custom_prompt).system_prompt()

        accumulated: List[str] = []
        for iteration in range(1, self.max_tool_iterations + 1):
            if self.auto_continue.interrupted:
                return TurnOutcome.INTERRUPTED

            console.debug(f"Provider request {iteration}/{self.max_tool_iterations} with {len(declarations)} tools.")
            response = self._request(self.history.to_normalized(), declarations, capabilities)

            if self.auto_continue.interrupted:
                return TurnOutcome.INTERRUPTED

            if response is None:
                self._notice("No response from API")
                self.auto_continue.reset()
                return TurnOutcome.FAILED

            if response.error and not response.has_function_calls:
                self._notice(f"API Error: {response.error}")
                self.auto_continue.reset()
                return TurnOutcome.FAILED

            if response.text:
                accumulated.append(response.text)

            if not response.has_function_calls:
                self._flush(accumulated)
                return TurnOutcome.COMPLETED

            if response.error:
                console.warning(f"Provider reported an error alongside tool calls: {response.error}")

            for call in response.function_calls:
                exits = self._dispatch(call, tool_context)
                # Ctrl-C inside a tool drops the rest of the batch, including any loop exit.
                if self.auto_continue.interrupted:
                    return TurnOutcome.INTERRUPTED
                if exits:
                    self._flush(accumulated)
                    return TurnOutcome.LOOP_EXIT

        self._flush(accumulated)
        self._notice("Tool iteration limit reached")
        return TurnOutcome.COMPLETED

    def _request(self, messages: List[Dict[str, Any]], tools: List[Dict[str, Any]],
                 capabilities: Capabilities) -> Optional[ProviderResponse]:
        try:
            with sigint_guard(self.auto_continue) as cancel_event:
                response = self.provider.chat(
                    messages=messages,
                    system_prompt=self._system_prompt,
                    tools=tools,
                    binding=capabilities.binding,
                    cancel_event=cancel_event,
                )
        except KeyboardInterrupt:
            self.auto_continue.interrupt()
            return None

        if response is not None:
            console.debug(
                f"Provider response: text={response.text!r} "
                f"calls={[call.name for call in response.function_calls]} error={response.error!r}"
            )
        return response

    def _dispatch(self, call: FunctionCall, tool_context: ToolContext) -> bool:
        """Executes one tool call and records it. Returns True when the loop must exit."""
        call_id = call.id or new_call_id()
        if self.show_tool_calls:
            self._notice(f"Tool: {call.name}({format_args(call.args)})")
        tool = self.registry.find(call.name, tool_context.mode)
        if tool is None:
            console.warning(f"Model called unknown tool '{call.name}'.")
            result: Any = {"error": f"Unknown tool: {call.name}"}
        else:
            console.debug(f"Executing tool '{call.name}' with args {call.args}")
            try:
                result = tool.run(tool_context, call.args)
            except KeyboardInterrupt as e:
                self.auto_continue.interrupt()
                result = {"error": f"KeyboardInterrupt: {str(e) or 'interrupted by user'}"}
            except Exception as e:
                console.exception(f"Tool '{call.name}' raised.")
                result = error_result(e)
            console.debug(f"Tool '{call.name}' returned {result!r}")

        self.history.add_tool_call(call.name, call.args, result, call_id=call_id)
        failed = isinstance(result, dict) and "error" in result
        if failed and self.show_tool_calls:
            self._notice(f"Tool error: {result['error']}")
        return tool is not None and tool.exits_loop and not failed

    def _flush(self, accumulated: List[str]):
        """Records the turn's text as one assistant message, which owns the pending tool calls."""
        text = "\n".join(accumulated)
        if not text and not self.history.pending_tool_calls:
            return
        self.history.add_assistant_message(text)
        if text:
            self.last_answer = text
            self.emit(text)

    def _summarize(self, capabilities: Capabilities, prompt: str):
        """
        One best-effort request, without tools, for a progress summary. The
        summary prompt is not kept in the history; the answer is.
        """
        context = self._capture(capabilities)
        if context is None:
            message = prompt
        else:
            message = PromptBuilder(prompt, context, capabilities.mode, self.custom_prompt).user_message()

        messages = self.history.to_normalized() + [{"role": "user", "content": message}]
        response = None
        try:
            with sigint_guard(self.auto_continue) as cancel_event:
                response = self.provider.chat(
                    messages=messages,
                    system_prompt=self._system_prompt or "",
                    tools=[],
                    binding=capabilities.binding,
                    cancel_event=cancel_event,
                )
        except KeyboardInterrupt:
            self.auto_continue.interrupt()

        if self.auto_continue.interrupted:
            console.debug("Summary request interrupted.")
            self.auto_continue.clear_interrupt()
            return

        if response is None:
            console.debug("Summary request returned no response.")
            return
        if response.error:
            self._notice(f"API Error: {response.error}")
            return
        if response.text:
            self._flush([response.text])

    def _handle_interrupt(self, capabilities: Capabilities):
        self._notice("Interrupted by user")
        self.auto_continue.reset()
        self.auto_continue.clear_interrupt()
        if self.summarize_on_interrupt:
            self._summarize(capabilities, INTERRUPT_SUMMARY_PROMPT)

    def _capture(self, capabilities: Capabilities) -> Optional[ContextSnapshot]:
        if capabilities.capture_context is None:
            return None
        try:
            return capabilities.capture_context()
        except Exception:
            console.exception("Failed to capture a fresh context.")
            return None

    def _notice(self, text: str):
        self.emit(f"{NOTICE_PREFIX} {text}")


def format_args(args: Dict[str, Any], max_length: int = 80) -> str:
    """Renders tool arguments as `key=value` pairs for the tool trace."""
    return ", ".join(f"{key}={safe_repr(value, max_length)}" for key, value in (args or {}).items())
