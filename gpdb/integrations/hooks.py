# gpdb/integrations/hooks.py
# The extension points a host (console or debugger) calls into: one for each
# input line and one each time the host is about to wait for input.

import re
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from gpdb.core.binding import Binding
from gpdb.core.orchestrator import TurnOutcome
from gpdb.core.session import Session
from gpdb.models.common import Capabilities, ContextSnapshot, Mode
from gpdb.services.context_builder import ContextBuilder
from gpdb.utils.logger import NOTICE_PREFIX, console

AI_COMMAND = "ai"
NON_ASCII = re.compile(r"[^\x00-\x7F]")


@dataclass
class HookResult:
    """
    The answer to `on_command`.
    Attributes:
        handled (bool): False when the host should process the line itself.
        commands (List[str]): Host commands queued by tools, to run next.
    """
    handled: bool
    commands: List[str] = field(default_factory=list)


class DebugHooks:
    """
    Connects a host to a Session.

    `capture` returns the binding of the current frame, or None when the host
    has no frame to offer. The mode is fixed by the host.
    """

    def __init__(self, session: Session, capture: Callable[[], Optional[Binding]],
                 mode: Mode = Mode.BREAKPOINT, framework: Optional[str] = None):
        self.session = session
        self.capture = capture
        self.mode = mode
        self.framework = framework

    def on_command(self, line: str) -> HookResult:
        """Handles `ai <question>` and natural-language lines; passes anything else through."""
        question = extract_question(line)
        if question is None:
            return HookResult(handled=False)
        if not question:
            return HookResult(handled=True)

        outcome = self.ask(question)
        return HookResult(handled=True, commands=self._take_commands(outcome))

    def on_wait(self) -> List[str]:
        """
        Runs an armed continuation now that the host finished the queued
        action. Returns the commands the continuation queued.
        """
        if not self.session.continuation_pending:
            return []

        binding = self.capture()
        if binding is None:
            self._notice("Error: No current frame available")
            self.session.auto_continue.reset()
            return []

        outcome = self.session.continue_after_action(self.capabilities(binding))
        commands = self._take_commands(outcome)
        if not commands:
            self.session.auto_continue.reset()
        return commands

    def ask(self, question: str) -> Optional[TurnOutcome]:
        binding = self.capture()
        if binding is None:
            self._notice("Error: No current frame available")
            return None

        entry = self.session.session_history.record(question, is_ai_question=True)
        outcome = self.session.ask(question, self.snapshot(binding), self.capabilities(binding))
        if self.session.last_answer:
            self.session.session_history.record_ai_response(entry.line_no, self.session.last_answer)
        return outcome

    def snapshot(self, binding: Binding) -> ContextSnapshot:
        return ContextBuilder(
            binding,
            session_history=self.session.session_history,
            last_exception=self.session.exceptions.last_exception,
            framework=self.framework,
        ).build()

    def capabilities(self, binding: Binding) -> Capabilities:
        def recapture() -> Optional[ContextSnapshot]:
            fresh = self.capture()
            return self.snapshot(fresh) if fresh is not None else None

        return Capabilities(binding=binding, mode=self.mode, capture_context=recapture)

    def _take_commands(self, outcome: Optional[TurnOutcome]) -> List[str]:
        if outcome is TurnOutcome.INTERRUPTED:
            self.session.discard_pending_commands()
            return []
        return self.session.take_pending_commands()

    def _notice(self, text: str):
        self.session.emit(f"{NOTICE_PREFIX} {text}")


def extract_question(line: str) -> Optional[str]:
    """
    Returns the question carried by a host line, "" for a bare `ai`, or
    None when the line is not meant for gpdb.
    """
    stripped = line.strip()
    if stripped == AI_COMMAND:
        return ""
    if stripped.startswith(AI_COMMAND + " "):
        return stripped[len(AI_COMMAND):].strip()
    if NON_ASCII.search(stripped):
        console.debug("Routing natural-language input to the assistant.")
        return stripped
    return None
