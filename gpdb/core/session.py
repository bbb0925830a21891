# gpdb/core/session.py
# One gpdb conversation and the state machines that belong to it.

from typing import Callable, List, Optional

from gpdb.core.auto_continue import AutoContinueController
from gpdb.core.config import Settings, get_settings
from gpdb.core.conversation_history import ConversationHistory
from gpdb.core.orchestrator import OrchestrationLoop, TurnOutcome
from gpdb.core.tool_registry import ToolRegistry, default_registry
from gpdb.models.common import Capabilities, ContextSnapshot, SessionInfo
from gpdb.services.context_builder import ExceptionRecorder
from gpdb.services.llm_connector import BaseProvider, create_provider
from gpdb.services.session_history import SessionHistory
from gpdb.services.session_manager import SessionPersistence, SessionStore, StartResult, create_session_store
from gpdb.utils.logger import console


class Session:
    """
    Owns everything one conversation needs: the provider, the tool registry,
    the transcript, the auto-continue controller, the input log and the
    host commands queued by tools. Independent sessions share nothing.

    When a session id is given the conversation is resumed on construction
    and saved after every question and continuation.
    """

    def __init__(
        self,
        provider: BaseProvider,
        registry: Optional[ToolRegistry] = None,
        session_id: Optional[str] = None,
        store: Optional[SessionStore] = None,
        custom_prompt: Optional[str] = None,
        summarize_on_interrupt: bool = True,
        emit: Optional[Callable[[str], None]] = None,
        show_tool_calls: bool = False,
    ):
        self.provider = provider
        self.registry = registry or default_registry()
        self.history = ConversationHistory()
        self.auto_continue = AutoContinueController()
        self.session_history = SessionHistory()
        self.exceptions = ExceptionRecorder()
        self.session_id = session_id
        self._pending_commands: List[str] = []
        self.loop = OrchestrationLoop(
            provider=provider,
            registry=self.registry,
            history=self.history,
            auto_continue=self.auto_continue,
            session_history=self.session_history,
            pending_commands=self._pending_commands,
            custom_prompt=custom_prompt,
            summarize_on_interrupt=summarize_on_interrupt,
            emit=emit,
            show_tool_calls=show_tool_calls,
        )

        self.persistence: Optional[SessionPersistence] = None
        self.start_result: Optional[StartResult] = None
        if session_id and store is not None:
            self.persistence = SessionPersistence(store, self.history)
            self.start_result = self.persistence.start(session_id)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None,
                      emit: Optional[Callable[[str], None]] = None) -> "Session":
        """
        Builds a session from the configuration.

        Raises:
            ConfigurationError: If no usable provider or session backend is configured.
        """
        settings = settings or get_settings()
        console.set_debug(settings.DEBUG)
        provider = create_provider(settings)
        store = create_session_store(settings) if settings.persistence_enabled else None
        return cls(
            provider=provider,
            session_id=settings.SESSION_ID,
            store=store,
            custom_prompt=settings.CUSTOM_PROMPT,
            summarize_on_interrupt=settings.SUMMARIZE_ON_INTERRUPT,
            emit=emit,
            show_tool_calls=settings.SHOW_TOOL_CALLS,
        )

    @property
    def emit(self) -> Callable[[str], None]:
        return self.loop.emit

    @property
    def last_answer(self) -> Optional[str]:
        return self.loop.last_answer

    @property
    def continuation_pending(self) -> bool:
        return self.auto_continue.active

    def ask(self, question: str, context: Optional[ContextSnapshot], capabilities: Capabilities) -> TurnOutcome:
        outcome = self.loop.run(question, context, capabilities)
        self.save()
        return outcome

    def continue_after_action(self, capabilities: Capabilities) -> Optional[TurnOutcome]:
        outcome = self.loop.continue_after_action(capabilities)
        if outcome is not None:
            self.save()
        return outcome

    def queue_command(self, command: str):
        self._pending_commands.append(command)

    def take_pending_commands(self) -> List[str]:
        """Returns the host commands queued by tools and empties the queue."""
        commands = list(self._pending_commands)
        self._pending_commands.clear()
        return commands

    def discard_pending_commands(self):
        if self._pending_commands:
            console.debug(f"Discarding queued commands: {self._pending_commands}")
        self._pending_commands.clear()

    def reset(self):
        """Starts the conversation over. A persisted session is deleted too."""
        self.auto_continue.start_question()
        self._pending_commands.clear()
        if self.persistence is not None and self.session_id:
            self.persistence.clear(self.session_id)
        else:
            self.history.clear()

    def save(self) -> bool:
        if self.persistence is None or not self.session_id:
            return False
        return self.persistence.save(self.session_id)

    def list_sessions(self) -> List[SessionInfo]:
        if self.persistence is None:
            return []
        return self.persistence.list()
