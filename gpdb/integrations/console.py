# gpdb/integrations/console.py
# An interactive Python console with the `qq` assistant commands.

import code
import sys
from typing import Any, Dict, Optional

from gpdb.core.binding import Binding
from gpdb.core.session import Session
from gpdb.integrations.hooks import DebugHooks
from gpdb.models.common import Mode
from gpdb.services.context_builder import detect_framework
from gpdb.utils.logger import NOTICE_PREFIX

ASK_COMMAND = "qq"
CLEAR_COMMAND = "qq-clear"
SESSIONS_COMMAND = "qq-sessions"

BANNER = (
    f"{NOTICE_PREFIX} AI assistant loaded. Ask with 'qq <question>', "
    f"reset with '{CLEAR_COMMAND}', list saved sessions with '{SESSIONS_COMMAND}'."
)


class AiConsole(code.InteractiveConsole):
    """
    A code.InteractiveConsole whose namespace the assistant can read and
    evaluate code in. Every line typed is kept in the session input log and
    every traceback shown is remembered as the last exception.
    """

    def __init__(self, session: Session, locals: Optional[Dict[str, Any]] = None,
                 filename: str = "<gpdb>", mode: Optional[Mode] = None):
        super().__init__(locals=locals, filename=filename)
        self.session = session
        framework = detect_framework()
        self.mode = mode or (Mode.FRAMEWORK if framework else Mode.INTERACTIVE)
        self.binding = Binding(globals=self.locals, locals=self.locals)
        self.hooks = DebugHooks(session, lambda: self.binding, mode=self.mode, framework=framework)

    def push(self, line, *args, **kwargs):
        if not self.buffer and self._handle_command(line.strip()):
            return False
        self.session.session_history.record(line)
        return super().push(line, *args, **kwargs)

    def _handle_command(self, stripped: str) -> bool:
        if stripped == CLEAR_COMMAND:
            self.session.reset()
            self.write(f"{NOTICE_PREFIX} Conversation cleared.\n")
            return True
        if stripped == SESSIONS_COMMAND:
            self._list_sessions()
            return True
        if stripped == ASK_COMMAND or stripped.startswith(ASK_COMMAND + " "):
            question = stripped[len(ASK_COMMAND):].strip()
            if question:
                self.hooks.ask(question)
            else:
                self.write(f"Usage: {ASK_COMMAND} <question>\n")
            return True
        return False

    def _list_sessions(self):
        sessions = self.session.list_sessions()
        if not sessions:
            self.write(f"{NOTICE_PREFIX} No saved sessions.\n")
            return
        for info in sessions:
            marker = "*" if info.id == self.session.session_id else " "
            saved_at = info.saved_at.strftime("%Y-%m-%d %H:%M")
            self.write(f"{marker} {info.id}  {saved_at}  {info.message_count} messages\n")

    def showtraceback(self):
        _, exc, tb = sys.exc_info()
        if exc is not None:
            # Skip the console's own frame.
            self.session.exceptions.capture(exc, tb.tb_next if tb is not None else None)
        super().showtraceback()

    def showsyntaxerror(self, filename=None, **kwargs):
        _, exc, _ = sys.exc_info()
        if exc is not None:
            self.session.exceptions.capture(exc)
        super().showsyntaxerror(filename, **kwargs)


def interact(local: Optional[Dict[str, Any]] = None, session: Optional[Session] = None,
             banner: Optional[str] = None):
    """Starts an AI console over the caller's namespace."""
    if local is None:
        caller = sys._getframe().f_back
        local = dict(caller.f_globals, **caller.f_locals) if caller is not None else {}
    ai_console = AiConsole(session or Session.from_settings(), locals=local)
    ai_console.interact(banner=banner or BANNER, exitmsg="")
