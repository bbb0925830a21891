# gpdb/integrations/pdb_integration.py
# A pdb debugger that routes questions to gpdb and runs the commands it queues.

import pdb
import sys
from types import FrameType
from typing import Optional

from gpdb.core.binding import Binding
from gpdb.core.session import Session
from gpdb.integrations.hooks import DebugHooks
from gpdb.models.common import Mode
from gpdb.utils.logger import NOTICE_PREFIX


class AiPdb(pdb.Pdb):
    """
    pdb with an assistant. `ai <question>` (or any line containing non-ASCII
    text) is answered by the model, which can step the debugger through the
    run_debug_command tool. Queued commands go to `cmdqueue` so pdb runs them
    as if they had been typed.
    """

    def __init__(self, session: Session, **kwargs):
        super().__init__(**kwargs)
        self.session = session
        self.hooks = DebugHooks(session, self.current_binding, mode=Mode.BREAKPOINT)

    def current_binding(self) -> Optional[Binding]:
        frame = getattr(self, "curframe", None)
        if frame is None:
            return None
        # pdb evaluates against its cached f_locals; share it so assignments stick.
        return Binding.from_frame(frame, getattr(self, "curframe_locals", None))

    def preloop(self):
        super().preloop()
        self._run_continuation()

    def postcmd(self, stop, line):
        stop = super().postcmd(stop, line)
        if not stop and not self.cmdqueue:
            self._run_continuation()
        return stop

    def onecmd(self, line):
        if getattr(self, "commands_defining", False):
            return super().onecmd(line)

        result = self.hooks.on_command(line)
        if not result.handled:
            if line.strip():
                self.session.session_history.record(line)
            return super().onecmd(line)

        self.cmdqueue.extend(result.commands)
        return False

    def do_ai(self, arg):
        """ai <question>
        Ask the assistant about the current frame."""
        self.onecmd(f"ai {arg}")

    def _run_continuation(self):
        commands = self.hooks.on_wait()
        if commands:
            self.cmdqueue.extend(commands)


def set_trace(frame: Optional[FrameType] = None, session: Optional[Session] = None):
    """Starts the AI debugger at the caller's frame (like pdb.set_trace)."""
    session = session or Session.from_settings()
    debugger = AiPdb(session)
    debugger.message(f"{NOTICE_PREFIX} Debug AI assistant loaded. Use 'ai <question>'.")
    debugger.set_trace(frame or sys._getframe().f_back)
