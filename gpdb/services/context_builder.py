# gpdb/services/context_builder.py
# Captures a snapshot of the host's execution state for the prompt.

import sys
import traceback
from datetime import datetime
from types import TracebackType
from typing import Any, Dict, List, Optional

from gpdb.core.binding import Binding
from gpdb.models.common import ContextSnapshot
from gpdb.services.session_history import SessionHistory
from gpdb.tools.base_tool import safe_repr

MAX_INSPECT_LENGTH = 500
MAX_SELF_METHODS = 20
MAX_BACKTRACE_FRAMES = 10
KNOWN_FRAMEWORKS = ("django", "flask", "fastapi")


class ExceptionRecorder:
    """Remembers the last exception the host reported to the user."""

    def __init__(self):
        self.last_exception: Optional[Dict[str, Any]] = None

    def capture(self, exc: BaseException, tb: Optional[TracebackType] = None):
        tb = tb or exc.__traceback__
        frames = traceback.format_tb(tb) if tb is not None else []
        self.last_exception = {
            "class": type(exc).__name__,
            "message": str(exc),
            "time": datetime.now().isoformat(timespec="seconds"),
            "backtrace": [frame.rstrip() for frame in frames[-MAX_BACKTRACE_FRAMES:]],
        }

    def clear(self):
        self.last_exception = None


def detect_framework() -> Optional[str]:
    """Returns the name of an imported web framework, if any."""
    for name in KNOWN_FRAMEWORKS:
        if name in sys.modules:
            return name
    return None


class ContextBuilder:
    """
    Builds a ContextSnapshot from a Binding: source location, variables,
    the receiver (`self`), the call stack, the last exception and the
    session input log.
    """

    def __init__(
        self,
        binding: Binding,
        session_history: Optional[SessionHistory] = None,
        last_exception: Optional[Dict[str, Any]] = None,
        framework: Optional[str] = None,
    ):
        self.binding = binding
        self.session_history = session_history
        self.last_exception = last_exception
        self.framework = framework

    def build(self) -> ContextSnapshot:
        snapshot: ContextSnapshot = {
            "source_location": self.binding.source_location,
            "local_variables": self._capture_locals(),
            "instance_variables": self._capture_instance_variables(),
            "self_info": self._capture_self(),
            "backtrace": self._capture_backtrace(),
            "last_exception": self.last_exception,
            "session_history": self.session_history.recent() if self.session_history else [],
        }
        if self.framework:
            snapshot["framework"] = self.framework
        return snapshot

    def _capture_locals(self) -> Dict[str, str]:
        return {
            name: safe_repr(value, max_length=MAX_INSPECT_LENGTH)
            for name, value in self.binding.locals.items()
            if not (name.startswith("__") and name.endswith("__"))
        }

    def _receiver(self) -> Any:
        return self.binding.locals.get("self")

    def _capture_instance_variables(self) -> Dict[str, str]:
        attributes = getattr(self._receiver(), "__dict__", None)
        if not isinstance(attributes, dict):
            return {}
        return {name: safe_repr(value, max_length=MAX_INSPECT_LENGTH) for name, value in attributes.items()}

    def _capture_self(self) -> Optional[Dict[str, Any]]:
        receiver = self._receiver()
        if receiver is None:
            return None
        methods: List[str] = [
            name for name, value in vars(type(receiver)).items()
            if callable(value) and not name.startswith("__")
        ]
        return {
            "class": type(receiver).__qualname__,
            "rendered": safe_repr(receiver, max_length=MAX_INSPECT_LENGTH),
            "methods": methods[:MAX_SELF_METHODS],
        }

    def _capture_backtrace(self) -> Optional[str]:
        if self.binding.frame is None:
            return None
        stack = traceback.format_stack(self.binding.frame, limit=MAX_BACKTRACE_FRAMES)
        return "".join(stack).rstrip()
