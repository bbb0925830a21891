# gpdb/core/auto_continue.py
# Auto-continuation state machine and Ctrl-C handling around provider requests.

import signal
import threading
from contextlib import contextmanager
from typing import Iterator

from gpdb.utils.logger import console

MAX_AUTO_CONTINUE_ITERATIONS = 20


class AutoContinueController:
    """
    Tracks whether the model asked to be re-invoked once a state-changing
    action completes, how many continuation rounds the current user question
    has used, and whether the user interrupted.

    `active` and `interrupted` are independent: `reset` never clears the
    interrupt, only `clear_interrupt` does. The interrupt flag is an Event so
    it can be set from a signal handler or from another thread.
    """

    def __init__(self, max_iterations: int = MAX_AUTO_CONTINUE_ITERATIONS):
        self.max_iterations = max_iterations
        self._active = False
        self._iteration_count = 0
        self._interrupted = threading.Event()

    @property
    def active(self) -> bool:
        return self._active

    @property
    def interrupted(self) -> bool:
        return self._interrupted.is_set()

    @property
    def iteration_count(self) -> int:
        return self._iteration_count

    def request(self):
        self._active = True

    def reset(self):
        self._active = False

    def interrupt(self):
        self._interrupted.set()

    def clear_interrupt(self):
        self._interrupted.clear()

    def start_question(self):
        """A fresh user-initiated question: disarm and restart the round counter."""
        self._active = False
        self._iteration_count = 0

    def begin_round(self) -> bool:
        """
        Counts one continuation round. Returns False, and disarms, once the
        round would exceed the cap.
        """
        self._active = False
        self._iteration_count += 1
        if self._iteration_count > self.max_iterations:
            self._iteration_count = 0
            return False
        return True


@contextmanager
def sigint_guard(controller: AutoContinueController) -> Iterator[threading.Event]:
    """
    Installs a temporary SIGINT handler for the duration of a provider request.

    The handler marks the controller as interrupted, sets the yielded cancel
    event for providers that poll it, and raises KeyboardInterrupt so that a
    blocking call on the main thread returns immediately. The previous handler
    is always restored. Signal handlers can only be installed from the main
    thread; elsewhere only the cancel event is provided.
    """
    cancel_event = threading.Event()
    if threading.current_thread() is not threading.main_thread():
        yield cancel_event
        return

    def _handle_sigint(signum, frame):
        controller.interrupt()
        cancel_event.set()
        raise KeyboardInterrupt

    previous = signal.signal(signal.SIGINT, _handle_sigint)
    try:
        yield cancel_event
    finally:
        signal.signal(signal.SIGINT, previous if previous is not None else signal.SIG_DFL)
        console.debug("Restored previous SIGINT handler.")
