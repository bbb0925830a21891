# gpdb/utils/logger.py
# Logging and console output for gpdb, built on Rich.

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.theme import Theme

LOGGER_NAME = "gpdb"
NOTICE_PREFIX = "[gpdb]"

# Between INFO and WARNING, for confirmations such as a resumed session
SUCCESS_LEVEL_NUM = 25

if logging.getLevelName(SUCCESS_LEVEL_NUM) != "SUCCESS":
    logging.addLevelName(SUCCESS_LEVEL_NUM, "SUCCESS")


def success_log(self, message, *args, **kwargs):
    if self.isEnabledFor(SUCCESS_LEVEL_NUM):
        self._log(SUCCESS_LEVEL_NUM, message, args, **kwargs)


if not hasattr(logging.Logger, "success"):
    setattr(logging.Logger, "success", success_log)

GPDB_THEME = Theme({
    "logging.level.success": "bold green",
    "gpdb.panel": "red",
})


def _build_handler(target: Console) -> RichHandler:
    handler = RichHandler(
        console=target,
        rich_tracebacks=True,
        tracebacks_show_locals=False,
        keywords=["SUCCESS", "WARNING", "ERROR", "DEBUG"],
        show_path=False,
    )
    handler.setFormatter(logging.Formatter(fmt="%(message)s", datefmt="[%X]"))
    return handler


class ConsoleManager:
    """
    Console output for gpdb.

    Two channels are kept apart. Diagnostics go through the "gpdb" logger,
    rendered by a RichHandler on stderr so they never interleave with what
    the user's code prints. Assistant answers and turn notices go through
    `emit`, which writes to stdout without markup so that literal brackets
    such as "[gpdb]" survive.
    """

    def __init__(self, output: Optional[Console] = None, diagnostics: Optional[Console] = None):
        self._console = output or Console(theme=GPDB_THEME)
        self._diagnostics = diagnostics or Console(theme=GPDB_THEME, stderr=True)
        self._logger = logging.getLogger(LOGGER_NAME)
        # Re-importing the module must not stack handlers.
        if not self._logger.handlers:
            self._logger.setLevel(logging.WARNING)
            self._logger.addHandler(_build_handler(self._diagnostics))
            self._logger.propagate = False

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    def set_debug(self, enabled: bool):
        self._logger.setLevel(logging.DEBUG if enabled else logging.WARNING)

    def debug(self, message: str):
        self._logger.debug(message)

    def info(self, message: str):
        self._logger.info(message)

    def success(self, message: str):
        self._logger.success(message)

    def warning(self, message: str):
        self._logger.warning(message)

    def error(self, message: str):
        self._logger.error(message)

    def exception(self, message: str):
        self._logger.exception(message)

    def emit(self, text: str):
        self._console.print(text, markup=False, highlight=False)

    def notice(self, text: str):
        self.emit(f"{NOTICE_PREFIX} {text}")

    def print(self, renderable):
        self._console.print(renderable)

    def display_error_panel(self, title: str, error_message: str):
        panel = Panel(error_message, title=f"[bold]{title}[/bold]", border_style="gpdb.panel")
        self._console.print(panel)


console = ConsoleManager()
