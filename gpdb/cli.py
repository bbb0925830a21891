# gpdb/cli.py
# Command line entry point: `gpdb` / `python -m gpdb`.

import os
import sys
from pathlib import Path
from typing import List, Optional

import typer
from rich.table import Table

from gpdb import __version__
from gpdb.core.config import Settings, get_settings
from gpdb.core.conversation_history import ConversationHistory
from gpdb.core.errors import ConfigurationError
from gpdb.core.session import Session
from gpdb.integrations.console import AiConsole, BANNER
from gpdb.integrations.pdb_integration import AiPdb
from gpdb.services.session_manager import SessionPersistence, create_session_store
from gpdb.utils.logger import console

app = typer.Typer(help="gpdb - an AI assistant for the Python console and pdb.", no_args_is_help=False)


def _settings(session_id: Optional[str], debug: bool) -> Settings:
    overrides = {}
    if session_id:
        overrides["SESSION_ID"] = session_id
    if debug:
        overrides["DEBUG"] = True
    return get_settings().model_copy(update=overrides)


def _build_session(settings: Settings) -> Session:
    try:
        return Session.from_settings(settings)
    except ConfigurationError as e:
        console.display_error_panel("Configuration Error", str(e))
        raise typer.Exit(1)


def _version_callback(value: bool):
    if value:
        console.emit(f"gpdb {__version__}")
        raise typer.Exit()


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool = typer.Option(False, "--version", callback=_version_callback, is_eager=True,
                                 help="Show the version and exit."),
):
    """Starts the AI console when no command is given."""
    if ctx.invoked_subcommand is None:
        shell(session_id=None, debug=False)


@app.command()
def shell(
    session_id: Optional[str] = typer.Option(None, "--session", "-s", help="Resume or start a saved session."),
    debug: bool = typer.Option(False, "--debug", help="Log provider responses and tool traces."),
):
    """Start an interactive Python console with the assistant."""
    session = _build_session(_settings(session_id, debug))
    namespace = {"__name__": "__console__", "__doc__": None}
    AiConsole(session, locals=namespace).interact(banner=BANNER, exitmsg="")


@app.command()
def run(
    script: Path = typer.Argument(..., exists=True, dir_okay=False, help="The script to debug."),
    args: Optional[List[str]] = typer.Argument(None, help="Arguments passed to the script."),
    session_id: Optional[str] = typer.Option(None, "--session", "-s", help="Resume or start a saved session."),
    debug: bool = typer.Option(False, "--debug", help="Log provider responses and tool traces."),
):
    """Run a script under the AI debugger, stopping at its first line."""
    session = _build_session(_settings(session_id, debug))
    path = str(script.resolve())
    sys.argv = [path, *(args or [])]
    sys.path.insert(0, os.path.dirname(path))

    source = script.read_text(encoding="utf-8")
    globals_ = {"__name__": "__main__", "__file__": path, "__builtins__": __builtins__}
    debugger = AiPdb(session)
    debugger.run(compile(source, path, "exec"), globals_)


@app.command()
def sessions():
    """List saved sessions."""
    settings = get_settings()
    try:
        store = create_session_store(settings)
    except ConfigurationError as e:
        console.display_error_panel("Configuration Error", str(e))
        raise typer.Exit(1)

    infos = SessionPersistence(store, ConversationHistory()).list()
    if not infos:
        console.notice("No saved sessions.")
        return

    table = Table(title="Saved sessions")
    table.add_column("Session", style="cyan")
    table.add_column("Saved at")
    table.add_column("Messages", justify="right")
    for info in infos:
        table.add_row(info.id, info.saved_at.strftime("%Y-%m-%d %H:%M:%S"), str(info.message_count))
    console.print(table)
