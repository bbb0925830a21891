"""Tests for the host extension points and the pdb/console hosts."""

import io
import sys

import pytest

from gpdb.core.binding import Binding
from gpdb.core.session import Session
from gpdb.core.tool_registry import default_registry
from gpdb.integrations.console import AiConsole
from gpdb.integrations.hooks import DebugHooks, extract_question
from gpdb.integrations.pdb_integration import AiPdb
from gpdb.models.common import Mode

from conftest import StubProvider, call, text


@pytest.fixture
def frame_binding():
    x = 5
    return Binding.from_frame(sys._getframe(), {"x": x})


def make_session(provider, emitted) -> Session:
    return Session(provider, registry=default_registry(), emit=emitted.append)


class TestExtractQuestion:

    @pytest.mark.parametrize("line, expected", [
        ("ai why is x 5?", "why is x 5?"),
        ("  ai   spaced  ", "spaced"),
        ("ai", ""),
        ("xの値は？", "xの値は？"),
        ("p x", None),
        ("aim = 3", None),
    ])
    def test_extract(self, line, expected):
        assert extract_question(line) == expected


class TestDebugHooks:

    def test_passthrough(self, emitted, frame_binding):
        provider = StubProvider()
        hooks = DebugHooks(make_session(provider, emitted), lambda: frame_binding)
        result = hooks.on_command("n")
        assert result.handled is False
        assert provider.requests == []

    def test_question_returns_queued_commands(self, emitted, frame_binding):
        provider = StubProvider([call("run_debug_command", text_="stepping", command="n")])
        session = make_session(provider, emitted)
        hooks = DebugHooks(session, lambda: frame_binding)

        result = hooks.on_command("ai step over")
        assert result.handled is True
        assert result.commands == ["n"]
        assert session.session_history.entries[0].is_ai_question
        assert session.session_history.entries[0].ai_response == "stepping"
        assert "- x: 5" in provider.requests[0]["messages"][0]["content"]

    def test_bare_ai_is_handled_without_request(self, emitted, frame_binding):
        provider = StubProvider()
        result = DebugHooks(make_session(provider, emitted), lambda: frame_binding).on_command("ai")
        assert result.handled is True
        assert provider.requests == []

    def test_no_frame(self, emitted):
        provider = StubProvider()
        hooks = DebugHooks(make_session(provider, emitted), lambda: None)
        result = hooks.on_command("ai hello")
        assert result.handled is True
        assert emitted == ["[gpdb] Error: No current frame available"]
        assert provider.requests == []

    def test_interrupt_discards_commands(self, emitted, frame_binding):
        def interrupt():
            raise KeyboardInterrupt

        provider = StubProvider([call("run_debug_command", command="n", auto_continue=True), interrupt],
                                default=None)
        session = make_session(provider, emitted)
        hooks = DebugHooks(session, lambda: frame_binding)

        assert hooks.on_command("ai step").commands == ["n"]
        session.queue_command("c")

        assert hooks.on_wait() == []
        assert "[gpdb] Interrupted by user" in emitted
        assert session.continuation_pending is False
        assert session.take_pending_commands() == []

    def test_on_wait_runs_continuation(self, emitted, frame_binding):
        provider = StubProvider([
            call("run_debug_command", command="n", auto_continue=True),
            call("run_debug_command", command="s"),
        ])
        session = make_session(provider, emitted)
        hooks = DebugHooks(session, lambda: frame_binding)

        assert hooks.on_command("ai step twice").commands == ["n"]
        assert session.continuation_pending is True
        assert hooks.on_wait() == ["s"]
        assert session.continuation_pending is False
        assert hooks.on_wait() == []
        assert len(provider.requests) == 2

    def test_on_wait_without_continuation(self, emitted, frame_binding):
        provider = StubProvider()
        assert DebugHooks(make_session(provider, emitted), lambda: frame_binding).on_wait() == []
        assert provider.requests == []


def frame_with_locals():
    x = 5
    return sys._getframe()


class TestAiPdb:

    def test_onecmd_routes_questions(self, emitted):
        provider = StubProvider([text("x is 5")])
        debugger = AiPdb(make_session(provider, emitted), stdout=io.StringIO())
        debugger.curframe = frame_with_locals()

        assert debugger.onecmd("ai what is x?") is False
        assert emitted == ["x is 5"]
        assert provider.requests[0]["binding"].locals["x"] == 5

    def test_onecmd_queues_commands(self, emitted):
        provider = StubProvider([call("run_debug_command", command="n")])
        debugger = AiPdb(make_session(provider, emitted), stdout=io.StringIO())
        debugger.curframe = frame_with_locals()

        debugger.onecmd("ai next line please")
        assert debugger.cmdqueue == ["n"]

    def test_plain_commands_are_recorded(self, emitted):
        session = make_session(StubProvider(), emitted)
        output = io.StringIO()
        debugger = AiPdb(session, stdout=output)

        debugger.onecmd("help ai")
        assert [entry.code for entry in session.session_history.entries] == ["help ai"]
        assert "Ask the assistant" in output.getvalue()

    def test_breakpoint_mode(self, emitted):
        debugger = AiPdb(make_session(StubProvider(), emitted), stdout=io.StringIO())
        assert debugger.hooks.mode is Mode.BREAKPOINT
        assert debugger.current_binding() is None


class TestAiConsole:

    @pytest.fixture
    def ai_console(self, emitted):
        provider = StubProvider([call("evaluate_code", code="value * 2"), text("value doubled is 42")])
        return AiConsole(make_session(provider, emitted), locals={"value": 21}, mode=Mode.INTERACTIVE)

    def test_qq_asks_with_console_namespace(self, ai_console, emitted):
        assert ai_console.push("qq what is value doubled?") is False
        assert emitted == ["value doubled is 42"]
        record = ai_console.session.history.messages[-1].tool_calls[0]
        assert record.result["result"] == "42"

    def test_code_is_recorded_and_executed(self, ai_console):
        ai_console.push("value = 7")
        assert ai_console.locals["value"] == 7
        assert [entry.code for entry in ai_console.session.session_history.entries] == ["value = 7"]

    def test_traceback_is_recorded(self, ai_console, monkeypatch):
        monkeypatch.setattr(sys, "stderr", io.StringIO())
        ai_console.push("1 / 0")
        last = ai_console.session.exceptions.last_exception
        assert last["class"] == "ZeroDivisionError"

    def test_qq_clear(self, ai_console, monkeypatch):
        monkeypatch.setattr(sys, "stderr", io.StringIO())
        ai_console.push("qq what is value doubled?")
        ai_console.push("qq-clear")
        assert len(ai_console.session.history) == 0

    def test_qq_sessions_without_persistence(self, ai_console, monkeypatch):
        output = io.StringIO()
        monkeypatch.setattr(sys, "stderr", output)
        ai_console.push("qq-sessions")
        assert "No saved sessions" in output.getvalue()
