"""Tests for ConversationHistory."""

from gpdb.core.conversation_history import ConversationHistory
from gpdb.models.common import Message


def build_history() -> ConversationHistory:
    history = ConversationHistory()
    history.add_user_message("what is x?")
    history.add_tool_call("evaluate_code", {"code": "x"}, {"result": "1"}, call_id="c1")
    history.add_tool_call("inspect_object", {"expression": "x"}, {"error": "NameError: y"}, call_id="c2")
    history.add_assistant_message("x is 1")
    history.add_user_message("thanks")
    history.add_assistant_message("you're welcome")
    return history


class TestConversationHistory:

    def test_assistant_message_takes_pending_calls(self):
        history = ConversationHistory()
        history.add_user_message("q")
        history.add_tool_call("echo", {"value": "a"}, {"echo": "a"})
        assert len(history.pending_tool_calls) == 1

        message = history.add_assistant_message("a")
        assert [record.name for record in message.tool_calls] == ["echo"]
        assert history.pending_tool_calls == []

    def test_assistant_message_without_calls(self):
        history = ConversationHistory()
        message = history.add_assistant_message("plain")
        assert message.tool_calls is None
        assert message.to_dict() == {"role": "model", "content": "plain"}

    def test_call_id_is_synthesized(self):
        history = ConversationHistory()
        first = history.add_tool_call("echo", {}, {})
        second = history.add_tool_call("echo", {}, {})
        assert first.id.startswith("call_")
        assert first.id != second.id

    def test_normalized_order(self):
        history = build_history()
        history.add_user_message("again")
        history.add_tool_call("echo", {}, {"echo": ""}, call_id="c3")

        roles = [(entry["role"], entry.get("id")) for entry in history.to_normalized()]
        assert roles == [
            ("user", None),
            ("assistant", None),
            ("tool_call", "c1"),
            ("tool_result", "c1"),
            ("tool_call", "c2"),
            ("tool_result", "c2"),
            ("user", None),
            ("assistant", None),
            ("user", None),
            ("tool_call", "c3"),
            ("tool_result", "c3"),
        ]

    def test_tool_result_never_precedes_its_call(self):
        normalized = build_history().to_normalized()
        seen_calls = set()
        for entry in normalized:
            if entry["role"] == "tool_call":
                seen_calls.add(entry["id"])
            elif entry["role"] == "tool_result":
                assert entry["id"] in seen_calls

    def test_normalized_tool_entries(self):
        normalized = build_history().to_normalized()
        assert normalized[2] == {"role": "tool_call", "id": "c1", "name": "evaluate_code", "args": {"code": "x"}}
        assert normalized[3] == {"role": "tool_result", "id": "c1", "name": "evaluate_code",
                                 "result": {"result": "1"}}

    def test_round_trip(self):
        history = build_history()
        restored = ConversationHistory.deserialize(history.serialize())
        assert restored == history
        assert restored.to_normalized() == history.to_normalized()

    def test_serialize_keeps_ids_and_errors(self):
        data = build_history().serialize()
        assert data[1]["tool_calls"][0]["id"] == "c1"
        assert data[1]["tool_calls"][1]["result"] == {"error": "NameError: y"}
        assert "tool_calls" not in data[0]
        assert "metadata" not in data[1]["tool_calls"][0]

    def test_serialize_skips_pending(self):
        history = ConversationHistory()
        history.add_user_message("q")
        history.add_tool_call("echo", {}, {})
        assert history.serialize() == [{"role": "user", "content": "q"}]

    def test_deserialize_accepts_messages(self):
        messages = [Message(role="user", content="hi"), Message(role="model", content="hello")]
        history = ConversationHistory.deserialize(messages)
        assert [m.content for m in history.messages] == ["hi", "hello"]

    def test_load_replaces_in_place(self):
        history = build_history()
        history.load([{"role": "user", "content": "fresh"}])
        assert len(history) == 1
        assert history.messages[0].content == "fresh"

    def test_clear(self):
        history = build_history()
        history.add_tool_call("echo", {}, {})
        history.clear()
        assert len(history) == 0
        assert history.pending_tool_calls == []
        assert history.to_normalized() == []

    def test_summary(self):
        history = ConversationHistory()
        history.add_user_message("a" * 60)
        history.add_assistant_message("short")
        assert history.summary() == ["USER: " + "a" * 50 + "...", "AI: short"]
