# gpdb/core/conversation_history.py
# The ordered transcript of a gpdb session and its provider-agnostic form.

from typing import Any, Dict, List, Optional

from gpdb.models.common import Message, ToolCallRecord, new_call_id

SUMMARY_PREVIEW_LENGTH = 50


class ConversationHistory:
    """
    An append-only transcript of user turns, assistant turns and tool calls.

    Tool calls are staged as "pending" until the assistant's concluding text
    for the turn arrives; `add_assistant_message` then attaches them to the
    new assistant message. A tool call and its result are always recorded
    together, so a call never exists without its result.
    """

    def __init__(self):
        self._messages: List[Message] = []
        self._pending: List[ToolCallRecord] = []

    @property
    def messages(self) -> List[Message]:
        return list(self._messages)

    @property
    def pending_tool_calls(self) -> List[ToolCallRecord]:
        return list(self._pending)

    def __len__(self) -> int:
        return len(self._messages)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ConversationHistory):
            return NotImplemented
        return self._messages == other._messages and self._pending == other._pending

    def add_user_message(self, content: str) -> Message:
        message = Message(role="user", content=content)
        self._messages.append(message)
        return message

    def add_assistant_message(self, content: str) -> Message:
        """Appends an assistant message that takes ownership of all pending tool calls."""
        message = Message(role="model", content=content, tool_calls=self._pending or None)
        self._messages.append(message)
        self._pending = []
        return message

    def add_tool_call(
        self,
        name: str,
        args: Optional[Dict[str, Any]],
        result: Any,
        call_id: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> ToolCallRecord:
        record = ToolCallRecord(
            id=call_id or new_call_id(),
            name=name,
            args=dict(args or {}),
            result=result,
            metadata=metadata,
        )
        self._pending.append(record)
        return record

    def clear(self):
        self._messages.clear()
        self._pending.clear()

    def to_normalized(self) -> List[Dict[str, Any]]:
        """
        Returns the transcript in the provider-agnostic form: each settled
        message followed by the tool call/result pairs it owns, then the
        pending pairs in the order they were recorded.
        """
        normalized: List[Dict[str, Any]] = []
        for message in self._messages:
            role = "assistant" if message.role == "model" else "user"
            normalized.append({"role": role, "content": message.content})
            for record in message.tool_calls or []:
                normalized.extend(_normalize_tool_call(record))

        for record in self._pending:
            normalized.extend(_normalize_tool_call(record))
        return normalized

    def summary(self) -> List[str]:
        lines = []
        for message in self._messages:
            label = "USER" if message.role == "user" else "AI"
            content = message.content or ""
            preview = content[:SUMMARY_PREVIEW_LENGTH]
            if len(content) > SUMMARY_PREVIEW_LENGTH:
                preview += "..."
            lines.append(f"{label}: {preview}")
        return lines

    def serialize(self) -> List[Dict[str, Any]]:
        """Serializes the settled messages, including ids of their tool calls."""
        return [message.to_dict() for message in self._messages]

    @classmethod
    def deserialize(cls, messages: Optional[List[Any]]) -> "ConversationHistory":
        history = cls()
        history.load(messages)
        return history

    def load(self, messages: Optional[List[Any]]):
        """Replaces the transcript in place with serialized messages."""
        self.clear()
        for raw in messages or []:
            message = raw if isinstance(raw, Message) else Message.model_validate(raw)
            if message.role == "user":
                self.add_user_message(message.content)
            else:
                for record in message.tool_calls or []:
                    self.add_tool_call(
                        record.name, record.args, record.result,
                        call_id=record.id, metadata=record.metadata,
                    )
                self.add_assistant_message(message.content)


def _normalize_tool_call(record: ToolCallRecord) -> List[Dict[str, Any]]:
    return [
        {"role": "tool_call", "id": record.id, "name": record.name, "args": record.args},
        {"role": "tool_result", "id": record.id, "name": record.name, "result": record.result},
    ]
