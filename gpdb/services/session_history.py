# gpdb/services/session_history.py
# Line-numbered log of everything typed into the console or debugger,
# including AI questions and their answers.

import re
from dataclasses import dataclass
from typing import Dict, List, Optional

DEF_PATTERN = re.compile(r"^\s*(?:async\s+)?def\s+(\w+)")
PREVIEW_LENGTH = 100


@dataclass
class Entry:
    line_no: int
    code: str
    is_ai_question: bool = False
    ai_response: Optional[str] = None


@dataclass
class MethodDef:
    name: str
    start_line: int
    end_line: int
    code: str


class SessionHistory:
    """
    Records host inputs. Function definitions typed over several lines are
    tracked from the `def` line until the first non-indented line that follows.
    """

    def __init__(self):
        self.entries: List[Entry] = []
        self.method_definitions: List[MethodDef] = []
        self._pending_def: Optional[List[Entry]] = None

    @property
    def next_line_no(self) -> int:
        return len(self.entries) + 1

    def record(self, code: str, is_ai_question: bool = False) -> Entry:
        code = code.rstrip("\n")
        entry = Entry(line_no=self.next_line_no, code=code, is_ai_question=is_ai_question)

        if self._pending_def is not None and (not code.strip() or not code[:1].isspace()):
            self._close_definition()

        if not is_ai_question and DEF_PATTERN.match(code):
            self._pending_def = [entry]
        elif self._pending_def is not None:
            self._pending_def.append(entry)

        self.entries.append(entry)
        return entry

    def record_ai_response(self, line_no: int, response: str):
        entry = self.find_by_line(line_no)
        if entry is not None:
            entry.ai_response = response

    def find_by_line(self, line_no: int) -> Optional[Entry]:
        if 1 <= line_no <= len(self.entries):
            return self.entries[line_no - 1]
        return None

    def find_by_line_range(self, start_line: int, end_line: int) -> List[Entry]:
        return [entry for entry in self.entries if start_line <= entry.line_no <= end_line]

    def find_method(self, name: str) -> Optional[MethodDef]:
        """Finds the latest definition of name, including one still being typed."""
        methods = list(self.method_definitions)
        if self._pending_def:
            methods.append(_as_method(self._pending_def))
        for method in reversed(methods):
            if method.name == name:
                return method
        return None

    def ai_conversations(self) -> List[Dict[str, object]]:
        return [
            {"line_no": entry.line_no, "question": entry.code, "response": entry.ai_response}
            for entry in self.entries
            if entry.is_ai_question and entry.ai_response
        ]

    def all_with_line_numbers(self) -> List[str]:
        lines = []
        for entry in self.entries:
            if entry.is_ai_question:
                response = entry.ai_response or "(waiting for answer)"
                if len(response) > PREVIEW_LENGTH:
                    response = response[:PREVIEW_LENGTH] + "..."
                lines.append(f"{entry.line_no}: [USER] {entry.code} => [AI] {response}")
            else:
                lines.append(f"{entry.line_no}: {entry.code}")
        return lines

    def recent(self, limit: int = 20) -> List[str]:
        return self.all_with_line_numbers()[-limit:]

    def _close_definition(self):
        if not self._pending_def:
            self._pending_def = None
            return
        entries = self._pending_def
        self._pending_def = None
        self.method_definitions.append(_as_method(entries))


def _as_method(entries: List[Entry]) -> MethodDef:
    return MethodDef(
        name=DEF_PATTERN.match(entries[0].code).group(1),
        start_line=entries[0].line_no,
        end_line=entries[-1].line_no,
        code="\n".join(entry.code for entry in entries),
    )
