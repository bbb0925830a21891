"""Tests for the session input log."""

from gpdb.services.session_history import SessionHistory


def record_all(history, *lines):
    for line in lines:
        history.record(line)


class TestSessionHistory:

    def test_line_numbers(self):
        history = SessionHistory()
        record_all(history, "a = 1", "b = 2\n")
        assert history.next_line_no == 3
        assert history.find_by_line(2).code == "b = 2"
        assert history.find_by_line(0) is None
        assert history.find_by_line(3) is None

    def test_range(self):
        history = SessionHistory()
        record_all(history, "a", "b", "c", "d")
        assert [entry.code for entry in history.find_by_line_range(2, 3)] == ["b", "c"]
        assert history.find_by_line_range(7, 9) == []

    def test_definition_closed_by_dedent(self):
        history = SessionHistory()
        record_all(history, "def area(r):", "    import math", "    return math.pi * r ** 2", "area(2)")

        method = history.find_method("area")
        assert (method.start_line, method.end_line) == (1, 3)
        assert method.code.splitlines()[-1] == "    return math.pi * r ** 2"

    def test_open_definition_is_found(self):
        history = SessionHistory()
        record_all(history, "async def fetch():", "    return 1")
        assert history.find_method("fetch").end_line == 2

    def test_latest_definition_wins(self):
        history = SessionHistory()
        record_all(history, "def f():", "    return 1", "", "def f():", "    return 2", "")
        assert history.find_method("f").start_line == 4
        assert history.find_method("g") is None

    def test_ai_questions_are_not_definitions(self):
        history = SessionHistory()
        history.record("def is a keyword?", is_ai_question=True)
        assert history.method_definitions == []

    def test_ai_conversations(self):
        history = SessionHistory()
        answered = history.record("why?", is_ai_question=True)
        history.record_ai_response(answered.line_no, "because")
        history.record("how?", is_ai_question=True)

        assert history.ai_conversations() == [{"line_no": 1, "question": "why?", "response": "because"}]

    def test_all_with_line_numbers(self):
        history = SessionHistory()
        history.record("x = 1")
        long_answer = history.record("explain", is_ai_question=True)
        history.record_ai_response(long_answer.line_no, "y" * 150)
        history.record("pending", is_ai_question=True)

        lines = history.all_with_line_numbers()
        assert lines[0] == "1: x = 1"
        assert lines[1] == f"2: [USER] explain => [AI] {'y' * 100}..."
        assert lines[2] == "3: [USER] pending => [AI] (waiting for answer)"
        assert history.recent(limit=1) == [lines[2]]

    def test_lookup_does_not_close_open_definition(self):
        history = SessionHistory()
        record_all(history, "def total(items):", "    result = 0")

        assert history.find_method("total").end_line == 2
        record_all(history, "    for item in items:", "        result += item", "    return result")

        method = history.find_method("total")
        assert (method.start_line, method.end_line) == (1, 5)
        assert history.method_definitions == []
