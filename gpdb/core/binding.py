# gpdb/core/binding.py
# The execution handle tools run against: a frame's globals and locals.

import io
from contextlib import redirect_stdout
from dataclasses import dataclass, field
from types import FrameType
from typing import Any, Dict, Optional, Tuple


@dataclass
class Binding:
    """
    The namespaces of a live frame (or of a console) that tools evaluate in.

    `locals` is the mapping code is evaluated against; for a pdb frame this is
    the frame's f_locals proxy as cached by pdb, so assignments made by tools
    are visible to the debugger.
    """
    globals: Dict[str, Any]
    locals: Dict[str, Any] = field(default_factory=dict)
    frame: Optional[FrameType] = None

    @classmethod
    def from_frame(cls, frame: FrameType, locals_: Optional[Dict[str, Any]] = None) -> "Binding":
        return cls(globals=frame.f_globals, locals=locals_ if locals_ is not None else frame.f_locals, frame=frame)

    @property
    def source_location(self) -> Optional[Dict[str, Any]]:
        if self.frame is None:
            return None
        return {"file": self.frame.f_code.co_filename, "line": self.frame.f_lineno}

    def evaluate(self, code: str) -> Tuple[Any, str]:
        """
        Evaluates code and returns (value, captured stdout). Expressions
        return their value; statements are executed and return None.
        Exceptions raised by the code propagate.
        """
        captured = io.StringIO()
        with redirect_stdout(captured):
            try:
                compiled = compile(code, "<gpdb>", "eval")
            except SyntaxError:
                compiled = compile(code, "<gpdb>", "exec")
                exec(compiled, self.globals, self.locals)
                value = None
            else:
                value = eval(compiled, self.globals, self.locals)
        return value, captured.getvalue()
