from dataclasses import dataclass
from typing import Any, Optional


@dataclass
class BuiltinFunction:
    """A function implemented by the host.

    ``fn`` is called as ``fn(args, interpreter)`` with the evaluated
    arguments and may return a value or ``None`` for nil. ``arity`` of
    ``None`` means variadic.
    """
    name: str
    arity: Optional[int]
    fn: Any

    def __repr__(self) -> str:
        return f"<builtin {self.name}>"
