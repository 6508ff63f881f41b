from typing import List
from aurora.types import ErrorVal


class AuroraError(Exception):
    """Base exception used to propagate Aurora errors."""
    def __init__(self, err: ErrorVal):
        super().__init__(str(err))
        self.err = err

    @property
    def line(self):
        return self.err.line

    @property
    def message(self) -> str:
        return self.err.message


class LexicalError(AuroraError):
    """Raised once per source unit with every lexical error found in it."""
    def __init__(self, errors: List[ErrorVal]):
        super().__init__(errors[0])
        self.errors = list(errors)
        self.args = ('\n'.join(str(e) for e in self.errors),)


class ParseError(AuroraError):
    """Structural grammar violation. Parsing stops at the first one."""


class AuroraRuntimeError(AuroraError):
    """Raised while executing statements."""
