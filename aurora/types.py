"""Value model and coercion helpers for Aurora.

Runtime values are plain Python objects wherever possible: ``str`` for
strings, ``float`` for numbers and ``bool`` for booleans. Nil, table
references and function references get their own small classes. Tables
and functions are never stored inline; values only carry the integer id
handed out by the owning interpreter's registries.

The coercion functions in this module raise ``TypeError`` (not an Aurora
error) when a conversion is not supported. The interpreter catches those
and raises runtime errors with the interpreter context attached.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional
import math


class NilVal:
    """Marker object for the Aurora ``nil`` value."""
    def __repr__(self) -> str:
        return 'nil'

    def __eq__(self, other: Any) -> bool:
        return isinstance(other, NilVal)

    def __hash__(self) -> int:
        return hash(NilVal)


NIL = NilVal()


@dataclass(frozen=True)
class TableRef:
    """Reference to a table owned by a ``TableRegistry``."""
    id: int

    def __repr__(self) -> str:
        return f"TableRef({self.id})"


@dataclass(frozen=True)
class FunctionRef:
    """Reference to a function owned by a ``FunctionRegistry``."""
    id: int

    def __repr__(self) -> str:
        return f"FunctionRef({self.id})"


@dataclass
class ErrorVal:
    """Describes a single Aurora error.

    ``kind`` is one of 'Lexical', 'Parse' or 'Runtime'. Lexical and parse
    errors always carry the source line they were detected on; runtime
    errors usually do not.
    """
    kind: str
    message: str
    line: Optional[int] = None

    def __str__(self) -> str:
        location = f" at [Line {self.line}]" if self.line is not None else ''
        return f"[{self.kind} Exception{location}] {self.message}"


def to_number(value: Any) -> float:
    """Coerce a runtime value to a number."""
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, float):
        return value
    if isinstance(value, NilVal):
        return 0.0
    if isinstance(value, str):
        raise TypeError(f"Couldn't convert string {value!r} to number")
    if isinstance(value, TableRef):
        raise TypeError("Couldn't convert table to number")
    if isinstance(value, FunctionRef):
        raise TypeError("Couldn't convert function to number")
    raise TypeError(f"unknown value {value!r}")


def format_number(value: float) -> str:
    if math.isnan(value):
        return 'NaN'
    if math.isinf(value):
        return 'inf' if value > 0 else '-inf'
    if value.is_integer():
        return str(int(value))
    return repr(value)


def to_string(value: Any) -> str:
    """Return the canonical rendering of a runtime value.

    This rendering is used by ``print``, string concatenation and the
    ``==`` operator.
    """
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, float):
        return format_number(value)
    if isinstance(value, str):
        return value
    if isinstance(value, NilVal):
        return 'nil'
    if isinstance(value, TableRef):
        return f"table: {value.id}"
    if isinstance(value, FunctionRef):
        return f"function: {value.id}"
    raise TypeError(f"unknown value {value!r}")


def to_bool(value: Any) -> bool:
    """Truthiness: nil and the string "false" are false, bools are themselves."""
    if isinstance(value, bool):
        return value
    if isinstance(value, NilVal):
        return False
    if isinstance(value, str):
        return value != 'false'
    if isinstance(value, float):
        return True
    if isinstance(value, TableRef):
        return True
    if isinstance(value, FunctionRef):
        return True
    raise TypeError(f"unknown value {value!r}")


def type_name(value: Any) -> str:
    """Return the Aurora type name of a runtime value."""
    if isinstance(value, bool):
        return 'boolean'
    if isinstance(value, float):
        return 'number'
    if isinstance(value, str):
        return 'string'
    if isinstance(value, NilVal):
        return 'nil'
    if isinstance(value, TableRef):
        return 'table'
    if isinstance(value, FunctionRef):
        return 'function'
    return type(value).__name__
