"""Function definitions and the function registry.

A function definition is either a ``BuiltinFunction`` (host callback) or a
``LuaFunction`` (parameter names plus body statements). Every definition is
stored once under an integer id. Names map to ids separately, so a single
definition can be reached through several names or through ``FunctionRef``
values stored in tables.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Union

from lark import Token

from .ast import Node
from .builtin_function import BuiltinFunction
from .types import FunctionRef


@dataclass
class LuaFunction:
    """A function defined in Aurora source."""
    name: str
    params: List[Token]
    body: List[Node]

    @property
    def arity(self) -> int:
        return len(self.params)

    def __repr__(self) -> str:
        return f"<function {self.name}>"


FunctionDef = Union[BuiltinFunction, LuaFunction]


@dataclass
class Function:
    id: int
    definition: FunctionDef

    @property
    def name(self) -> str:
        return self.definition.name

    @property
    def ref(self) -> FunctionRef:
        return FunctionRef(self.id)


class FunctionRegistry:
    def __init__(self):
        self.functions: Dict[int, Function] = {}
        self.names: Dict[str, int] = {}
        self.next_id = 0

    def register(self, name: str, definition: FunctionDef) -> int:
        """Store a definition under a fresh id and point ``name`` at it."""
        func_id = self.next_id
        self.next_id += 1
        self.functions[func_id] = Function(func_id, definition)
        self.names[name] = func_id
        return func_id

    def bind(self, name: str, func_id: int) -> None:
        """Point ``name`` at an existing definition.

        Only embedders use this. Aurora source never aliases a function
        name; storing a function in a variable or field copies a
        ``FunctionRef`` instead.
        """
        if func_id not in self.functions:
            raise KeyError(func_id)
        self.names[name] = func_id

    def lookup(self, name: str) -> Optional[Function]:
        func_id = self.names.get(name)
        if func_id is None:
            return None
        return self.functions[func_id]

    def get(self, func_id: int) -> Function:
        return self.functions[func_id]

    def __contains__(self, name: str) -> bool:
        return name in self.names

    def __len__(self) -> int:
        return len(self.functions)
