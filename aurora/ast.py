"""Abstract Syntax Tree (AST) definitions for the Aurora language.

Statements are small dataclasses produced by ``aurora.parser``. Expressions
are wrapped in ``Expr``, which records the category chosen by the
expression sub-parser together with a short node list (in practice a
single ``BinOp`` or ``Value``).

Names and parameter names are kept as the original ``lark.Token`` objects
so that diagnostics can point at the line they came from.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional

from lark import Token


# Expression categories
STRING = 'String'
NUMBER = 'Number'
BOOL = 'Bool'
SINGLE_VALUE = 'SingleValue'

CATEGORIES = (STRING, NUMBER, BOOL, SINGLE_VALUE)


@dataclass
class Node:
    """Base class for all AST nodes."""
    pass


@dataclass
class Program(Node):
    body: List[Node]


@dataclass
class Expr(Node):
    category: str
    nodes: List[Node]

    @property
    def node(self) -> Node:
        return self.nodes[0]


@dataclass
class Call(Node):
    name: Token
    args: List[Expr]


@dataclass
class FunctionDef(Node):
    name: Token
    params: List[Token]
    body: List[Node]


@dataclass
class Assignment(Node):
    name: Token
    expr: Expr
    is_local: bool = False


@dataclass
class BinOp(Node):
    op: str
    left: Expr
    right: Expr


@dataclass
class If(Node):
    condition: Expr
    then_block: List[Node]
    else_block: Optional[List[Node]] = None


@dataclass
class While(Node):
    condition: Expr
    body: List[Node]


@dataclass
class Return(Node):
    expr: Optional[Expr]


@dataclass
class Value(Node):
    """A raw token run resolved when it is evaluated.

    ``resolved`` caches whatever the interpreter derives from the tokens
    (an inline ``Call`` or table field initializers) so loops do not parse
    the same run on every iteration.
    """
    tokens: List[Token]
    resolved: Any = field(default=None, compare=False, repr=False)


@dataclass
class EndOfInput(Node):
    pass
