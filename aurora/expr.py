"""Expression sub-parser for Aurora.

An expression is a flat run of tokens (everything between ``=`` and the end
of the line, one call argument, an ``if`` condition, ...). The run is first
classified by the operators found outside any parentheses or braces:

* ``..`` present                  -> String
* a relational operator present   -> Bool
* any other operator present      -> Number
* no operator                     -> SingleValue

String, Number and Bool runs are split at the *first* top-level operator
and both sides are parsed again as expressions of their own. There is no
precedence table, so chains group to the right: ``10 - 2 - 3`` becomes
``-(10, -(2, 3))``. Parentheses are the only way to group differently.

SingleValue runs are kept as raw tokens; the interpreter resolves them when
they are evaluated.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

from lark import Token

from .ast import Expr, BinOp, Value, STRING, NUMBER, BOOL, SINGLE_VALUE
from .errors import ParseError
from .types import ErrorVal

RELATIONAL_OPS = {'<', '<=', '>', '>=', '=='}
ARITHMETIC_OPS = {'+', '-', '*', '/'}
CONCAT_OP = '..'

LITERAL_TYPES = {'NUMBER', 'STRING', 'TRUE', 'FALSE'}

OPENERS = {'LPAR': 'RPAR', 'LBRACE': 'RBRACE'}
CLOSERS = {'RPAR', 'RBRACE'}

# Every level costs the parser and the evaluator a few Python frames.
MAX_EXPRESSION_DEPTH = 100


def error(message: str, line: Optional[int]) -> ParseError:
    return ParseError(ErrorVal('Parse', message, line))


def _line_of(tokens: List[Token], line: Optional[int]) -> Optional[int]:
    if tokens and tokens[0].line is not None:
        return tokens[0].line
    return line


def find_closing(tokens: List[Token], start: int, line: Optional[int] = None) -> int:
    """Return the index of the bracket closing the one at ``tokens[start]``."""
    depth = 0
    for i in range(start, len(tokens)):
        t = tokens[i].type
        if t in OPENERS:
            depth += 1
        elif t in CLOSERS:
            depth -= 1
            if depth == 0:
                return i
    raise error(f"Unbalanced brackets starting with '{tokens[start]}'", _line_of(tokens[start:], line))


def split_top_level(tokens: List[Token], separator: str = 'COMMA') -> List[List[Token]]:
    """Split a token run on separators that are not nested in brackets."""
    parts: List[List[Token]] = [[]]
    depth = 0
    for token in tokens:
        if token.type in OPENERS:
            depth += 1
        elif token.type in CLOSERS:
            depth -= 1
        if token.type == separator and depth == 0:
            parts.append([])
            continue
        parts[-1].append(token)
    return parts


def classify(tokens: List[Token]) -> str:
    has_concat = has_relational = has_other = False
    depth = 0
    for token in tokens:
        if token.type in OPENERS:
            depth += 1
        elif token.type in CLOSERS:
            depth -= 1
        elif token.type == 'OP' and depth == 0:
            if token == CONCAT_OP:
                has_concat = True
            elif token in RELATIONAL_OPS:
                has_relational = True
            else:
                has_other = True
    if has_concat:
        return STRING
    if has_relational:
        return BOOL
    if has_other:
        return NUMBER
    return SINGLE_VALUE


def _first_operator(tokens: List[Token], line: Optional[int]) -> int:
    depth = 0
    for i, token in enumerate(tokens):
        if token.type in OPENERS:
            depth += 1
        elif token.type in CLOSERS:
            depth -= 1
            if depth < 0:
                raise error(f"Unexpected '{token}'", token.line)
        elif token.type == 'OP' and depth == 0:
            return i
    raise error("Expected binary operator", _line_of(tokens, line))


def _is_wrapped(tokens: List[Token], line: Optional[int]) -> bool:
    return (len(tokens) >= 2 and tokens[0].type == 'LPAR'
            and find_closing(tokens, 0, line) == len(tokens) - 1)


def parse_expression(tokens: List[Token], line: Optional[int] = None, depth: int = 0) -> Expr:
    """Parse a token run into an ``Expr``.

    ``depth`` counts the enclosing operator splits and table fields; runs
    nested deeper than ``MAX_EXPRESSION_DEPTH`` are rejected.
    """
    if depth > MAX_EXPRESSION_DEPTH:
        raise error(f"Expression nested deeper than {MAX_EXPRESSION_DEPTH} levels", _line_of(tokens, line))
    tokens = list(tokens)
    while _is_wrapped(tokens, line):
        tokens = tokens[1:-1]
    if not tokens:
        raise error("Expected expression", line)
    for token in tokens:
        if token.type in ('NEWLINE', 'SEMICOLON'):
            raise error("Expressions cannot have newlines or semicolons!", token.line)

    category = classify(tokens)
    if category == SINGLE_VALUE:
        return Expr(category, [parse_value(tokens, line, depth)])

    idx = _first_operator(tokens, line)
    operator = tokens[idx]
    left_tokens, right_tokens = tokens[:idx], tokens[idx + 1:]
    if not right_tokens:
        raise error(f"Expected expression after '{operator}'", operator.line)
    if not left_tokens:
        if operator != '-':
            raise error(f"Expected expression before '{operator}'", operator.line)
        # unary minus reads as 0 - right
        left_tokens = [Token('NUMBER', 0.0, line=operator.line)]
    left = parse_expression(left_tokens, operator.line, depth + 1)
    right = parse_expression(right_tokens, operator.line, depth + 1)
    return Expr(category, [BinOp(str(operator), left, right)])


def parse_value(tokens: List[Token], line: Optional[int] = None, depth: int = 0) -> Value:
    """Validate the shape of a SingleValue run and wrap it in a ``Value``."""
    first = tokens[0]
    if len(tokens) == 1:
        if first.type in LITERAL_TYPES or first.type == 'IDENT':
            return Value(tokens)
        raise error(f"Illegal token: '{first}' isn't a value", first.line)
    if first.type == 'IDENT' and tokens[1].type == 'LPAR':
        if find_closing(tokens, 1, line) != len(tokens) - 1:
            raise error(f"Unexpected tokens after call to '{first}'", first.line)
        return Value(tokens)
    if first.type == 'LBRACE':
        if find_closing(tokens, 0, line) != len(tokens) - 1:
            raise error("Unexpected tokens after table constructor", first.line)
        value = Value(tokens)
        value.resolved = parse_table_fields(tokens, line, depth)
        return value
    raise error(f"Unexpected token: '{tokens[1]}'", tokens[1].line)


def parse_table_fields(tokens: List[Token], line: Optional[int] = None,
                       depth: int = 0) -> List[Tuple[str, Expr]]:
    """Parse the inside of ``{ name = expr, ... }`` into field initializers."""
    inner = tokens[1:-1]
    fields: List[Tuple[str, Expr]] = []
    if not inner:
        return fields
    for part in split_top_level(inner):
        if len(part) < 3 or part[0].type != 'IDENT' or part[1].type != 'EQUAL':
            raise error("Expected 'name = value' in table constructor", _line_of(part or tokens, line))
        if '.' in part[0]:
            raise error(f"Table field names cannot be dotted: '{part[0]}'", part[0].line)
        fields.append((str(part[0]), parse_expression(part[2:], part[0].line, depth + 1)))
    return fields


def parse(tokens: List[Token], line: Optional[int] = None) -> Expr:
    return parse_expression(tokens, line)


__all__ = ['parse', 'parse_expression', 'parse_value', 'parse_table_fields', 'classify',
           'split_top_level', 'find_closing', 'MAX_EXPRESSION_DEPTH']
