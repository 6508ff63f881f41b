"""Recursive-descent statement parser for the Aurora language.

The parser consumes the token list produced by ``aurora.scanner`` from the
front of a queue and dispatches on the first token of every statement:

* ``name(...)``                        call
* ``name = expr``                      assignment
* ``local name = expr``                local assignment
* ``if cond then ... [else ...] end``  conditional
* ``while cond do ... end``            loop
* ``function name(a, b) ... end``      function definition
* ``return [expr]``                    return

Blocks are not parsed in place. Their tokens are collected up to the
matching ``end`` (or ``else``) first, tracking how many ``if``, ``while``
and ``function`` bodies are open so nested blocks are not mistaken for the
terminator, and the collected run is then parsed recursively. Expressions
are handed to ``aurora.expr``.

Unlike the scanner, the parser stops at the first problem and raises a
single ``ParseError`` carrying the line it was found on.
"""

from __future__ import annotations

from collections import deque
from typing import Deque, List, Optional, Tuple

from lark import Token

from . import expr
from .ast import (
    Program, Node, Expr, Call, FunctionDef, Assignment, If, While, Return,
    EndOfInput,
)
from .errors import ParseError
from .scanner import scan, END
from .types import ErrorVal

TERMINATORS = {'NEWLINE', 'SEMICOLON'}

# Keywords whose blocks are closed by 'end'.
BLOCK_OPENERS = {'IF', 'WHILE', 'FUNCTION'}

MAX_BLOCK_DEPTH = 64


class Parser:
    def __init__(self, tokens: List[Token], line: int = 1, depth: int = 0):
        self.tokens: Deque[Token] = deque(tokens)
        self.line = line
        self.depth = depth

    def error(self, message: str, line: Optional[int] = None) -> ParseError:
        return ParseError(ErrorVal('Parse', message, self.line if line is None else line))

    def parse(self) -> List[Node]:
        stmts: List[Node] = []
        while True:
            stmt = self.parse_statement()
            if stmt is None:
                break
            stmts.append(stmt)
            if isinstance(stmt, EndOfInput):
                break
        return stmts

    # ------------------------------ statements ---------------------------- #
    def parse_statement(self) -> Optional[Node]:
        while True:
            token = self.next_token()
            if token is None:
                return None
            if token.type not in TERMINATORS:
                break

        if token.type == END:
            return EndOfInput()
        if token.type == 'IDENT':
            return self.parse_identifier(token)
        if token.type == 'LOCAL':
            return self.parse_local()
        if token.type == 'IF':
            return self.parse_if()
        if token.type == 'WHILE':
            return self.parse_while()
        if token.type == 'FUNCTION':
            return self.parse_function()
        if token.type == 'RETURN':
            return self.parse_return()
        raise self.error(f"Statements cannot start with '{token}'")

    def parse_identifier(self, name: Token) -> Node:
        following = self.next_token()
        if following is None or following.type == END:
            raise self.error(f"Unexpected end of input after identifier '{name}'")
        if following.type == 'LPAR':
            args = self.advance_to_closing()
            return Call(name, self.parse_args(args))
        if following.type == 'EQUAL':
            return self.parse_assignment(name, False)
        raise self.error(f"Unknown token '{following}' following identifier '{name}'")

    def parse_local(self) -> Assignment:
        name = self.next_token()
        if name is None or name.type != 'IDENT':
            raise self.error(f"Expected identifier following keyword local, but found '{name}'")
        if '.' in name:
            raise self.error(f"Table fields cannot be declared local: '{name}'")
        equal = self.next_token()
        if equal is None or equal.type != 'EQUAL':
            raise self.error(f"Expected '=' but found '{equal}'")
        return self.parse_assignment(name, True)

    def parse_assignment(self, name: Token, is_local: bool) -> Assignment:
        tokens = self.advance_to_line_end()
        return Assignment(name, expr.parse_expression(tokens, self.line), is_local)

    def parse_if(self) -> If:
        condition = self.parse_condition('THEN')
        block_tokens, terminator = self.advance_to_block_end(allow_else=True)
        then_block = self.parse_block(block_tokens)
        else_block = None
        if terminator == 'ELSE':
            else_tokens, _ = self.advance_to_block_end(allow_else=False)
            else_block = self.parse_block(else_tokens)
        return If(condition, then_block, else_block)

    def parse_while(self) -> While:
        condition = self.parse_condition('DO')
        block_tokens, _ = self.advance_to_block_end(allow_else=False)
        return While(condition, self.parse_block(block_tokens))

    def parse_condition(self, stop: str) -> Expr:
        start_line = self.line
        tokens: List[Token] = []
        while True:
            token = self.next_token()
            if token is None or token.type == END:
                raise self.error(f"Expected '{stop.lower()}' after condition", start_line)
            if token.type == stop:
                break
            tokens.append(token)
        return expr.parse_expression(tokens, start_line)

    def parse_function(self) -> FunctionDef:
        name = self.next_token()
        if name is None or name.type != 'IDENT':
            raise self.error(f"Expected function name but found '{name}'")
        lpar = self.next_token()
        if lpar is None or lpar.type != 'LPAR':
            raise self.error(f"Expected left parenthesis but found '{lpar}'")
        params = self.parse_params(self.advance_to_closing())
        body_tokens, _ = self.advance_to_block_end(allow_else=False)
        return FunctionDef(name, params, self.parse_block(body_tokens))

    def parse_params(self, tokens: List[Token]) -> List[Token]:
        if not tokens:
            return []
        params: List[Token] = []
        for part in expr.split_top_level(tokens):
            if len(part) != 1 or part[0].type != 'IDENT' or '.' in part[0]:
                raise self.error(f"Invalid parameter: '{' '.join(str(t) for t in part)}'")
            if part[0] in params:
                raise self.error(f"Duplicate parameter '{part[0]}'")
            params.append(part[0])
        return params

    def parse_return(self) -> Return:
        tokens = self.advance_to_line_end()
        if not tokens:
            return Return(None)
        return Return(expr.parse_expression(tokens, self.line))

    def parse_args(self, tokens: List[Token]) -> List[Expr]:
        if not tokens:
            return []
        args: List[Expr] = []
        for part in expr.split_top_level(tokens):
            if not part:
                raise self.error("Empty argument in call")
            args.append(expr.parse_expression(part, self.line))
        return args

    # -------------------------------- helpers ----------------------------- #
    def parse_block(self, tokens: List[Token]) -> List[Node]:
        if self.depth >= MAX_BLOCK_DEPTH:
            raise self.error(f"Blocks nested deeper than {MAX_BLOCK_DEPTH} levels")
        return Parser(tokens, self.line, self.depth + 1).parse()

    def advance_to_line_end(self) -> List[Token]:
        tokens: List[Token] = []
        while True:
            token = self.peek()
            if token is None or token.type == END or token.type in TERMINATORS:
                break
            tokens.append(self.next_token())
        return tokens

    def advance_to_closing(self) -> List[Token]:
        """Collect tokens up to the ')' matching an already consumed '('."""
        start_line = self.line
        tokens: List[Token] = []
        depth = 0
        while True:
            token = self.next_token()
            if token is None or token.type == END:
                raise self.error("Expected ')'", start_line)
            if token.type == 'LPAR':
                depth += 1
            elif token.type == 'RPAR':
                if depth == 0:
                    break
                depth -= 1
            tokens.append(token)
        return tokens

    def advance_to_block_end(self, allow_else: bool) -> Tuple[List[Token], str]:
        """Collect a block's tokens up to its own 'end' (or 'else').

        The terminator is consumed and its type returned.
        """
        start_line = self.line
        tokens: List[Token] = []
        level = 0
        while True:
            token = self.next_token()
            if token is None or token.type == END:
                raise self.error("Expected 'end' to close block", start_line)
            if token.type in BLOCK_OPENERS:
                level += 1
            elif token.type == 'END':
                if level == 0:
                    return tokens, 'END'
                level -= 1
            elif token.type == 'ELSE' and level == 0:
                if not allow_else:
                    raise self.error("Unexpected 'else'")
                return tokens, 'ELSE'
            tokens.append(token)

    def peek(self) -> Optional[Token]:
        if self.tokens:
            return self.tokens[0]
        return None

    def next_token(self) -> Optional[Token]:
        if not self.tokens:
            return None
        token = self.tokens.popleft()
        if token.line is not None:
            self.line = token.line
        return token


def parse(tokens: List[Token], line: int = 1) -> List[Node]:
    return Parser(tokens, line).parse()


def parse_call(tokens: List[Token], line: Optional[int] = None) -> Call:
    """Parse an inline ``name(args)`` run found inside an expression."""
    parser = Parser(tokens, line or 1)
    name = parser.next_token()
    if name is None or name.type != 'IDENT' or parser.peek() is None or parser.peek().type != 'LPAR':
        raise parser.error("Expected function call")
    parser.next_token()
    call = Call(name, parser.parse_args(parser.advance_to_closing()))
    if parser.peek() is not None:
        raise parser.error(f"Unexpected token '{parser.peek()}' after call")
    return call


def parse_program(source: str) -> Program:
    """Scan and parse a source unit into a ``Program``."""
    return Program(parse(scan(source)))


__all__ = ['Parser', 'parse', 'parse_call', 'parse_program']
