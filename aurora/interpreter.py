"""Interpreter for the Aurora language.

The interpreter walks the statement lists produced by ``aurora.parser`` and
executes them against the state it owns: global variables, a stack of
local frames (one per active call), the function and table registries and
a single pending-return slot.

Returning from a function does not unwind the Python stack. A ``return``
statement stores its value in the slot; every statement executed while the
slot is occupied is skipped, and the call site that started the function
body takes the value out and clears the slot again.
"""

from __future__ import annotations

import math
import sys
from contextlib import contextmanager
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from lark import Token

from .ast import (
    Program, Node, Expr, Call, FunctionDef, Assignment, BinOp, If, While,
    Return, Value, EndOfInput,
)
from .builtin_function import BuiltinFunction
from .config import Config
from .environment import Environment
from .errors import AuroraRuntimeError
from .expr import parse_table_fields
from .function import Function, FunctionRegistry, LuaFunction
from .parser import parse, parse_call, parse_program
from .scanner import scan
from .std import FileLoader, install_core_library
from .table import Table, TableRegistry
from .types import (
    NIL, ErrorVal, FunctionRef, TableRef, to_bool, to_number, to_string,
    type_name,
)

# Python frames one nesting level can occupy (invoke through a native into
# load_module is the longest path), plus room for the host and the parser.
FRAMES_PER_LEVEL = 5
STACK_HEADROOM = 1000


class Interpreter:
    """Core interpreter that executes Aurora statements."""
    def __init__(self, config: Optional[Config] = None, loader: Optional[Callable[[str], str]] = None):
        self.config = config or Config()
        self.env = Environment()
        self.functions = FunctionRegistry()
        self.tables = TableRegistry()
        self.return_value: Optional[Any] = None
        self.call_depth = 0
        self.nesting = 0
        needed = self.config.max_nesting_depth * FRAMES_PER_LEVEL + STACK_HEADROOM
        if sys.getrecursionlimit() < needed:
            sys.setrecursionlimit(needed)
        self.modules: Dict[str, Any] = {}
        self.loader = loader or FileLoader(self.config.asset_root, self.config.module_suffix)
        self.debug_fp = None
        if self.config.verbose and self.config.debug_file:
            self.debug_fp = open(self.config.debug_file, 'w', encoding='utf-8')
        install_core_library(self)

    def debug(self, msg: str):
        if self.config.verbose:
            if self.debug_fp:
                self.debug_fp.write(msg + '\n')
                self.debug_fp.flush()
            else:
                print(msg, file=sys.stderr)

    def close(self):
        if self.debug_fp:
            self.debug_fp.close()
            self.debug_fp = None

    def error(self, message: str) -> AuroraRuntimeError:
        return AuroraRuntimeError(ErrorVal('Runtime', message))

    @contextmanager
    def nested(self):
        """Count one level of evaluator recursion for the enclosed work."""
        if self.nesting >= self.config.max_nesting_depth:
            raise self.error(f"Maximum nesting depth of {self.config.max_nesting_depth} exceeded")
        self.nesting += 1
        try:
            yield
        finally:
            self.nesting -= 1

    # Embedding API
    def register_native(self, name: str, fn: Callable, arity: Optional[int] = None) -> int:
        return self.functions.register(name, BuiltinFunction(name, arity, fn))

    def get_variable(self, name: str) -> Any:
        if '.' in name:
            table, leaf = self.resolve_path(name)
            value = table.get(leaf)
            return NIL if value is None else value
        value = self.env.get(name)
        if value is not None:
            return value
        func = self.functions.lookup(name)
        if func is not None:
            return func.ref
        return NIL

    def assign_variable(self, name: str, value: Any, is_local: bool = False):
        if '.' in name:
            table, leaf = self.resolve_path(name)
            table.set(leaf, value)
            return
        self.env.set(name, value, is_local)

    def get_table(self, ref: TableRef) -> Table:
        return self.tables.get(ref.id)

    # Public API
    def run(self, program: Union[Program, List[Node]]) -> Optional[Any]:
        """Run top-level statements and return the value of a top-level return."""
        statements = program.body if isinstance(program, Program) else program
        try:
            self.run_block(statements)
        except RecursionError:
            raise self.error("Maximum recursion depth exceeded") from None
        value = self.return_value
        self.return_value = None
        return value

    def execute_source(self, source: str) -> Optional[Any]:
        tokens = scan(source)
        self.debug(f"Token Count: {len(tokens)}")
        statements = parse(tokens)
        self.debug(f"Stmt Count: {len(statements)}")
        return self.run(statements)

    def run_block(self, statements: List[Node]):
        with self.nested():
            for stmt in statements:
                if self.return_value is not None:
                    break
                self.run_stmt(stmt)

    def run_stmt(self, node: Node):
        if self.return_value is not None:
            return
        if isinstance(node, Assignment):
            value = self.evaluate_expr(node.expr)
            self.assign_variable(str(node.name), value, node.is_local)
            return
        if isinstance(node, Call):
            self.call_function(node.name, node.args)
            return
        if isinstance(node, FunctionDef):
            self.define_function(node)
            return
        if isinstance(node, If):
            if self.is_truthy(self.evaluate_expr(node.condition)):
                self.run_block(node.then_block)
            elif node.else_block is not None:
                self.run_block(node.else_block)
            return
        if isinstance(node, While):
            while self.return_value is None and self.is_truthy(self.evaluate_expr(node.condition)):
                self.run_block(node.body)
            return
        if isinstance(node, Return):
            value = NIL if node.expr is None else self.evaluate_expr(node.expr)
            self.return_value = value
            return
        if isinstance(node, EndOfInput):
            return
        raise self.error(f"Illegal root statement: {type(node).__name__}")

    def define_function(self, node: FunctionDef) -> int:
        name = str(node.name)
        func_id = self.functions.register(name, LuaFunction(name, list(node.params), node.body))
        if '.' in name:
            table, leaf = self.resolve_path(name)
            table.set(leaf, FunctionRef(func_id))
        self.debug(f"define function {name} -> {func_id}")
        return func_id

    def resolve_path(self, name: str) -> Tuple[Table, str]:
        """Resolve ``a.b.c`` to the table holding ``a.b`` and the field ``c``."""
        parts = name.split('.')
        if any(part == '' for part in parts):
            raise self.error(f"Invalid name '{name}'")
        value = self.get_variable(parts[0])
        for i, part in enumerate(parts[1:-1], start=1):
            table = self._table_of(value, '.'.join(parts[:i]))
            value = table.get(part)
            if value is None:
                value = NIL
        return self._table_of(value, '.'.join(parts[:-1])), parts[-1]

    def _table_of(self, value: Any, path: str) -> Table:
        if isinstance(value, TableRef):
            return self.tables.get(value.id)
        raise self.error(f"Attempt to index a {type_name(value)} value '{path}'")

    # Expressions
    def evaluate_expr(self, expr: Expr) -> Any:
        node = expr.node
        with self.nested():
            if isinstance(node, BinOp):
                left = self.evaluate_expr(node.left)
                right = self.evaluate_expr(node.right)
                return self.apply_binary_op(node.op, left, right)
            if isinstance(node, Value):
                return self.evaluate_value(node)
        raise self.error(f"Couldn't evaluate expression: {node!r}")

    def evaluate_value(self, node: Value) -> Any:
        tokens = node.tokens
        first = tokens[0]
        if len(tokens) == 1:
            if first.type == 'NUMBER':
                return float(first.value)
            if first.type == 'STRING':
                return str(first.value)
            if first.type == 'TRUE':
                return True
            if first.type == 'FALSE':
                return False
            if first.type == 'IDENT':
                return self.get_variable(str(first))
        if first.type == 'IDENT' and tokens[1].type == 'LPAR':
            if node.resolved is None:
                node.resolved = parse_call(tokens, first.line)
            return self.call_function(node.resolved.name, node.resolved.args)
        if first.type == 'LBRACE':
            if node.resolved is None:
                node.resolved = parse_table_fields(tokens, first.line)
            ref = self.tables.create()
            table = self.tables.get(ref.id)
            for name, field_expr in node.resolved:
                table.set(name, self.evaluate_expr(field_expr))
            return ref
        raise self.error(f"Illegal token: '{first}' isn't a value")

    def apply_binary_op(self, op: str, a: Any, b: Any) -> Any:
        try:
            if op == '..':
                return to_string(a) + to_string(b)
            if op == '==':
                # equality compares canonical renderings, so 0 == "0"
                return to_string(a) == to_string(b)
            x = to_number(a)
            y = to_number(b)
        except TypeError as e:
            raise self.error(str(e))
        if op == '+':
            return x + y
        if op == '-':
            return x - y
        if op == '*':
            return x * y
        if op == '/':
            return divide(x, y)
        if op == '<':
            return x < y
        if op == '<=':
            return x <= y
        if op == '>':
            return x > y
        if op == '>=':
            return x >= y
        raise self.error(f"Unknown operator: {op}")

    def is_truthy(self, value: Any) -> bool:
        try:
            return to_bool(value)
        except TypeError as e:
            raise self.error(str(e))

    # Calls
    def resolve_function(self, name: str) -> Function:
        if '.' in name:
            value = self.get_variable(name)
        else:
            func = self.functions.lookup(name)
            if func is not None:
                return func
            value = self.env.get(name)
        if isinstance(value, FunctionRef):
            return self.functions.get(value.id)
        raise self.error(f"Unable to find function with name: {name}")

    def call_function(self, name: Union[Token, str], args: List[Expr]) -> Any:
        func = self.resolve_function(str(name))
        # arguments are evaluated in the caller's frame
        values = [self.evaluate_expr(arg) for arg in args]
        return self.invoke(func, values)

    def call_value(self, func_id: int, values: List[Any]) -> Any:
        try:
            return self.invoke(self.functions.get(func_id), values)
        except RecursionError:
            raise self.error("Maximum recursion depth exceeded") from None

    def invoke(self, func: Function, args: List[Any]) -> Any:
        definition = func.definition
        if isinstance(definition, BuiltinFunction):
            if definition.arity is not None and len(args) != definition.arity:
                raise self.error(f"{definition.name} expects {definition.arity} argument(s), found {len(args)}")
        elif len(args) != definition.arity:
            raise self.error(
                f"Incorrect number of arguments to {definition.name}! "
                f"Expected {definition.arity} but found {len(args)}")
        if self.call_depth >= self.config.max_call_depth:
            raise self.error(f"Maximum call depth of {self.config.max_call_depth} exceeded in {definition.name}")

        self.debug(f"call {definition.name}({', '.join(to_string(a) for a in args)})")
        with self.nested():
            self.call_depth += 1
            self.env.push_frame()
            try:
                if isinstance(definition, BuiltinFunction):
                    result = definition.fn(list(args), self)
                else:
                    for param, value in zip(definition.params, args):
                        self.env.set(str(param), value, is_local=True)
                    self.run_block(definition.body)
                    result = self.return_value
            finally:
                self.env.pop_frame()
                self.return_value = None
                self.call_depth -= 1
        return NIL if result is None else result

    # Modules
    def require(self, path: str) -> Any:
        if self.config.cache_modules and path in self.modules:
            self.debug(f"require {path} (cached)")
            return self.modules[path]
        value = self.load_module(path, self.loader(path))
        if self.config.cache_modules:
            self.modules[path] = value
        return value

    def load_module(self, name: str, source: str) -> Any:
        """Run ``source`` in a fresh frame and return the module's return value."""
        self.debug(f"load module {name}")
        program = parse_program(source)
        self.env.push_frame()
        try:
            for stmt in program.body:
                self.run_stmt(stmt)
                if self.return_value is not None:
                    break
            result = self.return_value
        finally:
            self.env.pop_frame()
            self.return_value = None
        return NIL if result is None else result


def divide(x: float, y: float) -> float:
    try:
        return x / y
    except ZeroDivisionError:
        if x == 0 or math.isnan(x):
            return math.nan
        return math.copysign(math.inf, x) * math.copysign(1.0, y)


def run_program(source: str, config: Optional[Config] = None) -> Any:
    """Convenience function to run an Aurora program from a source string."""
    interpreter = Interpreter(config)
    try:
        return interpreter.execute_source(source)
    finally:
        interpreter.close()


def run_source(source: str, interpreter: Optional[Interpreter] = None) -> Interpreter:
    """Run ``source`` and return the interpreter so its state can be inspected."""
    if interpreter is None:
        interpreter = Interpreter()
    interpreter.execute_source(source)
    return interpreter


def run_file(file_path: str, config: Optional[Config] = None) -> Interpreter:
    """Run an Aurora file, returning the interpreter instance."""
    with open(file_path, 'r', encoding='utf-8') as f:
        source = f.read()
    interpreter = Interpreter(config)
    try:
        interpreter.execute_source(source)
    finally:
        interpreter.close()
    return interpreter
