"""JSON serialization/deserialization for the Aurora AST.

This module converts between Aurora AST dataclasses and plain Python
dict/list structures suitable for JSON encoding. Tokens are stored with
their type, value and line so that a deserialized program reports the same
diagnostics as the freshly parsed one. Evaluation caches on ``Value`` nodes
are not serialized; they are rebuilt on first use.
"""

from __future__ import annotations

from typing import Any, Dict

from lark import Token

from .ast import (
    Program,
    Expr,
    Call,
    FunctionDef,
    Assignment,
    BinOp,
    If,
    While,
    Return,
    Value,
    EndOfInput,
    CATEGORIES,
)


def token_to_obj(token: Token) -> Dict[str, Any]:
    return {"__type__": "Token", "type": token.type, "value": token.value, "line": token.line}


def token_from_obj(obj: Dict[str, Any]) -> Token:
    value = obj["value"]
    if obj["type"] == "NUMBER":
        value = float(value)
    return Token(obj["type"], value, line=obj.get("line"))


def _block_to_obj(block):
    if block is None:
        return None
    return [ast_to_obj(s) for s in block]


def _block_from_obj(obj):
    if obj is None:
        return None
    return [ast_from_obj(s) for s in obj]


def ast_to_obj(node: Any) -> Any:
    if node is None:
        return None
    if isinstance(node, Token):
        return token_to_obj(node)
    if isinstance(node, Program):
        return {"type": "Program", "body": _block_to_obj(node.body)}
    if isinstance(node, Expr):
        return {"type": "Expr", "category": node.category, "nodes": _block_to_obj(node.nodes)}
    if isinstance(node, Call):
        return {"type": "Call", "name": token_to_obj(node.name), "args": [ast_to_obj(a) for a in node.args]}
    if isinstance(node, FunctionDef):
        return {
            "type": "FunctionDef",
            "name": token_to_obj(node.name),
            "params": [token_to_obj(p) for p in node.params],
            "body": _block_to_obj(node.body),
        }
    if isinstance(node, Assignment):
        return {
            "type": "Assignment",
            "name": token_to_obj(node.name),
            "expr": ast_to_obj(node.expr),
            "is_local": node.is_local,
        }
    if isinstance(node, BinOp):
        return {"type": "BinOp", "op": node.op, "left": ast_to_obj(node.left), "right": ast_to_obj(node.right)}
    if isinstance(node, If):
        return {
            "type": "If",
            "condition": ast_to_obj(node.condition),
            "then_block": _block_to_obj(node.then_block),
            "else_block": _block_to_obj(node.else_block),
        }
    if isinstance(node, While):
        return {"type": "While", "condition": ast_to_obj(node.condition), "body": _block_to_obj(node.body)}
    if isinstance(node, Return):
        return {"type": "Return", "expr": ast_to_obj(node.expr)}
    if isinstance(node, Value):
        return {"type": "Value", "tokens": [token_to_obj(t) for t in node.tokens]}
    if isinstance(node, EndOfInput):
        return {"type": "EndOfInput"}

    raise TypeError(f"Unsupported node for serialization: {type(node).__name__}")


def ast_from_obj(obj: Any) -> Any:
    if obj is None:
        return None
    if not isinstance(obj, dict):
        raise TypeError("Invalid AST object")
    if obj.get("__type__") == "Token":
        return token_from_obj(obj)
    t = obj.get("type")
    if t == "Program":
        return Program(body=_block_from_obj(obj["body"]))
    if t == "Expr":
        if obj["category"] not in CATEGORIES:
            raise ValueError(f"Unknown expression category: {obj['category']}")
        return Expr(category=obj["category"], nodes=_block_from_obj(obj["nodes"]))
    if t == "Call":
        return Call(name=token_from_obj(obj["name"]), args=[ast_from_obj(a) for a in obj["args"]])
    if t == "FunctionDef":
        return FunctionDef(
            name=token_from_obj(obj["name"]),
            params=[token_from_obj(p) for p in obj["params"]],
            body=_block_from_obj(obj["body"]),
        )
    if t == "Assignment":
        return Assignment(
            name=token_from_obj(obj["name"]),
            expr=ast_from_obj(obj["expr"]),
            is_local=bool(obj.get("is_local", False)),
        )
    if t == "BinOp":
        return BinOp(op=obj["op"], left=ast_from_obj(obj["left"]), right=ast_from_obj(obj["right"]))
    if t == "If":
        return If(
            condition=ast_from_obj(obj["condition"]),
            then_block=_block_from_obj(obj["then_block"]),
            else_block=_block_from_obj(obj.get("else_block")),
        )
    if t == "While":
        return While(condition=ast_from_obj(obj["condition"]), body=_block_from_obj(obj["body"]))
    if t == "Return":
        return Return(expr=ast_from_obj(obj.get("expr")))
    if t == "Value":
        return Value(tokens=[token_from_obj(tok) for tok in obj["tokens"]])
    if t == "EndOfInput":
        return EndOfInput()

    raise ValueError(f"Unknown AST node type: {t}")
