"""Restricted expression evaluator for conditional routing.

Conditions are written in a small, side-effect free subset of Python syntax:

    result > 1000
    result.amount > 10000 and context.tier == "gold"
    result["status"] in ("ok", "partial")
    not context.flagged

Names resolve against the variables mapping handed to `evaluate` (the engine
passes `result` and `context`). Attribute access on a mapping falls back to
key lookup so documents decoded from JSON read naturally. Anything outside
the whitelist (calls to arbitrary callables, comprehensions, lambdas,
assignment expressions, dunder access) is rejected when parsing, which lets
the validator refuse malformed conditions before any instance runs.
"""

from __future__ import annotations

import ast
import operator
from collections.abc import Callable, Mapping
from functools import lru_cache
from typing import Any

from tickflow.errors import ExpressionError

_BIN_OPS: dict[type[ast.operator], Callable[[Any, Any], Any]] = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
}

_UNARY_OPS: dict[type[ast.unaryop], Callable[[Any], Any]] = {
    ast.Not: operator.not_,
    ast.USub: operator.neg,
    ast.UAdd: operator.pos,
}

_COMPARE_OPS: dict[type[ast.cmpop], Callable[[Any, Any], Any]] = {
    ast.Eq: operator.eq,
    ast.NotEq: operator.ne,
    ast.Lt: operator.lt,
    ast.LtE: operator.le,
    ast.Gt: operator.gt,
    ast.GtE: operator.ge,
    ast.In: lambda a, b: a in b,
    ast.NotIn: lambda a, b: a not in b,
    ast.Is: operator.is_,
    ast.IsNot: operator.is_not,
}

_FUNCTIONS: dict[str, Callable[..., Any]] = {
    "len": len,
    "abs": abs,
    "min": min,
    "max": max,
    "int": int,
    "float": float,
    "str": str,
    "bool": bool,
}

_ALLOWED_NODES: tuple[type[ast.AST], ...] = (
    ast.Expression,
    ast.BoolOp,
    ast.And,
    ast.Or,
    ast.UnaryOp,
    ast.BinOp,
    ast.Compare,
    ast.Name,
    ast.Load,
    ast.Constant,
    ast.Attribute,
    ast.Subscript,
    ast.Slice,
    ast.List,
    ast.Tuple,
    ast.Call,
    *_BIN_OPS,
    *_UNARY_OPS,
    *_COMPARE_OPS,
)


@lru_cache(maxsize=512)
def _parse(expression: str) -> ast.Expression:
    try:
        tree = ast.parse(expression.strip(), mode="eval")
    except SyntaxError as e:
        raise ExpressionError(f"Invalid expression {expression!r}: {e.msg}") from e

    for node in ast.walk(tree):
        if not isinstance(node, _ALLOWED_NODES):
            raise ExpressionError(
                f"Unsupported syntax in expression {expression!r}: {type(node).__name__}"
            )
        if isinstance(node, ast.Attribute) and node.attr.startswith("_"):
            raise ExpressionError(f"Private attribute access in expression {expression!r}")
        if isinstance(node, ast.Call):
            if not isinstance(node.func, ast.Name) or node.func.id not in _FUNCTIONS:
                raise ExpressionError(f"Unsupported function call in expression {expression!r}")
            if node.keywords:
                raise ExpressionError(f"Keyword arguments are not supported: {expression!r}")
    return tree


class SafeExpressionEvaluator:
    """Default `ExpressionEvaluator` implementation."""

    def is_valid(self, expression: str) -> bool:
        if not isinstance(expression, str) or not expression.strip():
            return False
        try:
            _parse(expression)
        except ExpressionError:
            return False
        return True

    def evaluate(self, expression: str, variables: Mapping[str, Any] | None = None) -> Any:
        tree = _parse(expression)
        return _Evaluator(variables or {}).visit(tree.body)


class _Evaluator:
    def __init__(self, variables: Mapping[str, Any]) -> None:
        self._variables = variables

    def visit(self, node: ast.AST) -> Any:
        method = getattr(self, f"_visit_{type(node).__name__}", None)
        if method is None:
            raise ExpressionError(f"Unsupported node: {type(node).__name__}")
        return method(node)

    def _visit_Constant(self, node: ast.Constant) -> Any:
        return node.value

    def _visit_Name(self, node: ast.Name) -> Any:
        if node.id in self._variables:
            return self._variables[node.id]
        raise ExpressionError(f"Unknown variable: {node.id}")

    def _visit_Attribute(self, node: ast.Attribute) -> Any:
        target = self.visit(node.value)
        if isinstance(target, Mapping):
            if node.attr in target:
                return target[node.attr]
            raise ExpressionError(f"Missing key: {node.attr}")
        try:
            return getattr(target, node.attr)
        except AttributeError as e:
            raise ExpressionError(str(e)) from e

    def _visit_Subscript(self, node: ast.Subscript) -> Any:
        target = self.visit(node.value)
        key = self.visit(node.slice)
        try:
            return target[key]
        except (KeyError, IndexError, TypeError) as e:
            raise ExpressionError(f"Cannot subscript with {key!r}: {e}") from e

    def _visit_Slice(self, node: ast.Slice) -> slice:
        lower = self.visit(node.lower) if node.lower is not None else None
        upper = self.visit(node.upper) if node.upper is not None else None
        step = self.visit(node.step) if node.step is not None else None
        return slice(lower, upper, step)

    def _visit_List(self, node: ast.List) -> list[Any]:
        return [self.visit(elt) for elt in node.elts]

    def _visit_Tuple(self, node: ast.Tuple) -> tuple[Any, ...]:
        return tuple(self.visit(elt) for elt in node.elts)

    def _visit_BoolOp(self, node: ast.BoolOp) -> Any:
        if isinstance(node.op, ast.And):
            value: Any = True
            for operand in node.values:
                value = self.visit(operand)
                if not value:
                    return value
            return value
        value = False
        for operand in node.values:
            value = self.visit(operand)
            if value:
                return value
        return value

    def _visit_UnaryOp(self, node: ast.UnaryOp) -> Any:
        return _UNARY_OPS[type(node.op)](self.visit(node.operand))

    def _visit_BinOp(self, node: ast.BinOp) -> Any:
        left = self.visit(node.left)
        right = self.visit(node.right)
        try:
            return _BIN_OPS[type(node.op)](left, right)
        except (TypeError, ZeroDivisionError) as e:
            raise ExpressionError(str(e)) from e

    def _visit_Compare(self, node: ast.Compare) -> bool:
        left = self.visit(node.left)
        for op, comparator in zip(node.ops, node.comparators, strict=True):
            right = self.visit(comparator)
            try:
                ok = _COMPARE_OPS[type(op)](left, right)
            except TypeError as e:
                raise ExpressionError(str(e)) from e
            if not ok:
                return False
            left = right
        return True

    def _visit_Call(self, node: ast.Call) -> Any:
        if not isinstance(node.func, ast.Name) or node.func.id not in _FUNCTIONS:
            raise ExpressionError("Unsupported function call")
        func = _FUNCTIONS[node.func.id]
        args = [self.visit(arg) for arg in node.args]
        try:
            return func(*args)
        except (TypeError, ValueError) as e:
            raise ExpressionError(str(e)) from e
