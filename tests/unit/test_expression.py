"""Unit tests for the restricted condition expression evaluator."""

from __future__ import annotations

import ast
from dataclasses import dataclass

import pytest

from tickflow.errors import ExpressionError
from tickflow.expression import SafeExpressionEvaluator, _Evaluator


@dataclass
class Payment:
    amount: int
    currency: str


@pytest.fixture
def evaluator() -> SafeExpressionEvaluator:
    return SafeExpressionEvaluator()


@pytest.mark.parametrize(
    ("expression", "variables", "expected"),
    [
        ("result > 1000", {"result": 1500}, True),
        ("result > 1000", {"result": 10}, False),
        ("result == 'ok'", {"result": "ok"}, True),
        ("result.amount >= 100", {"result": {"amount": 100}}, True),
        ("result.amount * 2 == 50", {"result": Payment(25, "EUR")}, True),
        ("result['status'] in ('ok', 'partial')", {"result": {"status": "partial"}}, True),
        ("context.tier == 'gold' and result > 1", {"context": {"tier": "gold"}, "result": 2}, True),
        ("not context.flagged", {"context": {"flagged": False}}, True),
        ("len(result) == 3", {"result": [1, 2, 3]}, True),
        ("max(result) - min(result)", {"result": [4, 9, 1]}, 8),
        ("result[1:] == [2, 3]", {"result": [1, 2, 3]}, True),
        ("1 < result < 5", {"result": 3}, True),
        ("1 < result < 5", {"result": 7}, False),
        ("result is None", {"result": None}, True),
        ("result or 'fallback'", {"result": ""}, "fallback"),
        ("-result + 10 // 3 % 2", {"result": 1}, 0),
    ],
)
def test_evaluate(evaluator, expression: str, variables: dict, expected: object) -> None:
    assert evaluator.evaluate(expression, variables) == expected


@pytest.mark.parametrize(
    "expression",
    [
        "result >",
        "",
        "   ",
        "__import__('os').system('true')",
        "result.__class__",
        "[x for x in result]",
        "lambda: 1",
        "(y := 1)",
        "open('/etc/passwd')",
        "len(result, key=1)",
        "{'a': 1}",
        "result.amount()",
    ],
)
def test_invalid_expressions_are_rejected(evaluator, expression: str) -> None:
    assert not evaluator.is_valid(expression)


def test_non_string_expression_is_invalid(evaluator) -> None:
    assert not evaluator.is_valid(None)  # type: ignore[arg-type]


@pytest.mark.parametrize(
    ("expression", "variables"),
    [
        ("missing > 1", {}),
        ("result.amount > 1", {"result": 5}),
        ("result.amount > 1", {"result": {"total": 1}}),
        ("result[3]", {"result": [1]}),
        ("result > 'x'", {"result": 1}),
        ("result / 0", {"result": 1}),
        ("int(result)", {"result": "abc"}),
    ],
)
def test_evaluation_errors_raise_expression_error(
    evaluator, expression: str, variables: dict
) -> None:
    with pytest.raises(ExpressionError):
        evaluator.evaluate(expression, variables)


def test_parse_errors_raise_expression_error(evaluator) -> None:
    with pytest.raises(ExpressionError, match="Unsupported"):
        evaluator.evaluate("[x for x in result]", {"result": []})


def test_expression_error_is_a_value_error(evaluator) -> None:
    with pytest.raises(ValueError):
        evaluator.evaluate("result >", {"result": 1})


def test_unlisted_call_is_rejected_during_evaluation() -> None:
    # Parsing already refuses these; the evaluator re-checks on its own.
    tree = ast.parse("open('x')", mode="eval")

    with pytest.raises(ExpressionError, match="Unsupported function call"):
        _Evaluator({}).visit(tree.body)
