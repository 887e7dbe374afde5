"""Unit tests for the workflow interchange document and directory loader."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from tickflow.build.compiler import compile_workflow
from tickflow.build.registry import WorkflowRegistry
from tickflow.definition.models import (
    BackoffKind,
    Condition,
    Delay,
    RetryPolicy,
    StepDefinition,
    Timeout,
    WorkflowDefinition,
)
from tickflow.errors import DefinitionError
from tickflow.loader import WorkflowLoader
from tickflow.serialization import WorkflowDeserializer, WorkflowSerializer


def _orders() -> WorkflowDefinition:
    return WorkflowDefinition(
        id="Orders",
        description="Order processing",
        steps=[
            StepDefinition(
                id="validate",
                actions=["Order.Validate"],
                conditions=[Condition("result.total > 500", "review", "large order")],
                success_step="fulfil",
                fail_step="failed",
                timeout=Timeout(30),
                retry=RetryPolicy(3, 2, BackoffKind.EXPONENTIAL),
            ),
            StepDefinition(
                id="review",
                actions=["Order.Review"],
                success_step="fulfil",
                delay=Delay(60),
            ),
            StepDefinition(
                id="fulfil",
                parallel_actions=["Inventory.Reserve", "Payment.Capture"],
                is_final=True,
            ),
            StepDefinition(id="failed", actions=["Order.Cancel"], is_final=True),
        ],
    )


def test_serialize_document_shape() -> None:
    document = WorkflowSerializer().serialize(compile_workflow(_orders()))

    assert document["id"] == "Orders"
    assert document["first_step"] == "validate"
    validate = document["steps"][0]
    assert validate == {
        "id": "validate",
        "actions": ["Order.Validate"],
        "parallel_actions": [],
        "conditions": [
            {
                "expression": "result.total > 500",
                "target_step": "review",
                "description": "large order",
            }
        ],
        "transitions": {"success": "fulfil", "fail": "failed"},
        "delay": None,
        "timeout": 30,
        "retry": {"max_attempts": 3, "delay_seconds": 2, "backoff": "exponential"},
        "is_final": False,
    }


def test_roundtrip_preserves_structure() -> None:
    compiled = compile_workflow(_orders())
    text = WorkflowSerializer().to_json(compiled)

    restored = compile_workflow(WorkflowDeserializer().from_json(text))

    assert restored == compiled
    assert [s.id for s in restored.all_steps()] == ["validate", "review", "fulfil", "failed"]
    assert restored.get_step("validate").retry == RetryPolicy(3, 2, BackoffKind.EXPONENTIAL)


def test_deserialize_applies_defaults() -> None:
    definition = WorkflowDeserializer().deserialize(
        {"id": "Tiny", "steps": [{"id": "only", "actions": ["Run"], "is_final": True}]}
    )

    step = definition.steps[0]
    assert step.parallel_actions == []
    assert step.conditions == []
    assert step.success_step is None
    assert step.retry is None
    assert definition.description is None


@pytest.mark.parametrize(
    "document",
    [
        {"id": "NoSteps", "steps": []},
        {"steps": [{"id": "a", "actions": ["X"], "is_final": True}]},
        {"id": "BadDelay", "steps": [{"id": "a", "actions": ["X"], "delay": "soon"}]},
        {"id": "BadBackoff", "steps": [{"id": "a", "retry": {"max_attempts": 1, "backoff": "x"}}]},
        {"id": "BadCondition", "steps": [{"id": "a", "conditions": [{"expression": "True"}]}]},
    ],
)
def test_malformed_documents_raise_definition_error(document: dict) -> None:
    with pytest.raises(DefinitionError, match="Invalid workflow document"):
        WorkflowDeserializer().deserialize(document)


def test_invalid_json_raises_definition_error() -> None:
    with pytest.raises(DefinitionError):
        WorkflowDeserializer().from_json("{not json")


def test_first_step_must_match_first_listed_step() -> None:
    document = WorkflowSerializer().serialize(compile_workflow(_orders()))
    document["first_step"] = "fulfil"

    with pytest.raises(DefinitionError, match="first_step 'fulfil'"):
        WorkflowDeserializer().deserialize(document)


def _write(directory: Path, name: str, definition: WorkflowDefinition) -> Path:
    path = directory / name
    path.write_text(WorkflowSerializer().to_json(compile_workflow(definition)), encoding="utf-8")
    return path


def test_loader_registers_files_in_name_order(tmp_path: Path) -> None:
    second = WorkflowDefinition(
        id="Ping", steps=[StepDefinition(id="ping", actions=["Ping"], is_final=True)]
    )
    _write(tmp_path, "b_orders.json", _orders())
    _write(tmp_path, "a_ping.json", second)
    (tmp_path / "notes.txt").write_text("ignored", encoding="utf-8")

    loader = WorkflowLoader(tmp_path)
    assert [p.name for p in loader.discover()] == ["a_ping.json", "b_orders.json"]

    registry = WorkflowRegistry()
    loaded = loader.register_all(registry)

    assert [w.id for w in loaded] == ["Ping", "Orders"]
    assert registry.has("Orders")
    assert registry.has("Ping")


def test_loader_missing_directory(tmp_path: Path) -> None:
    with pytest.raises(DefinitionError, match="does not exist"):
        WorkflowLoader(tmp_path / "nope").discover()


def test_loader_missing_file(tmp_path: Path) -> None:
    with pytest.raises(DefinitionError, match="does not exist"):
        WorkflowLoader(tmp_path).load_one(tmp_path / "nope.json")


def test_loader_reports_offending_file(tmp_path: Path) -> None:
    document = {
        "id": "NoFinal",
        "steps": [{"id": "a", "actions": ["X"], "transitions": {"success": "ghost"}}],
    }
    (tmp_path / "broken.json").write_text(json.dumps(document), encoding="utf-8")

    with pytest.raises(DefinitionError, match=r"broken\.json: .*non-existent success step"):
        WorkflowLoader(tmp_path).load_all()


def test_bundled_example_workflows_compile() -> None:
    examples = Path(__file__).resolve().parents[2] / "examples" / "workflows"

    workflows = WorkflowLoader(examples).load_all()

    assert [w.id for w in workflows] == ["OrderProcessing"]
    fulfil = workflows[0].get_step("fulfil")
    assert fulfil is not None
    assert fulfil.has_parallel_actions
