from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from tickflow.definition.models import (
    Condition,
    Delay,
    RetryPolicy,
    StepDefinition,
    Timeout,
    WorkflowDefinition,
)
from tickflow.errors import DefinitionError
from tickflow.serialization.schema import (
    StepDocument,
    WorkflowDocument,
    parse_document,
    parse_document_json,
)


class WorkflowDeserializer:
    """Rebuild an authoring-time definition from an interchange document.

    The result still has to go through the validator and compiler.
    """

    def deserialize(self, data: Mapping[str, Any]) -> WorkflowDefinition:
        return self._to_definition(parse_document(data))

    def from_json(self, text: str | bytes) -> WorkflowDefinition:
        return self._to_definition(parse_document_json(text))

    def _to_definition(self, doc: WorkflowDocument) -> WorkflowDefinition:
        if doc.first_step is not None and doc.first_step != doc.steps[0].id:
            raise DefinitionError(
                f"Workflow '{doc.id}' first_step '{doc.first_step}' must be the first listed step"
            )
        return WorkflowDefinition(
            id=doc.id,
            description=doc.description,
            steps=[_to_step(s) for s in doc.steps],
        )


def _to_step(doc: StepDocument) -> StepDefinition:
    return StepDefinition(
        id=doc.id,
        actions=list(doc.actions),
        parallel_actions=list(doc.parallel_actions),
        conditions=[
            Condition(
                expression=c.expression,
                target_step_id=c.target_step,
                description=c.description,
            )
            for c in doc.conditions
        ],
        success_step=doc.transitions.success,
        fail_step=doc.transitions.fail,
        delay=Delay(doc.delay) if doc.delay is not None else None,
        timeout=Timeout(doc.timeout) if doc.timeout is not None else None,
        retry=(
            RetryPolicy(
                max_attempts=doc.retry.max_attempts,
                delay_seconds=doc.retry.delay_seconds,
                backoff=doc.retry.backoff,
            )
            if doc.retry is not None
            else None
        ),
        is_final=doc.is_final,
    )
