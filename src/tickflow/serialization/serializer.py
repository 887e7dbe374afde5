from __future__ import annotations

import json

from tickflow.build.compiled import CompiledStep, CompiledWorkflow


class WorkflowSerializer:
    """Render a compiled workflow as an interchange document."""

    def serialize(self, workflow: CompiledWorkflow) -> dict[str, object]:
        return {
            "id": workflow.id,
            "description": workflow.description,
            "first_step": workflow.first_step_id,
            "steps": [_serialize_step(step) for step in workflow.all_steps()],
        }

    def to_json(self, workflow: CompiledWorkflow, *, indent: int | None = 2) -> str:
        return json.dumps(self.serialize(workflow), indent=indent, ensure_ascii=False)


def _serialize_step(step: CompiledStep) -> dict[str, object]:
    return {
        "id": step.id,
        "actions": [a.name for a in step.actions],
        "parallel_actions": [a.name for a in step.parallel_actions],
        "conditions": [
            {
                "expression": c.expression,
                "target_step": c.target_step_id,
                "description": c.description,
            }
            for c in step.conditions
        ],
        "transitions": {"success": step.success_step, "fail": step.fail_step},
        "delay": step.delay.seconds if step.delay else None,
        "timeout": step.timeout.seconds if step.timeout else None,
        "retry": (
            {
                "max_attempts": step.retry.max_attempts,
                "delay_seconds": step.retry.delay_seconds,
                "backoff": step.retry.backoff.value,
            }
            if step.retry
            else None
        ),
        "is_final": step.is_final,
    }
