from __future__ import annotations

import logging

from tickflow.build.compiled import CompiledStep, CompiledWorkflow
from tickflow.build.validator import WorkflowValidator
from tickflow.contracts import ExpressionEvaluator
from tickflow.definition.models import StepDefinition, WorkflowDefinition
from tickflow.errors import DefinitionError

logger = logging.getLogger(__name__)


class WorkflowCompiler:
    """Turn a definition into an immutable `CompiledWorkflow`.

    The compiler trusts its input beyond the non-empty check; run
    `WorkflowValidator` first (or use `compile_workflow`).
    """

    def build(self, workflow: WorkflowDefinition) -> CompiledWorkflow:
        if not workflow.steps:
            raise DefinitionError(f"Workflow '{workflow.id}' must have at least one step")

        steps = {step.id: _compile_step(step) for step in workflow.steps}
        compiled = CompiledWorkflow(
            id=workflow.id,
            description=workflow.description,
            steps=steps,
            first_step_id=workflow.steps[0].id,
        )
        logger.debug(
            "Workflow compiled",
            extra={"workflow_id": compiled.id, "steps": len(steps)},
        )
        return compiled


def _compile_step(step: StepDefinition) -> CompiledStep:
    return CompiledStep(
        id=step.id,
        actions=tuple(step.actions),
        parallel_actions=tuple(step.parallel_actions),
        conditions=tuple(step.conditions),
        success_step=step.success_step,
        fail_step=step.fail_step,
        delay=step.delay,
        timeout=step.timeout,
        retry=step.retry,
        is_final=step.is_final,
    )


def compile_workflow(
    workflow: WorkflowDefinition, evaluator: ExpressionEvaluator | None = None
) -> CompiledWorkflow:
    """Validate then build."""

    WorkflowValidator(evaluator).validate(workflow)
    return WorkflowCompiler().build(workflow)
