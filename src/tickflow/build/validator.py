"""Structural checks on authored workflow definitions.

Validation is fail-fast: the first violation found raises `DefinitionError`.
Reachability of steps is deliberately not checked, only the existence of at
least one final step.
"""

from __future__ import annotations

import logging

from tickflow.contracts import ExpressionEvaluator
from tickflow.definition.models import StepDefinition, WorkflowDefinition
from tickflow.errors import DefinitionError
from tickflow.expression import SafeExpressionEvaluator

logger = logging.getLogger(__name__)


class WorkflowValidator:
    def __init__(self, evaluator: ExpressionEvaluator | None = None) -> None:
        self._evaluator = evaluator or SafeExpressionEvaluator()

    def validate(self, workflow: WorkflowDefinition) -> None:
        steps = workflow.steps
        if not steps:
            raise DefinitionError(f"Workflow '{workflow.id}' must have at least one step")

        step_ids: set[str] = set()
        for step in steps:
            if step.id in step_ids:
                raise DefinitionError(
                    f"Duplicate step ID '{step.id}' in workflow '{workflow.id}'"
                )
            step_ids.add(step.id)

            if not step.actions and not step.parallel_actions:
                raise DefinitionError(f"Step '{step.id}' must have at least one action")

            if step.is_final and (step.success_step is not None or step.fail_step is not None):
                raise DefinitionError(f"Final step '{step.id}' cannot have transitions")

            for condition in step.conditions:
                if not self._evaluator.is_valid(condition.expression):
                    raise DefinitionError(
                        f"Invalid expression '{condition.expression}' in step '{step.id}'"
                    )

            _check_policies(step)

        for step in steps:
            if step.success_step is not None and step.success_step not in step_ids:
                raise DefinitionError(
                    f"Step '{step.id}' references non-existent success step "
                    f"'{step.success_step}'"
                )
            if step.fail_step is not None and step.fail_step not in step_ids:
                raise DefinitionError(
                    f"Step '{step.id}' references non-existent fail step '{step.fail_step}'"
                )
            for condition in step.conditions:
                if condition.target_step_id not in step_ids:
                    raise DefinitionError(
                        f"Condition in step '{step.id}' references non-existent step "
                        f"'{condition.target_step_id}'"
                    )

        if not any(step.is_final for step in steps):
            raise DefinitionError(f"Workflow '{workflow.id}' must have at least one final step")

        logger.debug("Workflow definition is valid", extra={"workflow_id": workflow.id})


def _check_policies(step: StepDefinition) -> None:
    if step.delay is not None and step.delay.seconds < 0:
        raise DefinitionError(f"Step '{step.id}' delay must not be negative")
    if step.timeout is not None and step.timeout.seconds < 0:
        raise DefinitionError(f"Step '{step.id}' timeout must not be negative")
    if step.retry is not None:
        if step.retry.max_attempts < 1:
            raise DefinitionError(f"Step '{step.id}' retry max_attempts must be positive")
        if step.retry.delay_seconds < 0:
            raise DefinitionError(f"Step '{step.id}' retry delay must not be negative")
