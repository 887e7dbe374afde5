from __future__ import annotations

import logging

from tickflow.build.compiled import CompiledWorkflow
from tickflow.errors import NotFoundError

logger = logging.getLogger(__name__)


class WorkflowRegistry:
    """Compiled workflows keyed by id. Registering an id again replaces it."""

    def __init__(self) -> None:
        self._workflows: dict[str, CompiledWorkflow] = {}

    def register(self, workflow: CompiledWorkflow) -> None:
        replaced = workflow.id in self._workflows
        self._workflows[workflow.id] = workflow
        logger.info(
            "Workflow registered",
            extra={"workflow_id": workflow.id, "replaced": replaced},
        )

    def get(self, workflow_id: str) -> CompiledWorkflow:
        try:
            return self._workflows[workflow_id]
        except KeyError:
            raise NotFoundError(f"Workflow '{workflow_id}' not found") from None

    def has(self, workflow_id: str) -> bool:
        return workflow_id in self._workflows

    def all(self) -> list[CompiledWorkflow]:
        return list(self._workflows.values())

    def __contains__(self, workflow_id: object) -> bool:
        return workflow_id in self._workflows

    def __len__(self) -> int:
        return len(self._workflows)
