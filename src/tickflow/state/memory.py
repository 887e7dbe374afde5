"""In-memory `Storage` implementation.

Useful for tests and embedded use where nothing has to survive a restart.
"""

from __future__ import annotations

import logging
from datetime import datetime

from tickflow.errors import NotFoundError
from tickflow.state.models import WorkflowState, WorkflowStatus

logger = logging.getLogger(__name__)


class InMemoryStorage:
    def __init__(self) -> None:
        self._states: dict[str, WorkflowState] = {}

    def save(self, state: WorkflowState) -> None:
        self._states[state.instance_id] = state

    def load(self, instance_id: str) -> WorkflowState:
        try:
            return self._states[instance_id]
        except KeyError:
            raise NotFoundError(f"Workflow instance '{instance_id}' not found") from None

    def delete(self, instance_id: str) -> None:
        self._states.pop(instance_id, None)

    def exists(self, instance_id: str) -> bool:
        return instance_id in self._states

    def find_by_status(self, status: WorkflowStatus) -> list[WorkflowState]:
        return [s for s in self._states.values() if s.status == status]

    def find_scheduled_before(self, time: datetime) -> list[WorkflowState]:
        return [
            s for s in self._states.values() if s.scheduled_at is not None and s.scheduled_at < time
        ]

    def all(self) -> list[WorkflowState]:
        return list(self._states.values())

    def clear(self) -> None:
        logger.warning("Clearing all workflow instances", extra={"count": len(self._states)})
        self._states.clear()
