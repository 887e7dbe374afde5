"""Capabilities the engine expects from its host.

The engine ships no production backends. Hosts plug in their own action
runner, persistence and time source by implementing these protocols.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import TYPE_CHECKING, Any, Protocol

from tickflow.definition.models import ActionRef

if TYPE_CHECKING:
    from tickflow.state.models import WorkflowState, WorkflowStatus


class Executor(Protocol):
    """Runs actions out of band. Dispatch is fire-and-forget.

    Completion is reported back to the engine through
    `WorkflowManager.action_received`.
    """

    def schedule_action(self, action: ActionRef, argument: object | None = None) -> None: ...

    def schedule_parallel_actions(self, actions: Sequence[ActionRef]) -> None: ...

    def schedule_delayed_action(
        self, action: ActionRef, delay_seconds: int, argument: object | None = None
    ) -> None: ...

    def is_action_completed(self, action: ActionRef) -> bool: ...

    def get_action_result(self, action: ActionRef) -> Any: ...

    def cancel_action(self, action: ActionRef) -> bool: ...


class Storage(Protocol):
    """Persistence for instance snapshots, keyed by instance id."""

    def save(self, state: WorkflowState) -> None: ...

    def load(self, instance_id: str) -> WorkflowState:
        """Raises `NotFoundError` when the instance is unknown."""
        ...

    def delete(self, instance_id: str) -> None: ...

    def exists(self, instance_id: str) -> bool: ...

    def find_by_status(self, status: WorkflowStatus) -> list[WorkflowState]: ...

    def find_scheduled_before(self, time: datetime) -> list[WorkflowState]: ...


class Clock(Protocol):
    def now(self) -> datetime: ...

    def is_past(self, time: datetime) -> bool: ...

    def add_interval(self, seconds: int) -> datetime: ...


class ExpressionEvaluator(Protocol):
    def evaluate(self, expression: str, variables: Mapping[str, Any] | None = None) -> Any: ...

    def is_valid(self, expression: str) -> bool: ...
