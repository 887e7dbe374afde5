"""Test configuration and fixtures."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from tickflow.build.compiler import compile_workflow
from tickflow.build.registry import WorkflowRegistry
from tickflow.definition.models import ActionLike, ActionRef, WorkflowDefinition
from tickflow.runtime.manager import WorkflowManager
from tickflow.state.memory import InMemoryStorage


class FakeClock:
    """Deterministic clock; time only moves when a test says so."""

    def __init__(self, start: datetime | None = None) -> None:
        self._now = start or datetime(2025, 1, 1, tzinfo=UTC)

    def now(self) -> datetime:
        return self._now

    def is_past(self, time: datetime) -> bool:
        return self._now >= time

    def add_interval(self, seconds: int) -> datetime:
        return self._now + timedelta(seconds=seconds)

    def advance(self, seconds: float) -> None:
        self._now = self._now + timedelta(seconds=seconds)


class FakeExecutor:
    """Records dispatched actions; tests complete them by hand."""

    def __init__(self) -> None:
        self.scheduled: list[tuple[ActionRef, object | None]] = []
        self.results: dict[str, Any] = {}
        self.completed: dict[str, bool] = {}
        self.cancelled: list[str] = []

    def schedule_action(self, action: ActionRef, argument: object | None = None) -> None:
        self.scheduled.append((action, argument))
        self.completed[action.name] = False

    def schedule_parallel_actions(self, actions: Sequence[ActionRef]) -> None:
        for action in actions:
            self.schedule_action(action)

    def schedule_delayed_action(
        self, action: ActionRef, delay_seconds: int, argument: object | None = None
    ) -> None:
        self.schedule_action(action, argument)

    def is_action_completed(self, action: ActionRef) -> bool:
        return self.completed.get(action.name, False)

    def get_action_result(self, action: ActionRef) -> Any:
        return self.results.get(action.name)

    def cancel_action(self, action: ActionRef) -> bool:
        self.cancelled.append(action.name)
        self.results.pop(action.name, None)
        self.completed.pop(action.name, None)
        return True

    def complete(self, action: ActionLike, result: Any) -> None:
        name = ActionRef.of(action).name
        self.results[name] = result
        self.completed[name] = True

    @property
    def scheduled_names(self) -> list[str]:
        return [action.name for action, _ in self.scheduled]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def registry() -> WorkflowRegistry:
    return WorkflowRegistry()


@pytest.fixture
def manager(
    executor: FakeExecutor,
    storage: InMemoryStorage,
    clock: FakeClock,
    registry: WorkflowRegistry,
) -> WorkflowManager:
    return WorkflowManager(executor=executor, storage=storage, clock=clock, registry=registry)


@pytest.fixture
def register(registry: WorkflowRegistry):
    """Validate, compile and register a definition in one go."""

    def _register(definition: WorkflowDefinition) -> None:
        registry.register(compile_workflow(definition))

    return _register
