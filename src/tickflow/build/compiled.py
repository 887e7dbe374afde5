"""Immutable, execution-ready workflow graph."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType

from tickflow.definition.models import (
    ActionLike,
    ActionRef,
    Condition,
    Delay,
    RetryPolicy,
    Timeout,
)


@dataclass(frozen=True, slots=True)
class CompiledStep:
    id: str
    actions: tuple[ActionRef, ...]
    parallel_actions: tuple[ActionRef, ...]
    conditions: tuple[Condition, ...]
    success_step: str | None
    fail_step: str | None
    delay: Delay | None
    timeout: Timeout | None
    retry: RetryPolicy | None
    is_final: bool

    @property
    def has_parallel_actions(self) -> bool:
        return bool(self.parallel_actions)

    @property
    def all_actions(self) -> tuple[ActionRef, ...]:
        return self.actions + self.parallel_actions

    def references(self, action: ActionLike) -> bool:
        return ActionRef.of(action) in self.all_actions


@dataclass(frozen=True, slots=True)
class CompiledWorkflow:
    """A validated workflow, safe to share between threads for reading."""

    id: str
    description: str | None
    steps: Mapping[str, CompiledStep]
    first_step_id: str

    def __post_init__(self) -> None:
        if not isinstance(self.steps, MappingProxyType):
            object.__setattr__(self, "steps", MappingProxyType(dict(self.steps)))

    def get_step(self, step_id: str) -> CompiledStep | None:
        return self.steps.get(step_id)

    def all_steps(self) -> list[CompiledStep]:
        return list(self.steps.values())
