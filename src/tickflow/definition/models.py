"""Authoring-time workflow structure.

Definitions are plain, mutable dataclasses. They only become trusted once the
validator has accepted them and the compiler has frozen them into a
`CompiledWorkflow`.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum


@dataclass(frozen=True, slots=True)
class ActionRef:
    """Identifier of an action dispatched to an executor.

    Actions may be authored as plain strings or as enum members. Both collapse
    to a canonical `name`; `origin` only remembers where a symbolic constant
    came from and never takes part in equality.
    """

    name: str
    origin: str | None = field(default=None, compare=False)

    def __str__(self) -> str:
        return self.name

    @staticmethod
    def of(value: ActionLike) -> ActionRef:
        if isinstance(value, ActionRef):
            return value
        if isinstance(value, Enum):
            return ActionRef(name=value.name, origin=type(value).__qualname__)
        if isinstance(value, str):
            if not value.strip():
                raise ValueError("Action name must be a non-empty string")
            return ActionRef(name=value)
        raise TypeError(f"Unsupported action identifier: {value!r}")


ActionLike = ActionRef | Enum | str


def action_refs(values: Iterable[ActionLike]) -> tuple[ActionRef, ...]:
    return tuple(ActionRef.of(v) for v in values)


class BackoffKind(str, Enum):
    FIXED = "fixed"
    LINEAR = "linear"
    EXPONENTIAL = "exponential"


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    max_attempts: int
    delay_seconds: int = 0
    backoff: BackoffKind = BackoffKind.FIXED

    def calculate_delay(self, attempt: int) -> int:
        """Delay in seconds before retry number `attempt` (1-based)."""

        if self.backoff is BackoffKind.LINEAR:
            return self.delay_seconds * attempt
        if self.backoff is BackoffKind.EXPONENTIAL:
            return self.delay_seconds * (2 ** (attempt - 1))
        return self.delay_seconds


@dataclass(frozen=True, slots=True)
class Delay:
    seconds: int


@dataclass(frozen=True, slots=True)
class Timeout:
    seconds: int


@dataclass(frozen=True, slots=True)
class Condition:
    """Route to `target_step_id` when `expression` evaluates to True."""

    expression: str
    target_step_id: str
    description: str | None = None


@dataclass(slots=True)
class StepDefinition:
    id: str
    actions: list[ActionRef] = field(default_factory=list)
    parallel_actions: list[ActionRef] = field(default_factory=list)
    conditions: list[Condition] = field(default_factory=list)
    success_step: str | None = None
    fail_step: str | None = None
    delay: Delay | None = None
    timeout: Timeout | None = None
    retry: RetryPolicy | None = None
    is_final: bool = False

    def __post_init__(self) -> None:
        self.actions = list(action_refs(self.actions))
        self.parallel_actions = list(action_refs(self.parallel_actions))
        self.conditions = list(self.conditions)

    def when(
        self, expression: str, target_step_id: str, description: str | None = None
    ) -> StepDefinition:
        self.conditions.append(Condition(expression, target_step_id, description))
        return self


@dataclass(slots=True)
class WorkflowDefinition:
    """A workflow as authored. The first step is the entry step."""

    id: str
    steps: list[StepDefinition] = field(default_factory=list)
    description: str | None = None

    def add_step(self, step: StepDefinition) -> WorkflowDefinition:
        self.steps.append(step)
        return self
