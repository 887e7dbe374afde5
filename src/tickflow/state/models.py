"""Persisted per-instance execution record.

`WorkflowState` is a frozen value. Every operation returns a new snapshot with
`updated_at` set to the supplied time; nothing is ever mutated in place, so a
snapshot handed to storage can't change underneath it.

Engine bookkeeping (retry counters and the fan-in completed set) lives in
dedicated fields rather than in the user-visible `context` mapping.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any


class WorkflowStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    WAITING = "waiting"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL


_TERMINAL = frozenset({WorkflowStatus.COMPLETED, WorkflowStatus.FAILED, WorkflowStatus.CANCELLED})


@dataclass(frozen=True, slots=True)
class HistoryEntry:
    step_id: str
    action_id: str
    result: Any
    timestamp: datetime

    def to_json(self) -> dict[str, object]:
        return {
            "step_id": self.step_id,
            "action_id": self.action_id,
            "result": self.result,
            "timestamp": self.timestamp.isoformat(),
        }

    @staticmethod
    def from_json(obj: Mapping[str, Any]) -> HistoryEntry:
        return HistoryEntry(
            step_id=str(obj["step_id"]),
            action_id=str(obj["action_id"]),
            result=obj.get("result"),
            timestamp=datetime.fromisoformat(str(obj["timestamp"])),
        )


def _frozen(mapping: Mapping[str, Any]) -> Mapping[str, Any]:
    if isinstance(mapping, MappingProxyType):
        return mapping
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True, slots=True)
class WorkflowState:
    instance_id: str
    workflow_id: str
    current_step_id: str
    status: WorkflowStatus
    created_at: datetime
    updated_at: datetime
    context: Mapping[str, Any] = field(default_factory=dict)
    scheduled_at: datetime | None = None
    history: tuple[HistoryEntry, ...] = ()
    retry_attempts: Mapping[str, int] = field(default_factory=dict)
    completed_actions: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "context", _frozen(self.context))
        object.__setattr__(self, "retry_attempts", _frozen(self.retry_attempts))
        object.__setattr__(self, "history", tuple(self.history))
        object.__setattr__(self, "completed_actions", tuple(self.completed_actions))

    @property
    def is_delayed(self) -> bool:
        return self.scheduled_at is not None and self.status is WorkflowStatus.WAITING

    def with_next_step(self, step_id: str, *, now: datetime) -> WorkflowState:
        return replace(self, current_step_id=step_id, updated_at=now)

    def with_status(self, status: WorkflowStatus, *, now: datetime) -> WorkflowState:
        # Only a waiting instance carries a schedule.
        scheduled_at = self.scheduled_at if status is WorkflowStatus.WAITING else None
        return replace(self, status=status, scheduled_at=scheduled_at, updated_at=now)

    def with_schedule(self, scheduled_at: datetime, *, now: datetime) -> WorkflowState:
        return replace(
            self, status=WorkflowStatus.WAITING, scheduled_at=scheduled_at, updated_at=now
        )

    def with_context(self, context: Mapping[str, Any], *, now: datetime) -> WorkflowState:
        return replace(self, context=context, updated_at=now)

    def add_history_entry(
        self, step_id: str, action_id: str, result: Any, *, now: datetime
    ) -> WorkflowState:
        entry = HistoryEntry(step_id=step_id, action_id=action_id, result=result, timestamp=now)
        return replace(self, history=(*self.history, entry), updated_at=now)

    def get_retry_attempt(self, step_id: str) -> int:
        return self.retry_attempts.get(step_id, 0)

    def increment_retry_attempt(self, step_id: str, *, now: datetime) -> WorkflowState:
        attempts = dict(self.retry_attempts)
        attempts[step_id] = self.get_retry_attempt(step_id) + 1
        return replace(self, retry_attempts=attempts, updated_at=now)

    def reset_retry_attempt(self, step_id: str, *, now: datetime) -> WorkflowState:
        if step_id not in self.retry_attempts:
            return replace(self, updated_at=now)
        attempts = {k: v for k, v in self.retry_attempts.items() if k != step_id}
        return replace(self, retry_attempts=attempts, updated_at=now)

    def mark_action_completed(self, action_id: str, *, now: datetime) -> WorkflowState:
        if action_id in self.completed_actions:
            return replace(self, updated_at=now)
        return replace(
            self, completed_actions=(*self.completed_actions, action_id), updated_at=now
        )

    def clear_completed_actions(self, *, now: datetime) -> WorkflowState:
        return replace(self, completed_actions=(), updated_at=now)

    def to_json(self) -> dict[str, object]:
        return {
            "instance_id": self.instance_id,
            "workflow_id": self.workflow_id,
            "current_step_id": self.current_step_id,
            "status": self.status.value,
            "context": dict(self.context),
            "scheduled_at": self.scheduled_at.isoformat() if self.scheduled_at else None,
            "history": [entry.to_json() for entry in self.history],
            "retry_attempts": dict(self.retry_attempts),
            "completed_actions": list(self.completed_actions),
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @staticmethod
    def from_json(obj: Mapping[str, Any]) -> WorkflowState:
        scheduled_raw = obj.get("scheduled_at")
        context_raw = obj.get("context")
        attempts_raw = obj.get("retry_attempts")
        return WorkflowState(
            instance_id=str(obj["instance_id"]),
            workflow_id=str(obj["workflow_id"]),
            current_step_id=str(obj["current_step_id"]),
            status=WorkflowStatus(obj["status"]),
            context=context_raw if isinstance(context_raw, dict) else {},
            scheduled_at=(
                datetime.fromisoformat(scheduled_raw) if isinstance(scheduled_raw, str) else None
            ),
            history=tuple(HistoryEntry.from_json(e) for e in obj.get("history") or ()),
            retry_attempts=(
                {str(k): int(v) for k, v in attempts_raw.items()}
                if isinstance(attempts_raw, dict)
                else {}
            ),
            completed_actions=tuple(str(a) for a in obj.get("completed_actions") or ()),
            created_at=datetime.fromisoformat(str(obj["created_at"])),
            updated_at=datetime.fromisoformat(str(obj["updated_at"])),
        )
