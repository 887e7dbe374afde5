"""Authoring-time workflow definitions."""

from tickflow.definition.models import (
    ActionLike,
    ActionRef,
    BackoffKind,
    Condition,
    Delay,
    RetryPolicy,
    StepDefinition,
    Timeout,
    WorkflowDefinition,
    action_refs,
)

__all__ = [
    "ActionLike",
    "ActionRef",
    "BackoffKind",
    "Condition",
    "Delay",
    "RetryPolicy",
    "StepDefinition",
    "Timeout",
    "WorkflowDefinition",
    "action_refs",
]
