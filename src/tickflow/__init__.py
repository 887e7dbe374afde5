"""tickflow: an embeddable, tick-driven workflow engine.

Workflows are authored as graphs of steps, validated and compiled into an
immutable graph, then driven by `WorkflowManager` from host heartbeats and
action-completion notifications.
"""

__version__ = "0.1.0"

from tickflow.build import (
    CompiledStep,
    CompiledWorkflow,
    WorkflowCompiler,
    WorkflowRegistry,
    WorkflowValidator,
    compile_workflow,
)
from tickflow.definition import (
    ActionRef,
    BackoffKind,
    Condition,
    Delay,
    RetryPolicy,
    StepDefinition,
    Timeout,
    WorkflowDefinition,
)
from tickflow.errors import (
    DefinitionError,
    ExpressionError,
    NotFoundError,
    StepTransitionError,
    TickflowError,
)
from tickflow.runtime import WorkflowManager
from tickflow.state import InMemoryStorage, WorkflowState, WorkflowStatus

__all__ = [
    "__version__",
    "ActionRef",
    "BackoffKind",
    "CompiledStep",
    "CompiledWorkflow",
    "Condition",
    "DefinitionError",
    "Delay",
    "ExpressionError",
    "InMemoryStorage",
    "NotFoundError",
    "RetryPolicy",
    "StepDefinition",
    "StepTransitionError",
    "TickflowError",
    "Timeout",
    "WorkflowCompiler",
    "WorkflowDefinition",
    "WorkflowManager",
    "WorkflowRegistry",
    "WorkflowState",
    "WorkflowStatus",
    "WorkflowValidator",
    "compile_workflow",
]
