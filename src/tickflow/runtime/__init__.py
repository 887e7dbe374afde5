"""Runtime state machine driving workflow instances."""

from tickflow.runtime.manager import WorkflowManager, is_success_result

__all__ = ["WorkflowManager", "is_success_result"]
