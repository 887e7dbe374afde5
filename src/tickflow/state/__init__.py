"""Per-instance execution state."""

from tickflow.state.memory import InMemoryStorage
from tickflow.state.models import HistoryEntry, WorkflowState, WorkflowStatus

__all__ = ["HistoryEntry", "InMemoryStorage", "WorkflowState", "WorkflowStatus"]
