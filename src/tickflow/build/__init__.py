"""Validation, compilation and registration of workflow graphs."""

from tickflow.build.compiled import CompiledStep, CompiledWorkflow
from tickflow.build.compiler import WorkflowCompiler, compile_workflow
from tickflow.build.registry import WorkflowRegistry
from tickflow.build.validator import WorkflowValidator

__all__ = [
    "CompiledStep",
    "CompiledWorkflow",
    "WorkflowCompiler",
    "WorkflowRegistry",
    "WorkflowValidator",
    "compile_workflow",
]
