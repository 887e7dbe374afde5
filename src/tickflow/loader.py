"""Load workflow definitions from a directory of JSON documents."""

from __future__ import annotations

import logging
from pathlib import Path

from tickflow.build.compiled import CompiledWorkflow
from tickflow.build.compiler import WorkflowCompiler
from tickflow.build.registry import WorkflowRegistry
from tickflow.build.validator import WorkflowValidator
from tickflow.errors import DefinitionError
from tickflow.serialization.deserializer import WorkflowDeserializer

logger = logging.getLogger(__name__)


class WorkflowLoader:
    def __init__(
        self,
        path: Path,
        *,
        compiler: WorkflowCompiler | None = None,
        validator: WorkflowValidator | None = None,
        glob: str = "*.json",
    ) -> None:
        self._path = path
        self._compiler = compiler or WorkflowCompiler()
        self._validator = validator or WorkflowValidator()
        self._glob = glob
        self._deserializer = WorkflowDeserializer()

    def discover(self) -> list[Path]:
        """Return definition files in a stable (filename) order."""

        if not self._path.is_dir():
            raise DefinitionError(f"Workflows directory '{self._path}' does not exist")
        return sorted((p for p in self._path.glob(self._glob) if p.is_file()), key=lambda p: p.name)

    def load_all(self) -> list[CompiledWorkflow]:
        return [self.load_one(path) for path in self.discover()]

    def load_one(self, path: Path) -> CompiledWorkflow:
        if not path.is_file():
            raise DefinitionError(f"Workflow file '{path}' does not exist")

        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise DefinitionError(f"Workflow file '{path}' could not be read: {e}") from e

        try:
            definition = self._deserializer.from_json(text)
            self._validator.validate(definition)
            compiled = self._compiler.build(definition)
        except DefinitionError as e:
            raise DefinitionError(f"{path.name}: {e}") from e

        logger.debug("Workflow loaded", extra={"path": str(path), "workflow_id": compiled.id})
        return compiled

    def register_all(self, registry: WorkflowRegistry) -> list[CompiledWorkflow]:
        workflows = self.load_all()
        for workflow in workflows:
            registry.register(workflow)
        logger.info(
            "Workflows loaded",
            extra={"path": str(self._path), "count": len(workflows)},
        )
        return workflows
