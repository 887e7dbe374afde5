"""CLI entrypoint: check and export workflow definition documents."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from tickflow import __version__
from tickflow.build.compiled import CompiledWorkflow
from tickflow.core.config import EngineSettings
from tickflow.errors import DefinitionError
from tickflow.loader import WorkflowLoader
from tickflow.serialization.serializer import WorkflowSerializer

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tickflow",
        description="Validate and export tickflow workflow definitions",
    )
    parser.add_argument("--version", action="version", version=f"tickflow {__version__}")

    subparsers = parser.add_subparsers(dest="command", required=True)

    validate = subparsers.add_parser(
        "validate", help="Validate a definition file or every definition in a directory"
    )
    validate.add_argument(
        "path",
        nargs="?",
        type=Path,
        default=None,
        help="File or directory (defaults to TICKFLOW_WORKFLOWS_PATH)",
    )

    export = subparsers.add_parser(
        "export", help="Print the compiled interchange JSON of one or more definitions"
    )
    export.add_argument(
        "path",
        nargs="?",
        type=Path,
        default=None,
        help="File or directory (defaults to TICKFLOW_WORKFLOWS_PATH)",
    )

    return parser


def _load(path: Path, settings: EngineSettings) -> list[CompiledWorkflow]:
    if path.is_file():
        loader = WorkflowLoader(path.parent, glob=settings.workflow_glob)
        return [loader.load_one(path)]
    return WorkflowLoader(path, glob=settings.workflow_glob).load_all()


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = EngineSettings()
    except ValidationError as e:
        # Logging isn't configured yet; keep it simple and actionable.
        print("Configuration error (check your environment / .env):", file=sys.stderr)
        print(e, file=sys.stderr)
        return 2

    settings.setup_logging()
    path: Path = args.path or settings.workflows_path

    try:
        workflows = _load(path, settings)

        if args.command == "validate":
            for workflow in workflows:
                print(f"OK {workflow.id} ({len(workflow.steps)} steps)")
            return 0

        if args.command == "export":
            serializer = WorkflowSerializer()
            if path.is_file():
                print(serializer.to_json(workflows[0]))
            else:
                payload = [serializer.serialize(w) for w in workflows]
                print(json.dumps(payload, indent=2, ensure_ascii=False))
            return 0

        logger.error("Unknown command", extra={"command": args.command})
        return 2

    except DefinitionError as e:
        logger.warning(str(e), extra={"path": str(path)})
        print(f"Invalid workflow definition: {e}", file=sys.stderr)
        return 3

    except Exception:
        logger.exception("Command failed")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
