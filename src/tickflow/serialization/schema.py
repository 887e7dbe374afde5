"""Interchange document for compiled workflows.

The JSON shape mirrors `WorkflowSerializer.serialize`:

    {
      "id": "OrderProcessing",
      "description": "...",
      "first_step": "validate",
      "steps": [
        {
          "id": "validate",
          "actions": ["Order.Validate"],
          "parallel_actions": [],
          "conditions": [{"expression": "...", "target_step": "...", "description": null}],
          "transitions": {"success": "charge", "fail": "failed"},
          "delay": null,
          "timeout": 30,
          "retry": {"max_attempts": 3, "delay_seconds": 5, "backoff": "exponential"},
          "is_final": false
        }
      ]
    }
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt, StrictStr, ValidationError

from tickflow.definition.models import BackoffKind
from tickflow.errors import DefinitionError


class ConditionDocument(BaseModel):
    model_config = ConfigDict(extra="ignore")

    expression: StrictStr
    target_step: StrictStr
    description: StrictStr | None = None


class TransitionsDocument(BaseModel):
    model_config = ConfigDict(extra="ignore")

    success: StrictStr | None = None
    fail: StrictStr | None = None


class RetryDocument(BaseModel):
    model_config = ConfigDict(extra="ignore")

    max_attempts: StrictInt
    delay_seconds: StrictInt = 0
    backoff: BackoffKind = BackoffKind.FIXED


class StepDocument(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: StrictStr = Field(min_length=1)
    actions: list[StrictStr] = Field(default_factory=list)
    parallel_actions: list[StrictStr] = Field(default_factory=list)
    conditions: list[ConditionDocument] = Field(default_factory=list)
    transitions: TransitionsDocument = Field(default_factory=TransitionsDocument)
    delay: StrictInt | None = None
    timeout: StrictInt | None = None
    retry: RetryDocument | None = None
    is_final: StrictBool = False


class WorkflowDocument(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: StrictStr = Field(min_length=1)
    description: StrictStr | None = None
    first_step: StrictStr | None = None
    steps: list[StepDocument] = Field(min_length=1)


def _definition_error(e: ValidationError) -> DefinitionError:
    problems = "; ".join(
        f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}" for err in e.errors()
    )
    return DefinitionError(f"Invalid workflow document: {problems}")


def parse_document(data: Mapping[str, Any]) -> WorkflowDocument:
    try:
        return WorkflowDocument.model_validate(data)
    except ValidationError as e:
        raise _definition_error(e) from e


def parse_document_json(text: str | bytes) -> WorkflowDocument:
    try:
        return WorkflowDocument.model_validate_json(text)
    except ValidationError as e:
        raise _definition_error(e) from e
