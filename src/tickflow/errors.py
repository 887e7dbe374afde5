"""Exception taxonomy for the workflow engine.

Every error raised on purpose by tickflow derives from `TickflowError`. The
concrete classes also inherit a matching builtin so callers that only know
about `ValueError` / `LookupError` keep working.
"""

from __future__ import annotations


class TickflowError(Exception):
    pass


class DefinitionError(TickflowError, ValueError):
    """A workflow definition (or interchange document) is structurally invalid.

    Raised only at validation, compilation or deserialization time.
    """


class NotFoundError(TickflowError, LookupError):
    """Unknown workflow id in the registry or unknown instance id in storage."""


class StepTransitionError(TickflowError, RuntimeError):
    """A runtime reference to a step id that is absent from the compiled graph.

    Under a validated definition this indicates a registry inconsistency and
    should be treated as fatal.
    """


class ExpressionError(TickflowError, ValueError):
    """A condition expression could not be parsed or evaluated."""
