"""The workflow runtime: a tick-driven state machine over persisted instances.

Instances move between states in reaction to exactly two inputs:

- `action_received`: an action dispatched earlier has finished and its result
  is available from the executor.
- `tick`: a heartbeat from the host; resumes delayed/retrying instances whose
  schedule has passed and fails over instances whose step timed out.

No call ever blocks on action completion. Every transition produces a new
`WorkflowState` snapshot which is handed to storage as a whole.

Concurrency: the manager performs no locking. It assumes at most one
`tick`/`action_received` call touches a given instance at a time. Hosts
running several workers must serialize calls per instance themselves, e.g.
with optimistic versioning in their storage or single-owner dispatch.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Mapping
from typing import Any

from tickflow.build.compiled import CompiledStep, CompiledWorkflow
from tickflow.build.registry import WorkflowRegistry
from tickflow.contracts import Clock, Executor, ExpressionEvaluator, Storage
from tickflow.definition.models import ActionLike, ActionRef
from tickflow.errors import StepTransitionError
from tickflow.expression import SafeExpressionEvaluator
from tickflow.state.models import WorkflowState, WorkflowStatus

logger = logging.getLogger(__name__)


def _new_instance_id() -> str:
    return f"wf_{uuid.uuid4().hex}"


def is_success_result(result: Any) -> bool:
    """Interpret an action result as success or failure.

    Booleans are taken as-is, objects exposing an `is_success()` (or
    `isSuccess()`) method are asked, anything else counts as success.
    """

    if isinstance(result, bool):
        return result
    for name in ("is_success", "isSuccess"):
        method = getattr(result, name, None)
        if callable(method):
            return bool(method())
    return True


class WorkflowManager:
    def __init__(
        self,
        *,
        executor: Executor,
        storage: Storage,
        clock: Clock,
        registry: WorkflowRegistry,
        evaluator: ExpressionEvaluator | None = None,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        self._executor = executor
        self._storage = storage
        self._clock = clock
        self._registry = registry
        self._evaluator = evaluator or SafeExpressionEvaluator()
        self._id_factory = id_factory or _new_instance_id

    # ------------------------------------------------------------------
    # Public operations

    def start(self, workflow_id: str, argument: object | None = None) -> str:
        """Create an instance at the entry step and dispatch its actions."""

        workflow = self._registry.get(workflow_id)
        first_step = workflow.get_step(workflow.first_step_id)
        if first_step is None:
            raise StepTransitionError(f"First step not found in workflow '{workflow_id}'")

        now = self._clock.now()
        state = WorkflowState(
            instance_id=self._id_factory(),
            workflow_id=workflow_id,
            current_step_id=workflow.first_step_id,
            status=WorkflowStatus.RUNNING,
            created_at=now,
            updated_at=now,
        )
        self._storage.save(state)
        logger.info(
            "Workflow started",
            extra={
                "workflow_id": workflow_id,
                "instance_id": state.instance_id,
                "step_id": first_step.id,
            },
        )

        self._dispatch(first_step, argument)
        return state.instance_id

    def tick(self) -> None:
        """Advance time-based transitions.

        Two independent sweeps: resume waiting instances whose schedule has
        passed, then fail over running instances whose step timed out. The
        running set is captured before resuming so an instance resumed in
        this tick is not timeout-checked in the same tick.
        """

        running = self._storage.find_by_status(WorkflowStatus.RUNNING)
        waiting = self._storage.find_by_status(WorkflowStatus.WAITING)

        for state in waiting:
            if state.scheduled_at is not None and self._clock.is_past(state.scheduled_at):
                self._resume(state)

        for state in running:
            self._check_timeout(state)

    def action_received(self, action: ActionLike) -> None:
        """Feed a completed action's result to every instance awaiting it.

        Notifications nobody is waiting for (duplicates, strays, actions of
        cancelled instances) are ignored.
        """

        if isinstance(action, str) and not action.strip():
            # A blank id can never belong to a compiled step.
            logger.debug("Ignoring blank action notification")
            return

        ref = ActionRef.of(action)
        awaiting = self._find_awaiting(ref)
        if not awaiting:
            logger.debug("No instance awaiting action", extra={"action_id": ref.name})
            return

        for state, workflow, step in awaiting:
            result = self._executor.get_action_result(ref)
            self._process_result(state, workflow, step, ref, result)

    def cancel(self, instance_id: str) -> None:
        if not self._storage.exists(instance_id):
            return

        state = self._storage.load(instance_id)
        self._storage.save(state.with_status(WorkflowStatus.CANCELLED, now=self._clock.now()))
        logger.info(
            "Workflow cancelled",
            extra={"instance_id": instance_id, "step_id": state.current_step_id},
        )

    def get_state(self, instance_id: str) -> WorkflowState:
        return self._storage.load(instance_id)

    # ------------------------------------------------------------------
    # Internals

    def _dispatch(self, step: CompiledStep, argument: object | None = None) -> None:
        if step.has_parallel_actions:
            self._executor.schedule_parallel_actions(list(step.parallel_actions))
        for action in step.actions:
            self._executor.schedule_action(action, argument)
        logger.debug(
            "Step actions dispatched",
            extra={
                "step_id": step.id,
                "actions": [a.name for a in step.actions],
                "parallel_actions": [a.name for a in step.parallel_actions],
            },
        )

    def _resume(self, state: WorkflowState) -> None:
        workflow = self._registry.get(state.workflow_id)
        step = self._require_step(workflow, state.current_step_id)

        resumed = state.with_status(WorkflowStatus.RUNNING, now=self._clock.now())
        self._storage.save(resumed)
        logger.info(
            "Workflow resumed",
            extra={"instance_id": state.instance_id, "step_id": step.id},
        )
        self._dispatch(step)

    def _check_timeout(self, state: WorkflowState) -> None:
        workflow = self._registry.get(state.workflow_id)
        step = workflow.get_step(state.current_step_id)
        if step is None or step.timeout is None:
            return

        elapsed = (self._clock.now() - state.updated_at).total_seconds()
        if elapsed <= step.timeout.seconds:
            return

        logger.warning(
            "Step timed out",
            extra={
                "instance_id": state.instance_id,
                "step_id": step.id,
                "timeout_seconds": step.timeout.seconds,
            },
        )

        now = self._clock.now()
        if step.fail_step is None:
            self._storage.save(state.with_status(WorkflowStatus.FAILED, now=now))
            logger.info(
                "Workflow failed",
                extra={"instance_id": state.instance_id, "step_id": step.id},
            )
            return

        # Timeout failover dispatches at once; the fail step's delay only
        # applies when it is entered through result processing.
        fail_step = self._require_step(workflow, step.fail_step)
        moved = (
            state.clear_completed_actions(now=now)
            .with_next_step(fail_step.id, now=now)
            .with_status(WorkflowStatus.RUNNING, now=now)
        )
        self._storage.save(moved)
        logger.info(
            "Timed out step routed to fail step",
            extra={"instance_id": state.instance_id, "step_id": fail_step.id},
        )
        self._dispatch(fail_step)

    def _find_awaiting(
        self, action: ActionRef
    ) -> list[tuple[WorkflowState, CompiledWorkflow, CompiledStep]]:
        found: list[tuple[WorkflowState, CompiledWorkflow, CompiledStep]] = []
        for state in self._storage.find_by_status(WorkflowStatus.RUNNING):
            workflow = self._registry.get(state.workflow_id)
            step = workflow.get_step(state.current_step_id)
            if step is not None and step.references(action):
                found.append((state, workflow, step))
        return found

    def _process_result(
        self,
        state: WorkflowState,
        workflow: CompiledWorkflow,
        step: CompiledStep,
        action: ActionRef,
        result: Any,
    ) -> None:
        now = self._clock.now()
        log_extra = {"instance_id": state.instance_id, "step_id": step.id}

        updated = state.add_history_entry(step.id, action.name, result, now=now)

        if step.has_parallel_actions:
            updated = updated.mark_action_completed(action.name, now=now)
            completed = set(updated.completed_actions)
            pending = [a.name for a in step.parallel_actions if a.name not in completed]
            if pending:
                self._storage.save(updated)
                logger.debug(
                    "Waiting for parallel actions", extra={**log_extra, "pending": pending}
                )
                return
            updated = updated.clear_completed_actions(now=now)

        if step.is_final:
            self._finish(updated, WorkflowStatus.COMPLETED)
            return

        success = is_success_result(result)

        if not success and step.retry is not None:
            attempt = updated.get_retry_attempt(step.id)
            if attempt < step.retry.max_attempts:
                updated = updated.increment_retry_attempt(step.id, now=now)
                delay = step.retry.calculate_delay(attempt + 1)
                logger.warning(
                    "Action failed, retrying step",
                    extra={**log_extra, "attempt": attempt + 1, "delay_seconds": delay},
                )
                if delay > 0:
                    self._storage.save(
                        updated.with_schedule(self._clock.add_interval(delay), now=now)
                    )
                    return
                self._storage.save(updated)
                self._dispatch(step)
                return

        updated = updated.reset_retry_attempt(step.id, now=now)

        next_step_id: str | None = None
        if success and step.conditions:
            next_step_id = self._evaluate_conditions(step, result, updated.context)
        if next_step_id is None:
            next_step_id = step.success_step if success else step.fail_step

        if next_step_id is None:
            self._finish(updated, WorkflowStatus.COMPLETED if success else WorkflowStatus.FAILED)
            return

        self._enter_step(workflow, updated, next_step_id)

    def _enter_step(self, workflow: CompiledWorkflow, state: WorkflowState, step_id: str) -> None:
        next_step = self._require_step(workflow, step_id)
        now = self._clock.now()
        moved = state.with_next_step(step_id, now=now)

        if next_step.delay is not None:
            scheduled_at = self._clock.add_interval(next_step.delay.seconds)
            self._storage.save(moved.with_schedule(scheduled_at, now=now))
            logger.info(
                "Step entry delayed",
                extra={
                    "instance_id": state.instance_id,
                    "step_id": step_id,
                    "scheduled_at": scheduled_at.isoformat(),
                },
            )
            return

        self._storage.save(moved.with_status(WorkflowStatus.RUNNING, now=now))
        logger.debug(
            "Step entered",
            extra={"instance_id": state.instance_id, "step_id": step_id},
        )
        self._dispatch(next_step)

    def _finish(self, state: WorkflowState, status: WorkflowStatus) -> None:
        self._storage.save(state.with_status(status, now=self._clock.now()))
        logger.info(
            f"Workflow {status.value}",
            extra={"instance_id": state.instance_id, "step_id": state.current_step_id},
        )

    def _evaluate_conditions(
        self, step: CompiledStep, result: Any, context: Mapping[str, Any]
    ) -> str | None:
        variables = {"result": result, "context": dict(context)}
        for condition in step.conditions:
            try:
                value = self._evaluator.evaluate(condition.expression, variables)
            except Exception as e:
                logger.debug(
                    "Condition evaluation failed, treating as no match",
                    extra={"step_id": step.id, "expression": condition.expression, "error": str(e)},
                )
                continue
            if value is True:
                return condition.target_step_id
        return None

    @staticmethod
    def _require_step(workflow: CompiledWorkflow, step_id: str) -> CompiledStep:
        step = workflow.get_step(step_id)
        if step is None:
            raise StepTransitionError(
                f"Step '{step_id}' not found in workflow '{workflow.id}'"
            )
        return step
