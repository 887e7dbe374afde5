#!/usr/bin/env python3
"""Embedding example: drive an order workflow in-process.

This demonstrates wiring the engine by hand:

* load settings from `.env` and configure logging
* load and register definitions from `examples/workflows/`
* run actions with a toy in-process executor
* feed results back with `action_received` and advance time with `tick`

Run from the repository root:

    python examples/basic_usage.py --amount 1500
"""

from __future__ import annotations

import argparse
import time
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

from tickflow import ActionRef, WorkflowManager, WorkflowRegistry
from tickflow.clock import SystemClock
from tickflow.core.config import EngineSettings
from tickflow.loader import WorkflowLoader
from tickflow.state import InMemoryStorage

WORKFLOWS = Path(__file__).parent / "workflows"


class InlineExecutor:
    """Runs each action immediately and queues its name as completed."""

    def __init__(self, handlers: dict[str, Callable[[Any], Any]]) -> None:
        self._handlers = handlers
        self._results: dict[str, Any] = {}
        self.finished: list[str] = []

    def schedule_action(self, action: ActionRef, argument: object | None = None) -> None:
        handler = self._handlers.get(action.name, lambda _arg: True)
        self._results[action.name] = handler(argument)
        self.finished.append(action.name)

    def schedule_parallel_actions(self, actions: Sequence[ActionRef]) -> None:
        for action in actions:
            self.schedule_action(action)

    def schedule_delayed_action(
        self, action: ActionRef, delay_seconds: int, argument: object | None = None
    ) -> None:
        self.schedule_action(action, argument)

    def is_action_completed(self, action: ActionRef) -> bool:
        return action.name in self._results

    def get_action_result(self, action: ActionRef) -> Any:
        return self._results.get(action.name)

    def cancel_action(self, action: ActionRef) -> bool:
        return self._results.pop(action.name, None) is not None


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the sample order workflow in-process.")
    parser.add_argument("--amount", type=int, default=250, help="Order total")
    parser.add_argument("--max-ticks", type=int, default=30, help="Give up after this many ticks")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)

    settings = EngineSettings()
    settings.setup_logging()

    registry = WorkflowRegistry()
    WorkflowLoader(WORKFLOWS, glob=settings.workflow_glob).register_all(registry)

    order = {"id": 1001, "total": args.amount}
    executor = InlineExecutor(
        {
            "Order.Validate": lambda _arg: {"ok": True, "total": order["total"]},
            "Inventory.Reserve": lambda _arg: True,
            "Payment.Capture": lambda _arg: True,
        }
    )
    storage = InMemoryStorage()
    manager = WorkflowManager(
        executor=executor, storage=storage, clock=SystemClock(), registry=registry
    )

    instance_id = manager.start("OrderProcessing", order)

    for _ in range(args.max_ticks):
        while executor.finished:
            manager.action_received(executor.finished.pop(0))
        state = manager.get_state(instance_id)
        if state.status.is_terminal:
            break
        time.sleep(settings.tick_interval_seconds)
        manager.tick()

    state = manager.get_state(instance_id)
    print(f"Instance {instance_id}: {state.status.value} at step '{state.current_step_id}'")
    for entry in state.history:
        print(f"  {entry.step_id:<10} {entry.action_id:<20} {entry.result}")
    return 0 if state.status.value == "completed" else 1


if __name__ == "__main__":
    raise SystemExit(main())
