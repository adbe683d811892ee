"""
Small DAG runner used to build reports in stages.

Each step is a function taking the accumulated context (initial inputs plus
the outputs of every step it transitively depends on) and returning a dict
that is merged into that context for its dependents. A failed step marks
its dependents as skipped; the remaining branches still run.
"""

from __future__ import annotations

import logging
import time
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

logger = logging.getLogger(__name__)

StepFn = Callable[[dict[str, Any]], "dict[str, Any] | None"]


class StepStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


class PipelineError(RuntimeError):
    """Raised by ``DAG.raise_for_status`` when a step failed."""


@dataclass
class Step:
    name: str
    fn: StepFn
    depends_on: list[str] = field(default_factory=list)
    status: StepStatus = StepStatus.PENDING
    output: dict[str, Any] = field(default_factory=dict)
    error: str | None = None
    duration_ms: float = 0.0


class DAG:
    """
    Usage:
        dag = DAG("patient_report")
        dag.add_step("extract", extract)
        dag.add_step("bucket_daily", bucket_daily, depends_on=["extract"])
        dag.run({"events": events})
        dag.raise_for_status()
        days = dag.output_of("bucket_daily")["days"]
    """

    def __init__(self, name: str):
        self.name = name
        self.steps: dict[str, Step] = {}

    def add_step(self, name: str, fn: StepFn, depends_on: list[str] | None = None) -> DAG:
        if name in self.steps:
            raise ValueError(f"Duplicate step name: {name}")
        self.steps[name] = Step(name=name, fn=fn, depends_on=list(depends_on or []))
        return self

    def execution_order(self) -> list[str]:
        """Kahn's algorithm; insertion order breaks ties."""
        in_degree = {name: 0 for name in self.steps}
        dependents: dict[str, list[str]] = {name: [] for name in self.steps}
        for step in self.steps.values():
            for dep in step.depends_on:
                if dep not in self.steps:
                    raise ValueError(f"Step '{step.name}' depends on unknown step '{dep}'")
                in_degree[step.name] += 1
                dependents[dep].append(step.name)

        ready = deque(name for name, degree in in_degree.items() if degree == 0)
        order: list[str] = []
        while ready:
            current = ready.popleft()
            order.append(current)
            for name in dependents[current]:
                in_degree[name] -= 1
                if in_degree[name] == 0:
                    ready.append(name)

        if len(order) != len(self.steps):
            raise ValueError("Cycle detected in DAG")
        return order

    def _context_for(self, step: Step, inputs: dict[str, Any]) -> dict[str, Any]:
        context = dict(inputs)
        seen: set[str] = set()
        pending = list(step.depends_on)
        upstream: list[str] = []
        while pending:
            name = pending.pop()
            if name in seen:
                continue
            seen.add(name)
            upstream.append(name)
            pending.extend(self.steps[name].depends_on)
        # Merge furthest ancestors first so nearer steps win on key clashes.
        for name in reversed(upstream):
            context.update(self.steps[name].output)
        return context

    def run(self, inputs: dict[str, Any] | None = None) -> dict[str, Any]:
        order = self.execution_order()
        inputs = dict(inputs or {})
        summary: dict[str, Any] = {"pipeline": self.name, "steps": {}}

        for name in order:
            step = self.steps[name]
            if any(self.steps[dep].status != StepStatus.SUCCESS for dep in step.depends_on):
                step.status = StepStatus.SKIPPED
                logger.warning("Skipping step '%s' in '%s': upstream did not succeed", name, self.name)
                summary["steps"][name] = {"status": step.status.value}
                continue

            step.status = StepStatus.RUNNING
            start = time.perf_counter()
            try:
                step.output = step.fn(self._context_for(step, inputs)) or {}
                step.status = StepStatus.SUCCESS
            except Exception as exc:
                step.status = StepStatus.FAILED
                step.error = f"{type(exc).__name__}: {exc}"
                logger.exception("Step '%s' in '%s' failed", name, self.name)
            finally:
                step.duration_ms = (time.perf_counter() - start) * 1000

            summary["steps"][name] = {
                "status": step.status.value,
                "duration_ms": round(step.duration_ms, 2),
                "error": step.error,
            }

        ok = all(s.status == StepStatus.SUCCESS for s in self.steps.values())
        summary["status"] = "completed" if ok else "failed"
        logger.debug("Pipeline '%s' finished: %s", self.name, summary["status"])
        return summary

    def output_of(self, name: str) -> dict[str, Any]:
        return self.steps[name].output

    def raise_for_status(self) -> None:
        failed = [s for s in self.steps.values() if s.status == StepStatus.FAILED]
        if failed:
            raise PipelineError(
                f"Pipeline '{self.name}' failed at "
                + ", ".join(f"{s.name} ({s.error})" for s in failed)
            )
