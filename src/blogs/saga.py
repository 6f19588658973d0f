"""Minimal in-process saga runner for multi-store operations.

A saga is an ordered list of steps, each an action with an optional
compensating action. When step ``k`` fails, the compensations of steps
``1..k-1`` run in reverse order and :class:`SagaFailed` is raised with the
original cause. Compensation failures are logged for manual reconciliation and
never replace the original cause.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Tuple

from src.core.logger import get_logger
from src.core.metrics import record_saga_compensation


logger = get_logger("roomblog.saga")


@dataclass(frozen=True)
class SagaStep:
    name: str
    action: Callable[[], Any]
    compensation: Optional[Callable[[], Any]] = None


class SagaFailed(Exception):
    def __init__(
        self,
        *,
        saga: str,
        step: str,
        cause: BaseException,
        compensation_errors: Optional[List[Tuple[str, BaseException]]] = None,
    ) -> None:
        super().__init__(f"saga {saga} failed at step {step}: {cause}")
        self.saga = saga
        self.step = step
        self.cause = cause
        self.compensation_errors = list(compensation_errors or [])

    @property
    def fully_compensated(self) -> bool:
        return not self.compensation_errors


class Saga:
    def __init__(self, name: str, **log_context: Any) -> None:
        self.name = name
        self._log_context = log_context
        self._steps: List[SagaStep] = []

    def step(
        self,
        name: str,
        action: Callable[[], Any],
        compensation: Optional[Callable[[], Any]] = None,
    ) -> "Saga":
        self._steps.append(SagaStep(name=name, action=action, compensation=compensation))
        return self

    def run(self) -> List[Any]:
        """Execute every step; return the action results in step order."""

        results: List[Any] = []
        completed: List[SagaStep] = []
        for step in self._steps:
            try:
                results.append(step.action())
            except Exception as exc:
                logger.warning(
                    "saga_step_failed",
                    saga=self.name,
                    step=step.name,
                    error=str(exc),
                    error_type=exc.__class__.__name__,
                    **self._log_context,
                )
                errors = self._compensate(completed, failed_step=step.name)
                raise SagaFailed(
                    saga=self.name,
                    step=step.name,
                    cause=exc,
                    compensation_errors=errors,
                ) from exc
            completed.append(step)
        return results

    def _compensate(self, completed: List[SagaStep], *, failed_step: str) -> List[Tuple[str, BaseException]]:
        errors: List[Tuple[str, BaseException]] = []
        for step in reversed(completed):
            if step.compensation is None:
                continue
            try:
                step.compensation()
            except Exception as exc:
                errors.append((step.name, exc))
                record_saga_compensation(saga=self.name, step=step.name, outcome="failed")
                logger.error(
                    "saga_compensation_failed",
                    saga=self.name,
                    step=step.name,
                    failed_step=failed_step,
                    error=str(exc),
                    error_type=exc.__class__.__name__,
                    reconciliation_required=True,
                    **self._log_context,
                )
                continue
            record_saga_compensation(saga=self.name, step=step.name, outcome="succeeded")
            logger.info(
                "saga_compensation_succeeded",
                saga=self.name,
                step=step.name,
                failed_step=failed_step,
                **self._log_context,
            )
        return errors
