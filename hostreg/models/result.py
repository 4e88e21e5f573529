"""Itemized outcome of a multi-backend operation."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

StepStatus = Literal["ok", "deleted", "not_found", "skipped", "failed"]


class StepOutcome(BaseModel):
    step: str
    status: StepStatus
    detail: str = ""


class OperationResult(BaseModel):
    """Per-step outcome list.

    Partial completion is a normal terminal state; callers re-drive the
    steps listed in ``failed_steps``.
    """

    operation: Literal["add-host", "remove-host", "allocate-laptop"]
    target: str
    steps: list[StepOutcome] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed_steps

    @property
    def failed_steps(self) -> list[str]:
        return [s.step for s in self.steps if s.status == "failed"]

    def record(self, step: str, status: StepStatus, detail: str = "") -> StepOutcome:
        outcome = StepOutcome(step=step, status=status, detail=detail)
        self.steps.append(outcome)
        return outcome

    def summary(self) -> dict:
        return {
            "operation": self.operation,
            "target": self.target,
            "ok": self.ok,
            "steps": [s.model_dump() for s in self.steps],
        }
