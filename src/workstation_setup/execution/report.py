"""Reporting structures for setup runs."""

from __future__ import annotations

import dataclasses
from typing import List, Sequence

from ..models import RunState, StepOutcome


@dataclasses.dataclass(slots=True)
class StepResult:
    identifier: str
    label: str
    status: str
    attempts: int


@dataclasses.dataclass(slots=True)
class RunReport:
    distribution: str
    role: str
    steps: List[StepResult]
    interrupted_stages: List[str]
    cloned_projects: List[str] = dataclasses.field(default_factory=list)
    events: List[str] = dataclasses.field(default_factory=list)

    @classmethod
    def from_state(cls, state: RunState, events: Sequence[str] = ()) -> "RunReport":
        return cls(
            distribution=state.distribution.label if state.distribution else "",
            role=state.role.label,
            steps=[
                StepResult(
                    identifier=record.identifier,
                    label=record.label,
                    status=record.outcome.value,
                    attempts=record.attempts,
                )
                for record in state.history
            ],
            interrupted_stages=list(state.interrupted_stages),
            cloned_projects=list(state.cloned_projects),
            events=list(events),
        )

    @property
    def completed_steps(self) -> List[str]:
        return [step.label for step in self.steps if step.status == StepOutcome.COMPLETED.value]

    @property
    def skipped_steps(self) -> List[str]:
        return [step.label for step in self.steps if step.status == StepOutcome.SKIPPED_BY_USER.value]

    def as_dict(self) -> dict:
        return {
            "distribution": self.distribution,
            "role": self.role,
            "interrupted_stages": self.interrupted_stages,
            "cloned_projects": self.cloned_projects,
            "events": self.events,
            "steps": [
                {
                    "identifier": step.identifier,
                    "label": step.label,
                    "status": step.status,
                    "attempts": step.attempts,
                }
                for step in self.steps
            ],
        }

    def summary_lines(self) -> List[str]:
        lines: List[str] = []
        if self.completed_steps:
            lines.append("Completed steps:")
            lines.extend(f"  - {label}" for label in self.completed_steps)
        if self.skipped_steps:
            lines.append("Skipped steps:")
            lines.extend(f"  - {label}" for label in self.skipped_steps)
        if self.cloned_projects:
            lines.append("Cloned projects:")
            lines.extend(f"  - {name}" for name in self.cloned_projects)
        if self.interrupted_stages:
            lines.append("Stages interrupted by an unexpected error:")
            lines.extend(f"  - {stage}" for stage in self.interrupted_stages)
        return lines
