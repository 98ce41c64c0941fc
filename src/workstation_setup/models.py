"""Domain models used by the setup tool."""

from __future__ import annotations

import dataclasses
import enum
from typing import List, Optional, Tuple


class Distribution(enum.Enum):
    """Supported target distributions, keyed by their menu code."""

    DEBIAN = "1"
    UBUNTU = "2"
    ARCH = "3"

    @property
    def label(self) -> str:
        return self.name.capitalize()

    @property
    def family(self) -> str:
        """Name of the action registry serving this distribution."""

        if self is Distribution.ARCH:
            return "arch"
        return "debian"

    @classmethod
    def from_choice(cls, choice: str) -> Optional["Distribution"]:
        try:
            return cls(choice.strip())
        except ValueError:
            return None


class Role(enum.Enum):
    """Job function declared by the operator."""

    DEVELOPER = "1"
    TESTER = "2"
    DATABASE = "3"
    OTHER = "4"

    @property
    def label(self) -> str:
        return self.name.capitalize()

    @classmethod
    def from_choice(cls, choice: str) -> "Role":
        """Return the role for a menu code, falling back to ``OTHER``."""

        try:
            return cls(choice.strip())
        except ValueError:
            return cls.OTHER


class StepOutcome(enum.Enum):
    COMPLETED = "completed"
    SKIPPED_BY_USER = "skipped"


@dataclasses.dataclass(slots=True)
class StepRecord:
    """Outcome of one supervised action invocation."""

    identifier: str
    label: str
    outcome: StepOutcome
    attempts: int


@dataclasses.dataclass(slots=True)
class RunState:
    """Transient state of a single provisioning run."""

    distribution: Optional[Distribution] = None
    role: Role = Role.OTHER
    default_actions: Tuple[str, ...] = ()
    additional_actions: List[str] = dataclasses.field(default_factory=list)
    cloned_projects: List[str] = dataclasses.field(default_factory=list)
    history: List[StepRecord] = dataclasses.field(default_factory=list)
    interrupted_stages: List[str] = dataclasses.field(default_factory=list)

    def record(self, record: StepRecord) -> None:
        self.history.append(record)

    def outcome_of(self, identifier: str) -> Optional[StepOutcome]:
        """Return the most recent outcome recorded for ``identifier``."""

        for record in reversed(self.history):
            if record.identifier == identifier:
                return record.outcome
        return None
