"""Execution context objects passed to installer actions."""

from __future__ import annotations

import dataclasses
from typing import List, Optional

from ..config import Settings
from ..console import Console
from ..models import Distribution, Role
from .command import CommandRunner


@dataclasses.dataclass(slots=True)
class ExecutionContext:
    """Runtime information handed to action handlers."""

    settings: Settings
    console: Console
    runner: CommandRunner
    distribution: Optional[Distribution] = None
    role: Role = Role.OTHER
    events: List[str] = dataclasses.field(default_factory=list)

    @property
    def dry_run(self) -> bool:
        return self.runner.dry_run

    def say(self, message: str = "") -> None:
        self.console.say(message)

    def record(self, message: str) -> None:
        self.events.append(message)
