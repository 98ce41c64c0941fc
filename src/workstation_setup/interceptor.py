"""Process wide safety net for failures outside supervised actions."""

from __future__ import annotations

import logging
import sys
import traceback
from types import TracebackType
from typing import Any, Callable, Optional, Type

from .console import RULE, Console
from .errors import CommandError, FatalSelectionError, RunAborted
from .models import RunState

logger = logging.getLogger(__name__)

RESUME_PROMPT = "Press ENTER to resume (or Ctrl-C to abort)..."

ExceptHook = Callable[[Type[BaseException], BaseException, Optional[TracebackType]], Any]


def describe_location(exc: BaseException) -> str:
    """Return ``file:line in function`` for the innermost frame of ``exc``."""

    frames = traceback.extract_tb(exc.__traceback__)
    if not frames:
        return "<unknown>"
    frame = frames[-1]
    return f"{frame.filename}:{frame.lineno} in {frame.name}"


def describe_operation(exc: BaseException) -> str:
    if isinstance(exc, CommandError):
        return f"{' '.join(exc.argv)} (exit code: {exc.returncode})"
    return f"{type(exc).__name__}: {exc}"


class FaultInterceptor:
    """Catch unexpected failures and turn them into an acknowledged pause.

    Orchestration stages run through :meth:`guard`; a stage that raises is
    reported, the operator acknowledges, and the caller moves on to the next
    stage. :meth:`install` additionally hooks ``sys.excepthook`` so anything
    escaping every boundary is still reported before the process exits.
    """

    def __init__(self, console: Console) -> None:
        self._console = console
        self._previous_hook: Optional[ExceptHook] = None

    def guard(
        self,
        stage: str,
        func: Callable[..., Any],
        *args: Any,
        state: Optional[RunState] = None,
        **kwargs: Any,
    ) -> bool:
        """Run one stage; return ``False`` if it was interrupted by an error."""

        try:
            func(*args, **kwargs)
        except (RunAborted, FatalSelectionError):
            raise
        except Exception as exc:
            logger.exception("Unexpected failure in stage %s", stage)
            self.report(stage, exc)
            if state is not None:
                state.interrupted_stages.append(stage)
            self._console.pause(RESUME_PROMPT)
            logger.info("Operator resumed after failure in stage %s", stage)
            return False
        return True

    def report(self, stage: str, exc: BaseException) -> None:
        self._console.banner(
            f"ERROR encountered in stage '{stage}' at {describe_location(exc)}:",
            f"   Operation: {describe_operation(exc)}",
            rule=RULE,
        )

    def install(self) -> "FaultInterceptor":
        if self._previous_hook is None:
            self._previous_hook = sys.excepthook
            sys.excepthook = self._excepthook
        return self

    def uninstall(self) -> None:
        if self._previous_hook is not None:
            sys.excepthook = self._previous_hook
            self._previous_hook = None

    def __enter__(self) -> "FaultInterceptor":
        return self.install()

    def __exit__(self, *exc_info: object) -> None:
        self.uninstall()

    def _excepthook(
        self,
        exc_type: Type[BaseException],
        exc: BaseException,
        tb: Optional[TracebackType],
    ) -> None:
        previous = self._previous_hook or sys.__excepthook__
        if issubclass(exc_type, KeyboardInterrupt):
            previous(exc_type, exc, tb)
            return
        logger.critical("Unhandled error, terminating", exc_info=(exc_type, exc, tb))
        self._console.banner(
            f"FATAL: unhandled error at {describe_location(exc)}:",
            f"   {describe_operation(exc)}",
            "The run cannot continue.",
            rule=RULE,
        )
        previous(exc_type, exc, tb)
