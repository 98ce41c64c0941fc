"""Supervised invocation of installer actions with operator driven recovery."""

from __future__ import annotations

import logging
from typing import Optional

from ..console import RULE
from ..errors import ActionFailed
from ..models import RunState, StepOutcome, StepRecord
from ..tasks.registry import ActionDefinition
from .context import ExecutionContext

logger = logging.getLogger(__name__)

RETRY_PROMPT = "Press ENTER to retry, or type 'skip' to skip this step: "
SKIP_KEYWORD = "skip"


def supervise(
    action: ActionDefinition,
    context: ExecutionContext,
    state: Optional[RunState] = None,
) -> StepOutcome:
    """Run ``action`` until it succeeds or the operator skips it.

    A successful first attempt never prompts. After each failure the operator
    is shown the action and its exit code and may retry (any answer other than
    ``skip``) or skip; there is no retry limit. Nothing is rolled back.
    """

    attempts = 0
    while True:
        attempts += 1
        logger.info("Running action %s (attempt %d)", action.identifier, attempts)
        try:
            action.run(context)
        except ActionFailed as exc:
            logger.warning("Action %s failed: %s", action.identifier, exc)
            context.say(RULE)
            context.say(f"The step '{action.label}' returned an error (exit code: {exc.exit_code}).")
            choice = context.console.ask(RETRY_PROMPT)
            if choice.strip().lower() == SKIP_KEYWORD:
                context.say(f"Skipping step '{action.label}' as per your input.")
                outcome = StepOutcome.SKIPPED_BY_USER
                break
            context.say(f"Retrying '{action.label}'...")
            continue
        outcome = StepOutcome.COMPLETED
        break

    logger.info("Action %s %s after %d attempt(s)", action.identifier, outcome.value, attempts)
    if state is not None:
        state.record(
            StepRecord(
                identifier=action.identifier,
                label=action.label,
                outcome=outcome,
                attempts=attempts,
            )
        )
    return outcome


__all__ = ["supervise", "RETRY_PROMPT", "SKIP_KEYWORD"]
