"""Action registry used by the setup runtime."""

from __future__ import annotations

import dataclasses
import logging
from typing import Callable, Dict, Iterator, List

from ..errors import ActionFailed, CommandError, RegistryError, RunAborted
from ..execution.context import ExecutionContext

logger = logging.getLogger(__name__)

ActionHandler = Callable[[ExecutionContext], None]


@dataclasses.dataclass(slots=True, frozen=True)
class ActionDefinition:
    identifier: str
    label: str
    summary: str
    handler: ActionHandler

    def run(self, context: ExecutionContext) -> None:
        """Invoke the handler, normalising any failure into ``ActionFailed``."""

        try:
            self.handler(context)
        except (ActionFailed, RunAborted):
            raise
        except CommandError as exc:
            raise ActionFailed(self.identifier, exc.returncode, str(exc)) from exc
        except Exception as exc:
            raise ActionFailed(self.identifier, 1, str(exc)) from exc


class ActionRegistry:
    """Book-keeping for the installer actions of one distribution family."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._actions: Dict[str, ActionDefinition] = {}
        self._frozen = False

    def register(self, identifier: str, *, label: str, summary: str = "") -> Callable[[ActionHandler], ActionHandler]:
        def decorator(func: ActionHandler) -> ActionHandler:
            if self._frozen:
                raise RegistryError(
                    f"Registry '{self.name}' is frozen; cannot register '{identifier}'"
                )
            if identifier in self._actions:
                raise RegistryError(f"Action '{identifier}' is already registered in '{self.name}'")
            self._actions[identifier] = ActionDefinition(
                identifier=identifier,
                label=label,
                summary=summary or label,
                handler=func,
            )
            return func

        return decorator

    def freeze(self) -> "ActionRegistry":
        self._frozen = True
        logger.debug("Registry '%s' frozen with %d actions", self.name, len(self._actions))
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def resolve(self, identifier: str) -> ActionDefinition:
        try:
            return self._actions[identifier]
        except KeyError as exc:
            raise RegistryError(f"Unknown action identifier '{identifier}' in '{self.name}'") from exc

    def actions(self) -> List[ActionDefinition]:
        """Return every action in catalog order."""

        return list(self._actions.values())

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._actions

    def __iter__(self) -> Iterator[ActionDefinition]:
        return iter(self._actions.values())

    def __len__(self) -> int:
        return len(self._actions)


__all__ = ["ActionDefinition", "ActionHandler", "ActionRegistry"]
