"""Action package for the workstation setup tool."""

from .registry import ActionDefinition, ActionHandler, ActionRegistry

# Import the catalog to ensure built-in actions are registered and validated on package import.
from .catalog import (  # noqa: E402
    REGISTRIES,
    ROLE_DEFAULTS,
    build_additional_menu,
    default_actions,
    registry_for,
)
from .common import common  # noqa: E402

__all__ = [
    "ActionDefinition",
    "ActionHandler",
    "ActionRegistry",
    "REGISTRIES",
    "ROLE_DEFAULTS",
    "build_additional_menu",
    "common",
    "default_actions",
    "registry_for",
]
