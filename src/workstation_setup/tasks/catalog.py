"""Distribution registries and the default actions of each role."""

from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Tuple

from ..errors import RegistryError
from ..models import Distribution, Role
from .arch import arch
from .common import common
from .debian import debian
from .registry import ActionDefinition, ActionRegistry

REGISTRIES: Dict[str, ActionRegistry] = {
    debian.name: debian,
    arch.name: arch,
}

ROLE_DEFAULTS: Mapping[Role, Tuple[str, ...]] = {
    Role.DEVELOPER: ("install_docker", "install_dbeaver", "install_openvpn3", "install_sublime"),
    Role.TESTER: (
        "install_dbeaver",
        "install_sublime",
        "install_openvpn3",
        "install_rvm_ruby",
        "install_pyenv_python",
    ),
    Role.DATABASE: ("install_dbeaver", "install_sublime", "install_openvpn3"),
    Role.OTHER: (),
}

COMMON_ACTIONS = ("generate_ssh_key", "build_docker_projects")


def validate_catalog(
    registries: Mapping[str, ActionRegistry] = REGISTRIES,
    role_defaults: Mapping[Role, Tuple[str, ...]] = ROLE_DEFAULTS,
) -> None:
    """Fail fast when a role default is missing from any distribution registry."""

    missing_roles = [role.label for role in Role if role not in role_defaults]
    if missing_roles:
        raise RegistryError(f"No default action list for roles: {', '.join(missing_roles)}")

    missing_families = sorted({d.family for d in Distribution} - set(registries))
    if missing_families:
        raise RegistryError(f"No action registry for: {', '.join(missing_families)}")

    problems: List[str] = []
    for role, identifiers in role_defaults.items():
        for registry in registries.values():
            for identifier in identifiers:
                if identifier not in registry:
                    problems.append(f"{role.label}:{identifier} missing from '{registry.name}'")
    for identifier in COMMON_ACTIONS:
        if identifier not in common:
            problems.append(f"{identifier} missing from '{common.name}'")
    if problems:
        raise RegistryError("Invalid action catalog: " + "; ".join(problems))


def registry_for(distribution: Distribution) -> ActionRegistry:
    return REGISTRIES[distribution.family]


def default_actions(registry: ActionRegistry, role: Role) -> List[ActionDefinition]:
    """Return the role's default actions, in catalog-authored order."""

    return [registry.resolve(identifier) for identifier in ROLE_DEFAULTS[role]]


def build_additional_menu(registry: ActionRegistry, defaults: Iterable[str]) -> List[ActionDefinition]:
    """Return the registry's actions minus ``defaults``, in catalog order."""

    excluded = set(defaults)
    return [action for action in registry if action.identifier not in excluded]


for _registry in (common, debian, arch):
    _registry.freeze()
validate_catalog()
