"""Configuration utilities for the workstation setup tool."""

from __future__ import annotations

import dataclasses
import pathlib
from typing import Iterable, List, Mapping

import yaml

from .errors import ConfigurationError

DEFAULT_PROJECTS = (
    "shopifyexport_r7",
    "report_pundit_r7",
    "pundit_lib",
    "bloom",
    "channel_bay",
    "channel_bay_design",
)
DEFAULT_BUILD_EXCLUDE = ("channel_bay_design", "pundit_lib")
DEFAULT_CLONE_URL_TEMPLATE = "git@bitbucket.org:freddy_dev/{name}.git"
DEFAULT_LOG_PATH = "~/.local/state/workstation-setup/setup.log"


@dataclasses.dataclass(slots=True)
class Settings:
    """Paths and project catalog used by the identity and clone stages."""

    projects_dir: pathlib.Path
    ssh_dir: pathlib.Path
    ssh_key_name: str
    clone_url_template: str
    projects: List[str]
    build_exclude: List[str]
    log_path: pathlib.Path

    @property
    def ssh_private_key(self) -> pathlib.Path:
        return self.ssh_dir / self.ssh_key_name

    @property
    def ssh_public_key(self) -> pathlib.Path:
        return self.ssh_dir / f"{self.ssh_key_name}.pub"

    def clone_url(self, project: str) -> str:
        return self.clone_url_template.format(name=project)

    @classmethod
    def default(cls) -> "Settings":
        return cls.from_mapping({})

    @classmethod
    def from_mapping(cls, data: Mapping[str, object]) -> "Settings":
        template = _ensure_str(
            data.get("clone_url_template", DEFAULT_CLONE_URL_TEMPLATE), field="clone_url_template"
        )
        if "{name}" not in template:
            raise ConfigurationError("Setting 'clone_url_template' must contain a '{name}' placeholder")

        return cls(
            projects_dir=_ensure_path(data.get("projects_dir", "~/Projects"), field="projects_dir"),
            ssh_dir=_ensure_path(data.get("ssh_dir", "~/.ssh"), field="ssh_dir"),
            ssh_key_name=_ensure_str(data.get("ssh_key_name", "id_rsa"), field="ssh_key_name"),
            clone_url_template=template,
            projects=_ensure_str_list(data.get("projects", DEFAULT_PROJECTS), field="projects"),
            build_exclude=_ensure_str_list(
                data.get("build_exclude", DEFAULT_BUILD_EXCLUDE), field="build_exclude"
            ),
            log_path=_ensure_path(data.get("log_path", DEFAULT_LOG_PATH), field="log_path"),
        )

    @classmethod
    def load(cls, path: pathlib.Path) -> "Settings":
        if not path.exists():
            raise ConfigurationError(f"Settings file does not exist: {path}")

        with path.open("r", encoding="utf-8") as handle:
            try:
                payload = yaml.safe_load(handle)
            except yaml.YAMLError as exc:
                raise ConfigurationError(f"Settings file '{path}' is not valid YAML: {exc}") from exc

        if payload is None:
            payload = {}
        if not isinstance(payload, Mapping):
            raise ConfigurationError("Settings file must define a mapping at the top level")

        return cls.from_mapping(payload)


def _ensure_str(value: object, *, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ConfigurationError(f"Setting '{field}' must be a non-empty string")
    return value.strip()


def _ensure_path(value: object, *, field: str) -> pathlib.Path:
    return pathlib.Path(_ensure_str(value, field=field)).expanduser()


def _ensure_str_list(value: object, *, field: str) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Iterable) and not isinstance(value, (bytes, bytearray, Mapping)):
        result: List[str] = []
        for item in value:
            if not isinstance(item, str):
                raise ConfigurationError(f"Setting '{field}' must contain only strings")
            result.append(item)
        return result
    raise ConfigurationError(f"Setting '{field}' must be a list of strings")
