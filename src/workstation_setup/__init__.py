"""Interactive provisioning of developer workstations."""

from importlib import metadata

__all__ = ["__version__"]


def __getattr__(name: str):
    if name == "__version__":
        return metadata.version("workstation-setup")
    raise AttributeError(name)
