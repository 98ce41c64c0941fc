from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from .config import DEFAULT_LOG_PATH

FALLBACK_LOG_NAME = "workstation-setup.log"


def configure_logging(
    log_path: str | Path = DEFAULT_LOG_PATH,
    level: int = logging.INFO,
    also_console: bool = False,
) -> str:
    """Configure the root logger for a setup run.

    Notes:
    - The run log lives under the user's state directory by default. If that
      location cannot be created or opened we fall back to a file in the
      current working directory.
    - Operator-facing prompts are printed by the console, not logged to the
      terminal; ``also_console`` mirrors the log to stderr for troubleshooting.

    Returns the actual file path being used.
    """

    logger = logging.getLogger()

    # Avoid duplicate handlers if configure_logging() is called multiple times.
    if getattr(logger, "_workstation_setup_configured", False):
        return getattr(logger, "_workstation_setup_log_path", str(log_path))

    logger.setLevel(logging.DEBUG if also_console else level)

    requested = Path(log_path).expanduser()
    fmt = logging.Formatter(
        fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S%z",
    )

    file_handler: Optional[logging.Handler] = None
    try:
        requested.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(requested, encoding="utf-8")
        chosen_path = str(requested)
    except OSError:
        fallback = Path.cwd() / FALLBACK_LOG_NAME
        file_handler = logging.FileHandler(fallback, encoding="utf-8")
        chosen_path = str(fallback)
    file_handler.setFormatter(fmt)
    file_handler.setLevel(level)
    logger.addHandler(file_handler)

    if also_console:
        console = logging.StreamHandler()
        console.setFormatter(fmt)
        console.setLevel(logging.DEBUG)
        logger.addHandler(console)

    setattr(logger, "_workstation_setup_configured", True)
    setattr(logger, "_workstation_setup_log_path", chosen_path)

    logging.getLogger(__name__).info(
        "Logging initialized (requested=%s, actual=%s)", requested, chosen_path
    )
    return chosen_path
