from __future__ import annotations

import logging
import os
import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Sequence

from ..errors import CommandError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CmdResult:
    argv: list[str]
    returncode: int
    stdout: str
    stderr: str


def _fmt_argv(argv: Sequence[str]) -> str:
    return " ".join(shlex.quote(a) for a in argv)


class CommandRunner:
    """Run external commands with consistent logging.

    - Always logs the command.
    - Output streams straight to the operator's terminal unless ``capture`` is
      requested, so package manager prompts and progress remain visible.
    - dry_run logs but does not execute.
    """

    def __init__(self, *, dry_run: bool = False) -> None:
        self.dry_run = dry_run

    def run(
        self,
        argv: Sequence[str],
        *,
        check: bool = True,
        env: Mapping[str, str] | None = None,
        cwd: str | Path | None = None,
        capture: bool = False,
    ) -> CmdResult:
        argv_list = [str(a) for a in argv]
        logger.info("CMD %s%s", _fmt_argv(argv_list), f" (cwd={cwd})" if cwd else "")

        if self.dry_run:
            return CmdResult(argv=argv_list, returncode=0, stdout="", stderr="")

        try:
            p = subprocess.run(
                argv_list,
                text=True,
                stdout=subprocess.PIPE if capture else None,
                stderr=subprocess.PIPE if capture else None,
                cwd=str(cwd) if cwd else None,
                env=dict(os.environ, **(env or {})),
            )
        except FileNotFoundError as exc:
            # Mirror the shell's "command not found" status.
            logger.error("Command not found: %s", argv_list[0])
            if check:
                raise CommandError(argv_list, 127, str(exc)) from exc
            return CmdResult(argv=argv_list, returncode=127, stdout="", stderr=str(exc))

        stdout = p.stdout or ""
        stderr = p.stderr or ""
        if stdout:
            logger.debug("STDOUT %s", stdout.strip())
        if stderr:
            logger.debug("STDERR %s", stderr.strip())

        if check and p.returncode != 0:
            logger.warning("Command exited with %s: %s", p.returncode, _fmt_argv(argv_list))
            raise CommandError(argv_list, p.returncode, stderr)

        return CmdResult(argv=argv_list, returncode=p.returncode, stdout=stdout, stderr=stderr)

    def shell(
        self,
        script: str,
        *,
        check: bool = True,
        env: Mapping[str, str] | None = None,
        cwd: str | Path | None = None,
        capture: bool = False,
    ) -> CmdResult:
        """Run a pipeline through bash with ``pipefail`` enabled."""

        return self.run(
            ["bash", "-o", "pipefail", "-c", script],
            check=check,
            env=env,
            cwd=cwd,
            capture=capture,
        )
