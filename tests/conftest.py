import dataclasses
import io
import pathlib
import sys
from typing import Callable, Dict, List, Optional

import pytest

sys.path.insert(0, str(pathlib.Path(__file__).resolve().parents[1] / "src"))

from workstation_setup.config import Settings  # noqa: E402
from workstation_setup.console import Console  # noqa: E402
from workstation_setup.errors import CommandError  # noqa: E402
from workstation_setup.execution.command import CmdResult, CommandRunner  # noqa: E402
from workstation_setup.execution.context import ExecutionContext  # noqa: E402


class ScriptedInput:
    """Feeds canned answers to prompts; running out behaves like a closed stdin."""

    def __init__(self, answers):
        self.answers = list(answers)
        self.prompts: List[str] = []

    def __call__(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if not self.answers:
            raise EOFError
        answer = self.answers.pop(0)
        if isinstance(answer, BaseException):
            raise answer
        return answer


@dataclasses.dataclass
class Call:
    argv: List[str]
    cwd: Optional[str]
    env: Optional[Dict[str, str]]


class RecordingRunner(CommandRunner):
    """Command runner that records invocations instead of executing them.

    ``responder`` receives each call and returns its exit status (default 0).
    ``outputs`` maps a program name to the stdout it should produce.
    """

    def __init__(
        self,
        responder: Optional[Callable[[Call], int]] = None,
        outputs: Optional[Dict[str, str]] = None,
    ) -> None:
        super().__init__(dry_run=False)
        self.calls: List[Call] = []
        self._responder = responder or (lambda call: 0)
        self._outputs = outputs or {}

    def run(self, argv, *, check=True, env=None, cwd=None, capture=False):
        call = Call(argv=[str(a) for a in argv], cwd=str(cwd) if cwd else None, env=dict(env) if env else None)
        self.calls.append(call)
        returncode = self._responder(call)
        if check and returncode != 0:
            raise CommandError(call.argv, returncode)
        stdout = self._outputs.get(call.argv[0], "")
        return CmdResult(argv=call.argv, returncode=returncode, stdout=stdout, stderr="")

    def commands(self) -> List[str]:
        return [" ".join(call.argv) for call in self.calls]


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    # Toolchain actions append to shell rc files in the home directory.
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    return home


@pytest.fixture
def settings(tmp_path):
    return Settings.from_mapping(
        {
            "projects_dir": str(tmp_path / "Projects"),
            "ssh_dir": str(tmp_path / "ssh"),
            "log_path": str(tmp_path / "setup.log"),
        }
    )


@pytest.fixture
def output():
    return io.StringIO()


@pytest.fixture
def make_console(output):
    def factory(*answers):
        scripted = ScriptedInput(answers)
        return Console(input_func=scripted, output=output), scripted

    return factory


@pytest.fixture
def runner():
    return RecordingRunner()


@pytest.fixture
def make_context(settings, make_console, runner):
    def factory(*answers, distribution=None):
        console, scripted = make_console(*answers)
        context = ExecutionContext(settings=settings, console=console, runner=runner, distribution=distribution)
        return context, scripted

    return factory
