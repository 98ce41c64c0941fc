import pathlib
import sys

import pytest

sys.path.insert(0, str(pathlib.Path(__file__).resolve().parents[1] / "src"))

from conftest import RecordingRunner  # noqa: E402
from workstation_setup.errors import ActionFailed  # noqa: E402
from workstation_setup.execution.command import CommandRunner  # noqa: E402
from workstation_setup.execution.context import ExecutionContext  # noqa: E402
from workstation_setup.execution.supervisor import supervise  # noqa: E402
from workstation_setup.models import Distribution, StepOutcome  # noqa: E402
from workstation_setup.tasks import common, registry_for  # noqa: E402
from workstation_setup.tasks.common import (  # noqa: E402
    append_lines_once,
    build_docker_projects,
    clone_action,
    generate_ssh_key,
    parse_agent_env,
)

AGENT_OUTPUT = (
    "SSH_AUTH_SOCK=/tmp/ssh-XXXX/agent.42; export SSH_AUTH_SOCK;\n"
    "SSH_AGENT_PID=43; export SSH_AGENT_PID;\n"
    "echo Agent pid 43;\n"
)


@pytest.fixture
def agent_env(monkeypatch):
    # Registered, then cleared: no agent is running and the values exported by
    # the action are undone after each test.
    for name in ("SSH_AUTH_SOCK", "SSH_AGENT_PID"):
        monkeypatch.setenv(name, "unset")
        monkeypatch.delenv(name)


def _context(settings, make_console, runner, *answers, distribution=None):
    console, _ = make_console(*answers)
    return ExecutionContext(settings=settings, console=console, runner=runner, distribution=distribution)


def test_parse_agent_env():
    assert parse_agent_env(AGENT_OUTPUT) == {
        "SSH_AUTH_SOCK": "/tmp/ssh-XXXX/agent.42",
        "SSH_AGENT_PID": "43",
    }


def test_existing_key_is_reused_and_public_key_displayed(settings, make_console, output, agent_env):
    settings.ssh_dir.mkdir(parents=True)
    settings.ssh_private_key.write_text("PRIVATE", encoding="utf-8")
    settings.ssh_public_key.write_text("ssh-rsa AAAAB3Nza dev@box\n", encoding="utf-8")
    runner = RecordingRunner(outputs={"ssh-agent": AGENT_OUTPUT})
    context = _context(settings, make_console, runner)

    generate_ssh_key(context)

    commands = runner.commands()
    assert not any(command.startswith("ssh-keygen") for command in commands)
    assert commands == ["ssh-agent -s", f"ssh-add {settings.ssh_private_key}"]
    assert runner.calls[-1].env == {"SSH_AUTH_SOCK": "/tmp/ssh-XXXX/agent.42", "SSH_AGENT_PID": "43"}
    text = output.getvalue()
    assert "already exists" in text
    assert "ssh-rsa AAAAB3Nza dev@box" in text
    assert (settings.ssh_dir.stat().st_mode & 0o777) == 0o700


def test_missing_key_is_generated(settings, make_console, output, agent_env):
    def responder(call):
        if call.argv[0] == "ssh-keygen":
            settings.ssh_private_key.write_text("PRIVATE", encoding="utf-8")
            settings.ssh_public_key.write_text("ssh-rsa NEWKEY\n", encoding="utf-8")
        return 0

    runner = RecordingRunner(responder=responder, outputs={"ssh-agent": AGENT_OUTPUT})
    context = _context(settings, make_console, runner)

    generate_ssh_key(context)

    assert runner.calls[0].argv == [
        "ssh-keygen", "-t", "rsa", "-b", "4096", "-f", str(settings.ssh_private_key), "-N", "",
    ]
    assert "ssh-rsa NEWKEY" in output.getvalue()


def test_missing_public_key_fails(settings, make_console, agent_env):
    settings.ssh_dir.mkdir(parents=True)
    settings.ssh_private_key.write_text("PRIVATE", encoding="utf-8")
    context = _context(settings, make_console, RecordingRunner())

    with pytest.raises(ActionFailed):
        common.resolve("generate_ssh_key").run(context)


def _existing_identity(settings, public_text="ssh-rsa AAAAB3Nza dev@box\n"):
    settings.ssh_dir.mkdir(parents=True)
    settings.ssh_private_key.write_text("PRIVATE", encoding="utf-8")
    settings.ssh_public_key.write_text(public_text, encoding="utf-8")


def test_public_key_shown_when_ssh_add_fails_and_step_is_skipped(settings, make_console, output, agent_env):
    _existing_identity(settings, "ssh-rsa SKIPPEDKEY dev@box\n")
    runner = RecordingRunner(
        responder=lambda call: 2 if call.argv[0] == "ssh-add" else 0,
        outputs={"ssh-agent": AGENT_OUTPUT},
    )
    context = _context(settings, make_console, runner, "skip")

    outcome = supervise(common.resolve("generate_ssh_key"), context)

    assert outcome is StepOutcome.SKIPPED_BY_USER
    text = output.getvalue()
    assert "ssh-rsa SKIPPEDKEY dev@box" in text
    assert text.index("ssh-rsa SKIPPEDKEY") < text.index("returned an error (exit code: 2)")


def test_running_agent_is_reused(settings, make_console, monkeypatch, agent_env):
    _existing_identity(settings)
    monkeypatch.setenv("SSH_AUTH_SOCK", "/tmp/ssh-running/agent.7")
    runner = RecordingRunner()

    generate_ssh_key(_context(settings, make_console, runner))

    assert runner.commands() == [f"ssh-add {settings.ssh_private_key}"]
    assert runner.calls[0].env is None


def test_retry_does_not_start_a_second_agent(settings, make_console, agent_env):
    _existing_identity(settings)
    failures = {"ssh-add": 1}

    def responder(call):
        if call.argv[0] == "ssh-add" and failures["ssh-add"]:
            failures["ssh-add"] -= 1
            return 2
        return 0

    runner = RecordingRunner(responder=responder, outputs={"ssh-agent": AGENT_OUTPUT})
    context = _context(settings, make_console, runner, "")

    assert supervise(common.resolve("generate_ssh_key"), context) is StepOutcome.COMPLETED
    assert runner.commands().count("ssh-agent -s") == 1
    assert runner.commands().count(f"ssh-add {settings.ssh_private_key}") == 2


def test_clone_action_runs_git_in_projects_dir(settings, make_console):
    settings.projects_dir.mkdir(parents=True)
    runner = RecordingRunner()
    context = _context(settings, make_console, runner)

    clone_action("bloom").run(context)

    assert runner.calls[0].argv == ["git", "clone", "git@bitbucket.org:freddy_dev/bloom.git"]
    assert runner.calls[0].cwd == str(settings.projects_dir)


def test_clone_skips_existing_checkout(settings, make_console, output):
    (settings.projects_dir / "bloom").mkdir(parents=True)
    runner = RecordingRunner()

    clone_action("bloom").run(_context(settings, make_console, runner))

    assert runner.calls == []
    assert "already exists" in output.getvalue()


def _make_projects(settings, layout):
    for name, compose in layout.items():
        repo = settings.projects_dir / name
        repo.mkdir(parents=True)
        if compose:
            (repo / compose).write_text("services: {}\n", encoding="utf-8")


def test_docker_builds_skip_excluded_projects(settings, make_console, output):
    _make_projects(
        settings,
        {
            "bloom": "docker-compose.yml",
            "channel_bay": "docker-compose.yaml",
            "channel_bay_design": "docker-compose.yml",
            "pundit_lib": "docker-compose.yml",
            "report_pundit_r7": None,
        },
    )
    runner = RecordingRunner()

    build_docker_projects(_context(settings, make_console, runner))

    assert [call.cwd for call in runner.calls] == [
        str(settings.projects_dir / "bloom"),
        str(settings.projects_dir / "channel_bay"),
    ]
    assert all(call.argv == ["sudo", "docker", "compose", "build", "--no-cache"] for call in runner.calls)
    text = output.getvalue()
    assert "Skipping docker build for channel_bay_design" in text
    assert "Skipping docker build for pundit_lib" in text
    assert "No docker-compose file found in report_pundit_r7" in text


def test_docker_build_failure_still_attempts_remaining_projects(settings, make_console):
    _make_projects(settings, {"alpha": "docker-compose.yml", "beta": "docker-compose.yml"})
    runner = RecordingRunner(responder=lambda call: 17 if call.cwd.endswith("alpha") else 0)

    with pytest.raises(ActionFailed) as exc:
        build_docker_projects(_context(settings, make_console, runner))

    assert len(runner.calls) == 2
    assert exc.value.exit_code == 17
    assert "alpha" in exc.value.reason


def test_docker_builds_require_projects_dir(settings, make_console):
    with pytest.raises(ActionFailed) as exc:
        build_docker_projects(_context(settings, make_console, RecordingRunner()))
    assert exc.value.exit_code == 1


def test_dry_run_without_projects_dir_builds_nothing(settings, make_console, output):
    build_docker_projects(_context(settings, make_console, CommandRunner(dry_run=True)))

    assert "Projects directory not found!" not in output.getvalue()
    assert not settings.projects_dir.exists()


def test_append_lines_once_is_idempotent(settings, make_console, tmp_path):
    context = _context(settings, make_console, RecordingRunner())
    rc_file = tmp_path / ".profile"
    rc_file.write_text("export EDITOR=vim\n", encoding="utf-8")

    append_lines_once(context, rc_file, ("line one", "line two"))
    append_lines_once(context, rc_file, ("line one", "line two"))

    assert rc_file.read_text(encoding="utf-8") == "export EDITOR=vim\nline one\nline two\n"


@pytest.mark.parametrize(
    "distribution, flavour",
    [(Distribution.DEBIAN, "debian"), (Distribution.UBUNTU, "ubuntu")],
)
def test_debian_docker_repository_follows_distribution(settings, make_console, distribution, flavour):
    runner = RecordingRunner()
    context = _context(settings, make_console, runner, distribution=distribution)

    registry_for(distribution).resolve("install_docker").run(context)

    commands = "\n".join(runner.commands())
    assert f"https://download.docker.com/linux/{flavour}/gpg" in commands
    assert "docker-compose-plugin" in commands


def test_arch_actions_use_pacman_and_yay(settings, make_console):
    runner = RecordingRunner()
    context = _context(settings, make_console, runner, distribution=Distribution.ARCH)
    registry = registry_for(Distribution.ARCH)

    registry.resolve("install_dbeaver").run(context)
    registry.resolve("install_openvpn3").run(context)

    assert runner.commands() == [
        "sudo pacman -Sy --noconfirm dbeaver",
        "yay -S --noconfirm openvpn3",
    ]
