import logging
import pathlib
import sys

import pytest

sys.path.insert(0, str(pathlib.Path(__file__).resolve().parents[1] / "src"))

from workstation_setup import cli  # noqa: E402


@pytest.fixture(autouse=True)
def restore_process_hooks(monkeypatch):
    monkeypatch.setattr(sys, "excepthook", sys.excepthook)
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in root.handlers[:]:
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)
    for attr in ("_workstation_setup_configured", "_workstation_setup_log_path"):
        if hasattr(root, attr):
            delattr(root, attr)


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text(
        f"projects_dir: {tmp_path / 'Projects'}\n"
        f"ssh_dir: {tmp_path / 'ssh'}\n"
        f"log_path: {tmp_path / 'logs' / 'setup.log'}\n",
        encoding="utf-8",
    )
    return path


def _answers(monkeypatch, *answers):
    queue = list(answers)

    def fake_input(prompt):
        if not queue:
            raise EOFError
        answer = queue.pop(0)
        if isinstance(answer, BaseException):
            raise answer
        return answer

    monkeypatch.setattr("builtins.input", fake_input)


def test_parser_defaults():
    args = cli.build_parser().parse_args([])

    assert args.config is None
    assert args.dry_run is False
    assert args.list_actions is False


def test_list_actions(capsys):
    assert cli.main(["--list-actions"]) == 0

    out = capsys.readouterr().out
    assert "debian:" in out
    assert "arch:" in out
    assert "install_docker" in out
    assert "Docker + docker-compose" in out
    assert "Developer" in out


def test_invalid_distribution_exits_with_one(monkeypatch, config_file, capsys):
    _answers(monkeypatch, "5")

    assert cli.main(["--config", str(config_file)]) == cli.EXIT_INVALID_DISTRIBUTION
    assert "Invalid choice. Exiting..." in capsys.readouterr().out


def test_invalid_config_exits_with_two(tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text("projects: [1]\n", encoding="utf-8")

    with pytest.raises(SystemExit) as exc:
        cli.main(["--config", str(path)])
    assert exc.value.code == 2


def test_dry_run_completes(monkeypatch, config_file, tmp_path, capsys):
    _answers(monkeypatch, "1", "4", "", "", "1")

    assert cli.main(["--config", str(config_file), "--dry-run"]) == cli.EXIT_OK

    out = capsys.readouterr().out
    assert "Script finished!" in out
    assert (tmp_path / "logs" / "setup.log").exists()
    # Dry runs leave the filesystem alone.
    assert not (tmp_path / "Projects").exists()


def test_developer_dry_run_has_nothing_to_build(monkeypatch, config_file, tmp_path, capsys):
    _answers(monkeypatch, "1", "1", "", "", "1")

    assert cli.main(["--config", str(config_file), "--dry-run"]) == cli.EXIT_OK

    out = capsys.readouterr().out
    assert "Projects directory not found!" not in out
    assert "returned an error" not in out
    assert "Script finished!" in out
    assert not (tmp_path / "Projects").exists()


def test_interrupt_exits_with_130(monkeypatch, config_file, capsys):
    _answers(monkeypatch, "2", KeyboardInterrupt())

    assert cli.main(["--config", str(config_file)]) == cli.EXIT_ABORTED
    assert "Aborted by operator." in capsys.readouterr().out


def test_log_option_overrides_settings(monkeypatch, config_file, tmp_path):
    _answers(monkeypatch, "9")
    log_path = tmp_path / "custom.log"

    cli.main(["--config", str(config_file), "--log", str(log_path)])

    assert log_path.exists()
