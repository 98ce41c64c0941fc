"""Actions shared by every distribution: identity, projects and toolchains."""

from __future__ import annotations

import getpass
import logging
import os
import re
from pathlib import Path
from typing import Dict, List, Tuple

from ..console import HEAVY_RULE
from ..errors import ActionFailed, CommandError
from ..execution.context import ExecutionContext
from .registry import ActionDefinition, ActionRegistry

logger = logging.getLogger(__name__)

common = ActionRegistry("common")

COMPOSE_FILES = ("docker-compose.yml", "docker-compose.yaml")
NVM_INSTALL_URL = "https://raw.githubusercontent.com/nvm-sh/nvm/v0.40.1/install.sh"
NODE_VERSION = "22"
PYTHON_VERSION = "3.7.17"
RUBY_VERSION = "3.0.3"
RVM_KEYS = ("409B6B1796C275462A1703113804BB82D39DC0E3", "7D2BAF1CF37B13E2069D6956105BD0E739499BDB")
TEST_PIP_PACKAGES = (
    "selenium",
    "robotframework",
    "robotframework-databaselibrary",
    "robotframework-datadriver",
    "robotframework-seleniumlibrary",
    "robotframework-selenium2library",
    "psycopg2-binary",
)
PYENV_INIT_LINES = (
    'export PYENV_ROOT="$HOME/.pyenv"',
    'command -v pyenv >/dev/null || export PATH="$PYENV_ROOT/bin:$PATH"',
    'eval "$(pyenv init -)"',
)

_AGENT_VAR = re.compile(r"(SSH_AUTH_SOCK|SSH_AGENT_PID)=([^;\n]+);")


def current_user() -> str:
    return os.environ.get("USER") or getpass.getuser()


def append_lines_once(context: ExecutionContext, path: Path, lines: Tuple[str, ...]) -> None:
    """Append ``lines`` to a shell rc file, skipping lines already present."""

    existing = path.read_text(encoding="utf-8").splitlines() if path.exists() else []
    missing = [line for line in lines if line not in existing]
    if not missing:
        logger.info("%s already contains the requested lines", path)
        return
    if context.dry_run:
        logger.info("DRY-RUN would append %d lines to %s", len(missing), path)
        return
    with path.open("a", encoding="utf-8") as handle:
        for line in missing:
            handle.write(line + "\n")
    logger.info("Appended %d lines to %s", len(missing), path)


def parse_agent_env(output: str) -> Dict[str, str]:
    """Extract the variables printed by ``ssh-agent -s``."""

    return {name: value for name, value in _AGENT_VAR.findall(output)}


@common.register("generate_ssh_key", label="SSH key", summary="Generate (or reuse) the SSH identity")
def generate_ssh_key(context: ExecutionContext) -> None:
    settings = context.settings
    ssh_dir = settings.ssh_dir
    private_key = settings.ssh_private_key
    public_key = settings.ssh_public_key

    context.say(HEAVY_RULE)
    context.say("Generating SSH key...")
    if not context.dry_run:
        ssh_dir.mkdir(parents=True, exist_ok=True)
        ssh_dir.chmod(0o700)

    if private_key.exists():
        context.say(f"SSH key already exists at {private_key}. Skipping generation.")
        context.record(f"ssh key reused: {private_key}")
    else:
        context.runner.run(["ssh-keygen", "-t", "rsa", "-b", "4096", "-f", str(private_key), "-N", ""])
        context.record(f"ssh key generated: {private_key}")

    # The public key is displayed even when ssh-add later fails.
    context.say()
    context.say("Below is your public key (add it to Bitbucket or your Git hosting provider):")
    context.say("=" * 48)
    if public_key.exists():
        context.say(public_key.read_text(encoding="utf-8").strip())
    elif context.dry_run:
        context.say(f"(dry-run: public key would be read from {public_key})")
    else:
        raise ActionFailed("generate_ssh_key", 1, f"public key not found at {public_key}")
    context.say("=" * 48)

    context.runner.run(["ssh-add", str(private_key)], env=ensure_agent(context))


def ensure_agent(context: ExecutionContext) -> Dict[str, str]:
    """Reuse the running ssh-agent, or start one and export its variables."""

    if os.environ.get("SSH_AUTH_SOCK"):
        logger.info("Reusing ssh-agent at %s", os.environ["SSH_AUTH_SOCK"])
        return {}
    agent = context.runner.run(["ssh-agent", "-s"], capture=True)
    agent_env = parse_agent_env(agent.stdout)
    if agent_env:
        os.environ.update(agent_env)
        logger.info("ssh-agent started (pid=%s)", agent_env.get("SSH_AGENT_PID"))
    return agent_env


def clone_project(context: ExecutionContext, project: str) -> None:
    settings = context.settings
    projects_dir = settings.projects_dir
    target = projects_dir / project
    if target.exists():
        context.say(f"{project} already exists in {projects_dir}, skipping clone.")
        return

    context.say(f"Cloning {project}...")
    context.runner.run(["git", "clone", settings.clone_url(project)], cwd=projects_dir)
    context.record(f"cloned: {project}")


def clone_action(project: str) -> ActionDefinition:
    """Return a one-off action cloning ``project`` into the projects directory."""

    def handler(context: ExecutionContext) -> None:
        clone_project(context, project)

    return ActionDefinition(
        identifier=f"clone:{project}",
        label=f"Clone {project}",
        summary=f"Clone {project} into the projects directory",
        handler=handler,
    )


@common.register(
    "build_docker_projects",
    label="Build docker projects",
    summary="Build docker compose projects in the cloned repositories",
)
def build_docker_projects(context: ExecutionContext) -> None:
    settings = context.settings
    projects_dir = settings.projects_dir
    excluded = set(settings.build_exclude)

    context.say(HEAVY_RULE)
    context.say(f"Building Docker projects (excluding {', '.join(sorted(excluded)) or 'nothing'})...")
    context.say(HEAVY_RULE)
    if not projects_dir.is_dir() and context.dry_run:
        logger.info("DRY-RUN %s does not exist, nothing to build", projects_dir)
        context.say("Projects directory not created in dry-run, nothing to build.")
        return
    if not projects_dir.is_dir():
        context.say("Projects directory not found!")
        raise ActionFailed("build_docker_projects", 1, f"{projects_dir} does not exist")

    failures: List[Tuple[str, int]] = []
    for repo in sorted(path for path in projects_dir.iterdir() if path.is_dir()):
        if repo.name in excluded:
            context.say(f"Skipping docker build for {repo.name}")
            continue
        if not any((repo / name).is_file() for name in COMPOSE_FILES):
            context.say(f"No docker-compose file found in {repo.name}, skipping...")
            continue

        context.say(f"Building docker project in {repo.name}...")
        try:
            context.runner.run(["sudo", "docker", "compose", "build", "--no-cache"], cwd=repo)
        except CommandError as exc:
            context.say(f"Docker build failed for {repo.name} (exit code: {exc.returncode})")
            failures.append((repo.name, exc.returncode))
        else:
            context.record(f"built: {repo.name}")
        context.say()

    if failures:
        names = ", ".join(name for name, _ in failures)
        raise ActionFailed("build_docker_projects", failures[-1][1], f"builds failed for {names}")


def install_nvm_node(context: ExecutionContext) -> None:
    context.runner.shell(f"curl -o- {NVM_INSTALL_URL} | bash")
    context.runner.shell(
        'export NVM_DIR="$([ -z "${XDG_CONFIG_HOME-}" ] && printf %s "${HOME}/.nvm"'
        ' || printf %s "${XDG_CONFIG_HOME}/nvm")"\n'
        '. "$NVM_DIR/nvm.sh"\n'
        f"nvm install {NODE_VERSION}\n"
        'echo "Node version: $(node -v)"\n'
        'echo "NVM current: $(nvm current)"\n'
        'echo "NPM version: $(npm -v)"\n'
    )


def install_pyenv_python(context: ExecutionContext, rc_file: Path) -> None:
    context.runner.shell("curl https://pyenv.run | bash")
    append_lines_once(context, rc_file, PYENV_INIT_LINES)
    context.runner.shell(
        'export PYENV_ROOT="$HOME/.pyenv"\n'
        'export PATH="$PYENV_ROOT/bin:$PATH"\n'
        'eval "$(pyenv init -)"\n'
        f"pyenv install -s {PYTHON_VERSION}\n"
        f"pyenv global {PYTHON_VERSION}\n"
        'echo "Current Python version: $(python --version 2>&1)"\n'
        "pip install --upgrade pip\n"
        f"pip install {' '.join(TEST_PIP_PACKAGES)}\n"
    )


def import_rvm_keys(context: ExecutionContext) -> None:
    context.runner.run(["gpg", "--keyserver", "keyserver.ubuntu.com", "--recv-keys", *RVM_KEYS])


def install_ruby_toolchain(context: ExecutionContext) -> None:
    context.runner.shell(
        "if [ -f /etc/profile.d/rvm.sh ]; then source /etc/profile.d/rvm.sh;"
        ' else source "$HOME/.rvm/scripts/rvm"; fi\n'
        "type rvm | head -n 1\n"
        "rvm pkg install openssl\n"
        f'rvm install {RUBY_VERSION} --with-openssl-dir="$HOME/.rvm/usr"\n'
        f"rvm use {RUBY_VERSION} --default\n"
        "gem install capistrano -v 3.16.0\n"
        "gem install capistrano-bundler capistrano-passenger capistrano-rails capistrano-nvm"
        " specific_install activesupport\n"
        "gem specific_install https://github.com/freddy-dev/rvm.git\n"
    )


__all__ = [
    "common",
    "clone_action",
    "clone_project",
    "build_docker_projects",
    "generate_ssh_key",
]
