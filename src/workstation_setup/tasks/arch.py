"""Installer actions for Arch Linux."""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Sequence

from ..execution.context import ExecutionContext
from .common import (
    current_user,
    import_rvm_keys,
    install_nvm_node,
    install_pyenv_python,
    install_ruby_toolchain,
)
from .registry import ActionRegistry

arch = ActionRegistry("arch")

PYENV_BUILD_DEPS = (
    "base-devel", "openssl", "zlib", "bzip2", "readline", "sqlite", "ncurses", "xz", "tk",
    "libffi", "libxml2", "libxmlsec", "liblzma",
)


def _pacman(context: ExecutionContext, *args: str) -> None:
    context.runner.run(["sudo", "pacman", *args])


def _yay(context: ExecutionContext, packages: Sequence[str]) -> None:
    context.runner.run(["yay", "-S", "--noconfirm", *packages])


@arch.register("update_system", label="System Update")
def update_system(context: ExecutionContext) -> None:
    context.say("Updating system (pacman -Syu)...")
    _pacman(context, "-Syu", "--noconfirm")


@arch.register("install_base_devel_git", label="Base-devel + Git")
def install_base_devel_git(context: ExecutionContext) -> None:
    context.say("Installing base-devel and git...")
    _pacman(context, "-S", "--needed", "--noconfirm", "base-devel", "git")


@arch.register("install_yay", label="yay (AUR helper)")
def install_yay(context: ExecutionContext) -> None:
    context.say("Installing yay (AUR helper)...")
    probe = context.runner.shell("command -v yay", check=False, capture=True)
    if probe.returncode == 0 and not context.dry_run:
        context.say("yay is already installed. Skipping...")
        return
    with tempfile.TemporaryDirectory(prefix="workstation-setup-") as scratch:
        context.runner.run(["git", "clone", "https://aur.archlinux.org/yay.git", "yay"], cwd=scratch)
        context.runner.run(["makepkg", "-si", "--noconfirm"], cwd=Path(scratch) / "yay")
    context.runner.run(["yay", "--version"])


@arch.register("install_vscode", label="Visual Studio Code")
def install_vscode(context: ExecutionContext) -> None:
    context.say("Installing Visual Studio Code (AUR)...")
    _yay(context, ["visual-studio-code-bin"])


@arch.register("install_chrome", label="Google Chrome")
def install_chrome(context: ExecutionContext) -> None:
    context.say("Installing Google Chrome (AUR)...")
    _yay(context, ["google-chrome"])


@arch.register("install_nvm_node", label="NVM + Node.js")
def install_nvm(context: ExecutionContext) -> None:
    context.say("Installing NVM + Node.js (v22)...")
    install_nvm_node(context)


@arch.register("install_dbeaver", label="DBeaver")
def install_dbeaver(context: ExecutionContext) -> None:
    context.say("Installing DBeaver...")
    _pacman(context, "-Sy", "--noconfirm", "dbeaver")


@arch.register("install_zoom", label="Zoom")
def install_zoom(context: ExecutionContext) -> None:
    context.say("Installing Zoom (AUR)...")
    _yay(context, ["zoom"])


@arch.register("install_docker", label="Docker + docker-compose")
def install_docker(context: ExecutionContext) -> None:
    context.say("Installing Docker + docker-compose...")
    _pacman(context, "-S", "--noconfirm", "docker", "docker-compose", "bash-completion")
    context.runner.run(["sudo", "systemctl", "enable", "docker.service"])
    context.runner.run(["sudo", "systemctl", "start", "docker.service"])
    context.runner.run(["sudo", "usermod", "-aG", "docker", current_user()])
    context.say("Docker installed. Log out/in (or use 'newgrp docker') to use Docker as non-root.")


@arch.register("install_openvpn3", label="OpenVPN3")
def install_openvpn3(context: ExecutionContext) -> None:
    context.say("Installing openvpn3 (AUR)...")
    _yay(context, ["openvpn3"])


@arch.register("install_warp", label="Warp Terminal")
def install_warp(context: ExecutionContext) -> None:
    context.say("Installing Warp Terminal (AUR)...")
    _yay(context, ["warp-terminal-bin"])


@arch.register("install_pyenv_python", label="PyEnv + Python")
def install_pyenv(context: ExecutionContext) -> None:
    context.say("Installing PyEnv + Python (3.7.17) on Arch...")
    _pacman(context, "-S", "--needed", "--noconfirm", *PYENV_BUILD_DEPS)
    install_pyenv_python(context, Path.home() / ".bashrc")


@arch.register("install_rvm_ruby", label="RVM + Ruby")
def install_rvm(context: ExecutionContext) -> None:
    context.say("Installing RVM + Ruby (3.0.3) on Arch...")
    _pacman(context, "-S", "--noconfirm", "gnupg", "curl")
    import_rvm_keys(context)
    context.runner.shell("curl -sSL https://get.rvm.io | bash -s stable")
    install_ruby_toolchain(context)


@arch.register("install_sublime", label="Sublime Text")
def install_sublime(context: ExecutionContext) -> None:
    context.say("Installing Sublime Text...")
    with tempfile.TemporaryDirectory(prefix="workstation-setup-") as scratch:
        context.runner.run(["curl", "-O", "https://download.sublimetext.com/sublimehq-pub.gpg"], cwd=scratch)
        context.runner.run(["sudo", "pacman-key", "--add", "sublimehq-pub.gpg"], cwd=scratch)
    context.runner.run(["sudo", "pacman-key", "--lsign-key", "8A8F901A"])
    context.runner.shell(
        "grep -q '^\\[sublime-text\\]' /etc/pacman.conf || "
        "echo -e '\\n[sublime-text]\\nServer = https://download.sublimetext.com/arch/stable/x86_64'"
        " | sudo tee -a /etc/pacman.conf > /dev/null"
    )
    _pacman(context, "-Syu", "--noconfirm", "sublime-text")
