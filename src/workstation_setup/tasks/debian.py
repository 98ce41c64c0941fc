"""Installer actions for Debian and Ubuntu."""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Sequence

from ..execution.context import ExecutionContext
from ..models import Distribution
from .common import (
    append_lines_once,
    current_user,
    import_rvm_keys,
    install_nvm_node,
    install_pyenv_python,
    install_ruby_toolchain,
)
from .registry import ActionRegistry

debian = ActionRegistry("debian")

ZOOM_LIBRARIES = (
    "libglib2.0-0",
    "libgstreamer-plugins-base0.10-0",
    "libxcb-shape0",
    "libxcb-shm0",
    "libxcb-xfixes0",
    "libxcb-randr0",
    "libxcb-image0",
    "libfontconfig1",
    "libgl1-mesa-glx",
    "libxi6",
    "libsm6",
    "libxrender1",
    "libpulse0",
    "libxcomposite1",
    "libxslt1.1",
    "libsqlite3-0",
    "libxcb-keysyms1",
    "libxcb-xtest0",
    "ibus",
)
PYENV_BUILD_DEPS = (
    "curl", "git", "gnupg2", "build-essential", "libssl-dev", "zlib1g-dev", "libbz2-dev",
    "libreadline-dev", "libsqlite3-dev", "libncursesw5-dev", "xz-utils", "tk-dev", "libxml2-dev",
    "libxmlsec1-dev", "libffi-dev", "liblzma-dev",
)
WARP_DEB = "https://releases.warp.dev/stable/v0.2025.01.22.08.02.stable_05/warp-terminal_0.2025.01.22.08.02.stable.05_amd64.deb"


def _apt_update(context: ExecutionContext) -> None:
    context.runner.run(["sudo", "apt-get", "update", "-y"])


def _apt_install(context: ExecutionContext, packages: Sequence[str]) -> None:
    if not packages:
        return
    context.runner.run(["sudo", "apt-get", "install", "-y", *packages])


def _add_apt_source(context: ExecutionContext, line: str, list_name: str) -> None:
    context.runner.shell(f"echo '{line}' | sudo tee /etc/apt/sources.list.d/{list_name} > /dev/null")


def _install_downloaded_deb(context: ExecutionContext, url: str) -> None:
    """Download a .deb into a scratch directory and install it with dpkg."""

    with tempfile.TemporaryDirectory(prefix="workstation-setup-") as scratch:
        filename = url.rsplit("/", 1)[-1]
        context.runner.run(["wget", url], cwd=scratch)
        context.runner.shell(
            f"sudo dpkg -i {filename} || sudo apt-get -f install -y",
            cwd=scratch,
        )


@debian.register("install_vscode", label="VSCode")
def install_vscode(context: ExecutionContext) -> None:
    context.say("Installing VSCode...")
    _apt_update(context)
    _apt_install(context, ["wget", "gpg", "apt-transport-https"])
    with tempfile.TemporaryDirectory(prefix="workstation-setup-") as scratch:
        context.runner.shell(
            "wget -qO- https://packages.microsoft.com/keys/microsoft.asc | gpg --dearmor > packages.microsoft.gpg",
            cwd=scratch,
        )
        context.runner.run(
            ["sudo", "install", "-D", "-o", "root", "-g", "root", "-m", "644",
             "packages.microsoft.gpg", "/etc/apt/keyrings/packages.microsoft.gpg"],
            cwd=scratch,
        )
    _add_apt_source(
        context,
        "deb [arch=amd64,arm64,armhf signed-by=/etc/apt/keyrings/packages.microsoft.gpg] "
        "https://packages.microsoft.com/repos/code stable main",
        "vscode.list",
    )
    _apt_update(context)
    _apt_install(context, ["code"])


@debian.register("install_chrome", label="Google Chrome")
def install_chrome(context: ExecutionContext) -> None:
    context.say("Installing Google Chrome...")
    _apt_update(context)
    _apt_install(context, ["wget"])
    _install_downloaded_deb(context, "https://dl.google.com/linux/direct/google-chrome-stable_current_amd64.deb")


@debian.register("install_nvm_node", label="NVM + Node.js")
def install_nvm(context: ExecutionContext) -> None:
    context.say("Installing NVM and Node (v22)...")
    install_nvm_node(context)


@debian.register("install_dbeaver", label="DBeaver")
def install_dbeaver(context: ExecutionContext) -> None:
    context.say("Installing DBeaver CE...")
    context.runner.run(
        ["sudo", "wget", "-O", "/usr/share/keyrings/dbeaver.gpg.key", "https://dbeaver.io/debs/dbeaver.gpg.key"]
    )
    _add_apt_source(
        context,
        "deb [signed-by=/usr/share/keyrings/dbeaver.gpg.key] https://dbeaver.io/debs/dbeaver-ce /",
        "dbeaver.list",
    )
    _apt_update(context)
    _apt_install(context, ["dbeaver-ce"])


@debian.register("install_zoom", label="Zoom")
def install_zoom(context: ExecutionContext) -> None:
    context.say("Installing Zoom...")
    _apt_install(context, ["gdebi-core", "wget"])
    with tempfile.TemporaryDirectory(prefix="workstation-setup-") as scratch:
        context.runner.run(["wget", "https://zoom.us/client/latest/zoom_amd64.deb"], cwd=scratch)
        _apt_update(context)
        _apt_install(context, ZOOM_LIBRARIES)
        context.runner.run(["sudo", "gdebi", "-n", "zoom_amd64.deb"], cwd=scratch)


@debian.register("install_docker", label="Docker")
def install_docker(context: ExecutionContext) -> None:
    context.say("Installing Docker...")
    # Ubuntu and Debian publish separate docker repositories.
    flavour = "ubuntu" if context.distribution is Distribution.UBUNTU else "debian"
    _apt_update(context)
    _apt_install(context, ["ca-certificates", "curl", "gnupg", "lsb-release"])
    context.runner.run(["sudo", "install", "-m", "0755", "-d", "/etc/apt/keyrings"])
    context.runner.run(
        ["sudo", "curl", "-fsSL", f"https://download.docker.com/linux/{flavour}/gpg",
         "-o", "/etc/apt/keyrings/docker.asc"]
    )
    context.runner.run(["sudo", "chmod", "a+r", "/etc/apt/keyrings/docker.asc"])
    context.runner.shell(
        'echo "deb [arch=$(dpkg --print-architecture) signed-by=/etc/apt/keyrings/docker.asc] '
        f"https://download.docker.com/linux/{flavour} "
        '$(. /etc/os-release && echo "$VERSION_CODENAME") stable" '
        "| sudo tee /etc/apt/sources.list.d/docker.list > /dev/null"
    )
    _apt_update(context)
    _apt_install(
        context,
        ["docker-ce", "docker-ce-cli", "containerd.io", "docker-buildx-plugin", "docker-compose-plugin"],
    )
    context.runner.run(["sudo", "usermod", "-aG", "docker", current_user()])
    context.runner.run(["sudo", "systemctl", "enable", "docker.service"])
    context.runner.run(["sudo", "systemctl", "enable", "containerd.service"])
    context.say("Docker installed. You must log out/in or run 'newgrp docker' to use Docker as non-root.")


@debian.register("install_openvpn3", label="OpenVPN3")
def install_openvpn3(context: ExecutionContext) -> None:
    context.say("Installing OpenVPN 3...")
    context.runner.run(["sudo", "mkdir", "-p", "/etc/apt/keyrings"])
    context.runner.shell(
        "curl -fsSL https://packages.openvpn.net/packages-repo.gpg | sudo tee /etc/apt/keyrings/openvpn.asc > /dev/null"
    )
    context.runner.shell(
        'echo "deb [signed-by=/etc/apt/keyrings/openvpn.asc] '
        'https://packages.openvpn.net/openvpn3/debian $(lsb_release -cs) main" '
        "| sudo tee /etc/apt/sources.list.d/openvpn3.list > /dev/null"
    )
    _apt_update(context)
    _apt_install(context, ["openvpn3"])


@debian.register("install_warp", label="Warp Terminal")
def install_warp(context: ExecutionContext) -> None:
    context.say("Installing Warp Terminal...")
    _install_downloaded_deb(context, WARP_DEB)


@debian.register("install_pyenv_python", label="PyEnv + Python")
def install_pyenv(context: ExecutionContext) -> None:
    context.say("Installing PyEnv and Python 3.7.17...")
    _apt_update(context)
    _apt_install(context, PYENV_BUILD_DEPS)
    install_pyenv_python(context, Path.home() / ".profile")


@debian.register("install_rvm_ruby", label="RVM + Ruby")
def install_rvm(context: ExecutionContext) -> None:
    context.say("Installing RVM and Ruby 3.0.3...")
    import_rvm_keys(context)
    _apt_install(context, ["software-properties-common"])
    context.runner.run(["sudo", "apt-add-repository", "-y", "ppa:rael-gc/rvm"])
    _apt_update(context)
    _apt_install(context, ["rvm"])
    context.runner.run(["sudo", "usermod", "-a", "-G", "rvm", current_user()])
    append_lines_once(context, Path.home() / ".bashrc", ('source "/etc/profile.d/rvm.sh"',))
    install_ruby_toolchain(context)


@debian.register("install_sublime", label="Sublime Text")
def install_sublime(context: ExecutionContext) -> None:
    context.say("Installing Sublime Text...")
    context.runner.shell(
        "wget -qO - https://download.sublimetext.com/sublimehq-pub.gpg | gpg --dearmor"
        " | sudo tee /etc/apt/trusted.gpg.d/sublimehq-archive.gpg > /dev/null"
    )
    _add_apt_source(context, "deb https://download.sublimetext.com/ apt/stable/", "sublime-text.list")
    _apt_update(context)
    _apt_install(context, ["sublime-text"])
