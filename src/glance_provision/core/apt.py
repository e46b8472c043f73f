# Copyright 2025 - Canonical Ltd
# SPDX-License-Identifier: Apache-2.0

import logging
import subprocess
import typing

from glance_provision.core import utils

LOG = logging.getLogger(__name__)

APT_CACHE = None

INSTALL_COMMANDS = {
    "debian": ("apt-get", ["install", "-y", "--no-install-recommends"]),
    "rhel": ("dnf", ["install", "-y"]),
    "fedora": ("dnf", ["install", "-y"]),
    "suse": ("zypper", ["--non-interactive", "install"]),
}


def get_cache():
    global APT_CACHE

    if APT_CACHE is None:
        import apt

        APT_CACHE = apt.Cache()

    return APT_CACHE


def pkgs_installed(pkgs: typing.List[str]) -> bool:
    apt_cache = get_cache()

    try:
        return all([apt_cache[pkg].is_installed for pkg in pkgs])
    except KeyError:
        return False


def rpm_installed(pkg: str) -> bool:
    try:
        utils.run("rpm", ["-q", pkg])
    except subprocess.CalledProcessError:
        return False
    return True


def missing(platform_family: str, pkgs: typing.List[str]) -> typing.List[str]:
    if platform_family == "debian":
        return [pkg for pkg in pkgs if not pkgs_installed([pkg])]
    return [pkg for pkg in pkgs if not rpm_installed(pkg)]


def ensure_installed(platform_family: str, pkgs: typing.List[str]):
    """Install the packages that are not installed yet."""
    if not pkgs:
        return
    try:
        cmd, args = INSTALL_COMMANDS[platform_family]
    except KeyError:
        raise RuntimeError(f"Unsupported platform family {platform_family!r}")
    to_install = missing(platform_family, pkgs)
    if not to_install:
        LOG.debug("Packages %r already installed", pkgs)
        return
    LOG.debug("Installing packages %r...", to_install)
    utils.run(cmd, [*args, *to_install])
    if platform_family == "debian":
        global APT_CACHE
        APT_CACHE = None
