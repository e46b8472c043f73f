# Copyright 2025 - Canonical Ltd
# SPDX-License-Identifier: Apache-2.0

import subprocess
import sys
from unittest.mock import Mock, patch

import pytest

import glance_provision.core.apt


@pytest.fixture
def mock_apt(monkeypatch):
    cache = {}
    apt = Mock(Cache=Mock(return_value=cache))

    monkeypatch.setitem(sys.modules, "apt", apt)
    monkeypatch.setattr("glance_provision.core.apt.APT_CACHE", None)
    yield apt


def test_get_cache(mock_apt):
    assert glance_provision.core.apt.get_cache() == mock_apt.Cache()
    assert glance_provision.core.apt.APT_CACHE == mock_apt.Cache()


def test_pkgs_installed(mock_apt):
    assert glance_provision.core.apt.pkgs_installed(["pkg"]) is False

    glance_provision.core.apt.APT_CACHE = None
    mock_apt.Cache()["pkg"] = Mock(is_installed=True)
    assert glance_provision.core.apt.pkgs_installed(["pkg"]) is True


@patch("glance_provision.core.apt.utils.run")
def test_ensure_installed_debian(mock_run, mock_apt):
    mock_apt.Cache()["crudini"] = Mock(is_installed=True)
    mock_apt.Cache()["glance-api"] = Mock(is_installed=False)

    glance_provision.core.apt.ensure_installed("debian", ["crudini", "glance-api"])

    mock_run.assert_called_once_with(
        "apt-get", ["install", "-y", "--no-install-recommends", "glance-api"]
    )
    assert glance_provision.core.apt.APT_CACHE is None


@patch("glance_provision.core.apt.utils.run")
def test_ensure_installed_nothing_missing(mock_run, mock_apt):
    mock_apt.Cache()["crudini"] = Mock(is_installed=True)

    glance_provision.core.apt.ensure_installed("debian", ["crudini"])

    mock_run.assert_not_called()


@patch("glance_provision.core.apt.utils.run")
def test_ensure_installed_suse(mock_run):
    def run(cmd, args):
        if cmd == "rpm" and args[-1] == "openstack-glance-api":
            raise subprocess.CalledProcessError(1, cmd)
        return ""

    mock_run.side_effect = run

    glance_provision.core.apt.ensure_installed(
        "suse", ["crudini", "openstack-glance-api"]
    )

    mock_run.assert_called_with(
        "zypper", ["--non-interactive", "install", "openstack-glance-api"]
    )


def test_ensure_installed_unknown_platform():
    with pytest.raises(RuntimeError):
        glance_provision.core.apt.ensure_installed("arch", ["glance-api"])
