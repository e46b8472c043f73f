# Copyright 2025 - Canonical Ltd
# SPDX-License-Identifier: Apache-2.0

"""Swift temp url key, needed by ironic's "direct" deploy interface."""

import logging
import secrets
import string

from glance_provision.services import keystone, swift
from glance_provision.steps import api

LOG = logging.getLogger(__name__)

DEPENDENCIES = {api}

IRONIC_ROLE = "ironic-server"
KEY_LENGTH = 20
KEY_ALPHABET = string.ascii_letters + string.digits


def secure_password(length: int = KEY_LENGTH) -> str:
    return "".join(secrets.choice(KEY_ALPHABET) for _ in range(length))


def wanted(run) -> bool:
    if not run.settings["swift_config"]:
        return False
    if run.node.get("glance.default_store") != "swift":
        return False
    ironics = run.store.search(IRONIC_ROLE)
    if not ironics:
        return False
    interfaces = ironics[0].get("ironic.enabled_deploy_interfaces", [])
    return "direct" in interfaces


def converge(run):
    if not wanted(run):
        LOG.debug("Swift temp url key not needed")
        return
    env = keystone.auth_env(run.settings["keystone"])
    insecure = run.settings["swift_insecure"]
    if swift.tempurl_key(env, insecure):
        LOG.debug("Swift temp url key already set")
        return
    # no tempurl key set, set a random one
    swift.set_tempurl_key(secure_password(), env, insecure, run.user, run.group)
