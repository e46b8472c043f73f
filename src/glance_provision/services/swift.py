# Copyright 2025 - Canonical Ltd
# SPDX-License-Identifier: Apache-2.0

import logging
import typing

from glance_provision.core import utils as core_utils

LOG = logging.getLogger(__name__)

TEMPURL_KEY_HEADER = "Meta Temp-Url-Key:"


def _opts(insecure: bool) -> typing.List[str]:
    return ["--insecure"] if insecure else []


def stat(env: typing.Dict[str, str], insecure: bool) -> typing.Dict[str, str]:
    output = core_utils.run("swift", [*_opts(insecure), "stat"], env=env)
    metadata = {}
    for line in output.splitlines():
        key, sep, value = line.partition(":")
        if sep:
            metadata.setdefault(key.strip(), value.strip())
    return metadata


def tempurl_key(env: typing.Dict[str, str], insecure: bool) -> str:
    return stat(env, insecure).get(TEMPURL_KEY_HEADER.rstrip(":"), "")


def set_tempurl_key(
    key: str,
    env: typing.Dict[str, str],
    insecure: bool,
    user: str,
    group: str,
):
    LOG.debug("Setting swift temp url key...")
    core_utils.sudo(
        "swift",
        [*_opts(insecure), "post", "-m", f"Temp-Url-Key:{key}"],
        user=user,
        group=group,
        env=env,
    )
