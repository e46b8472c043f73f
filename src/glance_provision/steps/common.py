# Copyright 2025 - Canonical Ltd
# SPDX-License-Identifier: Apache-2.0

import logging

LOG = logging.getLogger(__name__)

PACKAGES = ["crudini"]
LOGS = ["/var/log/glance/"]


def converge(run):
    settings = run.settings
    LOG.debug(
        "Resolved settings for %r: region %r, memcached %r",
        run.node.name,
        settings["keystone"]["endpoint_region"],
        settings["memcached_servers"],
    )
