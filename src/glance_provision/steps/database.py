# Copyright 2025 - Canonical Ltd
# SPDX-License-Identifier: Apache-2.0

import logging

from glance_provision.core.cluster import sync_section
from glance_provision.migration import MigrationCoordinator
from glance_provision.steps import register

LOG = logging.getLogger(__name__)

DEPENDENCIES = {register}


def converge(run):
    run.render(
        run.node.get("glance.manage.config_file"),
        ("database", "connection", run.settings["database"]["connection"]),
    )
    with sync_section(run.barrier, run.ha, "glance_database"):
        if MigrationCoordinator(run.node, run.ha).run():
            LOG.info("Database of %r synced", run.node.name)
