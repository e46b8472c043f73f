# Copyright 2025 - Canonical Ltd
# SPDX-License-Identifier: Apache-2.0

import logging

from glance_provision.core import utils as core_utils
from glance_provision.steps import api, database, register, tempurl

LOG = logging.getLogger(__name__)

DEPENDENCIES = {api, tempurl, register, database}


def converge(run):
    service = run.node.get("glance.api.service_name")
    core_utils.enable_service(service)
    if run.changed_files:
        LOG.debug("Restarting %s, changed: %r", service, sorted(run.changed_files))
        core_utils.restart_service(service)
    else:
        core_utils.start_service(service)
