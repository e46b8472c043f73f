# Copyright 2025 - Canonical Ltd
# SPDX-License-Identifier: Apache-2.0

import logging
import typing

from glance_provision.core.cluster import sync_section
from glance_provision.services import keystone, network
from glance_provision.steps import api

LOG = logging.getLogger(__name__)

DEPENDENCIES = {api}

SERVICE = "glance"
SERVICE_TYPE = "image"
SERVICE_DESCRIPTION = "Openstack Glance Service"


def endpoint_urls(run) -> typing.Dict[str, str]:
    admin_ip, public_ip = network.endpoint_hosts(run.node, run.ha)
    protocol = run.node.get("glance.api.protocol")
    port = run.node.get("glance.api.bind_port")
    return {
        "public": f"{protocol}://{public_ip}:{port}",
        "admin": f"{protocol}://{admin_ip}:{port}",
        "internal": f"{protocol}://{admin_ip}:{port}",
    }


def converge(run):
    settings = run.settings["keystone"]
    urls = endpoint_urls(run)
    with sync_section(run.barrier, run.ha, "glance_register_service"):
        conn = keystone.o7k(settings)
        try:
            keystone.add_service(conn, SERVICE, SERVICE_TYPE, SERVICE_DESCRIPTION)
            keystone.add_endpoint(
                conn,
                SERVICE,
                settings["endpoint_region"],
                public_url=urls["public"],
                admin_url=urls["admin"],
                internal_url=urls["internal"],
            )
        finally:
            conn.close()
