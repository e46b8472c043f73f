# Copyright 2025 - Canonical Ltd
# SPDX-License-Identifier: Apache-2.0

import logging
import typing

from glance_provision.core import utils as core_utils
from glance_provision.core.cluster import HAState
from glance_provision.core.state import NodeStore

LOG = logging.getLogger(__name__)


def admin_address(node: NodeStore) -> str:
    address = node.get("network.admin.address")
    if address:
        return address
    LOG.debug("No admin address for %r, using default route address", node.name)
    return core_utils.my_ip()


def _vhostname(node: NodeStore, network: str) -> str:
    vhost = node.get(("pacemaker", "vhostnames", network))
    if not vhost:
        raise RuntimeError(
            f"No {network} virtual hostname for cluster "
            f"{node.get('pacemaker.cluster_name')!r}"
        )
    return vhost


def admin_host(node: NodeStore, ha: HAState) -> str:
    if ha.enabled:
        return _vhostname(node, "admin")
    return admin_address(node)


def public_host(node: NodeStore, ssl: bool, ha: HAState) -> str:
    if ha.enabled:
        return _vhostname(node, "public")
    if node.get("public_name"):
        return node.get("public_name")
    if ssl and node.get("fqdn"):
        return node.get("fqdn")
    return node.get("network.public.address") or admin_address(node)


def endpoint_hosts(node: NodeStore, ha: HAState) -> typing.Tuple[str, str]:
    """Return (admin, public) hosts to advertise in the endpoint URLs."""
    ssl = node.get("glance.api.protocol") == "https"
    admin = admin_host(node, ha)
    # If we let the service bind to all IPs, then the service is obviously
    # usable from the public network. Otherwise, the endpoint URL should use
    # the unique IP that will be listened on.
    if node.get("glance.api.bind_open_address"):
        return admin, public_host(node, ssl, ha)
    return admin, admin


def bind_settings(node: NodeStore, ha: HAState) -> typing.Tuple[str, int]:
    if ha.enabled:
        return admin_address(node), node.get("glance.ha.ports.api")
    if node.get("glance.api.bind_open_address"):
        host = "0.0.0.0"
    else:
        host = admin_address(node)
    return host, node.get("glance.api.bind_port")
