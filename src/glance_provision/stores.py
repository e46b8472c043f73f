# Copyright 2025 - Canonical Ltd
# SPDX-License-Identifier: Apache-2.0

import typing

from glance_provision.core.state import NodeStore


def enabled_stores(node: NodeStore) -> typing.List[str]:
    stores = list(node.get("glance.glance_stores", []))
    if node.get("glance.vsphere.host"):
        stores.append("vmware")
    return list(dict.fromkeys(stores))


def stores_option(node: NodeStore) -> str:
    return ",".join(enabled_stores(node))
