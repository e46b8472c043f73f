# Copyright 2025 - Canonical Ltd
# SPDX-License-Identifier: Apache-2.0

from unittest.mock import Mock

import pytest

from glance_provision.core.cluster import Barrier
from glance_provision.core.recipe import Run
from glance_provision.core.state import ClusterStore

KEYSTONE = {
    "protocol": "http",
    "internal_url_host": "keystone.internal",
    "public_url_host": "keystone.public",
    "admin_port": 5000,
    "service_port": 5000,
    "admin_user": "admin",
    "admin_password": "adminpass",
    "admin_project": "admin",
    "endpoint_region": "RegionOne",
    "service_tenant": "service",
}
RABBITMQ = {
    "host": "rabbit.internal",
    "user": "openstack",
    "password": "rabbitpass",
    "vhost": "/openstack",
}
DATABASE = {"host": "db.internal"}


@pytest.fixture
def store(tmp_path):
    store = ClusterStore(tmp_path)
    store.save_config("openstack", "keystone", KEYSTONE)
    store.save_config("openstack", "rabbitmq", RABBITMQ)
    store.save_config("openstack", "database", DATABASE)
    return store


@pytest.fixture
def make_node(store):
    def make_node(name, attrs=None):
        node = store.node(name)
        for key, value in (attrs or {}).items():
            node.set(key, value)
        node.commit()
        return node

    return make_node


@pytest.fixture
def barrier():
    return Mock(spec=Barrier)


@pytest.fixture
def make_run(store, barrier):
    def make_run(node):
        return Run(store, node, barrier=barrier)

    return make_run


@pytest.fixture
def ha_attrs():
    def ha_attrs(founder, address="192.168.124.10", cluster="cluster1"):
        return {
            "roles": ["glance-server"],
            "network": {"admin": {"address": address}},
            "pacemaker": {
                "cluster_name": cluster,
                "founder": founder,
                "vhostnames": {
                    "admin": f"{cluster}.admin.example.com",
                    "public": f"{cluster}.public.example.com",
                },
            },
            "glance": {"ha": {"enabled": True}},
        }

    return ha_attrs
