# Copyright 2025 - Canonical Ltd
# SPDX-License-Identifier: Apache-2.0

import json

from glance_provision.core.state import ClusterStore, NodeStore


def test_defaults_without_node_file(tmp_path):
    node = NodeStore("node1", tmp_path / "node1.json")

    assert node.get("glance.db_synced") is False
    assert node.get("glance.api.bind_port") == 9292
    assert node.get("glance.missing") is None
    assert node.get("glance.missing", "x") == "x"
    assert node.get(("glance", "api", "protocol")) == "http"


def test_set_is_not_durable_until_commit(tmp_path):
    path = tmp_path / "nodes" / "node1.json"
    node = NodeStore("node1", path)

    node.set("glance.db_synced", True)
    assert node.get("glance.db_synced") is True
    assert not path.exists()

    node.commit()
    assert json.loads(path.read_text()) == {"glance": {"db_synced": True}}
    assert NodeStore("node1", path).get("glance.db_synced") is True


def test_persisted_values_merge_over_defaults(tmp_path):
    path = tmp_path / "node1.json"
    path.write_text(json.dumps({"glance": {"api": {"protocol": "https"}}}))

    node = NodeStore("node1", path)

    assert node.get("glance.api.protocol") == "https"
    assert node.get("glance.api.bind_port") == 9292


def test_reload_sees_peer_writes(tmp_path):
    path = tmp_path / "node1.json"
    node = NodeStore("node1", path)
    other = NodeStore("node1", path)

    other.set("glance.db_synced", True)
    other.commit()

    assert node.get("glance.db_synced") is False
    node.reload()
    assert node.get("glance.db_synced") is True


def test_cluster_store_search(tmp_path):
    store = ClusterStore(tmp_path)
    for name, roles in (("a", ["glance-server"]), ("b", ["ironic-server"])):
        node = store.node(name)
        node.set("roles", roles)
        node.commit()

    assert [node.name for node in store.nodes()] == ["a", "b"]
    assert [node.name for node in store.search("ironic-server")] == ["b"]
    assert store.search("nova-compute") == []


def test_cluster_store_config(tmp_path):
    store = ClusterStore(tmp_path)

    assert store.load_config("openstack", "swift") == {}

    store.save_config("openstack", "swift", {"protocol": "https"})
    assert store.load_config("openstack", "swift") == {"protocol": "https"}
