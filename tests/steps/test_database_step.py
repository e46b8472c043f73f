# Copyright 2025 - Canonical Ltd
# SPDX-License-Identifier: Apache-2.0

from unittest.mock import Mock, call, patch

import pytest

from glance_provision.steps import database

SYNC = call(
    "sudo",
    ["--user", "glance", "--group", "glance", "glance-manage", "db", "sync"],
    env=None,
)
METADEFS = call(
    "sudo",
    ["--user", "glance", "--group", "glance", "glance-manage", "db_load_metadefs"],
    env=None,
)


@pytest.fixture
def mock_run():
    with patch("glance_provision.core.utils.run") as mock_run:
        yield mock_run


def sudo_calls(mock_run):
    return [c for c in mock_run.call_args_list if c.args[0] == "sudo"]


def test_converge_without_ha(make_node, make_run, barrier, mock_run):
    node = make_node("node1", {"network": {"admin": {"address": "10.0.0.1"}}})
    run = make_run(node)

    database.converge(run)

    mock_run.assert_any_call(
        "crudini",
        [
            "--set",
            "/etc/glance/glance-manage.conf",
            "database",
            "connection",
            "mysql+pymysql://glance:@db.internal/glance",
        ],
    )
    assert sudo_calls(mock_run) == [SYNC, METADEFS]
    assert run.store.node("node1").get("glance.db_synced") is True
    barrier.enter.assert_not_called()

    mock_run.reset_mock()
    database.converge(make_run(run.store.node("node1")))
    assert sudo_calls(mock_run) == []


def test_converge_founder(make_node, make_run, barrier, ha_attrs, mock_run):
    node = make_node("node1", ha_attrs("node1"))
    manager = Mock()
    manager.attach_mock(barrier, "barrier")
    manager.attach_mock(mock_run, "run")

    database.converge(make_run(node))

    assert sudo_calls(mock_run) == [SYNC, METADEFS]
    ordered = [
        c[0] if c[0] == "barrier.enter" else c.args[0]
        for c in manager.mock_calls
        if c[0] == "barrier.enter" or (c[0] == "run" and c.args[0] == "sudo")
    ]
    assert ordered == ["barrier.enter", "sudo", "sudo", "barrier.enter"]
    assert barrier.enter.call_args_list == [
        call("wait-glance_database"),
        call("create-glance_database"),
    ]


def test_converge_peer(make_node, make_run, barrier, ha_attrs, mock_run):
    node = make_node("node2", ha_attrs("node1"))

    database.converge(make_run(node))

    assert sudo_calls(mock_run) == []
    assert node.get("glance.db_synced") is False
    assert barrier.enter.call_count == 2
