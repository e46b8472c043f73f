# Copyright 2025 - Canonical Ltd
# SPDX-License-Identifier: Apache-2.0

from unittest.mock import Mock, patch

import pytest

from glance_provision import __main__ as cli


def test_step_packages(make_node, make_run):
    run = make_run(make_node("node1"))

    assert cli.step_packages(Mock(spec=["PACKAGES"], PACKAGES=["crudini"]), run) == [
        "crudini"
    ]
    assert cli.step_packages(Mock(spec=[]), run) == []
    module = Mock(spec=["packages"])
    module.packages.return_value = ["glance-api"]
    assert cli.step_packages(module, run) == ["glance-api"]


@patch("glance_provision.__main__.apt.ensure_installed")
@patch("glance_provision.__main__.get_execution_order")
def test_converge_runs_steps_in_order(mock_order, mock_install, make_node, make_run):
    calls = []
    steps = []
    for name in ("common", "api", "service"):
        module = Mock(spec=["PACKAGES", "converge"], PACKAGES=[name])
        module.converge.side_effect = lambda run, name=name: calls.append(name)
        step = Mock(module=module)
        step.name = name
        steps.append(step)
    mock_order.return_value = steps
    run = make_run(make_node("node1"))

    cli.converge(run)

    assert calls == ["common", "api", "service"]
    assert [c.args for c in mock_install.call_args_list] == [
        ("debian", ["common"]),
        ("debian", ["api"]),
        ("debian", ["service"]),
    ]


@patch("glance_provision.__main__.collect_logs")
@patch("glance_provision.__main__.apt.ensure_installed", Mock())
@patch("glance_provision.__main__.get_execution_order")
def test_converge_failure_collects_logs(
    mock_order, mock_collect_logs, make_node, make_run
):
    module = Mock(spec=["converge"])
    module.converge.side_effect = RuntimeError("boom")
    step = Mock(module=module)
    step.name = "common"
    mock_order.return_value = [step]

    with pytest.raises(RuntimeError):
        cli.converge(make_run(make_node("node1")))

    mock_collect_logs.assert_called_once()


@patch("glance_provision.__main__.converge")
def test_main_converge(mock_converge, tmp_path):
    cli.main(
        [
            "--store",
            str(tmp_path),
            "--node",
            "node1",
            "converge",
            "database",
            "--barrier-timeout",
            "30",
        ]
    )

    run, target = mock_converge.call_args.args
    assert target == "database"
    assert run.node.name == "node1"
    assert run.store.root == tmp_path


def test_main_new_rollout(store, make_node, ha_attrs, capsys):
    make_node("node1", ha_attrs("node1"))
    argv = ["--store", str(store.root), "--node", "node1", "new-rollout"]

    cli.main(argv)
    cli.main(argv)

    assert store.load_config("rollout", "cluster1") == {"revision": 3}
    assert capsys.readouterr().out.splitlines() == [
        "Rollout revision: 2",
        "Rollout revision: 3",
    ]
