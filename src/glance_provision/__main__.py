# Copyright 2025 - Canonical Ltd
# SPDX-License-Identifier: Apache-2.0

import argparse
import logging
import pathlib
import typing
from pprint import pprint

import glance_provision.steps
from glance_provision.core import apt, utils
from glance_provision.core.modules import get_execution_order, modules
from glance_provision.core.recipe import Run
from glance_provision.core.state import ClusterStore

LOG = logging.getLogger(__name__)

DEFAULT_STORE = "/var/lib/glance-provision"


def make_run(args) -> Run:
    store = ClusterStore(args.store)
    node = store.node(args.node or utils.fqdn())
    return Run(store, node, barrier_timeout=getattr(args, "barrier_timeout", None))


def step_packages(module, run: Run) -> typing.List[str]:
    if packages := getattr(module, "packages", None):
        return packages(run)
    return list(getattr(module, "PACKAGES", []))


def plan(run: Run, target: typing.Optional[str]):
    order = get_execution_order(glance_provision.steps, target, run)
    print(
        "Execution Order:",
    )
    pprint(order)


@utils.measure_time
def converge(run: Run, target: typing.Optional[str] = None):
    family = run.node.get("platform_family")
    try:
        for mod in get_execution_order(glance_provision.steps, target, run):
            with utils.measure("converge " + mod.name):
                apt.ensure_installed(family, step_packages(mod.module, run))
                mod.module.converge(run)
    except Exception as e:
        LOG.error("Failed to converge %s: %s", run.node.name, e)
        collect_logs()
        raise


def _output_log_file(path: pathlib.Path):
    with path.open() as log_file:
        for line in log_file:
            print(line, end="")


def collect_logs():
    logs = set()
    for mod in get_execution_order(glance_provision.steps):
        logs.update(getattr(mod.module, "LOGS", []))
    for log in sorted(logs):
        log_path = pathlib.Path(log)
        if not log_path.exists():
            continue
        with utils.banner(f"Collecting logs from {log}"):
            if log_path.is_dir():
                for log_file in sorted(log_path.iterdir()):
                    _output_log_file(log_file)
            else:
                _output_log_file(log_path)


def new_rollout(run: Run):
    revision = run.cluster.new_rollout(run.node)
    print(f"Rollout revision: {revision}")


def list_modules():
    _ = get_execution_order(glance_provision.steps)
    for module in modules():
        print(module)


def main(argv: typing.Optional[typing.List[str]] = None):
    parser = argparse.ArgumentParser(
        prog="glance-provision",
        description="Converge a Glance API node of an OpenStack cluster.",
    )
    parser.add_argument(
        "--store",
        default=DEFAULT_STORE,
        help=f"Shared cluster store directory (default: {DEFAULT_STORE}).",
    )
    parser.add_argument(
        "--node", help="Name of this node in the store (default: hostname -f)."
    )
    parser.add_argument(
        "--quiet", action="store_true", help="Only log INFO messages and above."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_common_arguments(subparser):
        subparser.add_argument(
            "target", nargs="?", help="Stop after this step (optional)."
        )

    parser_plan = subparsers.add_parser("plan", help="Show the step execution order.")
    add_common_arguments(parser_plan)

    parser_converge = subparsers.add_parser("converge", help="Converge this node.")
    add_common_arguments(parser_converge)
    parser_converge.add_argument(
        "--barrier-timeout",
        type=float,
        default=None,
        help="Seconds to wait for cluster peers at a sync mark (default: forever).",
    )

    subparsers.add_parser("list-steps", help="List available steps.")
    subparsers.add_parser(
        "new-rollout",
        help="Start a new rollout: cluster peers meet again at every sync mark.",
    )

    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO if args.quiet else logging.DEBUG)

    if args.command == "plan":
        plan(make_run(args), args.target)
    elif args.command == "converge":
        converge(make_run(args), args.target)
    elif args.command == "list-steps":
        list_modules()
    elif args.command == "new-rollout":
        new_rollout(make_run(args))


if __name__ == "__main__":
    main()
