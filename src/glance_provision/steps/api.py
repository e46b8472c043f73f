# Copyright 2025 - Canonical Ltd
# SPDX-License-Identifier: Apache-2.0

import logging
import typing

from glance_provision import stores
from glance_provision.core import utils as core_utils
from glance_provision.services import keystone, network
from glance_provision.steps import common, ssl

LOG = logging.getLogger(__name__)

DEPENDENCIES = {common}
OPTIONAL_DEPENDENCIES = {ssl}
LOGS = ["/var/log/glance/"]

API_PACKAGES = {
    "rhel": "openstack-glance-api",
    "suse": "openstack-glance-api",
}
QEMU_PACKAGES = {
    "debian": "qemu-utils",
    "rhel": "qemu-img",
    "fedora": "qemu-img",
}
# installed whatever stores are enabled
STORE_CLIENTS = ["python3-cinderclient", "python3-swiftclient"]


def packages(run) -> typing.List[str]:
    family = run.node.get("platform_family")
    pkgs = [API_PACKAGES.get(family, "glance-api")]
    # qemu-img ships with the api package on suse
    if family in QEMU_PACKAGES:
        pkgs.append(QEMU_PACKAGES[family])
    return pkgs + STORE_CLIENTS


def api_options(run) -> typing.List[typing.Tuple[str, str, str]]:
    node = run.node
    settings = run.settings
    bind_host, bind_port = network.bind_settings(node, run.ha)
    options = [
        ("DEFAULT", "bind_host", bind_host),
        ("DEFAULT", "bind_port", str(bind_port)),
        ("DEFAULT", "enable_v1_api", str(node.get("glance.enable_v1")).lower()),
        ("DEFAULT", "transport_url", settings["rabbit"]["transport_url"]),
        ("oslo_messaging_rabbit", "ssl", settings["rabbit"]["use_ssl"]),
        ("database", "connection", settings["database"]["connection"]),
        ("paste_deploy", "flavor", "keystone"),
        *core_utils.dict_to_cfg_set_args(
            "keystone_authtoken", keystone.authtoken_service(settings["keystone"])
        ),
        (
            "keystone_authtoken",
            "memcached_servers",
            ",".join(settings["memcached_servers"]),
        ),
        ("glance_store", "stores", stores.stores_option(node)),
        ("glance_store", "default_store", node.get("glance.default_store")),
        (
            "glance_store",
            "filesystem_store_datadir",
            node.get("glance.filesystem_store_datadir"),
        ),
        ("glance_store", "default_swift_reference", "ref1"),
        (
            "glance_store",
            "swift_store_config_file",
            node.get("glance.swift.config_file"),
        ),
        (
            "glance_store",
            "swift_store_auth_insecure",
            str(settings["swift_insecure"]).lower(),
        ),
        (
            "glance_store",
            "cinder_api_insecure",
            str(settings["cinder_insecure"]).lower(),
        ),
    ]
    if node.get("glance.api.protocol") == "https":
        ssl_settings = node.get("glance.ssl")
        options += [
            ("DEFAULT", "cert_file", ssl_settings["certfile"]),
            ("DEFAULT", "key_file", ssl_settings["keyfile"]),
        ]
        if ssl_settings["cert_required"]:
            options.append(("DEFAULT", "ca_file", ssl_settings["ca_certs"]))
    profiler = settings["profiler"]
    if profiler.get("enabled"):
        options += [
            ("profiler", "enabled", "true"),
            ("profiler", "hmac_keys", profiler["hmac_keys"]),
            ("profiler", "connection_string", profiler["connection_string"]),
        ]
    return options


def swift_options(run) -> typing.List[typing.Tuple[str, str, str]]:
    settings = run.settings["keystone"]
    return core_utils.dict_to_cfg_set_args(
        "ref1",
        {
            "auth_version": "3",
            "auth_address": settings["public_auth_url"],
            "user": f"{settings['service_tenant']}:{settings['service_user']}",
            "key": settings["service_password"],
            "user_domain_id": "default",
            "project_domain_id": "default",
        },
    )


def converge(run):
    LOG.debug("Enabled stores: %s", stores.stores_option(run.node))
    core_utils.ensure_directory(
        run.node.get("glance.filesystem_store_datadir"), run.user, run.group
    )
    run.render(run.node.get("glance.api.config_file"), *api_options(run))
    run.render(run.node.get("glance.swift.config_file"), *swift_options(run))
