# Copyright 2025 - Canonical Ltd
# SPDX-License-Identifier: Apache-2.0

"""Settings gathered from the services the image API depends on."""

import logging
import typing

from glance_provision.core.cluster import SERVER_ROLE
from glance_provision.services import network

LOG = logging.getLogger(__name__)

KEYSTONE_REQUIRED = (
    "protocol",
    "internal_url_host",
    "public_url_host",
    "admin_port",
    "service_port",
    "admin_user",
    "admin_password",
    "admin_project",
    "endpoint_region",
)


class SettingsError(RuntimeError):
    pass


def insecure(config: dict) -> bool:
    return config.get("protocol") == "https" and bool(
        config.get("ssl", {}).get("insecure", False)
    )


def _require(config: dict, name: str, keys: typing.Iterable[str]):
    if not config:
        raise SettingsError(f"No {name} configuration found")
    missing = [key for key in keys if key not in config]
    if missing:
        raise SettingsError(f"Missing {name} settings: {', '.join(missing)}")


def keystone_settings(run) -> typing.Dict[str, typing.Any]:
    config = run.store.load_config("openstack", "keystone")
    _require(config, "keystone", KEYSTONE_REQUIRED)
    settings = {key: config[key] for key in KEYSTONE_REQUIRED}
    protocol = settings["protocol"]
    settings["insecure"] = insecure(config)
    settings["admin_auth_url"] = (
        f"{protocol}://{settings['internal_url_host']}:{settings['admin_port']}/v3"
    )
    settings["public_auth_url"] = (
        f"{protocol}://{settings['public_url_host']}:{settings['service_port']}/v3"
    )
    settings["service_user"] = run.node.get("glance.service_user")
    settings["service_password"] = run.node.get("glance.service_password")
    settings["service_tenant"] = config.get("service_tenant", "service")
    return settings


def rabbit_settings(run) -> typing.Dict[str, str]:
    config = run.store.load_config("openstack", "rabbitmq")
    _require(config, "rabbitmq", ("host", "user", "password"))
    port = config.get("port", 5672)
    vhost = config.get("vhost", "/").lstrip("/")
    return {
        "transport_url": (
            f"rabbit://{config['user']}:{config['password']}"
            f"@{config['host']}:{port}/{vhost}"
        ),
        "use_ssl": str(bool(config.get("use_ssl", False))).lower(),
    }


def database_settings(run) -> typing.Dict[str, str]:
    config = run.store.load_config("openstack", "database")
    _require(config, "database", ("host",))
    db = run.node.get("glance.db")
    backend = config.get("backend", "mysql+pymysql")
    return {
        "connection": (
            f"{backend}://{db['user']}:{db['password']}"
            f"@{config['host']}/{db['database']}"
        ),
    }


def memcached_servers(run) -> typing.List[str]:
    if run.ha.enabled:
        nodes = run.cluster.nodes(run.node, SERVER_ROLE)
    else:
        nodes = [run.node]
    port = run.node.get("memcached.port")
    servers = []
    for node in nodes:
        # only the local node may fall back to its default route address
        if node.name != run.node.name and not node.get("network.admin.address"):
            raise SettingsError(f"No admin address known for cluster peer {node.name}")
        servers.append(f"{network.admin_address(node)}:{port}")
    return sorted(servers)


def resolve(run) -> typing.Dict[str, typing.Any]:
    """Merge the upstream configuration into one settings dict."""
    LOG.debug("Resolving settings for %r...", run.node.name)
    keystone = keystone_settings(run)
    swift_config = run.store.load_config("openstack", "swift")
    cinder_config = run.store.load_config("openstack", "cinder")
    return {
        "keystone": keystone,
        "rabbit": rabbit_settings(run),
        "database": database_settings(run),
        "swift_config": swift_config,
        "swift_insecure": insecure(swift_config) or keystone["insecure"],
        "cinder_insecure": insecure(cinder_config),
        "memcached_servers": memcached_servers(run),
        "profiler": run.node.get("glance.profiler"),
    }
