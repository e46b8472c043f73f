# Copyright 2025 - Canonical Ltd
# SPDX-License-Identifier: Apache-2.0

"""Default node attributes.

Persisted node attributes are merged on top of these, so a node file only
needs to carry what differs from the defaults.
"""

import copy
import typing

DEFAULTS: typing.Dict[str, typing.Any] = {
    "platform_family": "debian",
    "fqdn": "",
    "roles": [],
    "network": {
        "admin": {"address": ""},
        "public": {"address": ""},
    },
    "public_name": "",
    "pacemaker": {
        "cluster_name": "",
        "founder": "",
        "vhostnames": {"admin": "", "public": ""},
    },
    "memcached": {"port": 11211},
    "glance": {
        "user": "glance",
        "group": "glance",
        "db_synced": False,
        "db_metadefs": False,
        "service_user": "glance",
        "service_password": "",
        "db": {"user": "glance", "password": "", "database": "glance"},
        "default_store": "file",
        "glance_stores": ["file", "http", "swift", "cinder", "rbd"],
        "vsphere": {"host": ""},
        "filesystem_store_datadir": "/var/lib/glance/images",
        "enable_v1": False,
        "api": {
            "protocol": "http",
            "bind_port": 9292,
            "bind_open_address": True,
            "config_file": "/etc/glance/glance-api.conf",
            "service_name": "glance-api",
        },
        "swift": {"config_file": "/etc/glance/glance-swift.conf"},
        "manage": {"config_file": "/etc/glance/glance-manage.conf"},
        "ha": {"enabled": False, "ports": {"api": 5500}},
        "ssl": {
            "generate_certs": False,
            "certfile": "/etc/glance/ssl/certs/signing_cert.pem",
            "keyfile": "/etc/glance/ssl/private/signing_key.pem",
            "cert_required": False,
            "ca_certs": "/etc/glance/ssl/certs/ca.pem",
        },
        "profiler": {"enabled": False, "hmac_keys": "", "connection_string": ""},
    },
}


def merge(base: dict, override: dict) -> dict:
    """Deep merge override into a copy of base; lists are replaced."""
    result = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = merge(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result
