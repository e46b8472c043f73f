# Copyright 2025 - Canonical Ltd
# SPDX-License-Identifier: Apache-2.0

import logging
import pathlib
import shutil

from glance_provision.core import utils as core_utils

LOG = logging.getLogger(__name__)

PACKAGES = ["openssl"]


def enabled(run) -> bool:
    return run.node.get("glance.api.protocol") == "https"


def generate_certs(certfile: pathlib.Path, keyfile: pathlib.Path, fqdn: str):
    LOG.debug("Generating self signed certificate for %r...", fqdn)
    certfile.parent.mkdir(parents=True, exist_ok=True)
    keyfile.parent.mkdir(parents=True, exist_ok=True)
    core_utils.run(
        "openssl",
        [
            "req",
            "-x509",
            "-nodes",
            "-newkey",
            "rsa:2048",
            "-days",
            "3650",
            "-subj",
            f"/CN={fqdn}",
            "-keyout",
            str(keyfile),
            "-out",
            str(certfile),
        ],
    )
    return certfile


def converge(run):
    ssl = run.node.get("glance.ssl")
    certfile = pathlib.Path(ssl["certfile"])
    keyfile = pathlib.Path(ssl["keyfile"])

    if ssl["generate_certs"]:
        fqdn = run.node.get("fqdn") or core_utils.fqdn()
        core_utils.exists_cache(certfile)(generate_certs)(certfile, keyfile, fqdn)
    else:
        for path in (certfile, keyfile):
            if not path.exists():
                raise RuntimeError(
                    f"Certificate file {path} missing, "
                    "it must be provided when generate_certs is disabled"
                )
    if ssl["cert_required"] and not pathlib.Path(ssl["ca_certs"]).exists():
        raise RuntimeError(f"CA certificates {ssl['ca_certs']} missing")

    shutil.chown(keyfile, group=run.group)
    keyfile.chmod(0o640)
