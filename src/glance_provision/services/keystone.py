# Copyright 2025 - Canonical Ltd
# SPDX-License-Identifier: Apache-2.0

import logging
import typing

LOG = logging.getLogger(__name__)

INTERFACES = ("public", "internal", "admin")


def o7k(settings: typing.Dict[str, typing.Any]):
    """Connect to the identity service with the admin credentials."""
    import openstack

    return openstack.connect(
        auth_url=settings["admin_auth_url"],
        username=settings["admin_user"],
        password=settings["admin_password"],
        project_name=settings["admin_project"],
        user_domain_name="Default",
        project_domain_name="Default",
        region_name=settings["endpoint_region"],
        verify=not settings["insecure"],
    )


def auth_env(settings: typing.Dict[str, typing.Any]) -> typing.Dict[str, str]:
    """Environment for the command line clients, as the service user."""
    return {
        "OS_USERNAME": settings["service_user"],
        "OS_PASSWORD": settings["service_password"],
        "OS_PROJECT_NAME": settings["service_tenant"],
        "OS_USER_DOMAIN_NAME": "Default",
        "OS_PROJECT_DOMAIN_NAME": "Default",
        "OS_AUTH_URL": settings["public_auth_url"],
        "OS_IDENTITY_API_VERSION": "3",
    }


def authtoken_service(settings: typing.Dict[str, typing.Any]) -> typing.Dict[str, str]:
    return {
        "auth_url": settings["admin_auth_url"],
        "www_authenticate_uri": settings["public_auth_url"],
        "auth_type": "password",
        "project_domain_name": "Default",
        "user_domain_name": "Default",
        "project_name": settings["service_tenant"],
        "username": settings["service_user"],
        "password": settings["service_password"],
        "region_name": settings["endpoint_region"],
        "insecure": str(settings["insecure"]).lower(),
    }


def add_service(conn, name: str, type: str, description: str):
    LOG.debug("Ensuring service %r exists...", name)
    service = conn.identity.find_service(name, ignore_missing=True)
    if service is None:
        LOG.debug("Creating service %r...", name)
        return conn.identity.create_service(
            name=name, type=type, description=description
        )
    if service.type != type or service.description != description:
        LOG.debug("Updating service %r...", name)
        return conn.identity.update_service(
            service, type=type, description=description
        )
    return service


def add_endpoint(
    conn,
    service_name: str,
    region: str,
    public_url: str,
    admin_url: str,
    internal_url: str,
):
    LOG.debug("Ensuring endpoints %r exists...", service_name)
    service = conn.identity.find_service(service_name)
    urls = {"public": public_url, "internal": internal_url, "admin": admin_url}
    existing = {
        endpoint.interface: endpoint
        for endpoint in conn.identity.endpoints(service_id=service.id)
        if endpoint.region_id == region
    }
    for interface in INTERFACES:
        url = urls[interface]
        endpoint = existing.get(interface)
        if endpoint is None:
            LOG.debug("Creating endpoint %r:%s...", service_name, interface)
            conn.identity.create_endpoint(
                service_id=service.id, url=url, interface=interface, region_id=region
            )
        elif endpoint.url != url:
            LOG.debug("Updating endpoint %r:%s to %s", service_name, interface, url)
            conn.identity.update_endpoint(endpoint, url=url)
