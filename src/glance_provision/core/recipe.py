# Copyright 2025 - Canonical Ltd
# SPDX-License-Identifier: Apache-2.0

import functools
import logging
import typing

from glance_provision.core import utils
from glance_provision.core.cluster import (
    Barrier,
    Cluster,
    HAState,
    NullBarrier,
    StoreBarrier,
)
from glance_provision.core.state import ClusterStore, NodeStore

LOG = logging.getLogger(__name__)


class Run:
    """State of one convergence run on one node."""

    def __init__(
        self,
        store: ClusterStore,
        node: NodeStore,
        barrier: typing.Optional[Barrier] = None,
        barrier_timeout: typing.Optional[float] = None,
    ) -> None:
        self.store = store
        self.node = node
        self.cluster = Cluster(store)
        if barrier is None:
            if self.ha.enabled:
                barrier = StoreBarrier(self.cluster, node, timeout=barrier_timeout)
            else:
                barrier = NullBarrier()
        self.barrier = barrier
        self.changed_files: typing.Set[str] = set()

    @functools.cached_property
    def ha(self) -> HAState:
        return self.cluster.ha_state(self.node)

    @functools.cached_property
    def settings(self) -> dict:
        from glance_provision import settings

        return settings.resolve(self)

    @property
    def user(self) -> str:
        return self.node.get("glance.user")

    @property
    def group(self) -> str:
        return self.node.get("glance.group")

    def render(self, config_file: str, *args: typing.Tuple[str, str, str]):
        """Set the given options in config_file, recording whether it changed."""
        before = utils.file_digest(config_file)
        utils.cfg_set(config_file, *args)
        if utils.file_digest(config_file) != before:
            LOG.debug("%s changed", config_file)
            self.changed_files.add(config_file)
