# Copyright 2025 - Canonical Ltd
# SPDX-License-Identifier: Apache-2.0

import contextlib
import logging
import time
import typing

from glance_provision.core.state import ClusterStore, NodeStore

LOG = logging.getLogger(__name__)

SERVER_ROLE = "glance-server"
ROLLOUT_GROUP = "rollout"


class BarrierTimeout(RuntimeError):
    pass


class HAState(typing.NamedTuple):
    enabled: bool
    founder: bool


class Cluster:
    """Pacemaker-style cluster membership, backed by the shared store."""

    def __init__(self, store: ClusterStore) -> None:
        self.store = store

    def is_founder(self, node: NodeStore) -> bool:
        return bool(node.get("pacemaker.cluster_name")) and (
            node.get("pacemaker.founder") == node.name
        )

    def nodes(self, node: NodeStore, role: str) -> typing.List[NodeStore]:
        """Members of the node's cluster carrying role, the node included."""
        cluster_name = node.get("pacemaker.cluster_name")
        if not cluster_name:
            return [node]
        return [
            peer
            for peer in self.store.search(role)
            if peer.get("pacemaker.cluster_name") == cluster_name
        ]

    def ha_state(self, node: NodeStore) -> HAState:
        enabled = bool(node.get("glance.ha.enabled"))
        return HAState(enabled=enabled, founder=enabled and self.is_founder(node))

    def revision(self, node: NodeStore) -> int:
        """Current rollout revision of the node's cluster, 1 before any rollout."""
        cluster_name = node.get("pacemaker.cluster_name") or node.name
        return self.store.load_config(ROLLOUT_GROUP, cluster_name).get("revision", 1)

    def new_rollout(self, node: NodeStore) -> int:
        cluster_name = node.get("pacemaker.cluster_name") or node.name
        revision = self.revision(node) + 1
        self.store.save_config(ROLLOUT_GROUP, cluster_name, {"revision": revision})
        LOG.info("Cluster %s moved to rollout revision %d", cluster_name, revision)
        return revision


class Barrier:
    def enter(self, name: str):
        raise NotImplementedError


class NullBarrier(Barrier):
    def enter(self, name: str):
        LOG.debug("Sync mark %r ignored", name)


class StoreBarrier(Barrier):
    """Rendezvous of the cluster peers through marks in the shared store.

    Entering a barrier records the cluster's rollout revision under
    ``sync_marks.<name>`` on the local node and waits until every peer's
    mark has reached that revision. Reruns within a rollout write the same
    value, so a peer whose earlier run failed halfway still meets the others.
    """

    def __init__(
        self,
        cluster: Cluster,
        node: NodeStore,
        role: str = SERVER_ROLE,
        poll_interval: float = 5.0,
        timeout: typing.Optional[float] = None,
    ) -> None:
        self.cluster = cluster
        self.node = node
        self.role = role
        self.poll_interval = poll_interval
        self.timeout = timeout

    def _pending(self, name: str, revision: int) -> typing.List[str]:
        pending = []
        for peer in self.cluster.nodes(self.node, self.role):
            if peer.name == self.node.name:
                continue
            if peer.get(("sync_marks", name), 0) < revision:
                pending.append(peer.name)
        return pending

    def enter(self, name: str):
        revision = self.cluster.revision(self.node)
        self.node.reload()
        if self.node.get(("sync_marks", name), 0) < revision:
            self.node.set(("sync_marks", name), revision)
            self.node.commit()
        LOG.debug(
            "Waiting for peers at sync mark %r (revision %d)...", name, revision
        )

        start = time.monotonic()
        while True:
            pending = self._pending(name, revision)
            if not pending:
                break
            if self.timeout is not None and time.monotonic() - start > self.timeout:
                raise BarrierTimeout(
                    f"Timed out waiting for {', '.join(pending)} at sync mark {name!r}"
                )
            LOG.debug("Sync mark %r still waiting for %r", name, pending)
            time.sleep(self.poll_interval)
        LOG.debug("All peers reached sync mark %r", name)


@contextlib.contextmanager
def sync_section(barrier: Barrier, ha: HAState, name: str):
    """Run the body between the wait-<name> and create-<name> sync marks.

    Outside of HA no marks are entered. A failing body never enters the
    create-<name> mark.
    """
    if ha.enabled:
        barrier.enter(f"wait-{name}")
    yield
    if ha.enabled:
        barrier.enter(f"create-{name}")
