# Copyright 2025 - Canonical Ltd
# SPDX-License-Identifier: Apache-2.0

"""One-time database migration, run once per cluster.

The schema sync and the metadefs load only run on a node that has not been
marked as synced, and in HA only on the cluster founder. The synced mark is
committed once the metadefs load completes, so a run that dies in between
starts over from ``db sync`` next time.
"""

import logging
import typing

from glance_provision.core import utils as core_utils
from glance_provision.core.cluster import HAState
from glance_provision.core.state import NodeStore

LOG = logging.getLogger(__name__)

DB_SYNCED = "glance.db_synced"
DB_METADEFS = "glance.db_metadefs"

MANAGE = "glance-manage"
SYNC_ARGS = ["db", "sync"]
METADEFS_ARGS = ["db_load_metadefs"]

Runner = typing.Callable[[str, typing.Sequence[str]], typing.Any]


class SyncToken(typing.NamedTuple):
    """Proof that ``db sync`` ran in this run."""

    node: str


class MigrationCoordinator:
    def __init__(
        self,
        node: NodeStore,
        ha: HAState,
        runner: typing.Optional[Runner] = None,
    ) -> None:
        self.node = node
        self.ha = ha
        if runner is None:
            user, group = node.get("glance.user"), node.get("glance.group")

            def runner(cmd, args):
                return core_utils.sudo(cmd, args, user=user, group=group)

        self.runner = runner

    def eligible(self, flag: str) -> bool:
        return not self.node.get(flag) and (not self.ha.enabled or self.ha.founder)

    def sync(self) -> typing.Optional[SyncToken]:
        if not self.eligible(DB_SYNCED):
            LOG.debug(
                "Skipping %s db sync on %r (synced=%s, ha=%s)",
                MANAGE,
                self.node.name,
                self.node.get(DB_SYNCED),
                self.ha,
            )
            return None
        LOG.debug("Running %s db sync...", MANAGE)
        self.runner(MANAGE, SYNC_ARGS)
        return SyncToken(self.node.name)

    def load_metadefs(self, token: typing.Optional[SyncToken]) -> bool:
        """Load the metadefs and mark the node synced.

        Returns whether the synced mark was committed. The mark follows the
        metadefs load, so a node already flagged with db_metadefs keeps
        db_synced unset.
        """
        if token is None:
            return False
        if self.node.get(DB_METADEFS):
            LOG.debug("Metadefs already loaded on %r", self.node.name)
            return False
        LOG.debug("Running %s db_load_metadefs...", MANAGE)
        self.runner(MANAGE, METADEFS_ARGS)
        self.node.set(DB_SYNCED, True)
        self.node.commit()
        return True

    def run(self) -> bool:
        return self.load_metadefs(self.sync())
