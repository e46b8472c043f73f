# Copyright 2025 - Canonical Ltd
# SPDX-License-Identifier: Apache-2.0

import json
import logging
import os
import pathlib
import tempfile
import typing

from glance_provision.core import attributes

LOG = logging.getLogger(__name__)

Path = typing.Union[str, typing.Sequence[str]]


def _split(path: Path) -> typing.List[str]:
    if isinstance(path, str):
        return path.split(".")
    return list(path)


def _write_json(path: pathlib.Path, data: dict):
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
    try:
        with os.fdopen(fd, "w") as f:
            json.dump(data, f, indent=2, sort_keys=True)
        os.replace(tmp, path)
    except BaseException:
        os.unlink(tmp)
        raise


class NodeStore:
    """Persisted attributes of a single cluster member.

    Reads see the persisted attributes merged over the packaged defaults,
    writes only touch the persisted layer and are not durable until
    ``commit`` is called.
    """

    name: str
    path: pathlib.Path

    def __init__(
        self,
        name: str,
        path: pathlib.Path,
        defaults: typing.Optional[dict] = None,
    ) -> None:
        self.name = name
        self.path = path
        self._defaults = attributes.DEFAULTS if defaults is None else defaults
        self._normal: dict = {}
        self.reload()

    def reload(self):
        if self.path.exists():
            self._normal = json.loads(self.path.read_text())
        else:
            self._normal = {}

    @property
    def attributes(self) -> dict:
        return attributes.merge(self._defaults, self._normal)

    def get(self, path: Path, default=None):
        value: typing.Any = self.attributes
        for key in _split(path):
            if not isinstance(value, dict) or key not in value:
                return default
            value = value[key]
        return value

    def set(self, path: Path, value):
        keys = _split(path)
        current = self._normal
        for key in keys[:-1]:
            current = current.setdefault(key, {})
        current[keys[-1]] = value

    def commit(self):
        LOG.debug("Saving node %r to %s", self.name, self.path)
        _write_json(self.path, self._normal)

    def __repr__(self) -> str:
        return f"NodeStore(name={self.name}, path={self.path})"


class ClusterStore:
    """Shared store holding every node and the upstream service configs.

    Layout::

        <root>/nodes/<node name>.json
        <root>/config/<group>/<name>.json
    """

    def __init__(self, root: typing.Union[str, pathlib.Path]) -> None:
        self.root = pathlib.Path(root)

    def node(self, name: str) -> NodeStore:
        return NodeStore(name, self.root / "nodes" / f"{name}.json")

    def nodes(self) -> typing.List[NodeStore]:
        nodes_dir = self.root / "nodes"
        if not nodes_dir.is_dir():
            return []
        return [self.node(path.stem) for path in sorted(nodes_dir.glob("*.json"))]

    def search(self, role: str) -> typing.List[NodeStore]:
        return [node for node in self.nodes() if role in node.get("roles", [])]

    def load_config(self, group: str, name: str) -> dict:
        path = self.root / "config" / group / f"{name}.json"
        if not path.exists():
            LOG.debug("No %s/%s config found in %s", group, name, self.root)
            return {}
        return json.loads(path.read_text())

    def save_config(self, group: str, name: str, config: dict):
        _write_json(self.root / "config" / group / f"{name}.json", config)
