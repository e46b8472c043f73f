# Copyright 2025 - Canonical Ltd
# SPDX-License-Identifier: Apache-2.0

import importlib
import logging
import pathlib
import pkgutil
import types
import typing

import networkx as nx

LOG = logging.getLogger(__name__)
_MOD_REGISTRY: typing.MutableMapping[str, types.ModuleType] = {}

FIRST_STEP = "common"


def load_module(name: str, path: str):
    if name in _MOD_REGISTRY:
        return _MOD_REGISTRY[name]
    module_loaded = importlib.import_module(name)
    _MOD_REGISTRY[name] = module_loaded
    LOG.debug("Loaded module %r from %r", name, path)
    return module_loaded


def modules() -> typing.List[str]:
    return list(module.rsplit(".")[-1] for module in _MOD_REGISTRY.keys())


class ModuleComp:
    name: str
    module: types.ModuleType

    def __init__(self, name: str, module: types.ModuleType) -> None:
        self.name = name
        self.module = module

    @property
    def short_name(self) -> str:
        return self.name.rsplit(".")[-1]

    def __hash__(self) -> int:
        return hash(self.name) ^ hash(self.module.__file__)

    def __eq__(self, value: object) -> bool:
        if not isinstance(value, ModuleComp):
            return False
        if self.name == value.name and self.module.__file__ == value.module.__file__:
            return True
        return False

    def __str__(self) -> str:
        return self.name

    def __lt__(self, other: "ModuleComp") -> bool:
        return self.name < other.name

    def __repr__(self) -> str:
        return f"ModuleComp(name={self.name}, file={self.module.__file__})"


def step_enabled(module: types.ModuleType, run) -> bool:
    enabled = getattr(module, "enabled", None)
    if enabled is None or run is None:
        return True
    return bool(enabled(run))


def build_dependency_graph(modules_mod: types.ModuleType, run=None) -> nx.DiGraph:
    """Build a directed graph of dependencies.

    Without a run every step counts as enabled.
    """
    modules_dir = pathlib.Path(next(iter(modules_mod.__path__)))
    package = str(modules_mod.__package__)
    modules = list(pkgutil.iter_modules([str(modules_dir)]))
    graph: nx.DiGraph[ModuleComp] = nx.DiGraph()

    for module in modules:
        canonical_name = package + "." + module.name
        module_loaded = load_module(canonical_name, module.module_finder.path)
        mod = ModuleComp(
            canonical_name,
            module_loaded,
        )
        dependencies: set[types.ModuleType] = getattr(
            module_loaded, "DEPENDENCIES", set()
        )
        optional_dependencies: set[types.ModuleType] = getattr(
            module_loaded, "OPTIONAL_DEPENDENCIES", set()
        )
        # In case someone includes a dependency in both DEPENDENCIES and OPTIONAL_DEPENDENCIES
        dependencies = dependencies - optional_dependencies
        graph.add_node(mod, enabled=step_enabled(module_loaded, run))
        for dep in dependencies:
            graph.add_edge(ModuleComp(dep.__name__, dep), mod, optional=False)
        for dep in optional_dependencies:
            graph.add_edge(ModuleComp(dep.__name__, dep), mod, optional=True)

    return graph


def filter_graph(G: nx.DiGraph) -> nx.DiGraph:
    """Remove disabled steps and the steps that require them."""
    nodes_to_remove = {
        n for n, data in G.nodes(data=True) if not data.get("enabled", False)
    }

    def is_only_optional(n, to_remove: set):
        """If all predecessors are optional and removed, drop this node too.

        If there are no predecessors, then this node is not optional.
        """
        predecessors = list(G.predecessors(n))
        if not predecessors:
            return False

        return all(
            G.get_edge_data(pred, n).get("optional", False) and pred in to_remove
            for pred in predecessors
        )

    def is_missing_required(n, to_remove: set):
        """If a required predecessor is removed, then this node is removed."""
        predecessors = set(G.predecessors(n))
        if not predecessors:
            return False

        predecessors = {
            pred
            for pred in predecessors
            if not G.get_edge_data(pred, n, {}).get("optional", False)
        }
        return bool(predecessors.intersection(to_remove))

    changed = True
    while changed:
        changed = False
        for node in G.nodes:
            if node not in nodes_to_remove and (
                is_only_optional(node, nodes_to_remove)
                or is_missing_required(node, nodes_to_remove)
            ):
                nodes_to_remove.add(node)
                changed = True  # Ensure we check again after removals

    LOG.debug("Removing nodes %r", nodes_to_remove)

    G.remove_nodes_from(nodes_to_remove)

    return G


def get_subgraph_to_path(G: nx.DiGraph, target) -> nx.DiGraph:
    """Return subgraph to target."""
    subgraph = nx.ancestors(G, target)
    subgraph.add(target)
    return G.subgraph(subgraph)


def _first_step_first(order: typing.List[ModuleComp]) -> typing.List[ModuleComp]:
    first = [mod for mod in order if mod.short_name == FIRST_STEP]
    return first + [mod for mod in order if mod.short_name != FIRST_STEP]


def get_execution_order(
    modules_mod: types.ModuleType, target=None, run=None
) -> typing.List[ModuleComp]:
    """Determine the execution order of steps based on dependencies.

    The common step always comes first.
    """
    LOG.debug("Building dependency graph from %r...", modules_mod.__name__)

    graph = build_dependency_graph(modules_mod, run)
    graph = filter_graph(graph)

    if not nx.is_directed_acyclic_graph(graph):
        raise RuntimeError("Circular dependency detected!")

    order = list(nx.lexicographical_topological_sort(graph))
    if not target:
        return _first_step_first(order)

    for mod in order:
        if mod.short_name == target:
            end_node = mod
            break
    else:
        raise RuntimeError(f"Target {target!r} not found!")

    sg: nx.DiGraph[ModuleComp] = get_subgraph_to_path(graph, end_node)
    return _first_step_first(list(nx.lexicographical_topological_sort(sg)))
