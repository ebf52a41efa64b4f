"""
Adjacency representation of a pathway's prerequisite graph.

Edges point from a module to each of its direct prerequisites; groups are
flattened, so the graph only answers "which keys does this module depend on",
not how they combine.
"""

from typing import Dict, Iterable, List, Protocol, Sequence, Set

from learnpath.engines.prerequisites.normalization import flatten_prerequisites

Graph = Dict[str, List[str]]


class GraphNode(Protocol):
    """Anything with a key and DNF prerequisites: ORM rows or drafts."""

    key: str
    prerequisites: Sequence[Sequence[str]]


def build_graph(modules: Iterable[GraphNode]) -> Graph:
    """
    Map each module key to its flattened, de-duplicated direct prerequisites.

    Later entries win when a key repeats, so a proposed version of a module can
    be appended after the persisted list to simulate the post-mutation graph.
    """
    graph: Graph = {}
    for module in modules:
        graph[module.key] = flatten_prerequisites(module.prerequisites or [])
    return graph


def ancestors(key: str, graph: Graph) -> Set[str]:
    """All keys transitively reachable from ``key``. Safe on cyclic graphs."""
    found: Set[str] = set()
    stack = list(graph.get(key, ()))
    while stack:
        current = stack.pop()
        if current in found:
            continue
        found.add(current)
        stack.extend(p for p in graph.get(current, ()) if p not in found)
    return found
