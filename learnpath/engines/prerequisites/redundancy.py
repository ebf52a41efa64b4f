"""
Redundant prerequisite detection.

A direct prerequisite P of module M is redundant when P is already a
transitive ancestor of another direct prerequisite of M: declaring both
"basics" and "intermediate" is pointless when "intermediate" already
requires "basics".
"""

from dataclasses import dataclass
from typing import Dict, Optional, Set

from learnpath.engines.prerequisites.graph import Graph


@dataclass(frozen=True)
class RedundantEdge:
    """Edge module_key -> redundant_key, implied by module_key -> via_key."""

    module_key: str
    redundant_key: str
    via_key: str


def transitive_closure(graph: Graph) -> Dict[str, Set[str]]:
    """
    Ancestor set of every node, by fixed-point iteration.

    Iteration is capped at the node count so it also terminates on cyclic
    input, although callers are expected to reject cycles first.
    """
    closure: Dict[str, Set[str]] = {node: set(prereqs) for node, prereqs in graph.items()}

    for _ in range(len(closure) + 1):
        changed = False
        for reach in closure.values():
            additions: Set[str] = set()
            for ancestor in reach:
                indirect = closure.get(ancestor)
                if indirect:
                    additions |= indirect - reach
            if additions:
                reach |= additions
                changed = True
        if not changed:
            break

    return closure


def find_redundant_edge(graph: Graph, prefer: Optional[str] = None) -> Optional[RedundantEdge]:
    """
    Find the first redundant direct prerequisite in an acyclic graph.

    Args:
        graph: Flattened adjacency map (see build_graph)
        prefer: Module key to inspect first, so errors name the module
            being edited when it is the offender

    Returns:
        The offending edge, or None when the graph has no redundancy
    """
    closure = transitive_closure(graph)

    order = list(graph)
    if prefer is not None and prefer in graph:
        order.remove(prefer)
        order.insert(0, prefer)

    for node in order:
        direct = graph[node]
        for via in direct:
            reach = closure.get(via)
            if not reach:
                continue
            for candidate in direct:
                if candidate != via and candidate in reach:
                    return RedundantEdge(node, candidate, via)
    return None


def has_redundancy(graph: Graph) -> bool:
    """True if any module declares a prerequisite already implied by a sibling."""
    return find_redundant_edge(graph) is not None
