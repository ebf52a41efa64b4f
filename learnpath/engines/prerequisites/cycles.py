"""
Cycle detection over a prerequisite graph (Kahn's algorithm).
"""

from collections import deque
from typing import Dict

from learnpath.engines.prerequisites.graph import Graph


def has_cycle(graph: Graph) -> bool:
    """
    Return True if the graph contains a directed cycle.

    Edges run dependent -> prerequisite; a node's in-degree counts the edges
    that terminate at it. Keys that are only referenced (never listed as a
    node) still count as nodes. A self-loop is a cycle.
    """
    in_degree: Dict[str, int] = {node: 0 for node in graph}
    for prereqs in graph.values():
        for prereq in prereqs:
            in_degree[prereq] = in_degree.get(prereq, 0) + 1

    queue = deque(node for node, degree in in_degree.items() if degree == 0)
    processed = 0
    while queue:
        node = queue.popleft()
        processed += 1
        for prereq in graph.get(node, ()):
            in_degree[prereq] -= 1
            if in_degree[prereq] == 0:
                queue.append(prereq)

    return processed < len(in_degree)
