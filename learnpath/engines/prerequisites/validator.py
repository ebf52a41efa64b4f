"""
Prerequisite Validator - gatekeeper for every mutation of a pathway graph.

Checks run against the graph as it would look AFTER the mutation, built from
a fresh fetch of the pathway's modules. Nothing is written unless every check
passes.

Order of checks (first failure wins):
1. Identity (duplicate key or name)
2. Self reference
3. Existence of every referenced key
4. Cycles
5. Redundant edges, anywhere in the resulting graph
"""

from typing import Iterable, Optional, Sequence

from learnpath.engines.prerequisites.cycles import has_cycle
from learnpath.engines.prerequisites.graph import Graph, GraphNode, ancestors, build_graph
from learnpath.engines.prerequisites.normalization import (
    PrerequisiteGroups,
    flatten_prerequisites,
)
from learnpath.engines.prerequisites.redundancy import find_redundant_edge
from learnpath.kernel.errors import (
    CyclicDependencyError,
    DuplicateInBatchError,
    DuplicateKeyOrNameError,
    PrerequisiteNotFoundError,
    RedundantPrerequisiteError,
    SelfPrerequisiteError,
)


def ensure_unique_identity(
    key: Optional[str],
    name: Optional[str],
    pathway_modules: Iterable,
    exclude_key: Optional[str] = None,
) -> None:
    """
    Raise DuplicateKeyOrNameError if key or name is taken in the pathway.

    ``exclude_key`` skips the module being updated so it does not collide
    with itself.
    """
    for module in pathway_modules:
        if exclude_key is not None and module.key == exclude_key:
            continue
        if key is not None and module.key == key:
            raise DuplicateKeyOrNameError("key", key)
        if name is not None and module.name == name:
            raise DuplicateKeyOrNameError("name", name)


def validate_module(
    candidate_key: str,
    candidate_prerequisites: PrerequisiteGroups,
    pathway_modules: Sequence[GraphNode],
) -> None:
    """
    Validate one module's proposed prerequisites (create or update).

    Args:
        candidate_key: Key of the module being created or updated
        candidate_prerequisites: Canonical prerequisite groups it will have
        pathway_modules: Current persisted modules of the pathway. When
            updating, the candidate's old row may be included; it is
            replaced in the simulated graph.
    """
    referenced = flatten_prerequisites(candidate_prerequisites)

    if candidate_key in referenced:
        raise SelfPrerequisiteError(candidate_key)

    known = {module.key for module in pathway_modules}
    for key in referenced:
        if key not in known:
            raise PrerequisiteNotFoundError(key, candidate_key)

    graph = build_graph(pathway_modules)
    graph[candidate_key] = referenced
    _check_graph(graph, focus=candidate_key)


def validate_batch(
    candidates: Sequence[GraphNode],
    pathway_modules: Sequence[GraphNode],
) -> None:
    """
    Validate a set of new modules as a whole.

    Candidates may reference each other as well as persisted modules. Pass an
    empty ``pathway_modules`` to validate a complete replacement structure.
    """
    batch_keys = set()
    batch_names = set()
    for candidate in candidates:
        if candidate.key in batch_keys:
            raise DuplicateInBatchError("key", candidate.key)
        if candidate.name in batch_names:
            raise DuplicateInBatchError("name", candidate.name)
        batch_keys.add(candidate.key)
        batch_names.add(candidate.name)

    for candidate in candidates:
        ensure_unique_identity(candidate.key, candidate.name, pathway_modules)

    for candidate in candidates:
        if candidate.key in flatten_prerequisites(candidate.prerequisites):
            raise SelfPrerequisiteError(candidate.key)

    known = batch_keys | {module.key for module in pathway_modules}
    for candidate in candidates:
        for key in flatten_prerequisites(candidate.prerequisites):
            if key not in known:
                raise PrerequisiteNotFoundError(key, candidate.key)

    graph = build_graph([*pathway_modules, *candidates])
    _check_graph(graph)


def _check_graph(graph: Graph, focus: Optional[str] = None) -> None:
    if has_cycle(graph):
        if focus is None:
            # Name the first module that ends up among its own ancestors
            focus = next((key for key in graph if key in ancestors(key, graph)), None)
        raise CyclicDependencyError(focus)

    edge = find_redundant_edge(graph, prefer=focus)
    if edge is not None:
        raise RedundantPrerequisiteError(edge.module_key, edge.redundant_key, edge.via_key)
