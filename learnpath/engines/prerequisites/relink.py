"""
Dependent re-linking after a module is deleted.
"""

from dataclasses import dataclass
from typing import FrozenSet, Iterable, List, Set

from learnpath.engines.prerequisites.normalization import PrerequisiteGroups


@dataclass
class RelinkedModule:
    key: str
    prerequisites: PrerequisiteGroups


def relink_after_delete(deleted_key: str, dependents: Iterable) -> List[RelinkedModule]:
    """
    Remove ``deleted_key`` from every group that mentions it.

    A group left empty is dropped rather than kept as an always-satisfied
    alternative, and a group that now has the same members as an earlier one
    is dropped too. Modules that never referenced the key are not returned,
    and groups that did not contain it are left as they were.
    """
    relinked: List[RelinkedModule] = []
    for module in dependents:
        groups = module.prerequisites or []
        if not any(deleted_key in group for group in groups):
            continue

        rewritten: PrerequisiteGroups = []
        seen: Set[FrozenSet[str]] = set()
        for group in groups:
            remaining = [key for key in group if key != deleted_key]
            members = frozenset(remaining)
            if not remaining or members in seen:
                continue
            seen.add(members)
            rewritten.append(remaining)

        relinked.append(RelinkedModule(key=module.key, prerequisites=rewritten))
    return relinked
