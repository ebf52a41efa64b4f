"""
Diff between a proposed pathway structure and the persisted modules.

Modules are matched by key. The plan is pure data; ModuleService applies it
inside one unit of work in the order deletes, updates, creates.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence

from learnpath.engines.prerequisites.drafts import ModuleDraft
from learnpath.engines.prerequisites.normalization import prerequisites_equal


@dataclass
class ModuleUpdate:
    key: str
    changes: Dict[str, Any]


@dataclass(frozen=True)
class StructureChanges:
    """Counts reported back to the caller after an apply."""

    created: int = 0
    updated: int = 0
    deleted: int = 0


@dataclass
class StructurePlan:
    creates: List[ModuleDraft] = field(default_factory=list)
    updates: List[ModuleUpdate] = field(default_factory=list)
    deletes: List[Any] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.creates or self.updates or self.deletes)

    def summary(self) -> StructureChanges:
        return StructureChanges(
            created=len(self.creates),
            updated=len(self.updates),
            deleted=len(self.deletes),
        )


def plan_structure(incoming: Sequence[ModuleDraft], existing: Sequence[Any]) -> StructurePlan:
    """
    Compute creates, updates and deletes.

    An update is staged only when name, concepts or prerequisites actually
    differ; description and content of kept modules are never touched.
    Prerequisites compare structurally, so reordering groups is not a change.
    """
    plan = StructurePlan()
    existing_by_key = {module.key: module for module in existing}
    incoming_keys = set()

    for draft in incoming:
        incoming_keys.add(draft.key)
        current = existing_by_key.get(draft.key)
        if current is None:
            plan.creates.append(draft)
            continue

        changes: Dict[str, Any] = {}
        if draft.name != current.name:
            changes["name"] = draft.name
        if list(draft.concepts) != list(current.concepts or []):
            changes["concepts"] = list(draft.concepts)
        if not prerequisites_equal(draft.prerequisites, current.prerequisites or []):
            changes["prerequisites"] = [list(group) for group in draft.prerequisites]
        if changes:
            plan.updates.append(ModuleUpdate(key=draft.key, changes=changes))

    plan.deletes = [module for module in existing if module.key not in incoming_keys]
    return plan
