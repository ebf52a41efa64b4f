"""
Prerequisite engine - validation and mutation of a pathway's module graph.

The pure graph functions are exported here; ModuleService lives in
``learnpath.engines.prerequisites.module_service`` because it depends on the
persistence layer.
"""

from learnpath.engines.prerequisites.cycles import has_cycle
from learnpath.engines.prerequisites.drafts import ModuleDraft, ModulePatch
from learnpath.engines.prerequisites.graph import ancestors, build_graph
from learnpath.engines.prerequisites.normalization import (
    flatten_prerequisites,
    normalize_prerequisites,
    prerequisites_equal,
)
from learnpath.engines.prerequisites.redundancy import (
    RedundantEdge,
    find_redundant_edge,
    has_redundancy,
    transitive_closure,
)
from learnpath.engines.prerequisites.relink import RelinkedModule, relink_after_delete
from learnpath.engines.prerequisites.structure_diff import (
    ModuleUpdate,
    StructureChanges,
    StructurePlan,
    plan_structure,
)
from learnpath.engines.prerequisites.validator import (
    ensure_unique_identity,
    validate_batch,
    validate_module,
)

__all__ = [
    "has_cycle",
    "ModuleDraft",
    "ModulePatch",
    "ancestors",
    "build_graph",
    "flatten_prerequisites",
    "normalize_prerequisites",
    "prerequisites_equal",
    "RedundantEdge",
    "find_redundant_edge",
    "has_redundancy",
    "transitive_closure",
    "RelinkedModule",
    "relink_after_delete",
    "ModuleUpdate",
    "StructureChanges",
    "StructurePlan",
    "plan_structure",
    "ensure_unique_identity",
    "validate_batch",
    "validate_module",
]
