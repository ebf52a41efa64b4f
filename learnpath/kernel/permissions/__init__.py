"""
Permission Core - pathway ownership.
"""

from learnpath.kernel.permissions.ownership import (
    PathwayAccess,
    ensure_pathway_owner,
    is_pathway_owner,
)

__all__ = [
    "PathwayAccess",
    "ensure_pathway_owner",
    "is_pathway_owner",
]
