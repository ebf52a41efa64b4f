"""
Plain data carriers passed from the API layer into the graph engine.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from learnpath.engines.prerequisites.normalization import PrerequisiteGroups


@dataclass
class ModuleDraft:
    """A module that does not exist yet (create, batch create, structure apply)."""

    key: str
    name: str
    prerequisites: PrerequisiteGroups = field(default_factory=list)
    concepts: List[str] = field(default_factory=list)
    description: str = ""
    content: List[Dict[str, Any]] = field(default_factory=list)


@dataclass
class ModulePatch:
    """Partial update of an existing module. None means "leave unchanged"."""

    key: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    prerequisites: Optional[PrerequisiteGroups] = None
    concepts: Optional[List[str]] = None
    content: Optional[List[Dict[str, Any]]] = None

    def changes(self) -> Dict[str, Any]:
        """Provided fields other than the immutable key."""
        values = {
            "name": self.name,
            "description": self.description,
            "prerequisites": self.prerequisites,
            "concepts": self.concepts,
            "content": self.content,
        }
        return {name: value for name, value in values.items() if value is not None}
