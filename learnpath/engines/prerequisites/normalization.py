"""
Canonical prerequisite representation.

Prerequisites are disjunctive normal form over module keys: a list of groups,
where a module unlocks once ALL keys of ANY one group are complete. Inside the
system they are always ``List[List[str]]`` with:

- keys stripped and de-duplicated within a group (first occurrence wins)
- empty groups dropped, so "no prerequisites" is always ``[]``
- repeated groups (same member set) dropped

``normalize_prerequisites`` is the only place that looks at the shape of
externally supplied data. Request schemas and the generative-content parser
call it; the graph algorithms assume canonical input.
"""

import json
from collections import Counter
from typing import Any, Iterable, List, Sequence

PrerequisiteGroups = List[List[str]]


def normalize_prerequisites(raw: Any) -> PrerequisiteGroups:
    """
    Convert any accepted external shape into canonical groups.

    Accepted shapes:
        None or ""                    -> []
        JSON-encoded string           -> decoded, then normalized
        flat list of keys             -> a single group
        list of lists of keys         -> groups

    Raises:
        ValueError: For anything else (mixed lists, non-string keys, ...)
    """
    if raw is None:
        return []

    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            return []
        try:
            raw = json.loads(text)
        except json.JSONDecodeError as e:
            raise ValueError("Prerequisites string is not valid JSON") from e
        if isinstance(raw, str):
            raise ValueError("Prerequisites must be a list of module key groups")

    if not isinstance(raw, (list, tuple)):
        raise ValueError("Prerequisites must be a list of module key groups")

    # A flat list of keys is one AND-group
    if all(isinstance(item, str) for item in raw):
        raw = [raw]

    groups: PrerequisiteGroups = []
    seen: set = set()
    for group in raw:
        if not isinstance(group, (list, tuple)):
            raise ValueError("Each prerequisite group must be a list of module keys")
        keys: List[str] = []
        for key in group:
            if not isinstance(key, str):
                raise ValueError("Prerequisite module keys must be strings")
            key = key.strip()
            if key and key not in keys:
                keys.append(key)
        if not keys:
            continue
        signature = frozenset(keys)
        if signature in seen:
            continue
        seen.add(signature)
        groups.append(keys)
    return groups


def flatten_prerequisites(groups: Iterable[Sequence[str]]) -> List[str]:
    """Union of all group members, in first-seen order."""
    flat: List[str] = []
    seen: set = set()
    for group in groups or ():
        for key in group:
            if key not in seen:
                seen.add(key)
                flat.append(key)
    return flat


def prerequisites_equal(left: Any, right: Any) -> bool:
    """
    Structural equality of two prerequisite values.

    Member order inside a group and the order of groups are both ignored;
    the stored order is only kept for round-tripping.
    """
    left_groups = normalize_prerequisites(left)
    right_groups = normalize_prerequisites(right)
    return Counter(frozenset(g) for g in left_groups) == Counter(frozenset(g) for g in right_groups)
