"""
Merge AI-proposed groupings with previously known thoughts.
"""

import logging
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Sequence

from mindflow.config import log_event, FALLBACK_CATEGORY
from mindflow.errors import ValidationError
from mindflow.models import CategoryGroup, ProposedGroup, Thought, ThoughtSet


def normalize_category_name(name: str) -> str:
    """Canonical form used for every category-name comparison."""
    return name.strip().lower()


def find_category_index(thought_set: Optional[ThoughtSet], name: str) -> int:
    """Index of the first group whose name matches `name`, or -1."""
    key = normalize_category_name(name)
    for index, group in enumerate(thought_set or []):
        if normalize_category_name(group.name) == key:
            return index
    return -1


def flatten_thoughts(thought_set: Optional[ThoughtSet]) -> List[Thought]:
    """All thoughts of a set, in display order."""
    return [thought for group in thought_set or [] for thought in group.members]


def prune_empty_groups(thought_set: Optional[ThoughtSet]) -> ThoughtSet:
    return [group for group in thought_set or [] if group.members]


def validate_proposed_groups(proposed_groups: Sequence[ProposedGroup]):
    """Reject malformed groupings before any reconciliation work."""
    if proposed_groups is None or isinstance(proposed_groups, (str, bytes, dict)):
        raise ValidationError("Proposed groups must be a sequence")
    for position, group in enumerate(proposed_groups):
        if not isinstance(group, ProposedGroup):
            raise ValidationError(f"Proposed group {position} is not a ProposedGroup")
        if not isinstance(group.category, str):
            raise ValidationError(f"Proposed group {position} has no category name")
        if group.excerpts is None or isinstance(group.excerpts, (str, bytes)):
            raise ValidationError(f"Proposed group {group.category!r} excerpts must be a list")
        for excerpt in group.excerpts:
            if not isinstance(excerpt, str):
                raise ValidationError(
                    f"Proposed group {group.category!r} has a non-string excerpt: {excerpt!r}"
                )


def merge_groups_by_name(proposed_groups: Sequence[ProposedGroup]) -> List[ProposedGroup]:
    """Fold groups whose names collide case-insensitively, keeping first-seen order."""
    merged: Dict[str, ProposedGroup] = {}
    for group in proposed_groups:
        key = normalize_category_name(group.category)
        if key in merged:
            merged[key].excerpts.extend(group.excerpts)
        else:
            merged[key] = ProposedGroup(category=group.category, excerpts=list(group.excerpts))
    return list(merged.values())


def reconcile(
    proposed_groups: Sequence[ProposedGroup],
    existing_thoughts: Iterable[Thought],
    merge_by_name: bool = False,
) -> ThoughtSet:
    """
    Build a new thought set from an AI grouping without losing known thoughts.

    Each excerpt either claims an existing thought with identical matchable
    content (exact, case-sensitive, first match wins) or becomes a new text
    thought. Existing thoughts never claimed land in the fallback category.
    """
    validate_proposed_groups(proposed_groups)
    if merge_by_name:
        proposed_groups = merge_groups_by_name(proposed_groups)

    # Keep the first occurrence of any repeated id
    existing: List[Thought] = []
    seen_ids = set()
    for thought in existing_thoughts:
        if not isinstance(thought, Thought):
            raise ValidationError(f"Existing thought must be a Thought, got {type(thought).__name__}")
        if thought.id not in seen_ids:
            seen_ids.add(thought.id)
            existing.append(thought)

    # Content -> thoughts still available to be claimed, oldest first
    lookup: Dict[str, List[Thought]] = defaultdict(list)
    for thought in existing:
        content = thought.matchable_content
        if content.strip():
            lookup[content].append(thought)

    consumed = set()
    matched = 0
    created = 0
    result: ThoughtSet = []

    for proposed in proposed_groups:
        members = []
        for excerpt in proposed.excerpts:
            candidates = lookup.get(excerpt)
            if candidates:
                thought = candidates.pop(0)
                consumed.add(thought.id)
                members.append(thought)
                matched += 1
            else:
                members.append(Thought.text(excerpt))
                created += 1
        result.append(CategoryGroup(name=proposed.category, members=members))

    leftovers = [thought for thought in existing if thought.id not in consumed]
    if leftovers:
        fallback_index = find_category_index(result, FALLBACK_CATEGORY)
        if fallback_index == -1:
            result.append(CategoryGroup(name=FALLBACK_CATEGORY, members=leftovers))
        else:
            result[fallback_index].members.extend(leftovers)

    result = prune_empty_groups(result)
    log_event(
        logging.INFO,
        "reconcile_complete",
        groups=len(result),
        matched=matched,
        created=created,
        fallback=len(leftovers),
    )
    return result
