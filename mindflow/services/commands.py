"""
Command handlers for direct edits to a thought set.

Every handler takes a snapshot and returns a new one; the input is never
mutated. Empty categories are pruned, and a set with no categories left is
returned as None (cleared).
"""

import logging
from dataclasses import replace
from typing import Callable, Dict, Optional

from mindflow.config import log_event, NEW_CATEGORY_NAME
from mindflow.errors import ValidationError
from mindflow.models import AUDIO, AudioCategorization, CategoryGroup, Thought, ThoughtSet
from mindflow.services.reconcile import find_category_index, prune_empty_groups


def _copy(thought_set: Optional[ThoughtSet]) -> ThoughtSet:
    return [CategoryGroup(name=g.name, members=list(g.members)) for g in thought_set or []]


def _finalize(groups: ThoughtSet) -> Optional[ThoughtSet]:
    groups = prune_empty_groups(groups)
    return groups or None


def _check_category(groups: ThoughtSet, category_index) -> int:
    if not isinstance(category_index, int) or isinstance(category_index, bool):
        raise ValidationError(f"Category index must be an integer, got {category_index!r}")
    if not 0 <= category_index < len(groups):
        raise ValidationError(f"No category at index {category_index}")
    return category_index


def _check_thought(groups: ThoughtSet, category_index, thought_index) -> int:
    members = groups[_check_category(groups, category_index)].members
    if not isinstance(thought_index, int) or isinstance(thought_index, bool):
        raise ValidationError(f"Thought index must be an integer, got {thought_index!r}")
    if not 0 <= thought_index < len(members):
        raise ValidationError(f"No thought at index {thought_index} in category {category_index}")
    return thought_index


def get_thought(thought_set: Optional[ThoughtSet], category_index: int, thought_index: int) -> Thought:
    groups = thought_set or []
    t_index = _check_thought(groups, category_index, thought_index)
    return groups[category_index].members[t_index]


def _check_text(value, what: str) -> str:
    if not isinstance(value, str):
        raise ValidationError(f"{what} must be a string")
    return value


# --- CATEGORY COMMANDS ---

def create_category(thought_set: Optional[ThoughtSet], name: str = NEW_CATEGORY_NAME) -> ThoughtSet:
    """Append a new card holding one blank thought, ready to be edited."""
    name = _check_text(name, "Category name")
    groups = _copy(thought_set)
    groups.append(CategoryGroup(name=name, members=[Thought.text("")]))
    log_event(logging.INFO, "category_created", name=name)
    return groups


def rename_category(thought_set: Optional[ThoughtSet], category_index: int, name: str) -> Optional[ThoughtSet]:
    name = _check_text(name, "Category name")
    if not name.strip():
        raise ValidationError("Category name must not be blank")
    groups = _copy(thought_set)
    index = _check_category(groups, category_index)
    groups[index].name = name
    return _finalize(groups)


def delete_category(thought_set: Optional[ThoughtSet], category_index: int) -> Optional[ThoughtSet]:
    groups = _copy(thought_set)
    index = _check_category(groups, category_index)
    removed = groups.pop(index)
    log_event(logging.INFO, "category_deleted", name=removed.name, thoughts=len(removed.members))
    return _finalize(groups)


# --- THOUGHT COMMANDS ---

def add_thought(thought_set: Optional[ThoughtSet], category_index: int, content: str = "") -> Optional[ThoughtSet]:
    content = _check_text(content, "Thought content")
    groups = _copy(thought_set)
    index = _check_category(groups, category_index)
    groups[index].members.append(Thought.text(content))
    return _finalize(groups)


def edit_thought(
    thought_set: Optional[ThoughtSet],
    category_index: int,
    thought_index: int,
    content: str,
) -> Optional[ThoughtSet]:
    """Replace a thought's matchable content; audio keeps its recording."""
    content = _check_text(content, "Thought content")
    groups = _copy(thought_set)
    t_index = _check_thought(groups, category_index, thought_index)
    members = groups[category_index].members
    thought = members[t_index]
    if thought.kind == AUDIO:
        members[t_index] = replace(thought, transcript=content)
    else:
        members[t_index] = replace(thought, content=content)
    return _finalize(groups)


def delete_thought(thought_set: Optional[ThoughtSet], category_index: int, thought_index: int) -> Optional[ThoughtSet]:
    groups = _copy(thought_set)
    t_index = _check_thought(groups, category_index, thought_index)
    groups[category_index].members.pop(t_index)
    return _finalize(groups)


def move_thought(
    thought_set: Optional[ThoughtSet],
    from_category_index: int,
    thought_index: int,
    to_category_index: int,
) -> Optional[ThoughtSet]:
    """Move a thought to the end of another category (drag and drop)."""
    groups = _copy(thought_set)
    t_index = _check_thought(groups, from_category_index, thought_index)
    _check_category(groups, to_category_index)
    if from_category_index == to_category_index:
        return _finalize(groups)

    thought = groups[from_category_index].members.pop(t_index)
    groups[to_category_index].members.append(thought)
    log_event(
        logging.INFO,
        "thought_moved",
        thought_id=thought.id,
        source=groups[from_category_index].name,
        target=groups[to_category_index].name,
    )
    return _finalize(groups)


def insert_audio_thought(
    thought_set: Optional[ThoughtSet],
    categorization: AudioCategorization,
    audio_uri: str,
) -> ThoughtSet:
    """Add a freshly recorded note to its category, creating it if needed."""
    thought = Thought.audio(audio_uri, categorization.transcript, label=categorization.title)
    groups = _copy(thought_set)
    index = find_category_index(groups, categorization.category)
    if index == -1:
        groups.append(CategoryGroup(name=categorization.category, members=[thought]))
    else:
        groups[index].members.append(thought)
    log_event(logging.INFO, "audio_thought_inserted", category=categorization.category, thought_id=thought.id)
    return groups


# Commands reachable by name from the HTTP API
COMMANDS: Dict[str, Callable[..., Optional[ThoughtSet]]] = {
    "create_category": create_category,
    "rename_category": rename_category,
    "delete_category": delete_category,
    "add_thought": add_thought,
    "edit_thought": edit_thought,
    "delete_thought": delete_thought,
    "move_thought": move_thought,
}
