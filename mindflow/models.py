"""
Data structures (dataclasses) for MindFlow.
"""

import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from mindflow.errors import ValidationError

TEXT = "text"
AUDIO = "audio"
THOUGHT_KINDS = (TEXT, AUDIO)


def new_thought_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class Thought:
    """A single captured note, text or audio."""
    id: str
    kind: str  # "text" or "audio"
    content: str  # literal text, or a data URI for audio
    transcript: Optional[str] = None
    label: Optional[str] = None

    @property
    def matchable_content(self) -> str:
        """The string compared against AI excerpts."""
        if self.kind == AUDIO:
            return self.transcript or ""
        return self.content or ""

    @classmethod
    def text(cls, content: str) -> "Thought":
        return cls(id=new_thought_id(), kind=TEXT, content=content)

    @classmethod
    def audio(cls, content: str, transcript: str, label: Optional[str] = None) -> "Thought":
        return cls(id=new_thought_id(), kind=AUDIO, content=content, transcript=transcript, label=label)

    def to_dict(self) -> Dict:
        data = {"id": self.id, "type": self.kind, "content": self.content}
        if self.transcript is not None:
            data["transcription"] = self.transcript
        if self.label is not None:
            data["label"] = self.label
        return data

    @classmethod
    def from_dict(cls, data: Dict) -> "Thought":
        if not isinstance(data, dict):
            raise ValidationError(f"Thought must be an object, got {type(data).__name__}")
        kind = data.get("type", TEXT)
        if kind not in THOUGHT_KINDS:
            raise ValidationError(f"Unknown thought type: {kind!r}")
        content = data.get("content", "")
        if not isinstance(content, str):
            raise ValidationError(f"Thought content must be a string, got {type(content).__name__}")
        for key in ("transcription", "label"):
            value = data.get(key)
            if value is not None and not isinstance(value, str):
                raise ValidationError(f"Thought {key} must be a string, got {type(value).__name__}")
        thought_id = data.get("id")
        if thought_id is not None and not isinstance(thought_id, str):
            raise ValidationError(f"Thought id must be a string, got {type(thought_id).__name__}")
        return cls(
            id=thought_id or new_thought_id(),
            kind=kind,
            content=content,
            transcript=data.get("transcription"),
            label=data.get("label"),
        )


@dataclass
class CategoryGroup:
    """A named bucket of thoughts, in display order."""
    name: str
    members: List[Thought] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {"category": self.name, "thoughts": [t.to_dict() for t in self.members]}

    @classmethod
    def from_dict(cls, data: Dict) -> "CategoryGroup":
        if not isinstance(data, dict):
            raise ValidationError(f"Category must be an object, got {type(data).__name__}")
        name = data.get("category")
        if not isinstance(name, str):
            raise ValidationError("Category name must be a string")
        thoughts = data.get("thoughts") or []
        if not isinstance(thoughts, list):
            raise ValidationError(f"Category {name!r} thoughts must be a list")
        return cls(name=name, members=[Thought.from_dict(t) for t in thoughts])


# The full persisted state for a session
ThoughtSet = List[CategoryGroup]


@dataclass
class ProposedGroup:
    """One category of an AI grouping: a name plus the excerpts assigned to it."""
    category: str
    excerpts: List[str]


@dataclass
class AudioCategorization:
    """Result of analyzing a recorded audio note."""
    category: str
    title: str
    transcript: str


def thought_set_to_list(thought_set: Optional[ThoughtSet]) -> List[Dict]:
    """Serialize a thought set to plain JSON-compatible data."""
    return [group.to_dict() for group in thought_set or []]


def thought_set_from_list(data: Optional[List[Dict]]) -> Optional[ThoughtSet]:
    """Deserialize stored data; empty or missing data means no state."""
    if not data:
        return None
    if not isinstance(data, list):
        raise ValidationError("Thought set must be a list of categories")
    groups = [CategoryGroup.from_dict(group) for group in data]
    # Empty categories are never kept
    return [group for group in groups if group.members] or None


def has_missing_ids(data) -> bool:
    """True when stored thoughts lack an id and will be assigned one on load."""
    if not isinstance(data, list):
        return False
    return any(
        isinstance(thought, dict) and not thought.get("id")
        for group in data if isinstance(group, dict)
        for thought in group.get("thoughts") or []
    )
