"""
Plain-text views of a thought set: brain dump regeneration and Markdown export.
"""

import logging
from typing import Optional

from mindflow.config import log_event
from mindflow.models import AUDIO, TEXT, ThoughtSet


def regenerate_brain_dump(thought_set: Optional[ThoughtSet]) -> str:
    """Rebuild the free-text input from every non-blank text thought."""
    lines = [
        thought.content
        for group in thought_set or []
        for thought in group.members
        if thought.kind == TEXT and thought.content.strip()
    ]
    return "\n".join(lines)


def render_markdown(thought_set: Optional[ThoughtSet], title: str) -> str:
    """Render the set as a Markdown document, one section per category."""
    parts = [f"# {title}", ""]
    for group in thought_set or []:
        parts.append(f"## {group.name}")
        parts.append("")
        for thought in group.members:
            if thought.kind == AUDIO:
                label = thought.label or "Audio Note"
                parts.append(f"- 🎙 **{label}**: {thought.transcript or ''}".rstrip())
            else:
                parts.append(f"- {thought.content}")
        parts.append("")

    content = "\n".join(parts)
    log_event(logging.DEBUG, "markdown_rendered", groups=len(thought_set or []), bytes=len(content))
    return content
