"""Services package for MindFlow."""

from mindflow.services.reconcile import (
    normalize_category_name,
    find_category_index,
    flatten_thoughts,
    prune_empty_groups,
    reconcile,
)

from mindflow.services.storage import (
    ThoughtStore,
    JsonFileStore,
    MemoryStore,
)

from mindflow.services.markdown import (
    regenerate_brain_dump,
    render_markdown,
)

from mindflow.services.ai import (
    categorize_brain_dump,
    group_thoughts_into_categories,
    categorize_audio_note,
    transcribe_audio,
    transform_to_chatgpt_prompt,
)

from mindflow.services.processing import (
    analyze_brain_dump,
    reorganize_thoughts,
    add_audio_note,
    apply_command,
    clear_thoughts,
    chatgpt_link,
    broadcast_event,
)

__all__ = [
    # Reconciliation
    "normalize_category_name",
    "find_category_index",
    "flatten_thoughts",
    "prune_empty_groups",
    "reconcile",
    # Storage
    "ThoughtStore",
    "JsonFileStore",
    "MemoryStore",
    # Markdown
    "regenerate_brain_dump",
    "render_markdown",
    # AI
    "categorize_brain_dump",
    "group_thoughts_into_categories",
    "categorize_audio_note",
    "transcribe_audio",
    "transform_to_chatgpt_prompt",
    # Processing
    "analyze_brain_dump",
    "reorganize_thoughts",
    "add_audio_note",
    "apply_command",
    "clear_thoughts",
    "chatgpt_link",
    "broadcast_event",
]
