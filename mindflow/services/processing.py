"""
Workflows that turn user input into a new, persisted thought set.
"""

import base64
import inspect
import logging
from typing import Dict, Optional

from mindflow.config import log_event
from mindflow.errors import ValidationError
from mindflow.models import ThoughtSet, thought_set_to_list
from mindflow.state import CONNECTED_CLIENTS, session_lock
from mindflow.services.ai import (
    build_chatgpt_url,
    categorize_audio_note,
    categorize_brain_dump,
    group_thoughts_into_categories,
    transform_to_chatgpt_prompt,
)
from mindflow.services.commands import COMMANDS, get_thought, insert_audio_thought
from mindflow.services.markdown import regenerate_brain_dump
from mindflow.services.reconcile import flatten_thoughts, reconcile
from mindflow.services.storage import ThoughtStore

SYNC_WARNING = "Your changes are shown but could not be saved. Please try again."


# --- SSE BROADCASTING ---

def broadcast_event(session_name: str, data: Dict):
    """Broadcast an event to all connected SSE clients for a session."""
    for client_queue in list(CONNECTED_CLIENTS.get(session_name, [])):
        try:
            client_queue.put(data)
        except Exception as e:
            log_event(logging.DEBUG, "sse_client_send_failed", session=session_name, error=str(e))
    log_event(logging.DEBUG, "sse_broadcast", session=session_name, type=data.get("type"))


# --- WRITE-BACK ---

def _commit(store: ThoughtStore, session_name: str, thought_set: Optional[ThoughtSet], action: str) -> Dict:
    """Persist the whole set, notify listeners and describe the outcome."""
    thoughts = thought_set_to_list(thought_set)
    persisted = store.save(thought_set)

    if persisted:
        broadcast_event(session_name, {"type": "thoughts_updated", "thoughts": thoughts, "action": action})
    else:
        log_event(logging.WARNING, "thought_set_not_persisted", session=session_name, action=action)

    result = {"status": "success", "action": action, "thoughts": thoughts, "persisted": persisted}
    if not persisted:
        result["warning"] = SYNC_WARNING
    return result


def _error(message: str, **data) -> Dict:
    return {"status": "error", "message": message, **data}


# --- ANALYSIS ---

def _regroup(store: ThoughtStore, session_name: str, current: Optional[ThoughtSet], brain_dump: str, action: str) -> Dict:
    """Classify, group and reconcile `brain_dump` against the current set."""
    categories = categorize_brain_dump(brain_dump)
    if not categories:
        log_event(logging.WARNING, "regroup_no_categories", session=session_name, action=action)
        return _error("Could not generate categories from your thoughts. Please try again with different text.")

    proposed = group_thoughts_into_categories(brain_dump, categories)
    if not proposed:
        log_event(logging.WARNING, "regroup_no_groups", session=session_name, action=action)
        return _error("Could not group your thoughts. Please try again later.")

    try:
        new_set = reconcile(proposed, flatten_thoughts(current))
    except ValidationError as e:
        log_event(logging.ERROR, "regroup_invalid_grouping", session=session_name, error=str(e))
        return _error("The categorization service returned an invalid grouping. Please try again.")

    return _commit(store, session_name, new_set, action)


def analyze_brain_dump(store: ThoughtStore, session_name: str, text: str) -> Dict:
    """Fold new free-text input into the session's categorized thoughts."""
    if not isinstance(text, str) or not text.strip():
        raise ValidationError("Please enter some thoughts to analyze.")

    with session_lock(session_name):
        current = store.load()
        existing_dump = regenerate_brain_dump(current)
        brain_dump = f"{existing_dump}\n{text}" if existing_dump else text
        log_event(logging.INFO, "analyze_start", session=session_name, chars=len(brain_dump))
        return _regroup(store, session_name, current, brain_dump, "analyze")


def reorganize_thoughts(store: ThoughtStore, session_name: str) -> Dict:
    """Regroup the session's existing text thoughts from scratch."""
    with session_lock(session_name):
        current = store.load()
        brain_dump = regenerate_brain_dump(current)
        if not brain_dump:
            raise ValidationError("No thoughts to reorganize. Please analyze some thoughts first.")
        log_event(logging.INFO, "reorganize_start", session=session_name, chars=len(brain_dump))
        return _regroup(store, session_name, current, brain_dump, "reorganize")


# --- AUDIO ---

def audio_data_uri(audio_data: bytes, mimetype: str) -> str:
    encoded = base64.b64encode(audio_data).decode("ascii")
    return f"data:{mimetype};base64,{encoded}"


def add_audio_note(
    store: ThoughtStore,
    session_name: str,
    audio_data: bytes,
    filename: str = "audio.webm",
    mimetype: str = "audio/webm",
) -> Dict:
    """Transcribe and categorize a recording, then file it under its category."""
    if not audio_data:
        raise ValidationError("No audio provided.")

    with session_lock(session_name):
        current = store.load()
        existing_categories = [group.name for group in current or []]
        categorization = categorize_audio_note(audio_data, existing_categories, filename)
        if categorization is None:
            return _error("Failed to categorize the audio note. Please try again.")

        new_set = insert_audio_thought(current, categorization, audio_data_uri(audio_data, mimetype))
        result = _commit(store, session_name, new_set, "audio")
        result["category"] = categorization.category
        result["title"] = categorization.title
        result["transcription"] = categorization.transcript
        return result


# --- DIRECT EDITS ---

def apply_command(store: ThoughtStore, session_name: str, name: str, arguments: Optional[Dict] = None) -> Dict:
    """Run a named edit command against the stored set and write it back."""
    handler = COMMANDS.get(name)
    if handler is None:
        raise ValidationError(f"Unknown command: {name}")

    with session_lock(session_name):
        current = store.load()
        try:
            bound = inspect.signature(handler).bind(current, **(arguments or {}))
        except TypeError as e:
            raise ValidationError(f"Invalid arguments for {name}: {e}") from e
        new_set = handler(*bound.args, **bound.kwargs)
        log_event(logging.INFO, "command_applied", session=session_name, command=name)
        return _commit(store, session_name, new_set, name)


def clear_thoughts(store: ThoughtStore, session_name: str) -> Dict:
    with session_lock(session_name):
        log_event(logging.INFO, "thoughts_cleared", session=session_name)
        return _commit(store, session_name, None, "clear")


# --- CHATGPT ---

def chatgpt_link(store: ThoughtStore, session_name: str, category_index: int, thought_index: int) -> Dict:
    """Build a ChatGPT link pre-filled with a prompt derived from one thought."""
    thought = get_thought(store.load(), category_index, thought_index)
    text = thought.matchable_content
    if not text.strip():
        raise ValidationError("This thought has no text to send.")

    prompt = transform_to_chatgpt_prompt(text)
    log_event(logging.INFO, "chatgpt_link_created", session=session_name, thought_id=thought.id)
    return {"status": "success", "prompt": prompt, "url": build_chatgpt_url(prompt)}
