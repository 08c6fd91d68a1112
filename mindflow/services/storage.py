"""
Persistence boundary for a session's thought set.

A store holds the whole set for one session. `save` always replaces the
stored set in one step, and `save(None)` clears it.
"""

import os
import json
import logging
from pathlib import Path
from typing import Dict, Optional

from mindflow.config import log_event, get_session_path
from mindflow.errors import ValidationError
from mindflow.models import ThoughtSet, has_missing_ids, thought_set_from_list, thought_set_to_list


class ThoughtStore:
    """Interface implemented by every persistence backend."""

    def load(self) -> Optional[ThoughtSet]:
        raise NotImplementedError

    def save(self, thought_set: Optional[ThoughtSet]) -> bool:
        raise NotImplementedError

    def _persist_new_ids(self, data, thought_set: Optional[ThoughtSet]) -> Optional[ThoughtSet]:
        """Write back ids assigned on load so they stay stable across loads."""
        if thought_set and has_missing_ids(data):
            log_event(logging.INFO, "thought_ids_assigned", session=self.session_name)
            self.save(thought_set)
        return thought_set


class JsonFileStore(ThoughtStore):
    """One JSON file per session, replaced atomically on every save."""

    def __init__(self, session_name: str, path: Optional[Path] = None):
        self.session_name = session_name
        self.path = Path(path) if path else get_session_path(session_name)

    def load(self) -> Optional[ThoughtSet]:
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            thought_set = thought_set_from_list(data)
        except (OSError, ValueError) as e:
            log_event(logging.ERROR, "thought_set_load_failed", session=self.session_name, error=str(e))
            return None
        log_event(logging.DEBUG, "thought_set_loaded", session=self.session_name, groups=len(thought_set or []))
        return self._persist_new_ids(data, thought_set)

    def save(self, thought_set: Optional[ThoughtSet]) -> bool:
        """Write the whole set, or remove the file when cleared. Returns True on success."""
        try:
            if not thought_set:
                if self.path.exists():
                    self.path.unlink()
                log_event(logging.INFO, "thought_set_cleared", session=self.session_name)
                return True

            self.path.parent.mkdir(parents=True, exist_ok=True)
            payload = json.dumps(thought_set_to_list(thought_set), ensure_ascii=False, indent=2)
            tmp = self.path.with_suffix(self.path.suffix + ".tmp")
            tmp.write_text(payload, encoding="utf-8")
            os.replace(tmp, self.path)
            log_event(logging.INFO, "thought_set_saved", session=self.session_name, bytes=len(payload))
            return True
        except OSError as e:
            log_event(logging.ERROR, "thought_set_save_failed", session=self.session_name, error=str(e))
            return False


class MemoryStore(ThoughtStore):
    """Keeps serialized sets in a dict; used for tests and ephemeral sessions."""

    def __init__(self, session_name: str, backing: Optional[Dict[str, list]] = None):
        self.session_name = session_name
        self.backing = backing if backing is not None else {}

    def load(self) -> Optional[ThoughtSet]:
        data = self.backing.get(self.session_name)
        try:
            thought_set = thought_set_from_list(data)
        except ValidationError as e:
            log_event(logging.ERROR, "thought_set_load_failed", session=self.session_name, error=str(e))
            return None
        return self._persist_new_ids(data, thought_set)

    def save(self, thought_set: Optional[ThoughtSet]) -> bool:
        if not thought_set:
            self.backing.pop(self.session_name, None)
        else:
            self.backing[self.session_name] = thought_set_to_list(thought_set)
        return True
