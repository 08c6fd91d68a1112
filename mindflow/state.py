"""
Application state management.
Per-session SSE clients, write locks and the analysis queue.
"""

from collections import defaultdict
from contextlib import contextmanager
from queue import Queue
from threading import Lock
from typing import Dict, List

# --- STATE CONTAINERS ---

# Connected SSE clients per session
CONNECTED_CLIENTS: Dict[str, List] = defaultdict(list)

# One write cycle in flight per session; entries live only while a cycle holds or waits on them
SESSION_LOCKS: Dict[str, List] = {}  # session -> [Lock, holders]
_SESSION_LOCKS_GUARD: Lock = Lock()


@contextmanager
def session_lock(session_name: str):
    """Hold the session's write lock; the entry is dropped once nobody needs it."""
    with _SESSION_LOCKS_GUARD:
        entry = SESSION_LOCKS.setdefault(session_name, [Lock(), 0])
        entry[1] += 1
    try:
        with entry[0]:
            yield entry[0]
    finally:
        with _SESSION_LOCKS_GUARD:
            entry[1] -= 1
            if entry[1] == 0:
                del SESSION_LOCKS[session_name]


# --- PROCESSING QUEUE ---
# FIFO queue for analysis requests so they run in the order received
PROCESSING_QUEUE: Queue = Queue()

# Lock for thread-safe access to results
PROCESSING_LOCK: Lock = Lock()

# Track processing results by request ID
PROCESSING_RESULTS: Dict[str, Dict] = {}
