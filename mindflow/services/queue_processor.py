"""
Queue processor for FIFO analysis requests.
Ensures analyze/reorganize requests run one at a time, in the order received.
"""

import logging
import queue
import threading
import uuid
from typing import Dict, Optional
from dataclasses import dataclass
from datetime import datetime

from mindflow.config import log_event, MAX_QUEUE_RESULTS
from mindflow.errors import ValidationError
from mindflow.state import PROCESSING_QUEUE, PROCESSING_LOCK, PROCESSING_RESULTS
from mindflow.services.storage import ThoughtStore

QUEUE_ACTIONS = ("analyze", "reorganize")


@dataclass
class QueueItem:
    """Item in the processing queue."""
    request_id: str
    action: str  # "analyze" or "reorganize"
    session: str
    store: ThoughtStore
    timestamp: datetime
    text: Optional[str] = None


# Background worker thread
_worker_thread: Optional[threading.Thread] = None
_worker_running = False


def enqueue_request(action: str, session: str, store: ThoughtStore, text: Optional[str] = None) -> str:
    """
    Add an analysis request to the processing queue.
    Returns a request_id that can be used to check the result.
    """
    if action not in QUEUE_ACTIONS:
        raise ValidationError(f"Cannot queue action: {action}")

    request_id = str(uuid.uuid4())[:8]

    item = QueueItem(
        request_id=request_id,
        action=action,
        session=session,
        store=store,
        timestamp=datetime.now(),
        text=text,
    )

    # Initialize result slot
    with PROCESSING_LOCK:
        PROCESSING_RESULTS[request_id] = {
            "status": "queued",
            "action": action,
            "queued_at": item.timestamp.isoformat(),
            "session": session,
        }

    PROCESSING_QUEUE.put(item)

    log_event(logging.INFO, "queue_enqueue",
              request_id=request_id,
              action=action,
              session=session,
              queue_size=PROCESSING_QUEUE.qsize())

    return request_id


def get_result(request_id: str) -> Optional[Dict]:
    """Get the result for a request ID."""
    with PROCESSING_LOCK:
        result = PROCESSING_RESULTS.get(request_id)
        return dict(result) if result is not None else None


def process_item(item: QueueItem) -> Dict:
    """Run one queued request to completion."""
    # Import here to avoid circular imports
    from mindflow.services.processing import analyze_brain_dump, reorganize_thoughts

    if item.action == "analyze":
        return analyze_brain_dump(item.store, item.session, item.text or "")
    return reorganize_thoughts(item.store, item.session)


def _record(request_id: str, **fields):
    with PROCESSING_LOCK:
        if request_id in PROCESSING_RESULTS:
            PROCESSING_RESULTS[request_id].update(fields)


def _trim_results():
    """Keep only the most recent results."""
    with PROCESSING_LOCK:
        if len(PROCESSING_RESULTS) > MAX_QUEUE_RESULTS:
            sorted_keys = sorted(
                PROCESSING_RESULTS.keys(),
                key=lambda k: PROCESSING_RESULTS[k].get("queued_at", "")
            )
            for key in sorted_keys[:-MAX_QUEUE_RESULTS]:
                del PROCESSING_RESULTS[key]


def _process_queue():
    """Background worker that processes queue items in FIFO order."""
    log_event(logging.INFO, "queue_worker_started")

    while _worker_running:
        try:
            # Block for up to 1 second waiting for items
            item = PROCESSING_QUEUE.get(timeout=1.0)
        except queue.Empty:
            continue

        try:
            log_event(logging.INFO, "queue_process_start",
                      request_id=item.request_id,
                      action=item.action,
                      session=item.session,
                      queue_remaining=PROCESSING_QUEUE.qsize())

            _record(item.request_id, status="processing", started_at=datetime.now().isoformat())

            result = process_item(item)
            status = "completed" if result.get("status") == "success" else "error"
            _record(item.request_id, status=status, completed_at=datetime.now().isoformat(), result=result)

            log_event(logging.INFO, "queue_process_complete",
                      request_id=item.request_id,
                      session=item.session,
                      status=status)

        except Exception as e:
            log_event(logging.ERROR, "queue_process_error",
                      request_id=item.request_id,
                      error=str(e))
            _record(item.request_id, status="error", error=str(e), completed_at=datetime.now().isoformat())

        finally:
            PROCESSING_QUEUE.task_done()
            _trim_results()

    log_event(logging.INFO, "queue_worker_stopped")


def start_queue_worker():
    """Start the background queue processing worker."""
    global _worker_thread, _worker_running

    if _worker_thread is not None and _worker_thread.is_alive():
        log_event(logging.WARNING, "queue_worker_already_running")
        return

    _worker_running = True
    _worker_thread = threading.Thread(target=_process_queue, daemon=True)
    _worker_thread.start()
    log_event(logging.INFO, "queue_worker_thread_started")


def stop_queue_worker():
    """Stop the background queue processing worker."""
    global _worker_running
    _worker_running = False
    if _worker_thread is not None:
        _worker_thread.join(timeout=5.0)
    log_event(logging.INFO, "queue_worker_thread_stopped")
