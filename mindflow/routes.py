"""
Flask routes for the MindFlow API.
"""

import json
import queue
import logging

from flask import Blueprint, Response, current_app, request, jsonify, stream_with_context

from mindflow.config import (
    log_event,
    resolve_session_name,
    slugify_session,
)
from mindflow.errors import ValidationError
from mindflow.models import thought_set_to_list
from mindflow.state import CONNECTED_CLIENTS
from mindflow.services import ai
from mindflow.services.markdown import render_markdown
from mindflow.services.processing import (
    add_audio_note,
    analyze_brain_dump,
    apply_command,
    chatgpt_link,
    clear_thoughts,
    reorganize_thoughts,
)
from mindflow.services.queue_processor import enqueue_request, get_result

# Create blueprint
api = Blueprint('api', __name__)


def _payload() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _session(data: dict = None) -> str:
    value = request.args.get("session")
    if value is None and data:
        value = data.get("session")
    return resolve_session_name(value)


def _store(session: str):
    return current_app.config["STORE_FACTORY"](session)


def _respond(result: dict):
    """Upstream failures come back as status=error and map to 502."""
    if result.get("status") == "error":
        return jsonify(result), 502
    return jsonify(result)


def _wants_async(data: dict) -> bool:
    flag = request.args.get("async", data.get("async"))
    return str(flag).lower() in ("1", "true", "yes")


@api.errorhandler(ValidationError)
def handle_validation_error(error):
    log_event(logging.INFO, "api_validation_error", path=request.path, error=str(error))
    return jsonify({"status": "error", "error": str(error)}), 400


# --- HEALTH ---

@api.route('/health')
def health():
    """Health check endpoint."""
    return jsonify({
        "status": "ok",
        "groq_available": ai.groq_client is not None,
        "gemini_available": ai.gemini_model is not None,
    })


# --- THOUGHTS ---

@api.route('/api/thoughts')
def get_thoughts():
    """Get the session's categorized thoughts."""
    session = _session()
    thought_set = _store(session).load()
    return jsonify({"thoughts": thought_set_to_list(thought_set), "session": session})


@api.route('/api/analyze', methods=['POST'])
def analyze():
    """Categorize new brain dump text together with existing thoughts."""
    data = _payload()
    session = _session(data)
    text = data.get('text', '')
    if not isinstance(text, str) or not text.strip():
        raise ValidationError("Please enter some thoughts to analyze.")
    log_event(logging.INFO, "api_analyze", session=session, chars=len(text))

    if _wants_async(data):
        request_id = enqueue_request("analyze", session, _store(session), text)
        return jsonify({"status": "queued", "request_id": request_id, "session": session}), 202

    result = analyze_brain_dump(_store(session), session, text)
    result["session"] = session
    return _respond(result)


@api.route('/api/reorganize', methods=['POST'])
def reorganize():
    """Regroup existing thoughts into fresh categories."""
    data = _payload()
    session = _session(data)
    log_event(logging.INFO, "api_reorganize", session=session)

    if _wants_async(data):
        request_id = enqueue_request("reorganize", session, _store(session))
        return jsonify({"status": "queued", "request_id": request_id, "session": session}), 202

    result = reorganize_thoughts(_store(session), session)
    result["session"] = session
    return _respond(result)


@api.route('/api/audio', methods=['POST'])
def process_audio():
    """Transcribe, categorize and file an audio note."""
    if 'audio' not in request.files:
        raise ValidationError("No audio file provided")

    audio_file = request.files['audio']
    audio_data = audio_file.read()
    session = _session(request.form)
    log_event(logging.INFO, "api_process_audio", session=session, bytes=len(audio_data))

    result = add_audio_note(
        _store(session),
        session,
        audio_data,
        filename=audio_file.filename or "audio.webm",
        mimetype=audio_file.mimetype or "audio/webm",
    )
    result["session"] = session
    return _respond(result)


@api.route('/api/commands/<name>', methods=['POST'])
def run_command(name):
    """Apply a direct edit (add, edit, delete, move, rename...)."""
    data = _payload()
    session = _session(data)
    arguments = {k: v for k, v in data.items() if k not in ("session", "async")}
    result = apply_command(_store(session), session, name, arguments)
    result["session"] = session
    return _respond(result)


@api.route('/api/chatgpt', methods=['POST'])
def send_to_chatgpt():
    """Build a ChatGPT link for one thought."""
    data = _payload()
    session = _session(data)
    result = chatgpt_link(
        _store(session),
        session,
        data.get('category_index'),
        data.get('thought_index'),
    )
    return _respond(result)


@api.route('/api/queue/status/<request_id>', methods=['GET'])
def queue_status(request_id):
    """Check the status of a queued analysis request."""
    result = get_result(request_id)
    if result is None:
        return jsonify({"error": "Request not found"}), 404
    return jsonify(result)


@api.route('/api/stream')
def stream():
    """SSE endpoint for real-time updates."""
    session = _session()
    store = _store(session)
    client_queue = queue.Queue()
    CONNECTED_CLIENTS[session].append(client_queue)

    def event_stream():
        try:
            init_data = {
                'type': 'init',
                'thoughts': thought_set_to_list(store.load()),
                'session': session,
            }
            yield f"data: {json.dumps(init_data)}\n\n"

            while True:
                try:
                    data = client_queue.get(timeout=2.0)
                    yield f"data: {json.dumps(data)}\n\n"
                except queue.Empty:
                    yield f"data: {json.dumps({'type': 'heartbeat'})}\n\n"
        except GeneratorExit:
            pass
        finally:
            clients = CONNECTED_CLIENTS.get(session, [])
            if client_queue in clients:
                clients.remove(client_queue)
            if not clients:
                CONNECTED_CLIENTS.pop(session, None)

    return Response(
        stream_with_context(event_stream()),
        mimetype="text/event-stream",
        headers={
            'Cache-Control': 'no-cache',
            'Connection': 'keep-alive',
            'X-Accel-Buffering': 'no'
        }
    )


@api.route('/api/clear', methods=['POST'])
def clear():
    """Remove every thought in the session."""
    data = _payload()
    session = _session(data)
    result = clear_thoughts(_store(session), session)
    result["session"] = session
    return _respond(result)


@api.route('/api/export')
def export_thoughts():
    """Download the session's thoughts as Markdown."""
    session = _session()
    content = render_markdown(_store(session).load(), title=f"MindFlow: {session}")
    slug = slugify_session(session)

    return Response(
        content,
        mimetype="text/markdown",
        headers={"Content-Disposition": f"attachment; filename={slug}.md"}
    )
