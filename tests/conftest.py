"""
Shared pytest fixtures for MindFlow tests.
"""

import json
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from mindflow.app import create_app
from mindflow.models import AUDIO, TEXT, CategoryGroup, Thought
from mindflow.services import ai
from mindflow.services.storage import MemoryStore
from mindflow.state import CONNECTED_CLIENTS, PROCESSING_RESULTS


def text_thought(thought_id, content):
    return Thought(id=thought_id, kind=TEXT, content=content)


def audio_thought(thought_id, transcript, label="Voice memo"):
    return Thought(
        id=thought_id,
        kind=AUDIO,
        content="data:audio/webm;base64,AAAA",
        transcript=transcript,
        label=label,
    )


def gemini_reply(payload):
    """A fake Gemini response whose text is `payload` (JSON-encoded unless a string)."""
    text = payload if isinstance(payload, str) else json.dumps(payload)
    return SimpleNamespace(text=text)


@pytest.fixture(autouse=True)
def no_ai_services(monkeypatch):
    """Never reach real AI services; tests opt in with `fake_gemini` / `fake_groq`."""
    monkeypatch.setattr(ai, "gemini_model", None)
    monkeypatch.setattr(ai, "groq_client", None)


@pytest.fixture(autouse=True)
def clean_state():
    CONNECTED_CLIENTS.clear()
    PROCESSING_RESULTS.clear()
    yield
    CONNECTED_CLIENTS.clear()
    PROCESSING_RESULTS.clear()


@pytest.fixture
def fake_gemini(monkeypatch):
    """Install a mock Gemini model; set `.generate_content.side_effect` to script replies."""
    model = MagicMock()
    monkeypatch.setattr(ai, "gemini_model", model)
    return model


@pytest.fixture
def fake_groq(monkeypatch):
    """Install a mock Groq client returning a fixed transcription."""
    client = MagicMock()
    client.audio.transcriptions.create.return_value = "  Call mom about the weekend  \n"
    monkeypatch.setattr(ai, "groq_client", client)
    return client


@pytest.fixture
def backing():
    return {}


@pytest.fixture
def store(backing):
    return MemoryStore("test", backing)


@pytest.fixture
def seeded_store(store):
    store.save([
        CategoryGroup(name="Errands", members=[text_thought("a1", "Buy milk")]),
        CategoryGroup(name="Work", members=[audio_thought("a2", "Call mom")]),
    ])
    return store


@pytest.fixture
def app(backing):
    app = create_app(store_factory=lambda session: MemoryStore(session, backing), start_worker=False)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()
