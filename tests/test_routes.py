"""Tests for the HTTP API via Flask's test client."""

import io

from mindflow.models import CategoryGroup
from mindflow.services.storage import MemoryStore
from mindflow.state import PROCESSING_QUEUE

from conftest import gemini_reply, text_thought


def seed(backing, session="default"):
    MemoryStore(session, backing).save([
        CategoryGroup("Errands", [text_thought("t1", "Buy milk"), text_thought("t2", "Post letter")]),
        CategoryGroup("Ideas", [text_thought("t3", "Launch a blog")]),
    ])


class TestReadEndpoints:
    def test_health(self, client):
        data = client.get("/health").get_json()
        assert data == {"status": "ok", "groq_available": False, "gemini_available": False}

    def test_thoughts_empty(self, client):
        data = client.get("/api/thoughts").get_json()
        assert data == {"thoughts": [], "session": "default"}

    def test_thoughts_per_session(self, client, backing):
        seed(backing, "alice")
        assert client.get("/api/thoughts?session=alice").get_json()["thoughts"][0]["category"] == "Errands"
        assert client.get("/api/thoughts?session=bob").get_json()["thoughts"] == []

    def test_export_markdown(self, client, backing):
        seed(backing)
        response = client.get("/api/export")
        assert response.mimetype == "text/markdown"
        assert "attachment; filename=default.md" == response.headers["Content-Disposition"]
        body = response.get_data(as_text=True)
        assert "## Errands\n\n- Buy milk\n- Post letter" in body


class TestAnalyzeEndpoint:
    def test_analyze(self, client, fake_gemini):
        fake_gemini.generate_content.side_effect = [
            gemini_reply(["Ideas"]),
            gemini_reply({"Ideas": ["Launch a blog"]}),
        ]
        response = client.post("/api/analyze", json={"text": "Launch a blog", "session": "alice"})
        assert response.status_code == 200
        data = response.get_json()
        assert data["session"] == "alice"
        assert data["thoughts"][0]["category"] == "Ideas"

    def test_empty_text(self, client):
        response = client.post("/api/analyze", json={"text": "  "})
        assert response.status_code == 400
        assert response.get_json()["status"] == "error"

    def test_upstream_failure(self, client):
        response = client.post("/api/analyze", json={"text": "Launch a blog"})
        assert response.status_code == 502
        assert "categories" in response.get_json()["message"]

    def test_async_analyze(self, client):
        response = client.post("/api/analyze?async=1", json={"text": "Launch a blog"})
        assert response.status_code == 202
        request_id = response.get_json()["request_id"]

        status = client.get(f"/api/queue/status/{request_id}").get_json()
        assert status["status"] == "queued"
        PROCESSING_QUEUE.get_nowait()
        PROCESSING_QUEUE.task_done()

    def test_queue_status_unknown(self, client):
        assert client.get("/api/queue/status/nope").status_code == 404

    def test_reorganize_without_thoughts(self, client):
        assert client.post("/api/reorganize", json={}).status_code == 400


class TestAudioEndpoint:
    def test_audio_upload(self, client, fake_groq, fake_gemini):
        fake_gemini.generate_content.return_value = gemini_reply({"category": "Family", "title": "Weekend"})
        response = client.post(
            "/api/audio",
            data={"audio": (io.BytesIO(b"\x00\x01"), "note.webm", "audio/webm"), "session": "alice"},
            content_type="multipart/form-data",
        )
        assert response.status_code == 200
        data = response.get_json()
        assert data["category"] == "Family"
        audio = data["thoughts"][0]["thoughts"][0]
        assert audio["type"] == "audio"
        assert audio["content"].startswith("data:audio/webm;base64,")

    def test_missing_file(self, client):
        assert client.post("/api/audio", data={}).status_code == 400


class TestCommandEndpoints:
    def test_move(self, client, backing):
        seed(backing)
        response = client.post("/api/commands/move_thought", json={
            "from_category_index": 1, "thought_index": 0, "to_category_index": 0,
        })
        assert response.status_code == 200
        thoughts = response.get_json()["thoughts"]
        assert [g["category"] for g in thoughts] == ["Errands"]
        assert [t["id"] for t in thoughts[0]["thoughts"]] == ["t1", "t2", "t3"]

    def test_edit(self, client, backing):
        seed(backing)
        client.post("/api/commands/edit_thought", json={
            "category_index": 0, "thought_index": 1, "content": "Post parcel",
        })
        stored = MemoryStore("default", backing).load()
        assert stored[0].members[1].content == "Post parcel"

    def test_bad_index(self, client, backing):
        seed(backing)
        response = client.post("/api/commands/delete_thought", json={"category_index": 9, "thought_index": 0})
        assert response.status_code == 400

    def test_unknown_command(self, client):
        assert client.post("/api/commands/explode", json={}).status_code == 400

    def test_chatgpt(self, client, backing):
        seed(backing)
        response = client.post("/api/chatgpt", json={"category_index": 1, "thought_index": 0})
        assert response.get_json()["url"] == "https://chat.openai.com/?prompt=Launch%20a%20blog"

    def test_chatgpt_missing_indices(self, client, backing):
        seed(backing)
        assert client.post("/api/chatgpt", json={}).status_code == 400

    def test_clear(self, client, backing):
        seed(backing)
        response = client.post("/api/clear", json={})
        assert response.get_json()["thoughts"] == []
        assert "default" not in backing
