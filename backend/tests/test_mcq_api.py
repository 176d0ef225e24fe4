"""
API tests for the MCQ router: POST /generate-mcq, POST /generate-next-batch, GET /.
Uses FastAPI TestClient with dependency overrides (fresh session store, generator on the mock
client) and a patched text extractor, so no network is involved.
"""
import asyncio
import json

import httpx
import pytest
from fastapi.testclient import TestClient

from pdf_mcq.api import mcq as mcq_module
from pdf_mcq.api.deps import get_question_generator, get_session_store
from pdf_mcq.llm.base import ModelAPIError, ModelErrorKind
from pdf_mcq.llm.mock_impl import MockCompletionClient
from pdf_mcq.main import app
from pdf_mcq.services import pdf_extract
from pdf_mcq.services.mcq_generation_service import QuestionGenerator
from pdf_mcq.services.session_store import SessionStore

# ~5100 chars -> 3 chunks at 2000
DOCUMENT_TEXT = ". ".join(f"Sentence number {i:03d} " + ("lorem " * 5)[:29] for i in range(100)) + "."

OPTIONS = {"questionCount": 2, "difficulty": "easy", "multipleCorrect": False}


async def _no_sleep(seconds: float) -> None:
    return None


class FailingClient:
    def __init__(self, kind: ModelErrorKind):
        self.kind = kind
        self.calls = 0

    async def complete(self, prompt: str) -> str:
        self.calls += 1
        raise ModelAPIError(self.kind, "upstream says no")


@pytest.fixture
def store():
    return SessionStore()


@pytest.fixture
def generator():
    return QuestionGenerator(MockCompletionClient(), sleep=_no_sleep)


@pytest.fixture
def client(store, generator, monkeypatch):
    monkeypatch.setattr(mcq_module, "extract_text_from_pdf", lambda contents: DOCUMENT_TEXT)
    app.dependency_overrides[get_session_store] = lambda: store
    app.dependency_overrides[get_question_generator] = lambda: generator
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.pop(get_session_store, None)
        app.dependency_overrides.pop(get_question_generator, None)


def _upload(c: TestClient, options=OPTIONS):
    files = {"file": ("notes.pdf", b"%PDF-1.4 fake", "application/pdf")}
    data = {"options": json.dumps(options)} if options is not None else {}
    return c.post("/generate-mcq", files=files, data=data)


def test_health(client):
    r = client.get("/")
    assert r.status_code == 200
    assert r.json() == {"status": "ok", "message": "Server is running"}


def test_generate_mcq_returns_first_chunk_batch(client):
    r = _upload(client)
    assert r.status_code == 200, r.text
    body = r.json()
    assert len(body["questions"]) == 2
    q = body["questions"][0]
    assert set(q) == {"id", "question", "options", "correctAnswers", "explanation", "difficulty", "multipleCorrect"}
    assert q["difficulty"] == "easy"
    assert q["multipleCorrect"] is False
    meta = body["metadata"]
    assert meta["totalQuestions"] == 2
    assert meta["difficulty"] == "easy"
    assert meta["currentChunk"] == 1
    assert meta["totalChunks"] == 3
    assert meta["hasMoreChunks"] is True
    assert meta["sessionId"]
    assert "generatedAt" in meta


def test_generate_mcq_missing_file(client):
    r = client.post("/generate-mcq", data={"options": json.dumps(OPTIONS)})
    assert r.status_code == 400
    assert "Missing required fields" in r.json()["error"]


def test_generate_mcq_missing_options(client):
    r = _upload(client, options=None)
    assert r.status_code == 400
    assert "Missing required fields" in r.json()["error"]


def test_generate_mcq_unparseable_options(client):
    files = {"file": ("notes.pdf", b"%PDF-1.4 fake", "application/pdf")}
    r = client.post("/generate-mcq", files=files, data={"options": "{not json"})
    assert r.status_code == 400
    assert r.json()["error"] == "Invalid options"


def test_generate_mcq_invalid_difficulty(client):
    r = _upload(client, options={**OPTIONS, "difficulty": "impossible"})
    assert r.status_code == 400


def test_generate_mcq_no_text_is_500(client, monkeypatch):
    monkeypatch.setattr(mcq_module, "extract_text_from_pdf", lambda contents: "   ")
    r = _upload(client)
    assert r.status_code == 500
    assert r.json()["error"] == "Failed to extract text from PDF"


def test_next_batch_walks_all_chunks(client):
    first = _upload(client).json()
    sid = first["metadata"]["sessionId"]

    r2 = client.post("/generate-next-batch", json={"options": OPTIONS, "sessionId": sid})
    assert r2.status_code == 200, r2.text
    assert r2.json()["metadata"]["currentChunk"] == 2
    assert r2.json()["metadata"]["hasMoreChunks"] is True

    r3 = client.post("/generate-next-batch", json={"options": OPTIONS, "sessionId": sid})
    assert r3.status_code == 200
    assert r3.json()["metadata"]["currentChunk"] == 3
    assert r3.json()["metadata"]["hasMoreChunks"] is False

    r4 = client.post("/generate-next-batch", json={"options": OPTIONS, "sessionId": sid})
    assert r4.status_code == 400
    assert r4.json()["error"] == "No more chunks available"


def test_next_batch_without_session_id_uses_latest_upload(client):
    _upload(client)
    r = client.post("/generate-next-batch", json={"options": OPTIONS})
    assert r.status_code == 200
    assert r.json()["metadata"]["currentChunk"] == 2


def test_next_batch_options_are_resent_per_call(client):
    _upload(client)
    hard = {"questionCount": 3, "difficulty": "hard", "multipleCorrect": True}
    r = client.post("/generate-next-batch", json={"options": hard})
    body = r.json()
    assert len(body["questions"]) == 3
    assert body["metadata"]["difficulty"] == "hard"
    assert all(q["multipleCorrect"] for q in body["questions"])


def test_next_batch_missing_options(client):
    _upload(client)
    r = client.post("/generate-next-batch", json={})
    assert r.status_code == 400
    assert r.json()["error"] == "Missing options"


def test_next_batch_before_any_upload(client):
    r = client.post("/generate-next-batch", json={"options": OPTIONS})
    assert r.status_code == 400
    assert "No active session" in r.json()["error"]


def test_next_batch_unknown_session(client):
    _upload(client)
    r = client.post("/generate-next-batch", json={"options": OPTIONS, "sessionId": "nope"})
    assert r.status_code == 400


def test_two_uploads_keep_separate_cursors(client):
    sid1 = _upload(client).json()["metadata"]["sessionId"]
    sid2 = _upload(client).json()["metadata"]["sessionId"]
    assert sid1 != sid2
    r = client.post("/generate-next-batch", json={"options": OPTIONS, "sessionId": sid1})
    assert r.json()["metadata"]["currentChunk"] == 2
    r = client.post("/generate-next-batch", json={"options": OPTIONS, "sessionId": sid2})
    assert r.json()["metadata"]["currentChunk"] == 2


def test_upstream_failure_is_500(client, store):
    failing = FailingClient(ModelErrorKind.OTHER)
    app.dependency_overrides[get_question_generator] = lambda: QuestionGenerator(failing, sleep=_no_sleep)
    r = _upload(client)
    assert r.status_code == 500
    body = r.json()
    assert "Failed to generate MCQs" in body["error"]
    assert body["details"] == {"kind": "other"}
    assert failing.calls == 1


def test_rate_limit_exhausted_is_500_after_three_attempts(client):
    failing = FailingClient(ModelErrorKind.RATE_LIMIT)
    app.dependency_overrides[get_question_generator] = lambda: QuestionGenerator(failing, sleep=_no_sleep)
    r = _upload(client)
    assert r.status_code == 500
    assert r.json()["details"] == {"kind": "rate_limit"}
    assert failing.calls == 3


def test_cors_preflight_allows_ui_origin(client):
    r = client.options(
        "/generate-mcq",
        headers={"Origin": "http://localhost:5173", "Access-Control-Request-Method": "POST"},
    )
    assert r.status_code == 200
    assert r.headers.get("access-control-allow-origin") == "http://localhost:5173"


def test_corrupt_pdf_is_json_500(client, monkeypatch):
    class BrokenReader:
        def __init__(self, stream):
            raise TypeError("'NumberObject' object is not iterable")

    monkeypatch.setattr(mcq_module, "extract_text_from_pdf", pdf_extract.extract_text_from_pdf)
    monkeypatch.setattr(pdf_extract, "PdfReader", BrokenReader)
    r = _upload(client)
    assert r.status_code == 500
    assert r.headers["content-type"].startswith("application/json")
    assert r.json() == {
        "error": "Failed to extract text from PDF",
        "details": "'NumberObject' object is not iterable",
    }


def test_unexpected_error_is_json_500(store, monkeypatch):
    class CrashingClient:
        async def complete(self, prompt: str) -> str:
            raise RuntimeError("boom")

    monkeypatch.setattr(mcq_module, "extract_text_from_pdf", lambda contents: DOCUMENT_TEXT)
    app.dependency_overrides[get_session_store] = lambda: store
    app.dependency_overrides[get_question_generator] = lambda: QuestionGenerator(CrashingClient(), sleep=_no_sleep)
    try:
        with TestClient(app, raise_server_exceptions=False) as c:
            r = _upload(c)
    finally:
        app.dependency_overrides.pop(get_session_store, None)
        app.dependency_overrides.pop(get_question_generator, None)
    assert r.status_code == 500
    assert r.json() == {"error": "Internal server error", "details": "RuntimeError"}


class SlowClient:
    """Mock replies after a short await; tracks how many calls overlap."""

    def __init__(self):
        self._mock = MockCompletionClient()
        self.prompts: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def complete(self, prompt: str) -> str:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        self.prompts.append(prompt)
        try:
            await asyncio.sleep(0.05)
            return await self._mock.complete(prompt)
        finally:
            self.in_flight -= 1


def test_concurrent_next_batches_are_serialized(store, monkeypatch):
    monkeypatch.setattr(mcq_module, "extract_text_from_pdf", lambda contents: DOCUMENT_TEXT)
    slow = SlowClient()
    app.dependency_overrides[get_session_store] = lambda: store
    app.dependency_overrides[get_question_generator] = lambda: QuestionGenerator(slow, sleep=_no_sleep)

    async def scenario():
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
            files = {"file": ("notes.pdf", b"%PDF-1.4 fake", "application/pdf")}
            first = await ac.post("/generate-mcq", files=files, data={"options": json.dumps(OPTIONS)})
            sid = first.json()["metadata"]["sessionId"]
            body = {"options": OPTIONS, "sessionId": sid}
            return sid, await asyncio.gather(
                ac.post("/generate-next-batch", json=body),
                ac.post("/generate-next-batch", json=body),
            )

    try:
        sid, (r1, r2) = asyncio.run(scenario())
    finally:
        app.dependency_overrides.pop(get_session_store, None)
        app.dependency_overrides.pop(get_question_generator, None)

    assert r1.status_code == 200 and r2.status_code == 200
    chunks = sorted(r.json()["metadata"]["currentChunk"] for r in (r1, r2))
    assert chunks == [2, 3]
    # One generation at a time per session; batches prompted in chunk order
    assert slow.max_in_flight == 1
    assert "Sentence number 040" in slow.prompts[1]
    assert "Sentence number 080" in slow.prompts[2]
    assert store.get(sid).cursor == 2
