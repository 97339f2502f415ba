from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from aether import main
from aether.models import AutomationResult, ChatResponse, CodeGenResult
from aether.prompts import (
    ANSWER_PROMPT,
    AUTOMATE_TASK_PROMPT,
    CHAT_PROMPT,
    CODE_GENERATION_PROMPT,
    REQUIRES_SUMMARY_PROMPT,
    AnswerOutput,
    RequiresSummaryOutput,
)
from aether.services.ingestion import IngestionService
from aether.services.session_store import SessionStore
from aether.services.study_assistant import FALLBACK_ANSWER
from aether.utils.retry import RetryPolicy
from tests.fakes import FakeInvoker


@pytest.fixture
def invoker(monkeypatch) -> FakeInvoker:
    fake = FakeInvoker({
        REQUIRES_SUMMARY_PROMPT: RequiresSummaryOutput(requires_summary=False),
        ANSWER_PROMPT: AnswerOutput(answer="Paris."),
        CHAT_PROMPT: ChatResponse(response="Hello!"),
        AUTOMATE_TASK_PROMPT: AutomationResult(automation_script="echo hi", explanation="Prints hi."),
        CODE_GENERATION_PROMPT: CodeGenResult(code_snippet="print('hi')"),
    })
    # Registered first so monkeypatch restores the globals build_flow_services overwrites.
    for name in ("study_service", "chat_memory_service", "automation_service", "codegen_service"):
        monkeypatch.setattr(main, name, None)
    main.build_flow_services(fake)
    return fake


@pytest.fixture
def store(monkeypatch, tmp_path) -> SessionStore:
    session_store = SessionStore(tmp_path)
    monkeypatch.setattr(main, "session_store", session_store)
    return session_store


@pytest.fixture
def client():
    main.app.dependency_overrides[main.require_user] = lambda: "user_123"
    yield TestClient(main.app)
    main.app.dependency_overrides.clear()


def test_root_lists_endpoints(client) -> None:
    response = client.get("/")
    assert response.status_code == 200
    assert "/study" in response.json()["endpoints"]


def test_flows_unavailable_without_invoker(monkeypatch, client) -> None:
    monkeypatch.setattr(main, "study_service", None)
    response = client.post("/study", json={"query": "q", "document": "d"})
    assert response.status_code == 503


def test_study_endpoint_uses_camel_case(invoker, client) -> None:
    response = client.post("/study", json={
        "query": "What is the capital of France?",
        "document": "France is a country in Europe. Paris is its capital.",
    })

    assert response.status_code == 200
    assert response.json() == {"answer": "Paris.", "requiresSummary": False}


def test_study_endpoint_returns_fallback_on_failure(invoker, client) -> None:
    invoker.script[ANSWER_PROMPT] = ValueError("bad output")

    response = client.post("/study", json={"query": "q", "document": "d"})

    assert response.status_code == 200
    assert response.json() == {"answer": FALLBACK_ANSWER, "requiresSummary": False}


def test_study_endpoint_rejects_missing_fields(invoker, client) -> None:
    response = client.post("/study", json={"query": "q"})
    assert response.status_code == 422
    assert invoker.calls == []


def test_chat_endpoint(invoker, client) -> None:
    response = client.post("/chat", json={
        "message": "hi",
        "chatHistory": [{"role": "user", "content": "earlier"}, {"role": "assistant", "content": "reply"}],
        "mode": "coding",
    })

    assert response.status_code == 200
    assert response.json() == {"response": "Hello!"}
    prompt_input = invoker.calls_to(CHAT_PROMPT)[0]
    assert [e.is_user for e in prompt_input.chat_history] == [True, False]
    assert prompt_input.mode == "coding"


def test_chat_endpoint_rejects_unknown_mode_and_role(invoker, client) -> None:
    assert client.post("/chat", json={"message": "hi", "mode": "poetry"}).status_code == 422
    bad_history = {"message": "hi", "chatHistory": [{"role": "system", "content": "x"}]}
    assert client.post("/chat", json=bad_history).status_code == 422


def test_automate_and_code_endpoints(invoker, client) -> None:
    automate = client.post("/automate", json={"taskDescription": "say hi"})
    code = client.post("/code", json={"voiceCommand": "print hi"})

    assert automate.json() == {"automationScript": "echo hi", "explanation": "Prints hi."}
    assert code.json() == {"codeSnippet": "print('hi')"}


def test_session_chat_persists_both_messages(invoker, store, client) -> None:
    created = client.post("/sessions", json={"title": "Trip"})
    assert created.status_code == 201
    session_id = created.json()["sessionId"]

    client.post(f"/sessions/{session_id}/chat", json={"message": "first"})
    response = client.post(f"/sessions/{session_id}/chat", json={"message": "second"})

    assert response.json() == {"response": "Hello!", "sessionId": session_id}
    messages = client.get(f"/sessions/{session_id}/messages").json()
    assert [(m["role"], m["content"]) for m in messages] == [
        ("user", "first"),
        ("assistant", "Hello!"),
        ("user", "second"),
        ("assistant", "Hello!"),
    ]
    # The second turn saw the first exchange as history, not its own message.
    second_input = invoker.calls_to(CHAT_PROMPT)[1]
    assert [(e.content, e.is_user) for e in second_input.chat_history] == [("first", True), ("Hello!", False)]


def test_session_chat_stores_fallback_reply(invoker, store, client, monkeypatch) -> None:
    monkeypatch.setattr(main.chat_memory_service, "retry_policy", RetryPolicy(max_attempts=1))
    invoker.script[CHAT_PROMPT] = RuntimeError("503 overloaded")
    session_id = client.post("/sessions", json={}).json()["sessionId"]

    response = client.post(f"/sessions/{session_id}/chat", json={"message": "hello"})

    assert response.status_code == 200
    assert store.list_messages("user_123", session_id)[-1].content == response.json()["response"]


def test_session_deleted_during_chat_is_404(invoker, store, client, monkeypatch) -> None:
    session_id = client.post("/sessions", json={}).json()["sessionId"]
    scripted = invoker.invoke

    async def invoke_then_delete(prompt_name, prompt_input):
        store.delete_session("user_123", session_id)
        return await scripted(prompt_name, prompt_input)

    monkeypatch.setattr(invoker, "invoke", invoke_then_delete)

    response = client.post(f"/sessions/{session_id}/chat", json={"message": "hello"})

    assert response.status_code == 404
    assert response.json()["detail"] == "Session not found"


def test_sessions_list_and_delete(store, client) -> None:
    session_id = client.post("/sessions", json={"title": "Notes"}).json()["sessionId"]

    listed = client.get("/sessions").json()
    assert [s["title"] for s in listed] == ["Notes"]
    assert "messages" not in listed[0]

    assert client.delete(f"/sessions/{session_id}").status_code == 204
    assert client.delete(f"/sessions/{session_id}").status_code == 404


def test_unknown_session_is_404(invoker, store, client) -> None:
    assert client.get("/sessions/missing/messages").status_code == 404
    assert client.post("/sessions/missing/chat", json={"message": "hi"}).status_code == 404


def test_sessions_require_bearer_token(store) -> None:
    main.app.dependency_overrides.clear()
    response = TestClient(main.app).get("/sessions")
    assert response.status_code == 401


def test_firebase_token_reports_missing_configuration(monkeypatch, client) -> None:
    monkeypatch.setattr(main, "missing_firebase_settings", lambda: ["FIREBASE_PRIVATE_KEY"])

    response = client.post("/api/firebase-token", headers={"Authorization": "Bearer t"})

    assert response.status_code == 500
    assert response.json()["error"] == "Server configuration error"
    assert "FIREBASE_PRIVATE_KEY" in response.json()["details"]


def test_firebase_token_requires_session(monkeypatch, client) -> None:
    monkeypatch.setattr(main, "missing_firebase_settings", lambda: [])
    assert client.post("/api/firebase-token").status_code == 401


def test_firebase_token_is_minted_for_clerk_user(monkeypatch, client) -> None:
    monkeypatch.setattr(main, "missing_firebase_settings", lambda: [])
    monkeypatch.setattr(main, "verify_session_token", lambda token: "user_123")
    monkeypatch.setattr(main, "create_firebase_token", lambda user_id: f"custom-{user_id}")

    response = client.post("/api/firebase-token", headers={"Authorization": "Bearer clerk-token"})

    assert response.status_code == 200
    assert response.json() == {"firebaseToken": "custom-user_123"}


def test_parse_pdf_rejects_non_pdf(monkeypatch, client) -> None:
    monkeypatch.setattr(main, "ingestion_service", IngestionService(tavily_api_key=""))

    response = client.post("/api/parse-pdf", files={"file": ("notes.txt", b"hello", "text/plain")})

    assert response.status_code == 400
    assert response.json()["detail"] == "File must be a PDF"


def test_fetch_url_rejects_bad_url(monkeypatch, client) -> None:
    monkeypatch.setattr(main, "ingestion_service", IngestionService(tavily_api_key=""))

    response = client.post("/api/fetch-url", json={"url": "not a url"})

    assert response.status_code == 400
