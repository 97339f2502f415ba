"""
AETHER MAIN API
===============

This module defines the FastAPI application and all HTTP endpoints.

ENDPOINTS:
  GET    /                          - API name and list of endpoints.
  GET    /health                    - Which services are initialized.
  POST   /study                     - Study assistant: answer a question about a document.
  POST   /chat                      - Chat with memory (history sent in the body).
  POST   /automate                  - Automation script + explanation for a task.
  POST   /code                      - Code snippet from a voice command.
  GET    /sessions                  - The signed-in user's chat sessions, newest first.
  POST   /sessions                  - Create a chat session.
  DELETE /sessions/{id}             - Delete a chat session.
  GET    /sessions/{id}/messages    - Messages of a session, in order.
  POST   /sessions/{id}/chat        - Store the message, answer over the stored history, store the reply.
  POST   /api/fetch-url             - Extract text from a web page.
  POST   /api/parse-pdf             - Extract text from an uploaded PDF.
  POST   /api/firebase-token        - Exchange a Clerk session for a Firebase custom token.

ERRORS:
  The four AI endpoints never fail because the model failed: their services
  return a fallback result instead. 503 means a service was not initialized
  (e.g. GROQ_API_KEY missing), 422 means the request body had the wrong shape.

STARTUP:
  The lifespan function builds the prompt invoker, the four flow services, the
  session store and the ingestion service, and keeps them as module globals.
"""

import logging
from contextlib import asynccontextmanager
from typing import List, Optional

import uvicorn
from fastapi import Depends, FastAPI, File, Header, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from aether.models import (
    AutomationRequest,
    AutomationResult,
    ChatMessage,
    ChatRequest,
    ChatResponse,
    CodeGenRequest,
    CodeGenResult,
    ContentResponse,
    CreateSessionRequest,
    FetchUrlRequest,
    FirebaseTokenResponse,
    SessionChatRequest,
    SessionChatResponse,
    SessionInfo,
    StoredMessage,
    StudyAssistantRequest,
    StudyAssistantResult,
)
from aether.services.auth_bridge import (
    AuthError,
    create_firebase_token,
    extract_bearer_token,
    missing_firebase_settings,
    verify_session_token,
)
from aether.services.chat_memory import ChatMemoryService
from aether.services.code_generation import CodeGenerationService
from aether.services.ingestion import IngestionService
from aether.services.prompt_invoker import GroqPromptInvoker
from aether.services.session_store import SessionStore
from aether.services.study_assistant import StudyAssistantService
from aether.services.task_automation import TaskAutomationService
from aether.utils.retry import RetryPolicy, is_transient_error, is_transient_network_error
from config import CHATS_DATA_DIR, MAX_CHAT_HISTORY_MESSAGES, RETRY_BASE_DELAY, RETRY_MAX_ATTEMPTS


# -----------------------------------------------------------------------------
# LOGGING
# -----------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s | %(levelname)-8s | %(name)-20s | %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger("AETHER")


# -----------------------------------------------------------------------------
# GLOBAL SERVICE REFERENCES
# -----------------------------------------------------------------------------
# Set during startup (lifespan) and used by all route handlers.
study_service: Optional[StudyAssistantService] = None
chat_memory_service: Optional[ChatMemoryService] = None
automation_service: Optional[TaskAutomationService] = None
codegen_service: Optional[CodeGenerationService] = None
session_store: Optional[SessionStore] = None
ingestion_service: Optional[IngestionService] = None


def build_flow_services(invoker) -> None:
    """Create the four flow services around one invoker, each with its retry policy."""
    global study_service, chat_memory_service, automation_service, codegen_service

    # The study flow only retries overload / rate-limit errors; the others also
    # retry connection resets and timeouts.
    study_policy = RetryPolicy(RETRY_MAX_ATTEMPTS, RETRY_BASE_DELAY, is_transient_error)
    network_policy = RetryPolicy(RETRY_MAX_ATTEMPTS, RETRY_BASE_DELAY, is_transient_network_error)

    study_service = StudyAssistantService(invoker, study_policy)
    chat_memory_service = ChatMemoryService(invoker, network_policy)
    automation_service = TaskAutomationService(invoker, network_policy)
    codegen_service = CodeGenerationService(invoker, network_policy)


# -------------------------------------------------------------------------
# LIFESPAN (STARTUP / SHUTDOWN)
# -------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Build every service once at startup.

    A missing GROQ_API_KEY does not stop the server: the AI endpoints answer 503
    while sessions and ingestion keep working.
    """
    global session_store, ingestion_service

    logger.info("=" * 60)
    logger.info("AETHER - Starting Up...")
    logger.info("=" * 60)

    session_store = SessionStore(CHATS_DATA_DIR)
    logger.info("Session store ready at %s", CHATS_DATA_DIR)

    ingestion_service = IngestionService(retry_policy=RetryPolicy(
        RETRY_MAX_ATTEMPTS, RETRY_BASE_DELAY, is_transient_network_error
    ))

    try:
        build_flow_services(GroqPromptInvoker())
        logger.info("AI flows ready (retry: %s attempts, %.1fs base delay)", RETRY_MAX_ATTEMPTS, RETRY_BASE_DELAY)
    except ValueError as e:
        logger.warning("AI flows unavailable: %s", e)

    logger.info("AETHER is online. Docs: http://localhost:8000/docs")
    yield
    logger.info("Shutting down AETHER. Goodbye!")


# -------------------------------------------------------------------------
# FASTAPI APP AND CORS
# -------------------------------------------------------------------------
app = FastAPI(
    title="AETHER API",
    description="AI-assisted productivity tools: chat, study support, task automation, code generation",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def require_user(authorization: Optional[str] = Header(None)) -> str:
    """Resolve the Clerk user id from the bearer token, or answer 401."""
    token = extract_bearer_token(authorization)
    if not token:
        raise HTTPException(status_code=401, detail="Unauthorized - No session token found")
    try:
        return verify_session_token(token)
    except AuthError as e:
        logger.warning("Rejected session token: %s", e)
        raise HTTPException(status_code=401, detail="Unauthorized - Invalid session token")


def _require(service, name: str):
    if service is None:
        raise HTTPException(status_code=503, detail=f"{name} not initialized")
    return service


# =========================================================================
# API ENDPOINTS
# =========================================================================

@app.get("/")
async def root():
    return {
        "message": "AETHER API",
        "endpoints": {
            "/study": "Study assistant (question + document)",
            "/chat": "Chat with memory (history in the request)",
            "/automate": "Task automation script",
            "/code": "Code generation from a voice command",
            "/sessions": "Chat sessions of the signed-in user",
            "/api/fetch-url": "Extract text from a web page",
            "/api/parse-pdf": "Extract text from a PDF",
            "/api/firebase-token": "Firebase custom token for the signed-in user",
            "/health": "System health check"
        }
    }


@app.get("/health")
async def health():
    return {
        "status": "healthy",
        "study_service": study_service is not None,
        "chat_memory_service": chat_memory_service is not None,
        "automation_service": automation_service is not None,
        "codegen_service": codegen_service is not None,
        "session_store": session_store is not None,
        "ingestion_service": ingestion_service is not None,
    }


# -------------------------------------------------------------------------
# AI FLOWS
# -------------------------------------------------------------------------

@app.post("/study", response_model=StudyAssistantResult, response_model_exclude_none=True)
async def study(request: StudyAssistantRequest):
    """
    Answer a question about a document. The response carries requiresSummary
    and, when a summary was produced, the summary itself.
    """
    service = _require(study_service, "Study assistant")
    return await service.study_assistant(request)


@app.post("/chat", response_model=ChatResponse)
async def chat(request: ChatRequest):
    """
    REQUEST BODY:
    {
        "message": "And what about lists?",
        "chatHistory": [{"role": "user", "content": "..."}, {"role": "assistant", "content": "..."}],
        "mode": "coding"
    }
    """
    service = _require(chat_memory_service, "Chat service")
    return await service.intelligent_chat_memory(request)


@app.post("/automate", response_model=AutomationResult)
async def automate(request: AutomationRequest):
    service = _require(automation_service, "Task automation service")
    return await service.automate_task(request)


@app.post("/code", response_model=CodeGenResult)
async def code(request: CodeGenRequest):
    service = _require(codegen_service, "Code generation service")
    return await service.generate_code_snippet(request)


# -------------------------------------------------------------------------
# CHAT SESSIONS
# -------------------------------------------------------------------------

@app.get("/sessions", response_model=List[SessionInfo])
async def list_sessions(user_id: str = Depends(require_user)):
    store = _require(session_store, "Session store")
    try:
        return [SessionInfo(**s.model_dump(exclude={"messages", "user_id"})) for s in store.list_sessions(user_id)]
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.post("/sessions", response_model=SessionInfo, status_code=201)
async def create_session(request: CreateSessionRequest, user_id: str = Depends(require_user)):
    store = _require(session_store, "Session store")
    try:
        session = store.create_session(user_id, request.title)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return SessionInfo(**session.model_dump(exclude={"messages", "user_id"}))


@app.delete("/sessions/{session_id}", status_code=204)
async def delete_session(session_id: str, user_id: str = Depends(require_user)):
    store = _require(session_store, "Session store")
    try:
        store.delete_session(user_id, session_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except KeyError:
        raise HTTPException(status_code=404, detail="Session not found")


@app.get("/sessions/{session_id}/messages", response_model=List[StoredMessage])
async def list_messages(session_id: str, user_id: str = Depends(require_user)):
    store = _require(session_store, "Session store")
    try:
        return store.list_messages(user_id, session_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except KeyError:
        raise HTTPException(status_code=404, detail="Session not found")


@app.post("/sessions/{session_id}/chat", response_model=SessionChatResponse)
async def session_chat(session_id: str, request: SessionChatRequest, user_id: str = Depends(require_user)):
    """
    HOW IT WORKS:
    1. Load the most recent stored messages of the session (the history).
    2. Store the user's message.
    3. Run the chat flow with that history.
    4. Store the assistant's reply (a fallback reply is stored too).
    """
    store = _require(session_store, "Session store")
    service = _require(chat_memory_service, "Chat service")

    try:
        stored = store.list_messages(user_id, session_id)
        if MAX_CHAT_HISTORY_MESSAGES > 0:
            stored = stored[-MAX_CHAT_HISTORY_MESSAGES:]
        store.add_message(user_id, session_id, "user", request.message)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except KeyError:
        raise HTTPException(status_code=404, detail="Session not found")

    history = [ChatMessage(role=m.role, content=m.content) for m in stored]
    result = await service.intelligent_chat_memory(
        ChatRequest(message=request.message, chat_history=history, mode=request.mode)
    )
    try:
        store.add_message(user_id, session_id, "assistant", result.response)
    except KeyError:
        # Deleted while the model call was in flight.
        raise HTTPException(status_code=404, detail="Session not found")
    return SessionChatResponse(response=result.response, session_id=session_id)


# -------------------------------------------------------------------------
# INGESTION
# -------------------------------------------------------------------------

@app.post("/api/fetch-url", response_model=ContentResponse)
async def fetch_url(request: FetchUrlRequest):
    service = _require(ingestion_service, "Ingestion service")
    if not request.url:
        raise HTTPException(status_code=400, detail="URL is required")
    try:
        content = await service.fetch_url_content(request.url)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error fetching URL: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to fetch URL content")
    return ContentResponse(content=content)


@app.post("/api/parse-pdf", response_model=ContentResponse)
async def parse_pdf(file: Optional[UploadFile] = File(None)):
    service = _require(ingestion_service, "Ingestion service")
    if file is None:
        raise HTTPException(status_code=400, detail="No file provided")
    data = await file.read()
    try:
        content = service.extract_pdf_text(data, file.filename or "", file.content_type or "")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RuntimeError as e:
        logger.error(f"Error parsing PDF: {e}")
        raise HTTPException(status_code=500, detail="Failed to parse PDF")
    return ContentResponse(content=content)


# -------------------------------------------------------------------------
# AUTH BRIDGE
# -------------------------------------------------------------------------

@app.post("/api/firebase-token", response_model=FirebaseTokenResponse)
def firebase_token(authorization: Optional[str] = Header(None)):
    """
    Mint a Firebase custom token for the Clerk user, so the browser can sign in
    to Firebase with the same user id.

    RESPONSES:
      200 {"firebaseToken": "..."}
      401 {"error": "Unauthorized - ..."}
      500 {"error": "Server configuration error", "details": "..."} when settings are missing
      500 {"error": "Failed to generate Firebase token"}
    """
    missing = missing_firebase_settings()
    if missing:
        details = f"Missing Firebase Admin environment variables: {', '.join(missing)}."
        logger.error("Firebase Admin configuration error: %s", details)
        return JSONResponse(status_code=500, content={"error": "Server configuration error", "details": details})

    token = extract_bearer_token(authorization)
    if not token:
        return JSONResponse(status_code=401, content={"error": "Unauthorized - No session token found"})
    try:
        user_id = verify_session_token(token)
    except AuthError as e:
        logger.warning("Rejected session token: %s", e)
        return JSONResponse(status_code=401, content={"error": "Unauthorized - Invalid session token"})

    try:
        return FirebaseTokenResponse(firebase_token=create_firebase_token(user_id))
    except Exception as e:
        logger.error(f"Error generating Firebase token: {e}", exc_info=True)
        return JSONResponse(status_code=500, content={"error": "Failed to generate Firebase token"})


# -------------------------------------------------------------------------
# STANDALONE RUN (python -m aether.main)
# -------------------------------------------------------------------------
def run():
    """Start the uvicorn server (same as run.py)."""
    uvicorn.run(
        "aether.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )

if __name__ == "__main__":
    run()
