"""
DATA MODELS MODULE
==================

Pydantic models for API requests, responses, flow results and stored chat
sessions. FastAPI uses them to validate incoming JSON and to serialize
responses; the flows use them as prompt inputs and outputs.

Attributes are snake_case in Python. On the wire they use camelCase aliases
(chatHistory, requiresSummary, taskDescription, ...) and both spellings are
accepted on input.

MODELS:
  ChatMessage            - One history entry (role + content) sent by the browser.
  ChatMode               - Response style hint forwarded to the chat prompt.
  StudyAssistantRequest  - query + document for POST /study.
  StudyAssistantResult   - answer + whether a summary was needed + the summary.
  ChatRequest/Response   - POST /chat.
  AutomationRequest/Result, CodeGenRequest/Result - POST /automate and POST /code.
  StoredMessage, ChatSession, SessionInfo - Session store records.
"""

from datetime import datetime
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from config import MAX_DOCUMENT_LENGTH, MAX_MESSAGE_LENGTH


class AetherModel(BaseModel):
    """Base model: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ==============================================================================
# CHAT
# ==============================================================================

class ChatMessage(AetherModel):
    """
    A single message in a conversation. Order in the surrounding list is the
    conversation order; there is no timestamp here.
    """
    role: Literal["user", "assistant"]
    content: str


class ChatMode(str, Enum):
    """Advisory style for the chat prompt. Not a separate code path."""
    GENERAL = "general"
    CODING = "coding"
    COGNITIVE = "cognitive"
    KNOWLEDGE = "knowledge"
    TASK = "task"


class ChatRequest(AetherModel):
    # ... means required; min/max length prevent empty input and token overflow.
    message: str = Field(..., min_length=1, max_length=MAX_MESSAGE_LENGTH)
    chat_history: Optional[List[ChatMessage]] = None
    mode: Optional[ChatMode] = None


class ChatResponse(AetherModel):
    response: str = Field(..., description="The AI assistant's response.")


# ==============================================================================
# STUDY ASSISTANT
# ==============================================================================

class StudyAssistantRequest(AetherModel):
    query: str = Field(..., max_length=MAX_MESSAGE_LENGTH, description="The question asked by the student.")
    document: str = Field(..., max_length=MAX_DOCUMENT_LENGTH, description="The document content to study.")


class StudyAssistantResult(AetherModel):
    """
    summary is set only when the summarization stage ran and produced text.
    requires_summary is whatever classification returned, except on the
    fallback path where it is always False.
    """
    answer: str
    requires_summary: bool
    summary: Optional[str] = None


# ==============================================================================
# TASK AUTOMATION / CODE GENERATION
# ==============================================================================

class AutomationRequest(AetherModel):
    task_description: str = Field(
        ..., max_length=MAX_MESSAGE_LENGTH,
        description="The description of the repetitive task to automate.",
    )


class AutomationResult(AetherModel):
    automation_script: str = Field(..., description="The automation script generated for the task.")
    explanation: str = Field(..., description="Explanation of how the automation script works.")


class CodeGenRequest(AetherModel):
    voice_command: str = Field(
        ..., max_length=MAX_MESSAGE_LENGTH,
        description="A natural language description of the desired code snippet.",
    )


class CodeGenResult(AetherModel):
    code_snippet: str = Field(..., description="The generated code snippet.")


# ==============================================================================
# SESSION STORE
# ==============================================================================

class StoredMessage(AetherModel):
    role: Literal["user", "assistant"]
    content: str
    created_at: datetime


class ChatSession(AetherModel):
    """One persisted conversation. Saved as a single JSON file."""
    session_id: str
    user_id: str
    title: str
    created_at: datetime
    updated_at: datetime
    messages: List[StoredMessage] = Field(default_factory=list)


class SessionInfo(AetherModel):
    """A session without its messages, for listings."""
    session_id: str
    title: str
    created_at: datetime
    updated_at: datetime


class CreateSessionRequest(AetherModel):
    title: Optional[str] = Field(None, max_length=200)


class SessionChatRequest(AetherModel):
    message: str = Field(..., min_length=1, max_length=MAX_MESSAGE_LENGTH)
    mode: Optional[ChatMode] = None


class SessionChatResponse(AetherModel):
    response: str
    session_id: str


# ==============================================================================
# INGESTION / AUTH
# ==============================================================================

class FetchUrlRequest(AetherModel):
    url: str


class ContentResponse(AetherModel):
    content: str


class FirebaseTokenResponse(AetherModel):
    firebase_token: str
