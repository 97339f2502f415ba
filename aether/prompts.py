"""
PROMPT REGISTRY
===============

Named prompt templates used by the flows. Each entry knows:
  - the pydantic model its input must satisfy,
  - the pydantic model the LLM's structured output is parsed into,
  - the chat messages of the LangChain ChatPromptTemplate,
  - how to turn a validated input into template variables.

The flows only refer to prompts by name; the PromptInvoker looks them up here.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple, Type

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage
from langchain_core.prompts import ChatPromptTemplate, MessagesPlaceholder
from pydantic import BaseModel, Field

from aether.models import (
    AetherModel,
    AutomationRequest,
    AutomationResult,
    ChatResponse,
    CodeGenRequest,
    CodeGenResult,
    StudyAssistantRequest,
)
from aether.utils.time_info import get_time_information
from config import ASSISTANT_NAME


REQUIRES_SUMMARY_PROMPT = "requiresSummaryPrompt"
SUMMARY_PROMPT = "summaryPrompt"
ANSWER_PROMPT = "answerPrompt"
CHAT_PROMPT = "intelligentChatMemoryPrompt"
AUTOMATE_TASK_PROMPT = "automateTaskPrompt"
CODE_GENERATION_PROMPT = "voiceActivatedCodeGenerationPrompt"


# ==============================================================================
# PROMPT INPUT / OUTPUT MODELS
# ==============================================================================

class RequiresSummaryOutput(AetherModel):
    requires_summary: bool = Field(
        ..., description="Whether the question requires summarization of the document to answer."
    )


class SummaryOutput(AetherModel):
    summary: str = Field(..., description="A summary of the document.")


class AnswerPromptInput(AetherModel):
    query: str
    document: str
    summary: Optional[str] = None


class AnswerOutput(AetherModel):
    answer: str = Field(..., description="The answer to the question.")


class HistoryEntry(AetherModel):
    """A chat history entry as the prompt sees it: text plus who said it."""
    content: str
    is_user: bool


class ChatPromptInput(AetherModel):
    message: str
    chat_history: List[HistoryEntry] = Field(default_factory=list)
    mode: str = "general"


# ==============================================================================
# TEMPLATES
# ==============================================================================

_STUDY_SYSTEM = "You are {assistant_name}, an AI study assistant."

_REQUIRES_SUMMARY_TEMPLATE = (
    "Determine if the following question requires a summary of the document to answer it. "
    "Return true if a summary is required, false otherwise.\n\n"
    "Question: {query}\n"
    "Document: {document}"
)

_SUMMARY_TEMPLATE = (
    "Summarize the following document, keeping the parts that help answer the question.\n\n"
    "Question: {query}\n"
    "Document: {document}"
)

_ANSWER_TEMPLATE = (
    "Answer the following question using the provided document and summary if available.\n\n"
    "Question: {query}\n"
    "Document: {document}\n"
    "Summary: {summary}"
)

_CHAT_SYSTEM = """You are {assistant_name}, a helpful, intelligent AI assistant.
Use the chat history to maintain context.

Current date and time: {time_info}

Mode: {mode}

Behavior guidance:
- If Mode is 'coding': act as a coding assistant. Provide runnable code snippets, explain design decisions, and include tests or examples when helpful.
- If Mode is 'cognitive': focus on memory, summarization, and recalling prior details from the conversation.
- If Mode is 'knowledge': prioritize factual answers and provide sources or citations where possible.
- If Mode is 'task': provide step-by-step actionable plans, checklists, and commands the user can run to automate tasks.
- Otherwise, be general and concise.

Respond clearly and helpfully."""

_AUTOMATION_SYSTEM = "You are {assistant_name}, an AI assistant specialized in automating repetitive tasks."

_AUTOMATION_TEMPLATE = (
    "Based on the user's description of the task, generate an automation script "
    "and explain how the automation script works.\n\n"
    "Task Description: {task_description}"
)

_CODE_SYSTEM = "You are {assistant_name}, an expert code generator."

_CODE_TEMPLATE = (
    "The user will provide a voice command which describes the code they want you to generate.\n\n"
    "Voice Command: {voice_command}\n\n"
    "Generate the code snippet that satisfies the voice command. "
    "Enclose the code snippet with markdown code fences."
)


def _history_messages(history: List[HistoryEntry]) -> List[BaseMessage]:
    return [
        HumanMessage(content=entry.content) if entry.is_user else AIMessage(content=entry.content)
        for entry in history
    ]


def _default_variables(prompt_input: BaseModel) -> Dict[str, Any]:
    return {"assistant_name": ASSISTANT_NAME, **prompt_input.model_dump()}


def _answer_variables(prompt_input: AnswerPromptInput) -> Dict[str, Any]:
    variables = _default_variables(prompt_input)
    variables["summary"] = prompt_input.summary or "(no summary)"
    return variables


def _chat_variables(prompt_input: ChatPromptInput) -> Dict[str, Any]:
    return {
        "assistant_name": ASSISTANT_NAME,
        "time_info": get_time_information(),
        "mode": prompt_input.mode,
        "history": _history_messages(prompt_input.chat_history),
        "message": prompt_input.message,
    }


# ==============================================================================
# REGISTRY
# ==============================================================================

@dataclass(frozen=True)
class PromptSpec:
    name: str
    input_model: Type[BaseModel]
    output_model: Type[BaseModel]
    messages: Tuple[Any, ...]
    to_variables: Callable[[Any], Dict[str, Any]] = _default_variables

    def build_template(self) -> ChatPromptTemplate:
        return ChatPromptTemplate.from_messages(list(self.messages))

    def coerce_input(self, prompt_input: Any) -> BaseModel:
        """Validate dicts (or other models) into this prompt's input model."""
        if isinstance(prompt_input, self.input_model):
            return prompt_input
        if isinstance(prompt_input, BaseModel):
            prompt_input = prompt_input.model_dump()
        return self.input_model.model_validate(prompt_input)


PROMPTS: Dict[str, PromptSpec] = {
    spec.name: spec
    for spec in (
        PromptSpec(
            name=REQUIRES_SUMMARY_PROMPT,
            input_model=StudyAssistantRequest,
            output_model=RequiresSummaryOutput,
            messages=(("system", _STUDY_SYSTEM), ("human", _REQUIRES_SUMMARY_TEMPLATE)),
        ),
        PromptSpec(
            name=SUMMARY_PROMPT,
            input_model=StudyAssistantRequest,
            output_model=SummaryOutput,
            messages=(("system", _STUDY_SYSTEM), ("human", _SUMMARY_TEMPLATE)),
        ),
        PromptSpec(
            name=ANSWER_PROMPT,
            input_model=AnswerPromptInput,
            output_model=AnswerOutput,
            messages=(("system", _STUDY_SYSTEM), ("human", _ANSWER_TEMPLATE)),
            to_variables=_answer_variables,
        ),
        PromptSpec(
            name=CHAT_PROMPT,
            input_model=ChatPromptInput,
            output_model=ChatResponse,
            messages=(
                ("system", _CHAT_SYSTEM),
                MessagesPlaceholder(variable_name="history"),
                ("human", "{message}"),
            ),
            to_variables=_chat_variables,
        ),
        PromptSpec(
            name=AUTOMATE_TASK_PROMPT,
            input_model=AutomationRequest,
            output_model=AutomationResult,
            messages=(("system", _AUTOMATION_SYSTEM), ("human", _AUTOMATION_TEMPLATE)),
        ),
        PromptSpec(
            name=CODE_GENERATION_PROMPT,
            input_model=CodeGenRequest,
            output_model=CodeGenResult,
            messages=(("system", _CODE_SYSTEM), ("human", _CODE_TEMPLATE)),
        ),
    )
}


def get_prompt(name: str) -> PromptSpec:
    """Look up a prompt by name. Raises KeyError for unknown names."""
    try:
        return PROMPTS[name]
    except KeyError:
        raise KeyError(f"Unknown prompt: {name}") from None
