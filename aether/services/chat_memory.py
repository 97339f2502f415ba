"""
CHAT MEMORY SERVICE MODULE
==========================

One chat turn with conversational memory. The caller passes the prior history
(role + content, oldest first); nothing is kept in process between calls.

The history is normalized here to {content, is_user} so the prompt template
only has to pick a human or AI message per entry. The mode (general, coding,
cognitive, knowledge, task) is forwarded to the prompt as style guidance.

On any error that survives the retries (overload, rate limit, connection
reset, timeout) the caller gets FALLBACK_RESPONSE instead of an exception.
"""

import logging
from typing import List, Optional

from aether.models import ChatMessage, ChatMode, ChatRequest, ChatResponse
from aether.prompts import CHAT_PROMPT, ChatPromptInput, HistoryEntry
from aether.services.prompt_invoker import EmptyOutputError, PromptInvoker
from aether.utils.retry import RetryPolicy, is_transient_network_error


logger = logging.getLogger("AETHER")

FALLBACK_RESPONSE = (
    "I'm having trouble connecting right now. Please try again in a moment. "
    "If the issue persists, try refreshing the page."
)


def normalize_history(chat_history: Optional[List[ChatMessage]]) -> List[HistoryEntry]:
    """Map each message to {content, is_user}, keeping the original order."""
    return [HistoryEntry(content=m.content, is_user=m.role == "user") for m in chat_history or []]


class ChatMemoryService:

    def __init__(self, invoker: PromptInvoker, retry_policy: Optional[RetryPolicy] = None):
        self.invoker = invoker
        self.retry_policy = retry_policy or RetryPolicy(is_retryable=is_transient_network_error)

    async def intelligent_chat_memory(self, request: ChatRequest) -> ChatResponse:
        prompt_input = ChatPromptInput(
            message=request.message,
            chat_history=normalize_history(request.chat_history),
            mode=(request.mode or ChatMode.GENERAL).value,
        )
        try:
            output = await self.retry_policy.run(
                lambda: self.invoker.invoke(CHAT_PROMPT, prompt_input), label=CHAT_PROMPT
            )
            if output is None:
                raise EmptyOutputError("Chat prompt returned no output")
            return ChatResponse(response=output.response)
        except Exception as e:
            logger.error("Chat response failed after retries: %s", e)
            return ChatResponse(response=FALLBACK_RESPONSE)
