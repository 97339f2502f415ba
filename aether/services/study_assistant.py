"""
STUDY ASSISTANT SERVICE MODULE
==============================

Answers a question about a document in two or three sequential stages:

  1. CLASSIFY  - requiresSummaryPrompt: does the question need a summary of the
                 document? Missing output counts as "no".
  2. SUMMARIZE - summaryPrompt, only when stage 1 said yes.
  3. ANSWER    - answerPrompt with the query, the document and the summary (if any).

Every stage runs through the retry policy (overload and rate-limit errors only).

FAILURE:
  Any error that survives its retries, in any stage, ends the flow with
  FALLBACK_ANSWER, requires_summary=False and no summary. This includes a
  failed summarization: the flow does not go on to answer without a summary.
  The fallback also does not report what classification said.
"""

import logging
from typing import Optional

from aether.models import StudyAssistantRequest, StudyAssistantResult
from aether.prompts import ANSWER_PROMPT, REQUIRES_SUMMARY_PROMPT, SUMMARY_PROMPT, AnswerPromptInput
from aether.services.prompt_invoker import PromptInvoker
from aether.utils.retry import RetryPolicy, is_transient_error


logger = logging.getLogger("AETHER")

FALLBACK_ANSWER = (
    "I'm having trouble processing your request right now. Please try again in a moment. "
    "If the issue persists, try with a shorter document or a more specific question."
)


class StudyAssistantService:
    """Classify, optionally summarize, then answer a question about a document."""

    def __init__(self, invoker: PromptInvoker, retry_policy: Optional[RetryPolicy] = None):
        self.invoker = invoker
        self.retry_policy = retry_policy or RetryPolicy(is_retryable=is_transient_error)

    async def _requires_summary(self, request: StudyAssistantRequest) -> bool:
        output = await self.retry_policy.run(
            lambda: self.invoker.invoke(REQUIRES_SUMMARY_PROMPT, request), label=REQUIRES_SUMMARY_PROMPT
        )
        return bool(getattr(output, "requires_summary", False))

    async def _summarize(self, request: StudyAssistantRequest) -> Optional[str]:
        output = await self.retry_policy.run(
            lambda: self.invoker.invoke(SUMMARY_PROMPT, request), label=SUMMARY_PROMPT
        )
        return getattr(output, "summary", None)

    async def _answer(self, request: StudyAssistantRequest, summary: Optional[str]) -> str:
        prompt_input = AnswerPromptInput(query=request.query, document=request.document, summary=summary)
        output = await self.retry_policy.run(
            lambda: self.invoker.invoke(ANSWER_PROMPT, prompt_input), label=ANSWER_PROMPT
        )
        return getattr(output, "answer", None) or ""

    async def study_assistant(self, request: StudyAssistantRequest) -> StudyAssistantResult:
        try:
            requires_summary = await self._requires_summary(request)

            summary = None
            if requires_summary:
                summary = await self._summarize(request)

            answer = await self._answer(request, summary)
            return StudyAssistantResult(answer=answer, requires_summary=requires_summary, summary=summary)
        except Exception as e:
            logger.error("Study assistant failed after retries: %s", e)
            return StudyAssistantResult(answer=FALLBACK_ANSWER, requires_summary=False, summary=None)
