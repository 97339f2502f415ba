"""
TASK AUTOMATION SERVICE MODULE
==============================

Turns a plain-language description of a repetitive task into an automation
script plus an explanation of how it works.

If the prompt call still fails after retries, the result is a commented-out
placeholder script that repeats the task description, so the user keeps what
they typed and the UI renders it like any other script.
"""

import logging
from typing import Optional

from aether.models import AutomationRequest, AutomationResult
from aether.prompts import AUTOMATE_TASK_PROMPT
from aether.services.prompt_invoker import EmptyOutputError, PromptInvoker
from aether.utils.retry import RetryPolicy, is_transient_network_error


logger = logging.getLogger("AETHER")

FALLBACK_EXPLANATION = (
    "I'm experiencing temporary connectivity issues. Please try again in a moment. "
    "If the problem persists, try simplifying your task description or breaking it into smaller parts."
)


def fallback_script(task_description: str) -> str:
    return (
        "# Unable to generate automation script at this moment.\n"
        "# Please try again in a few seconds.\n"
        "#\n"
        f"# Your task: {task_description}\n"
        "#\n"
        "# In the meantime, consider breaking down your task into smaller steps."
    )


class TaskAutomationService:

    def __init__(self, invoker: PromptInvoker, retry_policy: Optional[RetryPolicy] = None):
        self.invoker = invoker
        self.retry_policy = retry_policy or RetryPolicy(is_retryable=is_transient_network_error)

    async def automate_task(self, request: AutomationRequest) -> AutomationResult:
        try:
            output = await self.retry_policy.run(
                lambda: self.invoker.invoke(AUTOMATE_TASK_PROMPT, request), label=AUTOMATE_TASK_PROMPT
            )
            if output is None:
                raise EmptyOutputError("Automation prompt returned no output")
            return AutomationResult(automation_script=output.automation_script, explanation=output.explanation)
        except Exception as e:
            logger.error("Task automation failed after retries: %s", e)
            return AutomationResult(
                automation_script=fallback_script(request.task_description),
                explanation=FALLBACK_EXPLANATION,
            )
