"""
CODE GENERATION SERVICE MODULE
==============================

Generates a code snippet from a (transcribed) voice command. On a terminal
failure the snippet is a commented placeholder that echoes the command.
"""

import logging
from typing import Optional

from aether.models import CodeGenRequest, CodeGenResult
from aether.prompts import CODE_GENERATION_PROMPT
from aether.services.prompt_invoker import EmptyOutputError, PromptInvoker
from aether.utils.retry import RetryPolicy, is_transient_network_error


logger = logging.getLogger("AETHER")


def fallback_snippet(voice_command: str) -> str:
    return (
        "// Unable to generate code at this moment.\n"
        "// Please try again in a few seconds.\n"
        "//\n"
        f"// Your request: {voice_command}\n"
        "//\n"
        "// Tip: Try breaking down your request into smaller, more specific parts."
    )


class CodeGenerationService:

    def __init__(self, invoker: PromptInvoker, retry_policy: Optional[RetryPolicy] = None):
        self.invoker = invoker
        self.retry_policy = retry_policy or RetryPolicy(is_retryable=is_transient_network_error)

    async def generate_code_snippet(self, request: CodeGenRequest) -> CodeGenResult:
        try:
            output = await self.retry_policy.run(
                lambda: self.invoker.invoke(CODE_GENERATION_PROMPT, request), label=CODE_GENERATION_PROMPT
            )
            if output is None:
                raise EmptyOutputError("Code generation prompt returned no output")
            return CodeGenResult(code_snippet=output.code_snippet)
        except Exception as e:
            logger.error("Code generation failed after retries: %s", e)
            return CodeGenResult(code_snippet=fallback_snippet(request.voice_command))
