"""
PROMPT INVOKER MODULE
=====================

Runs a named prompt against the Groq LLM and returns its structured output.

  invoke(prompt_name, prompt_input) -> output model instance, or None

The flows depend only on the PromptInvoker protocol, so tests hand them a fake
and production hands them GroqPromptInvoker.

HOW A CALL WORKS:
  1. Look up the prompt in aether.prompts (unknown name -> KeyError).
  2. Validate the input against the prompt's input model (bad shape -> ValidationError).
  3. Build the ChatPromptTemplate and pipe it into
     ChatGroq.with_structured_output(output model).
  4. Await the chain. Provider errors (429, 503, timeouts, ...) propagate as-is
     so the caller's retry policy can classify them.

ROUND-ROBIN API KEYS:
  With several GROQ keys configured, each call uses the next key in turn. A
  retry after a rate limit therefore lands on a different key.
"""

import itertools
import logging
import threading
from typing import Any, List, Optional, Protocol

from langchain_groq import ChatGroq
from pydantic import BaseModel

from aether.prompts import get_prompt
from config import GROQ_API_KEYS, GROQ_MODEL, GROQ_TEMPERATURE


logger = logging.getLogger("AETHER")


class EmptyOutputError(RuntimeError):
    """The model answered without any structured output."""


class PromptInvoker(Protocol):
    async def invoke(self, prompt_name: str, prompt_input: Any) -> Optional[BaseModel]:
        ...


def _mask_key(key: str) -> str:
    if len(key) <= 8:
        return "****"
    return f"{key[:4]}...{key[-4:]}"


class GroqPromptInvoker:
    """PromptInvoker backed by LangChain + Groq, one ChatGroq client per API key."""

    def __init__(
        self,
        api_keys: Optional[List[str]] = None,
        model: str = GROQ_MODEL,
        temperature: float = GROQ_TEMPERATURE,
    ):
        keys = list(api_keys if api_keys is not None else GROQ_API_KEYS)
        if not keys:
            raise ValueError(
                "GROQ_API_KEY is not set. Add it to .env (and optionally GROQ_API_KEY_2, ...)."
            )
        self.model = model
        self._keys = keys
        self._llms = [ChatGroq(api_key=key, model=model, temperature=temperature) for key in keys]
        self._counter = itertools.count()
        self._lock = threading.Lock()
        logger.info("Prompt invoker ready: model=%s, %s API key(s)", model, len(keys))

    def _next_index(self) -> int:
        with self._lock:
            return next(self._counter) % len(self._llms)

    async def invoke(self, prompt_name: str, prompt_input: Any) -> Optional[BaseModel]:
        spec = get_prompt(prompt_name)
        validated = spec.coerce_input(prompt_input)

        index = self._next_index()
        logger.info(
            "Invoking %s with key #%s (%s)",
            prompt_name,
            index + 1,
            _mask_key(self._keys[index]),
        )
        chain = spec.build_template() | self._llms[index].with_structured_output(spec.output_model)
        output = await chain.ainvoke(spec.to_variables(validated))
        if output is None:
            logger.warning("Prompt %s returned no structured output", prompt_name)
        return output
