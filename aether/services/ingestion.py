"""
INGESTION SERVICE MODULE
========================

Turns user-supplied sources into plain text for the study assistant:

  fetch_url_content(url)  - extracts the readable text of a web page with the
                            Tavily extract API (retried on transient errors).
  extract_pdf_text(...)   - pulls the text out of an uploaded PDF with pypdf.

Bad input (unsupported URL, wrong file type, oversized file) raises ValueError
so the API layer can answer 400; extraction failures raise RuntimeError.
"""

import asyncio
import io
import logging
from typing import Optional
from urllib.parse import urlparse

from pypdf import PdfReader
from tavily import TavilyClient

from aether.utils.retry import RetryPolicy, is_transient_network_error
from config import MAX_PDF_BYTES, TAVILY_API_KEY


logger = logging.getLogger("AETHER")

PDF_CONTENT_TYPE = "application/pdf"


def validate_url(url: str) -> str:
    """Accept only absolute http(s) URLs with a host."""
    parsed = urlparse((url or "").strip())
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError("Invalid URL format")
    return parsed.geturl()


class IngestionService:
    """URL and PDF text extraction. URL extraction needs TAVILY_API_KEY."""

    def __init__(self, tavily_api_key: str = TAVILY_API_KEY, retry_policy: Optional[RetryPolicy] = None):
        if tavily_api_key:
            self.tavily_client = TavilyClient(api_key=tavily_api_key)
            logger.info("Tavily extract client initialized successfully")
        else:
            self.tavily_client = None
            logger.warning("TAVILY_API_KEY not set. URL extraction will be unavailable.")
        self.retry_policy = retry_policy or RetryPolicy(is_retryable=is_transient_network_error)

    # ------------------------------------------------------------------------------
    # URL
    # ------------------------------------------------------------------------------

    async def fetch_url_content(self, url: str) -> str:
        url = validate_url(url)
        if not self.tavily_client:
            raise RuntimeError("URL extraction is not configured (TAVILY_API_KEY not set)")

        # The Tavily client is synchronous; run it off the event loop.
        response = await self.retry_policy.run(
            lambda: asyncio.to_thread(self.tavily_client.extract, urls=[url]), label="tavily extract"
        )
        results = response.get("results", [])
        content = (results[0].get("raw_content") or "").strip() if results else ""
        if not content:
            failed = response.get("failed_results", [])
            logger.warning("No content extracted from %s (failed: %s)", url, failed)
            raise RuntimeError(f"Could not extract content from {url}")

        logger.info("Extracted %s characters from %s", len(content), url)
        return content

    # ------------------------------------------------------------------------------
    # PDF
    # ------------------------------------------------------------------------------

    def extract_pdf_text(self, data: bytes, filename: str = "", content_type: str = "") -> str:
        if content_type != PDF_CONTENT_TYPE:
            raise ValueError("File must be a PDF")
        if len(data) > MAX_PDF_BYTES:
            raise ValueError(f"File size must be less than {MAX_PDF_BYTES // (1024 * 1024)}MB")

        try:
            reader = PdfReader(io.BytesIO(data))
            pages = [page.extract_text() or "" for page in reader.pages]
        except Exception as e:
            raise RuntimeError(f"PDF parse failed for {filename or 'upload'}: {e}") from e

        text = "\n\n".join(p.strip() for p in pages if p.strip())
        logger.info("Extracted %s characters from %s (%s pages)", len(text), filename or "upload", len(pages))
        return text
