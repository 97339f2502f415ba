"""
CONFIGURATION MODULE
====================

PURPOSE:
  Central place for all Aether settings: API keys, model names, retry budget,
  size limits, storage paths and the identity/database bridge credentials.

WHAT THIS FILE DOES:
  - Loads environment variables from .env (so API keys stay out of code).
  - Exposes GROQ_API_KEYS and GROQ_MODEL for the prompt invoker, TAVILY_API_KEY
    for URL extraction.
  - Defines the retry policy defaults shared by every AI flow.
  - Defines the data folder for chat sessions and creates it if missing.
  - Holds the Clerk and Firebase settings used by the auth bridge.

USAGE:
  Import what you need: `from config import GROQ_API_KEYS, CHATS_DATA_DIR`
"""

import os
import logging
from pathlib import Path
from dotenv import load_dotenv


logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# ENVIRONMENT
# -----------------------------------------------------------------------------
load_dotenv()


def _get_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r, using %s", name, raw, default)
        return default


def _get_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring non-numeric %s=%r, using %s", name, raw, default)
        return default


# -----------------------------------------------------------------------------
# BASE PATH / DATA
# -----------------------------------------------------------------------------
BASE_DIR = Path(__file__).parent

# chats_data holds one folder per user with one JSON file per chat session.
DATA_DIR = Path(os.getenv("AETHER_DATA_DIR", "").strip() or BASE_DIR / "database")
CHATS_DATA_DIR = DATA_DIR / "chats_data"
CHATS_DATA_DIR.mkdir(parents=True, exist_ok=True)

# ============================================================================
# GROQ API CONFIGURATION
# ============================================================================
# One key (GROQ_API_KEY) or several: GROQ_API_KEY, GROQ_API_KEY_2, GROQ_API_KEY_3, ...
# Each prompt call takes the next key in turn, so a retry after a 429 lands on
# a different key when more than one is configured.

def _load_groq_api_keys() -> list:
    """
    Load all GROQ API keys from the environment.
    Reads GROQ_API_KEY first, then GROQ_API_KEY_2, GROQ_API_KEY_3, ... until
    a number has no value.
    """
    keys = []
    first = os.getenv("GROQ_API_KEY", "").strip()
    if first:
        keys.append(first)
    i = 2
    while True:
        k = os.getenv(f"GROQ_API_KEY_{i}", "").strip()
        if not k:
            break
        keys.append(k)
        i += 1
    return keys


GROQ_API_KEYS = _load_groq_api_keys()
GROQ_MODEL = os.getenv("GROQ_MODEL", "llama-3.3-70b-versatile")
GROQ_TEMPERATURE = _get_float("GROQ_TEMPERATURE", 0.4)

# ============================================================================
# TAVILY API CONFIGURATION
# ============================================================================
# Used by POST /api/fetch-url to pull readable text out of a web page.
TAVILY_API_KEY = os.getenv("TAVILY_API_KEY", "")

# ============================================================================
# RETRY POLICY
# ============================================================================
# Attempts per prompt call (including the first) and the first backoff delay in
# seconds. Delays double on every retry: 1s, 2s, 4s, ...
RETRY_MAX_ATTEMPTS = _get_int("RETRY_MAX_ATTEMPTS", 3)
RETRY_BASE_DELAY = _get_float("RETRY_BASE_DELAY", 1.0)

# ============================================================================
# LIMITS
# ============================================================================
# ~32K chars is ~8K tokens; keeps a single message well under model limits.
MAX_MESSAGE_LENGTH = 32_000
MAX_DOCUMENT_LENGTH = _get_int("MAX_DOCUMENT_LENGTH", 200_000)
# Most recent stored messages sent along with a session chat turn.
MAX_CHAT_HISTORY_MESSAGES = _get_int("MAX_CHAT_HISTORY_MESSAGES", 40)
MAX_PDF_BYTES = 10 * 1024 * 1024

# ============================================================================
# AUTH BRIDGE
# ============================================================================
# Clerk issues the browser session token; Firebase receives a custom token
# minted for the same user id so Firestore rules key on one identifier.
CLERK_JWKS_URL = os.getenv("CLERK_JWKS_URL", "").strip()
CLERK_ISSUER = os.getenv("CLERK_ISSUER", "").strip()

FIREBASE_PROJECT_ID = os.getenv("FIREBASE_PROJECT_ID", "").strip()
FIREBASE_CLIENT_EMAIL = os.getenv("FIREBASE_CLIENT_EMAIL", "").strip()
FIREBASE_PRIVATE_KEY = os.getenv("FIREBASE_PRIVATE_KEY", "")

# ============================================================================
# ASSISTANT
# ============================================================================
ASSISTANT_NAME = (os.getenv("ASSISTANT_NAME", "").strip() or "Aether")
