"""
AUTH BRIDGE MODULE
==================

The browser signs in with Clerk. Chat sessions are keyed by the Clerk user id,
and the browser also needs a Firebase custom token for that same id so the
database rules see one identifier. This module:

  - verify_session_token(token): checks a Clerk session JWT against the Clerk
    JWKS endpoint (RS256) and returns the user id (the "sub" claim).
  - missing_firebase_settings(): names the Firebase service-account settings
    that are not configured.
  - create_firebase_token(user_id): mints a Firebase custom token for the user.

Firebase Admin is initialized once, on first use.
"""

import logging
import threading
from typing import List, Optional

import firebase_admin
import jwt
from firebase_admin import auth as firebase_auth
from firebase_admin import credentials

from config import (
    CLERK_ISSUER,
    CLERK_JWKS_URL,
    FIREBASE_CLIENT_EMAIL,
    FIREBASE_PRIVATE_KEY,
    FIREBASE_PROJECT_ID,
)


logger = logging.getLogger("AETHER")

GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"

_jwks_clients = {}
_firebase_lock = threading.Lock()


class AuthError(Exception):
    """The caller could not be authenticated."""


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Return the token from an 'Authorization: Bearer <token>' header value."""
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def _get_jwks_client(url: str) -> jwt.PyJWKClient:
    client = _jwks_clients.get(url)
    if client is None:
        client = jwt.PyJWKClient(url)
        _jwks_clients[url] = client
    return client


def verify_session_token(token: str) -> str:
    """Verify a Clerk session token and return the user id. Raises AuthError."""
    if not CLERK_JWKS_URL:
        raise AuthError("CLERK_JWKS_URL is not configured")
    try:
        signing_key = _get_jwks_client(CLERK_JWKS_URL).get_signing_key_from_jwt(token)
        options = {"verify_aud": False}
        kwargs = {"issuer": CLERK_ISSUER} if CLERK_ISSUER else {}
        claims = jwt.decode(token, signing_key.key, algorithms=["RS256"], options=options, **kwargs)
    except jwt.PyJWTError as e:
        raise AuthError(f"Invalid session token: {e}") from e

    user_id = claims.get("sub")
    if not user_id:
        raise AuthError("Session token has no subject")
    return user_id


# ==============================================================================
# FIREBASE
# ==============================================================================

def missing_firebase_settings() -> List[str]:
    missing = []
    if not FIREBASE_PROJECT_ID:
        missing.append("FIREBASE_PROJECT_ID")
    if not FIREBASE_CLIENT_EMAIL:
        missing.append("FIREBASE_CLIENT_EMAIL")
    if not FIREBASE_PRIVATE_KEY:
        missing.append("FIREBASE_PRIVATE_KEY")
    return missing


def format_private_key(raw: str) -> str:
    """Keys pasted into env files often carry literal '\\n' sequences instead of newlines."""
    return raw.replace("\\n", "\n") if "\\n" in raw else raw


def _get_firebase_app() -> firebase_admin.App:
    with _firebase_lock:
        try:
            return firebase_admin.get_app()
        except ValueError:
            cert = credentials.Certificate({
                "type": "service_account",
                "project_id": FIREBASE_PROJECT_ID,
                "client_email": FIREBASE_CLIENT_EMAIL,
                "private_key": format_private_key(FIREBASE_PRIVATE_KEY),
                "token_uri": GOOGLE_TOKEN_URI,
            })
            logger.info("Initializing Firebase Admin for project %s", FIREBASE_PROJECT_ID)
            return firebase_admin.initialize_app(cert)


def create_firebase_token(user_id: str) -> str:
    """Mint a Firebase custom token whose uid is the Clerk user id."""
    token = firebase_auth.create_custom_token(user_id, app=_get_firebase_app())
    return token.decode("utf-8") if isinstance(token, bytes) else token
