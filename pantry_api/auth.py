"""
Pantry Lookup API — Request Credentials
=========================================

What:  Resolves where the caller's credentials come from, once per request.
How:   A small tagged union:
           BearerToken(token)        ← `Authorization: Bearer <token>` header
           CookieSession(session)    ← browser session cookie (otherwise)
       The union is passed explicitly into the backend client factory, so
       nothing downstream reads headers or cookies on its own.
Who:   Used by services/backend_client.py.

Session cookie format (written by the browser auth library):
    name:   sb-<project-ref>-auth-token
    value:  JSON session, optionally prefixed with "base64-" and encoded as
            unpadded base64url
    chunks: values longer than MAX_CHUNK_SIZE are split across
            <name>.0, <name>.1, ... and joined in order on read
"""

import base64
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from supabase_auth.types import User

logger = logging.getLogger(__name__)

BASE64_PREFIX = "base64-"
MAX_CHUNK_SIZE = 3180
BEARER_PREFIX = "Bearer "


@dataclass(frozen=True)
class SessionTokens:
    access_token: str
    refresh_token: Optional[str] = None


@dataclass(frozen=True)
class BearerToken:
    """Credentials supplied explicitly by an API client (curl, tests, scripts)."""
    token: str

    @property
    def access_token(self) -> Optional[str]:
        return self.token or None


@dataclass(frozen=True)
class CookieSession:
    """
    Credentials carried by the browser session cookie.

    Attributes:
        session:       Tokens decoded from the cookie, None when absent or garbled
        cookie_names:  Every request cookie belonging to the session (all chunks),
                       so stale chunks can be cleared when the session is rewritten
    """
    session: Optional[SessionTokens] = None
    cookie_names: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def access_token(self) -> Optional[str]:
        return self.session.access_token if self.session else None

    @property
    def refresh_token(self) -> Optional[str]:
        return self.session.refresh_token if self.session else None


Credentials = Union[BearerToken, CookieSession]


@dataclass(frozen=True)
class AuthenticatedUser:
    """The caller as reported by the identity provider. Lives for one request."""
    id: str
    email: Optional[str] = None
    role: str = "authenticated"

    @classmethod
    def from_auth_user(cls, user: Optional[User]) -> Optional["AuthenticatedUser"]:
        """Builds a user from the provider's user record; None when it carries no id."""
        if user is None or not user.id:
            return None
        return cls(
            id=str(user.id),
            email=user.email,
            role=user.role or "authenticated",
        )


# ══════════════════════════════════════════════════════════════════════════
# Credential Resolution
# ══════════════════════════════════════════════════════════════════════════


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """
    Returns the token of an `Authorization: Bearer <token>` header.

    Anything else (missing header, other scheme, empty token) yields None,
    which makes the caller fall back to the session cookie.
    """
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        return None
    token = authorization[len(BEARER_PREFIX):].strip()
    return token or None


def resolve_credentials(
    headers: Mapping[str, str],
    cookies: Mapping[str, str],
    cookie_name: str,
) -> Credentials:
    """
    Resolve the credential source for one request.

    Order:
        1. Bearer header wins when present and well-formed
        2. Otherwise the session cookie (possibly empty)
    """
    token = extract_bearer_token(headers.get("authorization"))
    if token:
        return BearerToken(token=token)

    names = session_cookie_names(cookies, cookie_name)
    return CookieSession(
        session=read_session_cookie(cookies, cookie_name),
        cookie_names=tuple(names),
    )


# ══════════════════════════════════════════════════════════════════════════
# Session Cookie Codec
# ══════════════════════════════════════════════════════════════════════════


def session_cookie_names(cookies: Mapping[str, str], cookie_name: str) -> List[str]:
    """Names of the session cookie and any of its chunks present in the request."""
    chunk_prefix = f"{cookie_name}."
    return sorted(
        name for name in cookies
        if name == cookie_name
        or (name.startswith(chunk_prefix) and name[len(chunk_prefix):].isdigit())
    )


def _combine_chunks(cookies: Mapping[str, str], cookie_name: str) -> Optional[str]:
    if cookie_name in cookies:
        return cookies[cookie_name]

    chunks = []
    index = 0
    while f"{cookie_name}.{index}" in cookies:
        chunks.append(cookies[f"{cookie_name}.{index}"])
        index += 1
    return "".join(chunks) if chunks else None


def read_session_cookie(cookies: Mapping[str, str], cookie_name: str) -> Optional[SessionTokens]:
    """
    Decode the session tokens stored in the request cookies.

    Returns None for a missing cookie or any value that does not decode to a
    JSON object with an access token; such requests end up unauthorized.
    """
    raw = _combine_chunks(cookies, cookie_name)
    if not raw:
        return None

    try:
        if raw.startswith(BASE64_PREFIX):
            encoded = raw[len(BASE64_PREFIX):]
            encoded += "=" * (-len(encoded) % 4)
            raw = base64.urlsafe_b64decode(encoded).decode("utf-8")
        payload = json.loads(raw)
    except ValueError:
        logger.debug("Session cookie %s could not be decoded", cookie_name)
        return None

    if not isinstance(payload, dict):
        return None
    access_token = payload.get("access_token")
    if not isinstance(access_token, str) or not access_token:
        return None
    refresh_token = payload.get("refresh_token")
    return SessionTokens(
        access_token=access_token,
        refresh_token=refresh_token if isinstance(refresh_token, str) and refresh_token else None,
    )


def encode_session_cookie(cookie_name: str, session: Dict[str, Any]) -> List[Tuple[str, str]]:
    """
    Encode a session into (cookie name, value) pairs.

    A single cookie is used when the encoded value fits, otherwise the value
    is split into numbered chunks.
    """
    encoded = base64.urlsafe_b64encode(
        json.dumps(session, separators=(",", ":")).encode("utf-8")
    ).decode("ascii").rstrip("=")
    value = BASE64_PREFIX + encoded

    if len(value) <= MAX_CHUNK_SIZE:
        return [(cookie_name, value)]
    return [
        (f"{cookie_name}.{index}", value[start:start + MAX_CHUNK_SIZE])
        for index, start in enumerate(range(0, len(value), MAX_CHUNK_SIZE))
    ]
