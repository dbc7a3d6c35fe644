"""
Pantry Lookup API — Backend Client Factory
============================================

What:  Builds the per-request handle through which every backend call flows.
How:   `create_backend_client()` binds the fixed backend endpoint and public
       key to the request's credentials (bearer token or session cookie), its
       database session, and the outgoing response (for cookie writes).
Who:   `get_backend_client` is injected into the lookup routes; the handle is
       passed on to LookupService.
When:  Once per request. Construction performs no network I/O.

Handle capabilities:
    get_user()  → identity lookup through the Supabase auth client
    execute()   → runs a SQLAlchemy statement with the caller's credentials

Credential flow:
    BearerToken    → token sent on the identity lookup and, on PostgreSQL,
                     applied as row-level-security claims for every query
    CookieSession  → access token from the cookie; if it is rejected and a
                     refresh token is present, the session is refreshed once
                     and written back as cookies

Identity provider errors:
    AuthApiError / AuthUnknownError   the provider answered and refused → no user
    AuthRetryableError                provider unreachable or gateway error → raised
"""

import json
import logging
from typing import Any, Dict, Mapping, Optional

import httpx
from fastapi import Depends, Request, Response
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession
from supabase_auth import AsyncGoTrueClient
from supabase_auth.errors import AuthApiError, AuthSessionMissingError, AuthUnknownError

from pantry_api.auth import (
    AuthenticatedUser,
    BearerToken,
    CookieSession,
    Credentials,
    encode_session_cookie,
    resolve_credentials,
)
from pantry_api.config import settings
from pantry_api.database import get_db_session

logger = logging.getLogger(__name__)

# Browser auth libraries keep the session cookie for 400 days
SESSION_COOKIE_MAX_AGE = 400 * 24 * 60 * 60

# The provider answered, but the credentials are not usable
REJECTED_CREDENTIALS = (AuthApiError, AuthUnknownError, AuthSessionMissingError)


class BackendClient:
    """
    Authenticated handle to the managed backend for a single request.

    Attributes:
        base_url:          Backend endpoint (identity provider lives under /auth/v1)
        anon_key:          Public API key sent as `apikey` on every identity call
        credentials:       Resolved credential source for this request
        session:           Async database session used for lookups
        user:              Caller identity, populated by get_user()
        session_refreshed: True once a cookie session was refreshed this request
    """

    def __init__(
        self,
        *,
        base_url: str,
        anon_key: str,
        credentials: Credentials,
        session: AsyncSession,
        cookie_name: str,
        response: Optional[Response] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url
        self.anon_key = anon_key
        self.credentials = credentials
        self.session = session
        self.cookie_name = cookie_name
        self.user: Optional[AuthenticatedUser] = None
        self.session_refreshed = False
        self._response = response
        self._timeout = timeout
        self._transport = transport
        self._access_token = credentials.access_token
        self._claims_applied = False

    @property
    def credential_source(self) -> str:
        """`bearer`, `cookie`, or `none` when the request carried no usable token."""
        if isinstance(self.credentials, BearerToken):
            return "bearer"
        return "cookie" if self.credentials.access_token else "none"

    # ── Identity ──────────────────────────────────────────────────────────

    async def get_user(self) -> Optional[AuthenticatedUser]:
        """
        Resolve the caller's identity with the identity provider.

        Returns:
            The authenticated user, or None when there are no credentials or
            the provider rejects them (expired, revoked, malformed).

        Raises:
            AuthRetryableError: The provider could not be reached. This is an
            unexpected failure, not an authentication outcome.
        """
        if not self._access_token:
            return None

        async with httpx.AsyncClient(
            timeout=self._timeout,
            transport=self._transport,
            follow_redirects=True,
        ) as http:
            auth = AsyncGoTrueClient(
                url=f"{self.base_url}/auth/v1",
                headers={"apikey": self.anon_key},
                http_client=http,
                auto_refresh_token=False,
                persist_session=False,
            )
            user = await self._fetch_user(auth, self._access_token)

            refresh_token = (
                self.credentials.refresh_token
                if isinstance(self.credentials, CookieSession)
                else None
            )
            if user is None and refresh_token:
                user = await self._refresh_session(auth, refresh_token)

        self.user = user
        return user

    async def _fetch_user(
        self, auth: AsyncGoTrueClient, access_token: str
    ) -> Optional[AuthenticatedUser]:
        try:
            response = await auth.get_user(access_token)
        except REJECTED_CREDENTIALS as e:
            logger.info("Identity lookup rejected (%s)", getattr(e, "status", type(e).__name__))
            return None
        return AuthenticatedUser.from_auth_user(response.user if response else None)

    async def _refresh_session(
        self, auth: AsyncGoTrueClient, refresh_token: str
    ) -> Optional[AuthenticatedUser]:
        """
        Exchange the cookie's refresh token for a new session.

        On success the new access token is used for the rest of the request
        and the refreshed session is written back to the browser.
        """
        try:
            response = await auth.refresh_session(refresh_token)
        except REJECTED_CREDENTIALS as e:
            logger.info("Session refresh rejected (%s)", getattr(e, "status", type(e).__name__))
            return None

        session = response.session
        if session is None or not session.access_token:
            return None

        self._access_token = session.access_token
        self.session_refreshed = True
        self._write_session_cookies(session.model_dump(mode="json", exclude_none=True))
        logger.debug("Session refreshed from cookie")
        return AuthenticatedUser.from_auth_user(session.user)

    def _write_session_cookies(self, session: Dict[str, Any]) -> None:
        """
        Persist a refreshed session as cookies on the outgoing response.

        Never raises: when cookies cannot be written here, the next request
        simply refreshes again.
        """
        if self._response is None:
            return
        try:
            written = set()
            for name, value in encode_session_cookie(self.cookie_name, session):
                self._response.set_cookie(
                    name,
                    value,
                    max_age=SESSION_COOKIE_MAX_AGE,
                    path="/",
                    samesite="lax",
                )
                written.add(name)
            previous = (
                self.credentials.cookie_names
                if isinstance(self.credentials, CookieSession)
                else ()
            )
            for stale in previous:
                if stale not in written:
                    self._response.delete_cookie(stale, path="/")
        except Exception:
            logger.debug("Could not write refreshed session cookies", exc_info=True)

    # ── Queries ───────────────────────────────────────────────────────────

    async def execute(self, statement):
        """
        Execute a statement with the caller's credentials applied.

        Backend errors propagate unchanged.
        """
        await self._apply_claims()
        return await self.session.execute(statement)

    async def _apply_claims(self) -> None:
        """
        Scope the current transaction to the caller on PostgreSQL.

        Sets `request.jwt.claims` and the database role for the transaction,
        which is what the backend's row-level-security policies read.
        Other dialects (the SQLite test database) have no such policies.
        """
        if self._claims_applied:
            return
        self._claims_applied = True

        bind = self.session.bind
        dialect = getattr(getattr(bind, "dialect", None), "name", None)
        if dialect != "postgresql":
            return

        if self.user is not None:
            claims = {"sub": self.user.id, "role": self.user.role, "email": self.user.email}
            role = self.user.role
        else:
            claims = {"role": "anon"}
            role = "anon"
        await self.session.execute(
            text("SELECT set_config('request.jwt.claims', :claims, true), set_config('role', :role, true)"),
            {"claims": json.dumps(claims), "role": role},
        )


# ══════════════════════════════════════════════════════════════════════════
# Factory
# ══════════════════════════════════════════════════════════════════════════


def create_backend_client(
    *,
    headers: Mapping[str, str],
    cookies: Mapping[str, str],
    session: AsyncSession,
    response: Optional[Response] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> BackendClient:
    """
    Build a handle for the current request.

    Args:
        headers:   Request headers (case-insensitive mapping, or lowercase keys)
        cookies:   Request cookies
        session:   Database session for this request
        response:  Outgoing response that refreshed session cookies go to
        transport: Optional httpx transport (tests pass httpx.MockTransport)
    """
    cookie_name = settings.session_cookie_name
    credentials = resolve_credentials(headers, cookies, cookie_name)
    return BackendClient(
        base_url=settings.backend_url,
        anon_key=settings.backend_anon_key,
        credentials=credentials,
        session=session,
        cookie_name=cookie_name,
        response=response,
        timeout=settings.auth_timeout,
        transport=transport,
    )


async def get_backend_client(
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> BackendClient:
    """FastAPI dependency: one backend handle per request."""
    return create_backend_client(
        headers=request.headers,
        cookies=request.cookies,
        session=db,
        response=response,
    )


async def check_auth_health(transport: Optional[httpx.AsyncBaseTransport] = None) -> bool:
    """
    Probe the identity provider's health endpoint.

    The auth client has no health call, so this is a plain GET.

    Returns:
        True when {backend_url}/auth/v1/health answers 200.
    """
    async with httpx.AsyncClient(
        base_url=settings.backend_url,
        headers={"apikey": settings.backend_anon_key},
        timeout=settings.auth_timeout,
        transport=transport,
    ) as http:
        response = await http.get("/auth/v1/health")
    return response.status_code == 200
