"""
Pantry Lookup API — Request ID Middleware
===========================================

What:  Correlation ID shared by the access log line, error logs and the
       `request_id` field of error bodies.
How:   A client-supplied X-Request-ID is reused only when it is a short token
       of letters, digits, `-` and `_`; anything else (log injection attempts,
       oversized values) is replaced by a generated ID.
"""

import re
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

request_id_var: ContextVar[str] = ContextVar("request_id", default="")

REQUEST_ID_HEADER = "X-Request-ID"
_VALID_REQUEST_ID = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


def resolve_request_id(supplied: str) -> str:
    """Returns the client's ID when it is safe to log, else a new 8-char ID."""
    if supplied and _VALID_REQUEST_ID.match(supplied):
        return supplied
    return uuid.uuid4().hex[:8]


class RequestIDMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = resolve_request_id(request.headers.get(REQUEST_ID_HEADER, ""))
        request_id_var.set(rid)

        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = rid
        return response
