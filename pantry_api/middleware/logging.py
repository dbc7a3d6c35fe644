"""
Pantry Lookup API — Access Logging Middleware
===============================================

What:  One access line per lookup request.
How:   Reads what the lookup handler left on request.state (credential
       source, whether the cookie session was refreshed) after the response
       is produced.

Line format:
    GET /api/units 200 4.2ms [a1b2c3d4] auth=cookie refreshed=yes

Never logged: tokens, cookie values, response bodies.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from pantry_api.middleware.request_id import request_id_var

logger = logging.getLogger("pantry_api.access")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs /api requests; 401s at INFO (expired sessions are routine), 5xx at ERROR."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if not request.url.path.startswith("/api/"):
            return await call_next(request)

        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        credential_source = getattr(request.state, "credential_source", "none")
        refreshed = getattr(request.state, "session_refreshed", False)
        logger.log(
            logging.ERROR if response.status_code >= 500 else logging.INFO,
            "%s %s %d %.1fms [%s] auth=%s refreshed=%s",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            request_id_var.get(""),
            credential_source,
            "yes" if refreshed else "no",
        )
        return response
