"""
Pantry Lookup API — Lookup Route Handlers
===========================================

What:  GET /api/units, GET /api/categories, GET /api/staples.
How:   Each handler authenticates the caller through the request's backend
       handle, delegates to LookupService, and wraps the rows in {"data": ...}.
Who:   Called by the pantry frontend to populate pickers and onboarding.

Outcomes (identical for all three endpoints):
    Ok             200  {"data": [...]}  + Cache-Control (public, 1h fresh, 24h stale)
    Unauthorized   401  error body, no query issued, no cache header
    InternalError  500  error body, original error logged server-side only

Caching Strategy:
    Reference data is identical for every user and changes only through
    administrative processes, so responses are public and long-lived.
    The one exception is a 200 that refreshed the session cookie: it carries
    Set-Cookie and goes out as "private, no-store".
"""

import logging
from typing import Awaitable, Callable, List, TypeVar

from fastapi import APIRouter, Depends, Request, Response

from pantry_api.config import settings
from pantry_api.exceptions import BackendQueryError, UnauthorizedError
from pantry_api.schemas.lookup import (
    CategoriesResponse,
    ErrorResponse,
    StaplesResponse,
    UnitsResponse,
)
from pantry_api.services.backend_client import BackendClient, get_backend_client
from pantry_api.services.lookup_service import lookup_service

logger = logging.getLogger(__name__)

T = TypeVar("T")

# ── Router Configuration ──────────────────────────────────────────────────
router = APIRouter(prefix="/api", tags=["Lookups"])

REFRESHED_CACHE_CONTROL = "private, no-store"

ERROR_RESPONSES = {
    401: {"description": "Missing, invalid or expired credentials", "model": ErrorResponse},
    500: {"description": "Server error", "model": ErrorResponse},
}


async def _serve_lookup(
    request: Request,
    response: Response,
    client: BackendClient,
    fetch: Callable[[BackendClient], Awaitable[List[T]]],
    resource: str,
) -> List[T]:
    """
    Run one authenticated lookup.

    Steps:
        1. Resolve the caller; no identity → UnauthorizedError
        2. Run the query only after step 1 succeeded
        3. Attach the cache header to the successful response

    Any other exception from steps 1-2 is logged with its traceback and
    re-raised as BackendQueryError, so the caller only sees a generic 500.

    Whatever the outcome, the credential source, the refresh flag and any
    refreshed session cookies are left on request.state: the access log
    reads the first two, and the error handlers re-attach the cookies to
    the 401/500 response they build.
    """
    try:
        user = await client.get_user()
        if user is None:
            raise UnauthorizedError()

        rows = await fetch(client)

    except UnauthorizedError:
        raise
    except Exception as e:
        logger.error("Error fetching %s", resource, exc_info=e)
        raise BackendQueryError(
            context={"resource": resource, "error_type": type(e).__name__},
        ) from e
    finally:
        request.state.credential_source = client.credential_source
        request.state.session_refreshed = client.session_refreshed
        request.state.session_cookies = response.headers.getlist("set-cookie")

    if client.session_refreshed:
        # Carries a fresh session token: must not be stored by shared caches
        response.headers["Cache-Control"] = REFRESHED_CACHE_CONTROL
    else:
        response.headers["Cache-Control"] = settings.cache_control_header
    return rows


@router.get(
    "/units",
    response_model=UnitsResponse,
    responses=ERROR_RESPONSES,
    summary="List measurement units",
    description="Returns all measurement units ordered by unit type, then by name.",
)
async def get_units(
    request: Request,
    response: Response,
    client: BackendClient = Depends(get_backend_client),
) -> UnitsResponse:
    """
    Example response:
        {"data": [
            {"id": 11, "name_pl": "sztuka", "abbreviation": "szt.",
             "unit_type": "count", "base_unit_multiplier": 1.0},
            {"id": 1, "name_pl": "gram", "abbreviation": "g",
             "unit_type": "weight", "base_unit_multiplier": 1.0}
        ]}
    """
    units = await _serve_lookup(
        request, response, client, lookup_service.get_all_units, "units"
    )
    return UnitsResponse(data=units)


@router.get(
    "/categories",
    response_model=CategoriesResponse,
    responses=ERROR_RESPONSES,
    summary="List product categories",
    description="Returns all product categories ordered by display order.",
)
async def get_categories(
    request: Request,
    response: Response,
    client: BackendClient = Depends(get_backend_client),
) -> CategoriesResponse:
    categories = await _serve_lookup(
        request, response, client, lookup_service.get_all_categories, "categories"
    )
    return CategoriesResponse(data=categories)


@router.get(
    "/staples",
    response_model=StaplesResponse,
    responses=ERROR_RESPONSES,
    summary="List active staple definitions",
    description=(
        "Returns all active staple definitions (common pantry items such as salt, "
        "pepper or oil) together with their catalog product."
    ),
)
async def get_staples(
    request: Request,
    response: Response,
    client: BackendClient = Depends(get_backend_client),
) -> StaplesResponse:
    """
    Example response:
        {"data": [
            {"id": 1, "is_active": true, "product": {"id": 100, "name_pl": "Sól"}}
        ]}
    """
    staples = await _serve_lookup(
        request, response, client, lookup_service.get_all_staple_definitions, "staples"
    )
    return StaplesResponse(data=staples)
