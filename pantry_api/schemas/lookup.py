"""
Pantry Lookup API — Pydantic Response Schemas
===============================================

What:  Pydantic models defining the API contract for the lookup endpoints.
How:   FastAPI uses these models to serialize responses and generate the
       OpenAPI document. Unit/category rows are validated straight from ORM
       objects (from_attributes); staples are assembled from joined rows.
Who:   Built by LookupService, returned by the lookup routes.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field


# ══════════════════════════════════════════════════════════════════════════
# Reference Data Items
# ══════════════════════════════════════════════════════════════════════════


class UnitResponse(BaseModel):
    """
    A measurement unit.

    Example:
        {"id": 1, "name_pl": "gram", "abbreviation": "g",
         "unit_type": "weight", "base_unit_multiplier": 1.0}
    """
    id: int = Field(description="Unit identifier")
    name_pl: str = Field(description="Localized (Polish) unit name")
    abbreviation: str = Field(description="Short form, e.g. 'g' or 'szt.'")
    unit_type: Literal["weight", "volume", "count"] = Field(description="Unit category")
    base_unit_multiplier: float = Field(
        description="Multiplier to the base unit (g for weight, ml for volume, 1 for count)"
    )

    model_config = {"from_attributes": True}


class CategoryResponse(BaseModel):
    """A product category. `display_order` defines presentation order."""
    id: int = Field(description="Category identifier")
    name_pl: str = Field(description="Localized (Polish) category name")
    display_order: int = Field(description="Sort order for UI display")

    model_config = {"from_attributes": True}


class ProductMinimal(BaseModel):
    id: int = Field(description="Catalog product identifier")
    name_pl: str = Field(description="Localized (Polish) product name")


class StapleDefinitionResponse(BaseModel):
    """
    An active staple together with its catalog product.

    Example:
        {"id": 1, "is_active": true, "product": {"id": 100, "name_pl": "Sól"}}
    """
    id: int = Field(description="Staple definition identifier")
    is_active: bool = Field(description="Always true for staples returned by the API")
    product: ProductMinimal = Field(description="The linked catalog product")


# ══════════════════════════════════════════════════════════════════════════
# Envelopes: every lookup endpoint wraps its rows in {"data": [...]}
# ══════════════════════════════════════════════════════════════════════════


class UnitsResponse(BaseModel):
    data: List[UnitResponse] = Field(description="All units, ordered by type then name")


class CategoriesResponse(BaseModel):
    data: List[CategoryResponse] = Field(description="All categories, ordered by display_order")


class StaplesResponse(BaseModel):
    data: List[StapleDefinitionResponse] = Field(description="All active staples")


# ══════════════════════════════════════════════════════════════════════════
# Error / Health Models
# ══════════════════════════════════════════════════════════════════════════


class ErrorDetail(BaseModel):
    code: str = Field(description="Machine-readable error code (UNAUTHORIZED, INTERNAL_ERROR)")
    message: str = Field(description="Human-readable error description")


class ErrorResponse(BaseModel):
    """
    What:  Standardized error response format for all API errors.

    Example:
        {
            "error": {"code": "UNAUTHORIZED", "message": "Authentication required"},
            "request_id": "550e8400"
        }
    """
    error: ErrorDetail
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Health check response showing service and dependency status."""
    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    auth: str = Field(description="Identity provider status: available, unavailable")
    uptime_seconds: float = Field(description="Seconds since service started")
