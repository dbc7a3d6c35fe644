"""
Pantry Lookup API — Lookup Service
====================================

What:  Read-only access to the reference data tables.
How:   Builds SQLAlchemy statements and runs them through the request's
       BackendClient, then maps rows to response schemas.
Who:   Called by the lookup route handlers.

Operations:
    get_all_units()               units ORDER BY unit_type, name_pl
    get_all_categories()          product_categories ORDER BY display_order, id
    get_all_staple_definitions()  active staple_definitions INNER JOIN product_catalog

Error policy:
    Nothing is caught here. Backend failures propagate to the endpoint,
    which decides how they surface to the caller.
"""

import logging
from typing import List

from sqlalchemy import select

from pantry_api.models.lookup import ProductCatalog, ProductCategory, StapleDefinition, Unit
from pantry_api.schemas.lookup import (
    CategoryResponse,
    ProductMinimal,
    StapleDefinitionResponse,
    UnitResponse,
)
from pantry_api.services.backend_client import BackendClient

logger = logging.getLogger(__name__)


class LookupService:
    """
    Stateless query layer for units, categories and staple definitions.

    Every method takes the request's authenticated handle and returns a
    list (empty when the table has no matching rows, never None).
    """

    async def get_all_units(self, client: BackendClient) -> List[UnitResponse]:
        """
        Fetch all measurement units.

        Ordering: unit_type ascending (text collation: count, volume, weight),
        then name_pl ascending within each type.
        """
        result = await client.execute(
            select(Unit).order_by(Unit.unit_type.asc(), Unit.name_pl.asc())
        )
        units = [UnitResponse.model_validate(unit) for unit in result.scalars().all()]
        logger.debug("Fetched %d units", len(units))
        return units

    async def get_all_categories(self, client: BackendClient) -> List[CategoryResponse]:
        """
        Fetch all product categories ordered by display_order.

        Categories sharing a display_order fall back to id order, so repeated
        calls always return the same sequence.
        """
        result = await client.execute(
            select(ProductCategory).order_by(
                ProductCategory.display_order.asc(),
                ProductCategory.id.asc(),
            )
        )
        categories = [
            CategoryResponse.model_validate(category)
            for category in result.scalars().all()
        ]
        logger.debug("Fetched %d categories", len(categories))
        return categories

    async def get_all_staple_definitions(
        self, client: BackendClient
    ) -> List[StapleDefinitionResponse]:
        """
        Fetch all active staple definitions with their catalog product.

        Query plan:
            SELECT s.id, s.is_active, p.id, p.name_pl
            FROM staple_definitions s
            JOIN product_catalog p ON p.id = s.product_id
            WHERE s.is_active IS true
            ORDER BY s.id

        Staples whose product is missing are dropped by the inner join rather
        than returned with an empty product.
        """
        result = await client.execute(
            select(
                StapleDefinition.id,
                StapleDefinition.is_active,
                ProductCatalog.id.label("product_id"),
                ProductCatalog.name_pl.label("product_name_pl"),
            )
            .join(ProductCatalog, ProductCatalog.id == StapleDefinition.product_id)
            .where(StapleDefinition.is_active.is_(True))
            .order_by(StapleDefinition.id.asc())
        )
        staples = [
            StapleDefinitionResponse(
                id=row.id,
                is_active=row.is_active,
                product=ProductMinimal(id=row.product_id, name_pl=row.product_name_pl),
            )
            for row in result.all()
        ]
        logger.debug("Fetched %d active staple definitions", len(staples))
        return staples


# ── Singleton Instance ────────────────────────────────────────────────────
lookup_service = LookupService()
