"""
Pantry Lookup API — Reference Data SQLAlchemy Models
======================================================

What:  ORM models for the four reference tables read by the lookup service.
How:   Inherit from the shared DeclarativeBase; column types and constraints
       mirror the backend schema so the test suite can build an identical
       schema in SQLite.
Who:   Queried by LookupService; created by the tests via Base.metadata.
When:  Never written by this service; rows are maintained by administrative
       processes outside the API.

Tables:
    units                (measurement units, grouped by unit_type)
    product_categories   (grocery categories, ordered by display_order)
    product_catalog      (developer-maintained products)
    staple_definitions   (common pantry items, one per catalog product)
"""

from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ForeignKey,
    Integer,
    Numeric,
    Text,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from pantry_api.database import Base


class Unit(Base):
    """
    A measurement unit (metric and Polish colloquial).

    base_unit_multiplier converts a quantity to the base unit of its type:
    grams for weight, millilitres for volume, 1 for count.
    """

    __tablename__ = "units"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name_pl: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        unique=True,
        comment='Polish name (e.g., "gram", "szklanka")',
    )
    abbreviation: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    unit_type: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Unit category: weight, volume, or count",
    )
    # asdecimal=False: the API exposes the multiplier as a JSON number
    base_unit_multiplier: Mapped[float] = mapped_column(
        Numeric(10, 6, asdecimal=False),
        nullable=False,
        default=1.0,
        server_default=text("1.0"),
    )

    __table_args__ = (
        CheckConstraint(
            "unit_type in ('weight', 'volume', 'count')",
            name="units_unit_type_check",
        ),
    )

    def __repr__(self) -> str:
        return f"<Unit(id={self.id}, name_pl='{self.name_pl}', unit_type='{self.unit_type}')>"


class ProductCategory(Base):
    """A grocery category; display_order drives presentation order in the UI."""

    __tablename__ = "product_categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name_pl: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    display_order: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default=text("0"),
    )

    def __repr__(self) -> str:
        return f"<ProductCategory(id={self.id}, name_pl='{self.name_pl}')>"


class ProductCatalog(Base):
    """
    A catalog product. Only the columns the lookup layer reads are mapped;
    aliases and the search vector stay in the database.
    """

    __tablename__ = "product_catalog"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name_pl: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    category_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("product_categories.id", ondelete="SET NULL"),
        nullable=True,
    )
    default_unit_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("units.id", ondelete="SET NULL"),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<ProductCatalog(id={self.id}, name_pl='{self.name_pl}')>"


class StapleDefinition(Base):
    """
    A system-defined pantry staple (salt, oil, flour, ...).

    Each staple references exactly one catalog product; inactive staples
    are kept in the table but never surfaced by the API.
    """

    __tablename__ = "staple_definitions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    product_id: Mapped[int] = mapped_column(
        ForeignKey("product_catalog.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        server_default=text("true"),
    )

    def __repr__(self) -> str:
        return (
            f"<StapleDefinition(id={self.id}, product_id={self.product_id}, "
            f"is_active={self.is_active})>"
        )
