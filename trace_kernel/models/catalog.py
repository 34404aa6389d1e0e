"""
ORM models for the production catalog: elaborations, ingredients, allergens.

Contract:
    These rows are referenced by lots and composition entries.  Lots hold a
    RESTRICT foreign key to their elaboration, so an elaboration with lots
    cannot be deleted.

Invariants enforced:
    - Elaboration.name is write-once (db/immutability.py).
    - Ingredient and Allergen names are unique.
    - Elaboration.type holds an ``ElaborationType`` value (1-4).
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from trace_kernel.db.base import Base, Identifier

if TYPE_CHECKING:
    from trace_kernel.domain.types import ElaborationRecord
    from trace_kernel.models.lot import Lot


class Elaboration(Base):
    """Recipe / process definition under which lots are produced."""

    __tablename__ = "elaborations"

    name: Mapped[str] = mapped_column(String(200), nullable=False, active_history=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    yield_weight: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    # Shelf life used when a lot has no explicit expiry date
    viability_days: Mapped[int] = mapped_column(Integer, nullable=False, default=2)
    type: Mapped[int] = mapped_column(Integer, nullable=False, default=1, index=True)

    lots: Mapped[list["Lot"]] = relationship(
        "Lot",
        back_populates="elaboration",
        passive_deletes="all",
    )

    def to_dto(self) -> ElaborationRecord:
        from trace_kernel.domain.types import ElaborationRecord, ElaborationType

        return ElaborationRecord(
            elaboration_id=self.id,
            name=self.name,
            type=ElaborationType.coerce(self.type),
            viability_days=self.viability_days,
            yield_weight=self.yield_weight,
            description=self.description,
        )

    def __repr__(self) -> str:
        return f"<Elaboration {self.id} {self.name!r} type={self.type}>"


class IngredientAllergen(Base):
    """Link between an ingredient and one of the allergens it contains."""

    __tablename__ = "ingredient_allergens"

    __table_args__ = (
        UniqueConstraint("ingredient_id", "allergen_id", name="uq_ingredient_allergen"),
    )

    ingredient_id: Mapped[int] = mapped_column(
        Identifier,
        ForeignKey("ingredients.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    allergen_id: Mapped[int] = mapped_column(
        Identifier,
        ForeignKey("allergens.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )


class Ingredient(Base):
    """Raw material or intermediate product consumed by lots."""

    __tablename__ = "ingredients"

    name: Mapped[str] = mapped_column(String(200), nullable=False, unique=True)
    instructions: Mapped[str | None] = mapped_column(Text, nullable=True)

    allergens: Mapped[list["Allergen"]] = relationship(
        "Allergen",
        secondary="ingredient_allergens",
        order_by="Allergen.name",
        viewonly=True,
    )

    def __repr__(self) -> str:
        return f"<Ingredient {self.id} {self.name!r}>"


class Allergen(Base):
    """Regulated allergen (e.g. the 14 EU mandatory allergens)."""

    __tablename__ = "allergens"

    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
