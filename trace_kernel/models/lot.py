"""
ORM models for lots, their composition entries and closures.

Contract:
    Lot, CompositionEntry and LotClosure persist production batches, the
    inputs each batch consumed, and the labelling runs that closed them.
    Each has a ``to_dto()`` method returning the frozen record type from
    ``trace_kernel.domain.types``.

Architecture: trace_kernel/models.  Imports from trace_kernel.db.base only
    (DTO imports are deferred to ``to_dto``).

Invariants enforced:
    - Lot.code is write-once (db/immutability.py).
    - is_derived is True iff parent_lot_id is set (set together by LotService).
    - Composition entries and closures cannot outlive their lot
      (ON DELETE CASCADE).
    - Lot ids are never reused (sqlite_autoincrement / BIGINT identity).
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from sqlalchemy import JSON, Boolean, Date, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from trace_kernel.db.base import Identifier, TrackedBase

if TYPE_CHECKING:
    from trace_kernel.domain.types import (
        CompositionEntryRecord,
        LotClosureRecord,
        LotRecord,
    )
    from trace_kernel.models.catalog import Elaboration


class Lot(TrackedBase):
    """Traceable production batch of one elaboration."""

    __tablename__ = "lots"

    __table_args__ = (
        Index("ix_lots_elaboration_created", "elaboration_id", "created_at"),
        Index("ix_lots_code", "code"),
        Index("ix_lots_parent", "parent_lot_id"),
        {"sqlite_autoincrement": True},
    )

    elaboration_id: Mapped[int] = mapped_column(
        Identifier,
        ForeignKey("elaborations.id", ondelete="RESTRICT"),
        nullable=False,
    )
    code: Mapped[str] = mapped_column(String(20), nullable=False, active_history=True)
    production_date: Mapped[date] = mapped_column(Date, nullable=False)
    expiry_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    total_weight: Mapped[Decimal] = mapped_column(nullable=False)
    weight_unit: Mapped[str] = mapped_column(String(10), nullable=False)
    temp_start: Mapped[Decimal | None] = mapped_column(nullable=True)
    temp_end: Mapped[Decimal | None] = mapped_column(nullable=True)
    parent_lot_id: Mapped[int | None] = mapped_column(
        Identifier,
        ForeignKey("lots.id", ondelete="SET NULL"),
        nullable=True,
    )
    is_derived: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    elaboration: Mapped["Elaboration"] = relationship(
        "Elaboration",
        back_populates="lots",
    )
    composition: Mapped[list["CompositionEntry"]] = relationship(
        "CompositionEntry",
        back_populates="lot",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="CompositionEntry.id",
    )

    def to_dto(self) -> LotRecord:
        from trace_kernel.domain.types import LotRecord

        return LotRecord(
            lot_id=self.id,
            elaboration_id=self.elaboration_id,
            code=self.code,
            production_date=self.production_date,
            expiry_date=self.expiry_date,
            total_weight=self.total_weight,
            weight_unit=self.weight_unit,
            temp_start=self.temp_start,
            temp_end=self.temp_end,
            parent_lot_id=self.parent_lot_id,
            is_derived=self.is_derived,
            created_at=self.created_at,
        )


class CompositionEntry(TrackedBase):
    """One ingredient input consumed by a lot."""

    __tablename__ = "lot_composition_entries"

    __table_args__ = (
        Index("ix_lot_composition_lot", "lot_id"),
        Index("ix_lot_composition_ingredient", "ingredient_id"),
    )

    lot_id: Mapped[int] = mapped_column(
        Identifier,
        ForeignKey("lots.id", ondelete="CASCADE"),
        nullable=False,
    )
    ingredient_id: Mapped[int | None] = mapped_column(
        Identifier,
        ForeignKey("ingredients.id", ondelete="SET NULL"),
        nullable=True,
    )
    # Snapshot of the ingredient's name when the entry was written
    ingredient_name: Mapped[str] = mapped_column(String(200), nullable=False)
    weight: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    origin_percentage: Mapped[Decimal | None] = mapped_column(nullable=True)
    supplier_reference: Mapped[str | None] = mapped_column(String(200), nullable=True)
    source_lot_code: Mapped[str | None] = mapped_column(String(100), nullable=True)
    expiry_date: Mapped[str | None] = mapped_column(String(20), nullable=True)

    lot: Mapped["Lot"] = relationship("Lot", back_populates="composition")

    def to_dto(self) -> CompositionEntryRecord:
        from trace_kernel.domain.types import CompositionEntryRecord

        return CompositionEntryRecord(
            entry_id=self.id,
            lot_id=self.lot_id,
            ingredient_id=self.ingredient_id,
            ingredient_name=self.ingredient_name,
            weight=self.weight,
            origin_percentage=self.origin_percentage,
            supplier_reference=self.supplier_reference,
            source_lot_code=self.source_lot_code,
            expiry_date=self.expiry_date,
            created_at=self.created_at,
        )


class LotClosure(TrackedBase):
    """Labelling/closing run recorded against a lot."""

    __tablename__ = "lot_closures"

    __table_args__ = (
        Index("ix_lot_closures_lot", "lot_id"),
    )

    lot_id: Mapped[int] = mapped_column(
        Identifier,
        ForeignKey("lots.id", ondelete="CASCADE"),
        nullable=False,
    )
    grams_spent: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    label_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    mode: Mapped[str | None] = mapped_column(String(50), nullable=True)
    grams_per_package: Mapped[Decimal | None] = mapped_column(nullable=True)
    units: Mapped[Decimal | None] = mapped_column(nullable=True)
    operator: Mapped[str | None] = mapped_column(String(100), nullable=True)
    # "metadata" is reserved on declarative classes
    details: Mapped[dict[str, Any] | None] = mapped_column("metadata", JSON, nullable=True)

    def to_dto(self) -> LotClosureRecord:
        from trace_kernel.domain.types import LotClosureRecord

        return LotClosureRecord(
            closure_id=self.id,
            lot_id=self.lot_id,
            grams_spent=self.grams_spent,
            label_count=self.label_count,
            mode=self.mode,
            grams_per_package=self.grams_per_package,
            units=self.units,
            operator=self.operator,
            metadata=dict(self.details or {}),
            created_at=self.created_at,
        )
