"""
LotService -- atomic creation of lots and their composition entries.

Responsibility:
    Turns a lot payload plus its list of consumed ingredients into one
    persisted Lot with a freshly generated traceability code, all of its
    CompositionEntry rows, and a validated (or degraded) parent link.

Architecture position:
    Kernel > Services -- imperative shell.  Calls the pure code generator
    in ``domain/lot_code.py`` and reads the previous code through
    ``LotSelector``.

Invariants enforced:
    - All-or-nothing: the lot row and every entry row are written inside a
      SAVEPOINT.  If any entry fails (unknown ingredient, constraint error)
      the savepoint is rolled back and no lot or entry from this attempt
      remains visible.
    - ``is_derived`` is True iff ``parent_lot_id`` references an existing
      lot.  Unknown parents are degraded to "no parent" and logged, unless
      the caller asks for strict validation.
    - The elaboration row is locked (``SELECT ... FOR UPDATE``) before the
      previous code is read, so two creations for the same elaboration
      cannot compute the same code on PostgreSQL.
    - Timestamps and the code date come from the injected clock.

Failure modes:
    - LotValidationError: malformed payload, raised before any write.
    - ElaborationNotFoundError: unknown elaboration, before any write.
    - ParentLotNotFoundError: unknown parent with ``strict_parent=True``.
    - IngredientNotFoundError: entry ``index`` references an unknown
      ingredient; the whole attempt is rolled back.
    - LotPersistenceError: any SQLAlchemyError during the write, after
      rollback of the savepoint.
"""

from collections.abc import Iterable, Mapping, Sequence
from datetime import timedelta
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from trace_kernel.domain.clock import Clock
from trace_kernel.domain.lot_code import next_lot_code
from trace_kernel.domain.types import (
    CompositionEntryInput,
    CreatedLot,
    LotData,
    ParentResolution,
    ParentStatus,
    parse_composition_entry,
    parse_lot_data,
)
from trace_kernel.exceptions import (
    ElaborationNotFoundError,
    IngredientNotFoundError,
    LotNotFoundError,
    LotPersistenceError,
    ParentLotNotFoundError,
    TraceKernelError,
)
from trace_kernel.logging_config import LogContext, get_logger
from trace_kernel.models.catalog import Elaboration, Ingredient
from trace_kernel.models.lot import CompositionEntry, Lot
from trace_kernel.selectors.lot_selector import LotSelector
from trace_kernel.services.base import BaseService

logger = get_logger("services.lot")

EntryPayload = CompositionEntryInput | Mapping[str, Any]


class LotService(BaseService[Lot]):
    """
    Creates lots together with their composition entries.

    Contract:
        ``create_lot`` either persists one lot and all of its entries, or
        persists nothing and raises.  It flushes but never commits; the
        caller's ``session_scope()`` decides whether the work survives.

    Usage:
        with session_scope() as session:
            service = LotService(session, clock)
            created = service.create_lot(
                {"elaboration_id": 3, "production_date": "2025-03-14",
                 "total_weight": "12.5", "weight_unit": "kg"},
                [{"ingredient_id": 7, "weight": "10"}],
            )
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        super().__init__(session, clock)
        self._lots = LotSelector(session)

    def create_lot(
        self,
        lot_data: LotData | Mapping[str, Any],
        composition_entries: Iterable[EntryPayload] = (),
        *,
        strict_parent: bool = False,
    ) -> CreatedLot:
        """
        Create a lot and its composition entries atomically.

        Args:
            lot_data: ``LotData`` or a mapping parsed by ``parse_lot_data``.
            composition_entries: Entries consumed by the lot, in order.
            strict_parent: Raise instead of degrading an unknown parent.

        Returns:
            CreatedLot with the new id, its code, the parent resolution
            and the number of entries written.
        """
        data = parse_lot_data(lot_data)
        entries = [
            parse_composition_entry(index, entry)
            for index, entry in enumerate(composition_entries)
        ]

        with LogContext.bind(elaboration_id=data.elaboration_id):
            elaboration = self._lock_elaboration(data.elaboration_id)
            parent = self.resolve_parent(data.parent_lot_id, strict=strict_parent)

            previous_code = self._lots.most_recent_code(elaboration.id)
            code = next_lot_code(previous_code, elaboration.id, self.clock.today())
            expiry = data.expiry_date or (
                data.production_date + timedelta(days=elaboration.viability_days)
            )

            savepoint = self.session.begin_nested()
            try:
                lot = Lot(
                    elaboration_id=elaboration.id,
                    code=code,
                    production_date=data.production_date,
                    expiry_date=expiry,
                    total_weight=data.total_weight,
                    weight_unit=data.weight_unit,
                    temp_start=data.temp_start,
                    temp_end=data.temp_end,
                    parent_lot_id=parent.parent_lot_id,
                    is_derived=parent.is_derived,
                    created_at=self.clock.now(),
                )
                self.session.add(lot)
                self.session.flush()
                entry_count = self._write_entries(lot.id, entries)
                savepoint.commit()
            except TraceKernelError:
                savepoint.rollback()
                logger.warning(
                    "lot_creation_rolled_back",
                    extra={"code": code},
                    exc_info=True,
                )
                raise
            except SQLAlchemyError as exc:
                savepoint.rollback()
                logger.error(
                    "lot_creation_rolled_back",
                    extra={"code": code},
                    exc_info=True,
                )
                raise LotPersistenceError(data.elaboration_id, str(exc)) from exc

            logger.info(
                "lot_created",
                extra={
                    "lot_id": lot.id,
                    "code": code,
                    "previous_code": previous_code,
                    "parent_status": parent.status.value,
                    "entry_count": entry_count,
                },
            )

        return CreatedLot(
            lot_id=lot.id,
            code=code,
            parent=parent,
            entry_count=entry_count,
        )

    def create_composition_entries(
        self, lot_id: int, entries: Iterable[EntryPayload],
    ) -> int:
        """
        Append composition entries to an existing lot, all or nothing.

        Returns:
            Number of entries written.

        Raises:
            LotNotFoundError: If the lot does not exist.
            LotValidationError / IngredientNotFoundError: For entry ``i``.
        """
        parsed = [
            parse_composition_entry(index, entry)
            for index, entry in enumerate(entries)
        ]
        if self.session.get(Lot, lot_id) is None:
            raise LotNotFoundError(lot_id)

        savepoint = self.session.begin_nested()
        try:
            count = self._write_entries(lot_id, parsed)
            savepoint.commit()
        except TraceKernelError:
            savepoint.rollback()
            raise
        except SQLAlchemyError as exc:
            savepoint.rollback()
            lot = self.session.get(Lot, lot_id)
            raise LotPersistenceError(
                lot.elaboration_id if lot is not None else 0, str(exc),
            ) from exc
        return count

    def resolve_parent(
        self, parent_lot_id: int | None, *, strict: bool = False,
    ) -> ParentResolution:
        """
        Validate an optional parent reference.

        Unknown parents become ``ParentStatus.INVALID`` (persisted as "no
        parent") and are logged at WARNING; ``strict=True`` raises instead.
        """
        if parent_lot_id is None:
            return ParentResolution(requested_id=None, status=ParentStatus.NONE)

        if self.session.get(Lot, parent_lot_id) is not None:
            return ParentResolution(requested_id=parent_lot_id, status=ParentStatus.VALID)

        if strict:
            raise ParentLotNotFoundError(parent_lot_id)

        logger.warning(
            "parent_lot_degraded",
            extra={"requested_parent_lot_id": parent_lot_id},
        )
        return ParentResolution(requested_id=parent_lot_id, status=ParentStatus.INVALID)

    def _lock_elaboration(self, elaboration_id: int) -> Elaboration:
        # FOR UPDATE is a no-op on SQLite, which serializes writers itself
        elaboration = self.session.execute(
            select(Elaboration)
            .where(Elaboration.id == elaboration_id)
            .with_for_update()
        ).scalar_one_or_none()
        if elaboration is None:
            raise ElaborationNotFoundError(elaboration_id)
        return elaboration

    def _write_entries(
        self, lot_id: int, entries: Sequence[CompositionEntryInput],
    ) -> int:
        now = self.clock.now()
        for index, entry in enumerate(entries):
            ingredient = self.session.get(Ingredient, entry.ingredient_id)
            if ingredient is None:
                raise IngredientNotFoundError(entry.ingredient_id, index=index)
            self.session.add(
                CompositionEntry(
                    lot_id=lot_id,
                    ingredient_id=ingredient.id,
                    ingredient_name=ingredient.name,
                    weight=entry.weight,
                    origin_percentage=entry.origin_percentage,
                    supplier_reference=entry.supplier_reference,
                    source_lot_code=entry.source_lot_code,
                    expiry_date=entry.expiry_date,
                    created_at=now,
                )
            )
        self.session.flush()

        if entries:
            logger.info(
                "composition_entries_created",
                extra={"lot_id": lot_id, "entry_count": len(entries)},
            )
        return len(entries)
