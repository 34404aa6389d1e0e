"""
Module: trace_kernel.selectors.lot_selector
Responsibility: Read-only queries over lots, composition entries, closures
    and the parent/child genealogy between lots.
Architecture position: Kernel > Selectors.  Returns frozen DTOs from
    trace_kernel.domain.types.

Invariants enforced:
    - "Most recent" means ``created_at DESC, id DESC``.  The id tie-break
      makes the answer deterministic when two lots share a timestamp.
    - Genealogy walks terminate: every lot id is visited at most once, so a
      corrupted parent cycle cannot loop forever.

Failure modes:
    - LotNotFoundError from get_lot() when the id does not exist.
"""

from collections import deque

from sqlalchemy import select

from trace_kernel.domain.types import (
    CompositionEntryRecord,
    LotClosureRecord,
    LotRecord,
)
from trace_kernel.exceptions import LotNotFoundError
from trace_kernel.logging_config import get_logger
from trace_kernel.models.lot import CompositionEntry, Lot, LotClosure
from trace_kernel.selectors.base import BaseSelector

logger = get_logger("selectors.lot")


class LotSelector(BaseSelector[Lot]):
    """
    Selector for lot queries.

    Usage:
        selector = LotSelector(session)
        previous = selector.most_recent_code(elaboration_id)
        chain = selector.ancestors(lot_id)
    """

    model = Lot

    def most_recent_code(self, elaboration_id: int) -> str | None:
        """Code of the latest lot created for an elaboration, or None."""
        return self.session.execute(
            select(Lot.code)
            .where(Lot.elaboration_id == elaboration_id)
            .order_by(Lot.created_at.desc(), Lot.id.desc())
            .limit(1)
        ).scalar_one_or_none()

    def find_lot(self, lot_id: int) -> LotRecord | None:
        lot = self._row(lot_id)
        return lot.to_dto() if lot is not None else None

    def get_lot(self, lot_id: int) -> LotRecord:
        """
        Get a lot by id.

        Raises:
            LotNotFoundError: If the lot does not exist.
        """
        record = self.find_lot(lot_id)
        if record is None:
            raise LotNotFoundError(lot_id)
        return record

    def find_by_code(self, code: str) -> list[LotRecord]:
        """Lots carrying ``code``, newest first (codes repeat across years)."""
        lots = self.session.execute(
            select(Lot)
            .where(Lot.code == code.strip())
            .order_by(Lot.created_at.desc(), Lot.id.desc())
        ).scalars().all()
        return [lot.to_dto() for lot in lots]

    def list_lots(self, limit: int | None = None) -> list[LotRecord]:
        """All lots, newest first."""
        query = select(Lot).order_by(Lot.created_at.desc(), Lot.id.desc())
        if limit is not None:
            query = query.limit(limit)
        return [lot.to_dto() for lot in self.session.execute(query).scalars().all()]

    def lots_for_elaboration(self, elaboration_id: int) -> list[LotRecord]:
        lots = self.session.execute(
            select(Lot)
            .where(Lot.elaboration_id == elaboration_id)
            .order_by(Lot.created_at.desc(), Lot.id.desc())
        ).scalars().all()
        return [lot.to_dto() for lot in lots]

    def list_composition_entries(
        self, limit: int | None = None,
    ) -> list[CompositionEntryRecord]:
        """All composition entries across lots, newest first."""
        query = select(CompositionEntry).order_by(
            CompositionEntry.created_at.desc(), CompositionEntry.id.desc()
        )
        if limit is not None:
            query = query.limit(limit)
        entries = self.session.execute(query).scalars().all()
        return [entry.to_dto() for entry in entries]

    def composition_for_lot(self, lot_id: int) -> list[CompositionEntryRecord]:
        """Entries of one lot in insertion order."""
        entries = self.session.execute(
            select(CompositionEntry)
            .where(CompositionEntry.lot_id == lot_id)
            .order_by(CompositionEntry.id)
        ).scalars().all()
        return [entry.to_dto() for entry in entries]

    def closures_for_lot(self, lot_id: int) -> list[LotClosureRecord]:
        closures = self.session.execute(
            select(LotClosure)
            .where(LotClosure.lot_id == lot_id)
            .order_by(LotClosure.created_at, LotClosure.id)
        ).scalars().all()
        return [closure.to_dto() for closure in closures]

    def ancestors(self, lot_id: int) -> list[LotRecord]:
        """
        Parent chain of a lot, nearest parent first, root last.

        Raises:
            LotNotFoundError: If ``lot_id`` does not exist.
        """
        current = self.get_lot(lot_id)
        seen = {current.lot_id}
        chain: list[LotRecord] = []
        while current.parent_lot_id is not None:
            if current.parent_lot_id in seen:
                logger.warning(
                    "lot_genealogy_cycle",
                    extra={"lot_id": lot_id, "repeated_lot_id": current.parent_lot_id},
                )
                break
            parent = self.find_lot(current.parent_lot_id)
            if parent is None:
                break
            seen.add(parent.lot_id)
            chain.append(parent)
            current = parent
        return chain

    def descendants(self, lot_id: int) -> list[LotRecord]:
        """
        Every lot derived (directly or transitively) from ``lot_id``,
        breadth-first, children in creation order.

        Raises:
            LotNotFoundError: If ``lot_id`` does not exist.
        """
        self.get_lot(lot_id)
        seen = {lot_id}
        queue = deque([lot_id])
        result: list[LotRecord] = []
        while queue:
            current_id = queue.popleft()
            children = self.session.execute(
                select(Lot)
                .where(Lot.parent_lot_id == current_id)
                .order_by(Lot.created_at, Lot.id)
            ).scalars().all()
            for child in children:
                if child.id in seen:
                    continue
                seen.add(child.id)
                result.append(child.to_dto())
                queue.append(child.id)
        return result
