"""
ClosureService -- records labelling/closing runs against a lot.

A closure captures how much of a lot was consumed when its labels were
printed (grams spent, number of labels, packaging mode) and who did it.
Closures are append-only; a lot may be closed several times.
"""

from collections.abc import Mapping
from decimal import Decimal
from typing import Any

from trace_kernel.domain.types import LotClosureRecord
from trace_kernel.exceptions import LotNotFoundError, LotValidationError
from trace_kernel.logging_config import LogContext, get_logger
from trace_kernel.models.lot import Lot, LotClosure
from trace_kernel.services.base import BaseService

logger = get_logger("services.closure")


class ClosureService(BaseService[LotClosure]):
    """Appends LotClosure rows; flushes, never commits."""

    def record_closure(
        self,
        lot_id: int,
        *,
        grams_spent: Decimal = Decimal("0"),
        label_count: int = 0,
        mode: str | None = None,
        grams_per_package: Decimal | None = None,
        units: Decimal | None = None,
        operator: str | None = None,
        metadata: Mapping[str, Any] | None = None,
    ) -> LotClosureRecord:
        """
        Raises:
            LotNotFoundError: If the lot does not exist.
            LotValidationError: For negative quantities.
        """
        if self.session.get(Lot, lot_id) is None:
            raise LotNotFoundError(lot_id)
        if grams_spent < 0:
            raise LotValidationError("grams_spent", "must not be negative")
        if label_count < 0:
            raise LotValidationError("label_count", "must not be negative")

        closure = LotClosure(
            lot_id=lot_id,
            grams_spent=grams_spent,
            label_count=label_count,
            mode=mode,
            grams_per_package=grams_per_package,
            units=units,
            operator=operator,
            details=dict(metadata) if metadata else None,
            created_at=self.clock.now(),
        )
        self.session.add(closure)
        self.session.flush()

        with LogContext.bind(lot_id=lot_id, actor_id=operator):
            logger.info(
                "lot_closure_recorded",
                extra={
                    "closure_id": closure.id,
                    "grams_spent": grams_spent,
                    "label_count": label_count,
                    "mode": mode,
                },
            )
        return closure.to_dto()
