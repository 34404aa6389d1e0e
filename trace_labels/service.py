"""
LabelService -- builds, renders and prints lot labels.

Responsibility:
    Glue between the lot store and the label pipeline:

        lot in store --request_for_lot--> label request
        label request --render--> EZPL text
        EZPL text --print_label--> printer sink

Architecture position:
    Labels > Service -- imperative shell.  Reads lots through kernel
    selectors and settings through ``trace_config``; the content model,
    layout engine and encoder it drives are pure.

Failure modes:
    - LotNotFoundError / ElaborationNotFoundError from request_for_lot().
    - LabelValidationError for malformed requests or copies < 1.
    - PrintFailedError when the sink reports failure.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import replace
from typing import Any

from sqlalchemy.orm import Session

from trace_config import get_active_config
from trace_config.schema import LabelSettings
from trace_kernel.domain.clock import Clock, SystemClock
from trace_kernel.exceptions import LabelValidationError, PrintFailedError
from trace_kernel.logging_config import LogContext, get_logger
from trace_kernel.selectors.catalog_selector import CatalogSelector
from trace_kernel.selectors.lot_selector import LotSelector
from trace_labels.content import LabelContent, build_label_content, format_date
from trace_labels.encoder import LabelDocument, encode_label, render_label
from trace_labels.printer import PrinterSink

logger = get_logger("labels.service")


class LabelService:
    """
    Renders and prints labels.

    Args:
        session: Needed only for ``request_for_lot``.
        settings: Label settings; ``get_active_config()`` when omitted.
        clock: Date source for computed expiry dates.
    """

    def __init__(
        self,
        session: Session | None = None,
        settings: LabelSettings | None = None,
        clock: Clock | None = None,
    ):
        self.session = session
        self.settings = settings or get_active_config()
        self.clock = clock or SystemClock()

    def request_for_lot(self, lot_id: int, **overrides: Any) -> dict[str, Any]:
        """
        Label request for a stored lot.

        Ingredients are the composition's ingredient names (first
        occurrence order, joined with ", "); allergens are the distinct
        allergens of those ingredients, alphabetical.  ``overrides``
        replace any computed key.
        """
        if self.session is None:
            raise RuntimeError("LabelService.request_for_lot requires a session")

        lots = LotSelector(self.session)
        catalog = CatalogSelector(self.session)
        lot = lots.get_lot(lot_id)
        elaboration = catalog.get_elaboration(lot.elaboration_id)

        names: list[str] = []
        for entry in lots.composition_for_lot(lot_id):
            if entry.ingredient_name not in names:
                names.append(entry.ingredient_name)

        request: dict[str, Any] = {
            "product_name": elaboration.name,
            "ingredients": ", ".join(names),
            "allergens": ", ".join(catalog.allergens_for_lot(lot_id)),
            "lot_code": lot.code,
            "expiry_date": format_date(lot.expiry_date) if lot.expiry_date else None,
            "elaboration_date": format_date(lot.production_date),
            "elaboration_type": int(elaboration.type),
        }
        request.update(overrides)
        return request

    def content(self, request: Mapping[str, Any]) -> LabelContent:
        return build_label_content(
            request,
            today=self.clock.today(),
            default_days_valid=self.settings.default_days_valid,
            default_conservation=self.settings.default_conservation,
        )

    def document(self, request: Mapping[str, Any], copies: int = 1) -> LabelDocument:
        if isinstance(copies, bool) or not isinstance(copies, int) or copies < 1:
            raise LabelValidationError("copies", f"must be a positive integer, got {copies!r}")
        return render_label(
            self.content(request),
            header=replace(self.settings.header, copies=copies),
            layout=self.settings.layout,
            registry_number=self.settings.registry_number,
        )

    def render(self, request: Mapping[str, Any], copies: int = 1) -> str:
        """EZPL text for ``request``."""
        document = self.document(request, copies)
        ezpl = encode_label(document)
        logger.info(
            "label_rendered",
            extra={
                "copies": copies,
                "item_count": len(document.items),
                "config_checksum": self.settings.checksum,
            },
        )
        return ezpl

    def print_label(
        self,
        request: Mapping[str, Any],
        sink: PrinterSink,
        device: str | None = None,
        copies: int = 1,
    ) -> str:
        """
        Render and send a label; returns the EZPL that was sent.

        Raises:
            PrintFailedError: If the sink reports failure.
        """
        target = device or self.settings.printer_device
        ezpl = self.render(request, copies)
        with LogContext.bind(device=target):
            if not sink.send(ezpl, target):
                logger.error("label_print_failed", extra={"copies": copies})
                raise PrintFailedError(target)
            logger.info("label_printed", extra={"copies": copies})
        return ezpl
