"""Tests for ClosureService -- labelling runs recorded against lots."""

from decimal import Decimal

import pytest

from trace_kernel.exceptions import LotNotFoundError, LotValidationError
from trace_kernel.selectors.lot_selector import LotSelector
from trace_kernel.services.closure_service import ClosureService


@pytest.fixture
def closure_service(session, deterministic_clock):
    return ClosureService(session, deterministic_clock)


class TestRecordClosure:

    def test_records_closure(self, session, closure_service, lot_service, catalog, make_lot_payload):
        created = lot_service.create_lot(make_lot_payload(catalog.cheese))

        record = closure_service.record_closure(
            created.lot_id,
            grams_spent=Decimal("4000"),
            label_count=16,
            mode="envasado",
            grams_per_package=Decimal("250"),
            units=Decimal("16"),
            operator="maria",
            metadata={"printer": "godex_raw"},
        )

        assert record.lot_id == created.lot_id
        assert record.label_count == 16
        assert record.metadata == {"printer": "godex_raw"}

        closures = LotSelector(session).closures_for_lot(created.lot_id)
        assert [c.closure_id for c in closures] == [record.closure_id]

    def test_multiple_closures_in_order(
        self, session, closure_service, lot_service, catalog, deterministic_clock, make_lot_payload,
    ):
        created = lot_service.create_lot(make_lot_payload(catalog.cheese))
        first = closure_service.record_closure(created.lot_id, label_count=4)
        deterministic_clock.advance(30)
        second = closure_service.record_closure(created.lot_id, label_count=2)

        closures = LotSelector(session).closures_for_lot(created.lot_id)
        assert [c.closure_id for c in closures] == [first.closure_id, second.closure_id]

    def test_unknown_lot(self, closure_service, catalog):
        with pytest.raises(LotNotFoundError):
            closure_service.record_closure(404)

    def test_negative_quantities_rejected(self, closure_service, lot_service, catalog, make_lot_payload):
        created = lot_service.create_lot(make_lot_payload(catalog.cheese))
        with pytest.raises(LotValidationError) as exc_info:
            closure_service.record_closure(created.lot_id, label_count=-1)
        assert exc_info.value.field == "label_count"

    def test_closure_logged_with_actor(
        self, closure_service, lot_service, catalog, captured_logs, make_lot_payload,
    ):
        created = lot_service.create_lot(make_lot_payload(catalog.cheese))
        closure_service.record_closure(created.lot_id, label_count=3, operator="maria")

        recorded = [r for r in captured_logs() if r["message"] == "lot_closure_recorded"]
        assert recorded[0]["actor_id"] == "maria"
        assert recorded[0]["lot_id"] == str(created.lot_id)
