"""
Write-once fields: lot codes and elaboration names.

The ORM listeners raise before any UPDATE is emitted.
"""

import pytest

from trace_kernel.exceptions import ElaborationNotFoundError, ImmutabilityViolationError
from trace_kernel.models.catalog import Elaboration
from trace_kernel.models.lot import Lot


class TestLotCodeImmutability:

    def test_code_change_rejected(self, session, lot_service, catalog, make_lot_payload):
        created = lot_service.create_lot(make_lot_payload(catalog.sauce))
        lot = session.get(Lot, created.lot_id)

        lot.code = "999999999"
        with pytest.raises(ImmutabilityViolationError) as exc_info:
            session.flush()

        assert exc_info.value.entity_type == "Lot"
        assert exc_info.value.code == "IMMUTABILITY_VIOLATION"

    def test_other_fields_remain_editable(self, session, lot_service, catalog, make_lot_payload):
        created = lot_service.create_lot(make_lot_payload(catalog.sauce))
        lot = session.get(Lot, created.lot_id)

        lot.weight_unit = "g"
        session.flush()

        assert session.get(Lot, created.lot_id).weight_unit == "g"

    def test_violation_logged(self, session, lot_service, catalog, captured_logs, make_lot_payload):
        created = lot_service.create_lot(make_lot_payload(catalog.sauce))
        session.get(Lot, created.lot_id).code = "000000000"

        with pytest.raises(ImmutabilityViolationError):
            session.flush()

        blocked = [r for r in captured_logs() if r["message"] == "immutability_violation_blocked"]
        assert blocked and blocked[0]["field"] == "code"


class TestElaborationNameImmutability:

    def test_rename_rejected(self, catalog_service, catalog):
        with pytest.raises(ImmutabilityViolationError) as exc_info:
            catalog_service.rename_elaboration(catalog.sauce, "Salsa brava")
        assert exc_info.value.entity_type == "Elaboration"

    def test_whitespace_only_change_allowed(self, session, catalog_service, catalog):
        catalog_service.rename_elaboration(catalog.sauce, "  Salsa de tomate ")
        assert session.get(Elaboration, catalog.sauce).name == "  Salsa de tomate "

    def test_other_fields_remain_editable(self, session, catalog):
        elaboration = session.get(Elaboration, catalog.sauce)
        elaboration.viability_days = 5
        session.flush()
        assert session.get(Elaboration, catalog.sauce).viability_days == 5

    def test_unknown_elaboration(self, catalog_service, catalog):
        with pytest.raises(ElaborationNotFoundError):
            catalog_service.rename_elaboration(404, "Nada")
