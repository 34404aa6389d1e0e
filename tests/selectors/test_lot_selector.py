"""Tests for LotSelector and CatalogSelector read paths."""

import pytest

from trace_kernel.exceptions import ElaborationNotFoundError, LotNotFoundError
from trace_kernel.models.lot import Lot
from trace_kernel.selectors.catalog_selector import CatalogSelector
from trace_kernel.selectors.lot_selector import LotSelector


@pytest.fixture
def selector(session):
    return LotSelector(session)


@pytest.fixture
def genealogy(lot_service, catalog, deterministic_clock, make_lot_payload):
    """
    root
    +-- child_a
    |   +-- grandchild
    +-- child_b
    """
    def _create(parent=None):
        deterministic_clock.advance(60)
        return lot_service.create_lot(
            make_lot_payload(catalog.cheese, parent_lot_id=parent),
        ).lot_id

    root = _create()
    child_a = _create(root)
    child_b = _create(root)
    grandchild = _create(child_a)
    return {"root": root, "child_a": child_a, "child_b": child_b, "grandchild": grandchild}


class TestLotQueries:

    def test_most_recent_code_none_without_lots(self, selector, catalog):
        assert selector.most_recent_code(catalog.sauce) is None

    def test_most_recent_code_uses_latest_created(
        self, selector, lot_service, catalog, deterministic_clock, make_lot_payload,
    ):
        lot_service.create_lot(make_lot_payload(catalog.sauce))
        deterministic_clock.advance(60)
        lot_service.create_lot(make_lot_payload(catalog.sauce))

        assert selector.most_recent_code(catalog.sauce) == "251003002"

    def test_same_timestamp_breaks_tie_by_id(self, selector, lot_service, catalog, make_lot_payload):
        lot_service.create_lot(make_lot_payload(catalog.sauce))
        lot_service.create_lot(make_lot_payload(catalog.sauce))
        lot_service.create_lot(make_lot_payload(catalog.sauce))

        assert selector.most_recent_code(catalog.sauce) == "251003003"

    def test_get_lot(self, selector, lot_service, catalog, make_lot_payload):
        created = lot_service.create_lot(make_lot_payload(catalog.sauce))
        record = selector.get_lot(created.lot_id)
        assert record.code == created.code
        assert record.elaboration_id == catalog.sauce

    def test_get_lot_missing(self, selector, catalog):
        with pytest.raises(LotNotFoundError) as exc_info:
            selector.get_lot(404)
        assert exc_info.value.lot_id == 404

    def test_find_lot_missing_returns_none(self, selector, catalog):
        assert selector.find_lot(404) is None

    def test_find_by_code(self, selector, lot_service, catalog, make_lot_payload):
        created = lot_service.create_lot(make_lot_payload(catalog.sauce))
        assert [r.lot_id for r in selector.find_by_code(f" {created.code} ")] == [created.lot_id]

    def test_list_lots_newest_first(
        self, selector, lot_service, catalog, deterministic_clock, make_lot_payload,
    ):
        first = lot_service.create_lot(make_lot_payload(catalog.sauce))
        deterministic_clock.advance(60)
        second = lot_service.create_lot(make_lot_payload(catalog.bread))

        assert [r.lot_id for r in selector.list_lots()] == [second.lot_id, first.lot_id]
        assert [r.lot_id for r in selector.list_lots(limit=1)] == [second.lot_id]

    def test_lots_for_elaboration(self, selector, lot_service, catalog, make_lot_payload):
        sauce = lot_service.create_lot(make_lot_payload(catalog.sauce))
        lot_service.create_lot(make_lot_payload(catalog.bread))

        assert [r.lot_id for r in selector.lots_for_elaboration(catalog.sauce)] == [sauce.lot_id]

    def test_composition_in_insertion_order(self, selector, lot_service, catalog, make_lot_payload):
        created = lot_service.create_lot(
            make_lot_payload(catalog.bread),
            [
                {"ingredient_id": catalog.ingredients.wheat_flour, "weight": "8"},
                {"ingredient_id": catalog.ingredients.salt, "weight": "0.2"},
            ],
        )

        names = [e.ingredient_name for e in selector.composition_for_lot(created.lot_id)]
        assert names == ["Harina de trigo", "Sal"]

    def test_list_composition_entries_newest_first(
        self, selector, lot_service, catalog, deterministic_clock, make_lot_payload,
    ):
        lot_service.create_lot(
            make_lot_payload(catalog.bread),
            [{"ingredient_id": catalog.ingredients.wheat_flour}],
        )
        deterministic_clock.advance(60)
        lot_service.create_lot(
            make_lot_payload(catalog.sauce),
            [{"ingredient_id": catalog.ingredients.tomato}],
        )

        names = [e.ingredient_name for e in selector.list_composition_entries()]
        assert names == ["Tomate", "Harina de trigo"]


class TestGenealogy:

    def test_ancestors_nearest_first(self, selector, genealogy):
        chain = [r.lot_id for r in selector.ancestors(genealogy["grandchild"])]
        assert chain == [genealogy["child_a"], genealogy["root"]]

    def test_root_has_no_ancestors(self, selector, genealogy):
        assert selector.ancestors(genealogy["root"]) == []

    def test_descendants_breadth_first(self, selector, genealogy):
        found = [r.lot_id for r in selector.descendants(genealogy["root"])]
        assert found == [genealogy["child_a"], genealogy["child_b"], genealogy["grandchild"]]

    def test_leaf_has_no_descendants(self, selector, genealogy):
        assert selector.descendants(genealogy["grandchild"]) == []

    def test_cycle_does_not_loop(self, session, selector, genealogy, captured_logs):
        # Corrupt the data: make the root point at its own grandchild
        session.get(Lot, genealogy["root"]).parent_lot_id = genealogy["grandchild"]
        session.flush()

        chain = [r.lot_id for r in selector.ancestors(genealogy["grandchild"])]
        assert chain == [genealogy["child_a"], genealogy["root"]]
        assert any(r["message"] == "lot_genealogy_cycle" for r in captured_logs())

        found = {r.lot_id for r in selector.descendants(genealogy["root"])}
        assert found == {genealogy["child_a"], genealogy["child_b"], genealogy["grandchild"]}

    def test_ancestors_of_missing_lot(self, selector, catalog):
        with pytest.raises(LotNotFoundError):
            selector.ancestors(404)


class TestCatalogSelector:

    def test_allergens_for_lot_distinct_and_sorted(self, session, lot_service, catalog, make_lot_payload):
        created = lot_service.create_lot(
            make_lot_payload(catalog.bread),
            [
                {"ingredient_id": catalog.ingredients.wheat_flour},
                {"ingredient_id": catalog.ingredients.goat_milk},
                {"ingredient_id": catalog.ingredients.wheat_flour},
                {"ingredient_id": catalog.ingredients.salt},
            ],
        )

        assert CatalogSelector(session).allergens_for_lot(created.lot_id) == ["GLUTEN", "LECHE"]

    def test_list_elaborations_by_name(self, session, catalog):
        names = [e.name for e in CatalogSelector(session).list_elaborations()]
        assert names == sorted(names)
        assert len(names) == 3

    def test_get_elaboration_missing(self, session, catalog):
        with pytest.raises(ElaborationNotFoundError):
            CatalogSelector(session).get_elaboration(404)
