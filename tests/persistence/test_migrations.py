"""Tests for the schema migration chain."""

from __future__ import annotations

import copy

import pytest

from journal.contracts.trip import TripDocument
from journal.persistence.errors import CorruptDocumentError
from journal.persistence.migrations import (
    CURRENT_SCHEMA_VERSION,
    PLACEHOLDER_ACCOMMODATION_NAME,
    extract_cost_view,
    extract_travel_view,
    migrate,
    migrate_raw,
    needs_migration,
)
from tests.factories import make_expense, make_trip


def _v1_document() -> dict:
    return {
        "id": "legacy-trip",
        "schemaVersion": 1,
        "title": "Old trip",
        "createdAt": "2023-04-01T10:00:00Z",
        "updatedAt": "2023-04-02T10:00:00Z",
        "travelData": {
            "locations": [
                {
                    "id": "loc-1",
                    "name": "Lisbon",
                    "coordinates": [38.72, -9.14],
                    "accommodationData": "name: Casa Azul",
                    "isAccommodationPublic": True,
                    "costTrackingLinks": [{"expenseId": "exp-gone"}],
                },
                {"id": "loc-2", "name": "Porto", "coordinates": [41.15, -8.61]},
            ],
            "routes": [
                {
                    "id": "route-1",
                    "from": "Lisbon",
                    "to": "Porto",
                    "type": "train",
                    "subRoutes": [{"id": "route-1a", "type": "bus"}],
                },
            ],
        },
        "costData": {
            "overallBudget": 500,
            "currency": "EUR",
            "expenses": [{"id": "exp-1", "amount": 12.5, "category": "Food"}],
        },
    }


class TestHeader:
    @pytest.mark.parametrize("raw", [
        [],
        "trip",
        {"schemaVersion": 5},
        {"id": "", "schemaVersion": 5},
        {"id": "t1"},
        {"id": "t1", "schemaVersion": "5"},
        {"id": "t1", "schemaVersion": True},
        {"id": "t1", "schemaVersion": 0},
        {"id": "t1", "schemaVersion": CURRENT_SCHEMA_VERSION + 1},
    ])
    def test_corrupt_headers(self, raw):
        with pytest.raises(CorruptDocumentError):
            migrate(raw)

    def test_needs_migration(self):
        assert needs_migration({"id": "t1", "schemaVersion": 1})
        assert not needs_migration({"id": "t1", "schemaVersion": CURRENT_SCHEMA_VERSION})


class TestChain:
    def test_v1_document_reaches_current_version(self):
        doc = migrate(_v1_document())
        assert doc.schema_version == CURRENT_SCHEMA_VERSION
        assert doc.id == "legacy-trip"

    def test_embedded_accommodation_extracted(self):
        doc = migrate(_v1_document())
        lisbon = doc.travel_data.locations[0]
        assert lisbon.accommodation_ids == ["loc-1-accommodation"]
        acc = doc.accommodations[0]
        assert acc.id == "loc-1-accommodation"
        assert acc.location_id == "loc-1"
        assert acc.accommodation_data == "name: Casa Azul"
        assert acc.is_accommodation_public is True
        assert "accommodationData" not in lisbon.to_document()

    def test_route_type_renamed(self):
        doc = migrate(_v1_document())
        route = doc.travel_data.routes[0]
        assert route.transport_type == "train"
        assert route.sub_routes[0].transport_type == "bus"
        assert "type" not in route.to_document()

    def test_expense_flags_defaulted(self):
        expense = migrate(_v1_document()).cost_data.expenses[0]
        assert expense.expense_type == "actual"
        assert expense.is_general_expense is False

    def test_dangling_links_dropped(self):
        doc = migrate(_v1_document())
        assert doc.travel_data.locations[0].cost_tracking_links == []

    def test_missing_containers_filled(self):
        doc = migrate({"id": "bare", "schemaVersion": 1})
        assert doc.travel_data.locations == []
        assert doc.accommodations == []
        assert doc.cost_data is None

    def test_orphan_accommodation_recreated(self):
        raw = {
            "id": "t-orphan",
            "schemaVersion": 4,
            "travelData": {
                "locations": [{
                    "id": "loc-1",
                    "coordinates": [0, 0],
                    "accommodationIds": ["acc-lost"],
                }],
                "routes": [],
            },
            "accommodations": [],
            "costData": {
                "expenses": [{
                    "id": "exp-hotel",
                    "amount": 80,
                    "description": "Hotel night",
                    "travelReference": {"type": "accommodation", "accommodationId": "acc-lost"},
                }],
            },
        }
        doc = migrate(raw)
        assert [a.id for a in doc.accommodations] == ["acc-lost"]
        placeholder = doc.accommodations[0]
        assert placeholder.name == PLACEHOLDER_ACCOMMODATION_NAME
        assert placeholder.location_id == "loc-1"
        assert [l.expense_id for l in placeholder.cost_tracking_links] == ["exp-hotel"]

    def test_input_not_mutated(self):
        raw = _v1_document()
        before = copy.deepcopy(raw)
        migrate_raw(raw)
        assert raw == before

    def test_broken_entity_is_corrupt(self):
        raw = _v1_document()
        raw["travelData"]["locations"][0]["coordinates"] = "somewhere"
        with pytest.raises(CorruptDocumentError):
            migrate(raw)


class TestIdempotence:
    def test_migrate_twice_equals_once(self):
        once = migrate(_v1_document())
        twice = migrate(once)
        assert twice == once

    def test_raw_migration_idempotent(self):
        once = migrate_raw(_v1_document())
        assert migrate_raw(once) == once

    def test_current_document_untouched(self):
        trip = make_trip(expenses=[make_expense()])
        assert migrate(trip.to_document()) == trip

    def test_current_document_null_containers_defaulted(self):
        raw = {
            "id": "t-null",
            "schemaVersion": CURRENT_SCHEMA_VERSION,
            "travelData": None,
            "accommodations": None,
        }
        doc = migrate(raw)
        assert doc.travel_data.locations == []
        assert doc.travel_data.routes == []
        assert doc.accommodations == []

    def test_null_containers_same_for_every_version(self):
        current = {"id": "t", "schemaVersion": CURRENT_SCHEMA_VERSION, "travelData": None}
        older = {"id": "t", "schemaVersion": 4, "travelData": None}
        assert migrate(current).travel_data == migrate(older).travel_data

    def test_accepts_model(self):
        trip = make_trip()
        assert isinstance(migrate(trip), TripDocument)


class TestViews:
    def test_travel_view(self):
        view = extract_travel_view(make_trip())
        assert view["id"] == "trip-london-paris"
        assert [l["id"] for l in view["locations"]] == ["loc-1", "loc-2"]
        assert view["routes"] == []
        assert "instagramUsername" not in view

    def test_cost_view(self):
        view = extract_cost_view(make_trip(expenses=[make_expense()]))
        assert view["id"] == "cost-trip-london-paris"
        assert view["tripId"] == "trip-london-paris"
        assert view["tripTitle"] == "London to Paris"
        assert view["expenses"][0]["id"] == "exp-1"

    def test_cost_view_absent(self):
        assert extract_cost_view(make_trip()) is None
