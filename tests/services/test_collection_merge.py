"""Tests for union-by-id reconciliation."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from journal.contracts.cost import BudgetItem, CountryPeriod
from journal.services.collection_merge import (
    pick_version,
    retain_only,
    sync_accommodation_ids,
    union_by_id,
)
from tests.factories import make_accommodation, make_location, make_route

T0 = datetime(2024, 6, 1, 8, 0, tzinfo=timezone.utc)
T1 = T0 + timedelta(hours=1)


class TestPickVersion:
    def test_newer_incoming_wins(self):
        stored = make_location(name="Old", updated_at=T0)
        incoming = make_location(name="New", updated_at=T1)
        assert pick_version(stored, incoming).name == "New"

    def test_older_incoming_loses(self):
        stored = make_location(name="Fresh", updated_at=T1)
        incoming = make_location(name="Stale", updated_at=T0)
        assert pick_version(stored, incoming).name == "Fresh"

    def test_incoming_without_timestamp_keeps_stored_content(self):
        stored = make_location(name="Fresh", updated_at=T1, accommodation_ids=["acc-a"])
        incoming = make_location(name="Stale", accommodation_ids=["acc-a", "acc-b"])
        merged = pick_version(stored, incoming)
        assert merged.name == "Fresh"
        assert merged.accommodation_ids == ["acc-a", "acc-b"]
        assert merged.updated_at == T1

    def test_structural_field_not_sent_is_kept(self):
        stored = make_location(updated_at=T1, accommodation_ids=["acc-a"])
        incoming = make_location(name="Other")
        assert pick_version(stored, incoming).accommodation_ids == ["acc-a"]

    def test_route_points_honoured_without_timestamp(self):
        stored = make_route(points=11, updated_at=T0, distance=340)
        incoming = make_route(points=3)
        merged = pick_version(stored, incoming)
        assert len(merged.route_points) == 3
        assert merged.distance == 340

    def test_neither_timestamped_incoming_wins(self):
        stored = make_location(name="Old")
        incoming = make_location(name="New")
        assert pick_version(stored, incoming) is incoming

    def test_sub_routes_merged_by_id_without_timestamp(self):
        stored = make_route(
            "r1", updated_at=T1,
            sub_routes=[make_route("r1-a", distance=10), make_route("r1-b", distance=20)],
        )
        incoming = make_route("r1", sub_routes=[make_route("r1-a", distance=15)])
        merged = pick_version(stored, incoming)
        assert [s.id for s in merged.sub_routes] == ["r1-a", "r1-b"]
        assert merged.sub_routes[0].distance == 15

    def test_sub_routes_not_sent_are_kept(self):
        stored = make_route("r1", updated_at=T1, sub_routes=[make_route("r1-a")])
        merged = pick_version(stored, make_route("r1"))
        assert [s.id for s in merged.sub_routes] == ["r1-a"]


class TestUnionById:
    def test_none_and_empty_change_nothing(self):
        stored = [make_location("loc-1"), make_location("loc-2")]
        assert union_by_id(stored, None) == stored
        assert union_by_id(stored, []) == stored

    def test_stored_only_kept_and_new_appended(self):
        stored = [make_location("loc-1"), make_location("loc-2")]
        incoming = [make_location("loc-1", name="Renamed"), make_location("loc-3")]
        merged = union_by_id(stored, incoming)
        assert [l.id for l in merged] == ["loc-1", "loc-2", "loc-3"]
        assert merged[0].name == "Renamed"

    def test_full_view_order_respected(self):
        stored = [make_location("loc-1"), make_location("loc-2")]
        incoming = [make_location("loc-2"), make_location("loc-3"), make_location("loc-1")]
        assert [l.id for l in union_by_id(stored, incoming)] == ["loc-2", "loc-3", "loc-1"]

    def test_union_contains_every_id(self):
        stored = [make_accommodation("a"), make_accommodation("b")]
        incoming = [make_accommodation("c"), make_accommodation("a")]
        ids = {a.id for a in union_by_id(stored, incoming)}
        assert ids == {"a", "b", "c"}

    def test_stale_payload_cannot_overwrite_newer(self):
        stored = [make_location("loc-1", name="Edited elsewhere", updated_at=T1)]
        incoming = [make_location("loc-1", name="Stale", updated_at=T0)]
        assert union_by_id(stored, incoming)[0].name == "Edited elsewhere"

    def test_duplicate_ids_in_payload_collapse(self):
        incoming = [make_location("loc-1", name="First"), make_location("loc-1", name="Last")]
        merged = union_by_id([], incoming)
        assert [l.name for l in merged] == ["Last"]

    def test_budget_periods_honoured_without_timestamp(self):
        stored = [BudgetItem(id="b1", country="France", amount=500, updated_at=T1)]
        period = CountryPeriod(id="p1", start_date="2024-06-03", end_date="2024-06-05")
        incoming = [BudgetItem(id="b1", country="France", amount=100, periods=[period])]
        merged = union_by_id(stored, incoming)[0]
        assert merged.amount == 500
        assert merged.periods == [period]

    def test_stamp_applied_to_changed_untimestamped_copy(self):
        stored = [make_location("loc-1", name="Old")]
        merged = union_by_id(stored, [make_location("loc-1", name="New")], stamp=T1)
        assert merged[0].name == "New"
        assert merged[0].updated_at == T1

    def test_stamp_applied_to_new_entity(self):
        merged = union_by_id([], [make_location("loc-9")], stamp=T1)
        assert merged[0].updated_at == T1

    def test_stamp_skips_unchanged_and_timestamped_copies(self):
        stored = [make_location("loc-1"), make_location("loc-2", name="Old", updated_at=T0)]
        incoming = [make_location("loc-1"), make_location("loc-2", name="New", updated_at=T1)]
        merged = union_by_id(stored, incoming, stamp=T1 + timedelta(hours=1))
        assert merged[0].updated_at is None
        assert merged[1].updated_at == T1

    def test_stamped_copy_beats_later_stale_autosave(self):
        stored = [make_accommodation("acc-1", name="Old Name")]
        edited = union_by_id(stored, [make_accommodation("acc-1", name="New Name")], stamp=T0)
        stale = union_by_id(edited, [make_accommodation("acc-1", name="Old Name")], stamp=T1)
        assert stale[0].name == "New Name"
        assert stale[0].updated_at == T0


class TestRetainOnly:
    def test_keeps_listed(self):
        items = [make_location("loc-1"), make_location("loc-2"), make_location("loc-3")]
        kept, removed = retain_only(items, ["loc-1", "loc-3", "unknown"])
        assert [i.id for i in kept] == ["loc-1", "loc-3"]
        assert removed == ["loc-2"]


class TestSyncAccommodationIds:
    def test_appends_bound_accommodations(self):
        locations = [make_location("loc-1", accommodation_ids=["acc-a"])]
        accommodations = [make_accommodation("acc-a"), make_accommodation("acc-b")]
        synced = sync_accommodation_ids(locations, accommodations)
        assert synced[0].accommodation_ids == ["acc-a", "acc-b"]

    def test_moves_accommodation_between_locations(self):
        locations = [
            make_location("loc-1", accommodation_ids=["acc-a"]),
            make_location("loc-2"),
        ]
        accommodations = [make_accommodation("acc-a", "loc-2")]
        synced = sync_accommodation_ids(locations, accommodations)
        assert synced[0].accommodation_ids == []
        assert synced[1].accommodation_ids == ["acc-a"]

    def test_unchanged_location_is_same_object(self):
        loc = make_location("loc-1", accommodation_ids=["acc-a"])
        synced = sync_accommodation_ids([loc], [make_accommodation("acc-a")])
        assert synced[0] is loc

    def test_previously_bound_accommodation_not_reappended(self):
        locations = [make_location("loc-1", accommodation_ids=["acc-b"])]
        accommodations = [make_accommodation("acc-a"), make_accommodation("acc-b")]
        synced = sync_accommodation_ids(locations, accommodations, previous=accommodations)
        assert synced[0].accommodation_ids == ["acc-b"]

    def test_only_newly_bound_appended(self):
        previous = [make_accommodation("acc-a")]
        locations = [make_location("loc-1")]
        accommodations = [make_accommodation("acc-a"), make_accommodation("acc-c")]
        synced = sync_accommodation_ids(locations, accommodations, previous=previous)
        assert synced[0].accommodation_ids == ["acc-c"]

    def test_moved_accommodation_counts_as_newly_bound(self):
        previous = [make_accommodation("acc-a", "loc-1")]
        locations = [
            make_location("loc-1", accommodation_ids=["acc-a"]),
            make_location("loc-2"),
        ]
        synced = sync_accommodation_ids(
            locations, [make_accommodation("acc-a", "loc-2")], previous=previous
        )
        assert synced[0].accommodation_ids == []
        assert synced[1].accommodation_ids == ["acc-a"]
