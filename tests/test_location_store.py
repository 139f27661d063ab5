"""
Tests for LocationStore: recency by sample_id, history queries, argument
validation and error translation.
"""
import threading

import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

from sqlalchemy.exc import OperationalError

from src.Core.exceptions import InvalidArgument, StoreUnavailable
from src.Schemas.location import LocationSample_create
from src.Services.location_store import LocationStore, parse_limit, parse_time_bound


def make_sample(device_id="gps-1", latitude=37.0, longitude=-122.0, timestamp=None, **extra):
    return LocationSample_create(
        device_id=device_id,
        latitude=latitude,
        longitude=longitude,
        timestamp=timestamp,
        **extra,
    )


@pytest.fixture
def registered(registry):
    registry.register("gps-1", "Delivery Van", "+15550100")
    registry.register("gps-2", "Pickup Truck")
    return registry


@pytest.mark.unit
class TestAppend:

    def test_sample_ids_strictly_increase(self, store, at):
        ids = [store.append(make_sample(timestamp=at(n))) for n in range(5)]
        assert ids == sorted(ids)
        assert len(set(ids)) == 5

    def test_concurrent_appends_get_unique_increasing_ids(self, store, at):
        writers, per_writer = 8, 5
        results = {}
        errors = []
        start = threading.Barrier(writers)

        def writer(n):
            ids = []
            start.wait()
            try:
                for k in range(per_writer):
                    ids.append(store.append(make_sample(f"gps-{n % 2 + 1}", timestamp=at(k))))
            except Exception as e:
                errors.append(e)
            results[n] = ids

        threads = [threading.Thread(target=writer, args=(n,)) for n in range(writers)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=30)

        assert errors == []
        all_ids = [sample_id for ids in results.values() for sample_id in ids]
        assert sorted(all_ids) == list(range(1, writers * per_writer + 1))
        for ids in results.values():
            assert ids == sorted(ids)

    def test_missing_timestamp_defaults_to_now(self, store, registered):
        before = datetime.now(timezone.utc)
        store.append(make_sample())

        stamp = datetime.fromisoformat(store.latest("gps-1")["timestamp"].replace("Z", "+00:00"))
        assert before - timedelta(seconds=1) <= stamp <= datetime.now(timezone.utc) + timedelta(seconds=1)

    def test_timestamp_is_stored_in_utc(self, store, registered):
        local = datetime(2025, 10, 11, 14, 0, tzinfo=timezone(timedelta(hours=2)))
        store.append(make_sample(timestamp=local))

        assert store.latest("gps-1")["timestamp"] == "2025-10-11T12:00:00Z"

    def test_out_of_range_coordinates_are_stored_as_is(self, store, registered, at):
        store.append(make_sample(latitude=123.0, longitude=-500.0, timestamp=at(0)))

        latest = store.latest("gps-1")
        assert latest["latitude"] == 123.0
        assert latest["longitude"] == -500.0


@pytest.mark.unit
class TestLatest:

    def test_latest_uses_sample_id_not_timestamp(self, store, registered, at):
        store.append(make_sample(latitude=1.0, timestamp=at(10)))
        second = store.append(make_sample(latitude=2.0, timestamp=at(0)))

        latest = store.latest("gps-1")

        assert latest["sample_id"] == second
        assert latest["latitude"] == 2.0
        assert latest["device_name"] == "Delivery Van"

    def test_latest_without_samples(self, store, registered):
        assert store.latest("gps-1") is None
        assert store.latest("never-registered") is None

    def test_latest_all_returns_one_sample_per_device(self, store, registered, at):
        store.append(make_sample("gps-1", latitude=1.0, timestamp=at(0)))
        store.append(make_sample("gps-1", latitude=2.0, timestamp=at(1)))
        store.append(make_sample("gps-2", latitude=3.0, timestamp=at(5)))

        rows = store.latest_all()

        assert [row["device_id"] for row in rows] == ["gps-2", "gps-1"]
        assert rows[1]["latitude"] == 2.0
        assert rows[1]["device_name"] == "Delivery Van"
        assert rows[1]["phone_number"] == "+15550100"
        assert rows[0]["phone_number"] is None

    def test_latest_all_ties_are_ordered_by_device_id(self, store, registered, at):
        store.append(make_sample("gps-2", timestamp=at(0)))
        store.append(make_sample("gps-1", timestamp=at(0)))

        assert [row["device_id"] for row in store.latest_all()] == ["gps-1", "gps-2"]

    def test_latest_all_skips_devices_without_samples(self, store, registered, at):
        store.append(make_sample("gps-1", timestamp=at(0)))
        assert [row["device_id"] for row in store.latest_all()] == ["gps-1"]


@pytest.mark.unit
class TestHistory:

    def test_newest_first_with_limit(self, store, at):
        for n in range(5):
            store.append(make_sample(latitude=float(n), timestamp=at(n)))

        rows = store.history("gps-1", limit=3)

        assert [row["latitude"] for row in rows] == [4.0, 3.0, 2.0]

    def test_limit_accepts_integer_strings(self, store, at):
        for n in range(3):
            store.append(make_sample(timestamp=at(n)))

        assert len(store.history("gps-1", limit="2")) == 2

    def test_limit_above_maximum_is_clamped(self, session_factory, at):
        store = LocationStore(session_factory, max_history_limit=3)
        for n in range(5):
            store.append(make_sample(timestamp=at(n)))

        assert len(store.history("gps-1", limit=1000)) == 3

    @pytest.mark.parametrize("limit", [0, -1, "abc", "", 2.5, True])
    def test_invalid_limit(self, store, limit):
        with pytest.raises(InvalidArgument):
            store.history("gps-1", limit=limit)

    def test_time_range_is_inclusive(self, store, at):
        for n in range(5):
            store.append(make_sample(latitude=float(n), timestamp=at(n)))

        rows = store.history("gps-1", start=at(1), end=at(3))

        assert [row["latitude"] for row in rows] == [3.0, 2.0, 1.0]

    def test_time_range_accepts_iso_strings(self, store, at):
        for n in range(3):
            store.append(make_sample(latitude=float(n), timestamp=at(n)))

        rows = store.history("gps-1", start="2025-10-11T12:01:00Z")

        assert [row["latitude"] for row in rows] == [2.0, 1.0]

    def test_inverted_range_is_empty(self, store, at):
        store.append(make_sample(timestamp=at(1)))
        assert store.history("gps-1", start=at(2), end=at(0)) == []

    def test_malformed_bound(self, store):
        with pytest.raises(InvalidArgument):
            store.history("gps-1", start="yesterday")

    def test_unknown_device_has_empty_history(self, store):
        assert store.history("nobody") == []

    def test_history_includes_samples_of_unregistered_devices(self, store, at):
        store.append(make_sample("orphan", timestamp=at(0)))

        assert len(store.history("orphan")) == 1
        assert store.latest("orphan") is None


@pytest.mark.unit
class TestDeleteAllFor:

    def test_removes_only_that_device(self, store, at, count_samples):
        store.append(make_sample("gps-1", timestamp=at(0)))
        store.append(make_sample("gps-1", timestamp=at(1)))
        store.append(make_sample("gps-2", timestamp=at(0)))

        assert store.delete_all_for("gps-1") == 2
        assert count_samples("gps-1") == 0
        assert count_samples("gps-2") == 1

    def test_is_idempotent(self, store):
        assert store.delete_all_for("gps-1") == 0
        assert store.delete_all_for("gps-1") == 0

    def test_sample_ids_are_not_reused_after_delete(self, store, at):
        first = store.append(make_sample(timestamp=at(0)))
        store.delete_all_for("gps-1")

        assert store.append(make_sample(timestamp=at(1))) > first


@pytest.mark.unit
class TestStoreUnavailable:

    def _failing_factory(self):
        factory = Mock()
        session = factory.return_value
        session.commit.side_effect = OperationalError("INSERT", {}, Exception("disk I/O error"))
        session.query.side_effect = OperationalError("SELECT", {}, Exception("database is locked"))
        return factory, session

    def test_append_failure(self, at):
        factory, session = self._failing_factory()
        store = LocationStore(factory)

        with pytest.raises(StoreUnavailable):
            store.append(make_sample(timestamp=at(0)))

        session.rollback.assert_called_once()
        session.close.assert_called_once()

    def test_read_failure(self):
        factory, session = self._failing_factory()
        store = LocationStore(factory)

        with pytest.raises(StoreUnavailable):
            store.latest_all()

        session.close.assert_called_once()


@pytest.mark.unit
class TestParsers:

    def test_parse_limit(self):
        assert parse_limit(5, 10) == 5
        assert parse_limit(" 7 ", 10) == 7
        assert parse_limit(50, 10) == 10

    def test_parse_time_bound(self):
        expected = datetime(2025, 10, 11, 12, 0, tzinfo=timezone.utc)

        assert parse_time_bound("2025-10-11T12:00:00Z", "from") == expected
        assert parse_time_bound("2025-10-11T14:00:00+02:00", "from") == expected
        assert parse_time_bound(datetime(2025, 10, 11, 12, 0), "from") == expected
        assert parse_time_bound("", "from") is None
        assert parse_time_bound(None, "to") is None

    def test_parse_time_bound_rejects_non_timestamps(self):
        with pytest.raises(InvalidArgument):
            parse_time_bound(12345, "to")
