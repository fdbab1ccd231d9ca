"""
Tests for the SQLite PersistenceAdapter.
"""

import sqlite3
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from chainsync.scheduler import (
    ContextNotFoundError,
    PersistenceAdapter,
    StatusNotFoundError,
)

from .conftest import FIXED_DATETIME


class TestChains:

    def test_list_chains_in_insertion_order(self, persistence, chains):
        listed = persistence.list_chains()

        assert [c.blockchain_name for c in listed] == ["Ethereum", "xDai"]
        assert listed[0].context("prod").source == "prod"

    def test_get_chain_id(self, persistence, chains):
        assert persistence.get_chain_id("xDai", "Mainnet") == chains[1].id

    def test_get_chain_id_unknown(self, persistence):
        with pytest.raises(ContextNotFoundError) as exc_info:
            persistence.get_chain_id("Ethereum", "Rinkeby")
        assert exc_info.value.network == "Rinkeby"

    def test_duplicate_chain_rejected(self, persistence, chains):
        with pytest.raises(sqlite3.IntegrityError):
            persistence.add_chain("Ethereum", "Mainnet")

    def test_default_display_name(self, persistence):
        assert persistence.add_chain("Polygon", "Mainnet").display_name == "Polygon Mainnet"


class TestStatus:

    def test_upsert_then_get(self, persistence):
        next_run = FIXED_DATETIME + timedelta(minutes=5)
        persistence.upsert_status("sync", is_running=False, last_success=None, next_run_at=next_run)

        status = persistence.get_status("sync")

        assert status.is_running is False
        assert status.last_success is None
        assert status.next_run_at == next_run
        assert status.last_updated_at is not None

    def test_upsert_replaces_by_name(self, persistence):
        persistence.upsert_status("sync", False, None, None)
        persistence.upsert_status("sync", False, False, FIXED_DATETIME)

        assert len(persistence.list_statuses()) == 1
        assert persistence.get_status("sync").last_success is False

    def test_mark_running_keeps_outcome(self, persistence):
        persistence.upsert_status("sync", False, True, FIXED_DATETIME)

        persistence.mark_status_running("sync")

        status = persistence.get_status("sync")
        assert status.is_running is True
        assert status.last_success is True
        assert status.next_run_at == FIXED_DATETIME

    def test_mark_running_creates_missing_record(self, persistence):
        persistence.mark_status_running("new")
        assert persistence.get_status("new").is_running is True

    def test_unknown_status(self, persistence):
        with pytest.raises(StatusNotFoundError):
            persistence.get_status("missing")

    def test_list_sorted_by_name(self, persistence):
        for name in ("b", "a", "c"):
            persistence.upsert_status(name, False, None, None)
        assert [s.name for s in persistence.list_statuses()] == ["a", "b", "c"]


class TestEndpointWindows:

    def test_counts_only_history_inside_window(self, persistence, chains):
        endpoint = persistence.add_endpoint("rpc-1", chains[0].id)
        since = FIXED_DATETIME - timedelta(days=100)
        persistence.record_endpoint_request(endpoint.id, True, since - timedelta(days=1))
        persistence.record_endpoint_request(endpoint.id, False, since - timedelta(days=1))
        persistence.record_endpoint_request(endpoint.id, True, since + timedelta(days=1))
        persistence.record_endpoint_request(endpoint.id, True, FIXED_DATETIME)
        persistence.record_endpoint_request(endpoint.id, False, FIXED_DATETIME)

        [item] = persistence.load_endpoint_windows(since)

        assert item.window.total_requests == 3
        assert item.window.successful_requests == 2
        assert item.endpoint.network_family == "Ethereum"

    def test_endpoint_without_history_has_zero_counts(self, persistence, chains):
        persistence.add_endpoint("rpc-1", chains[0].id)

        [item] = persistence.load_endpoint_windows(FIXED_DATETIME)

        assert item.window.total_requests == 0
        assert item.window.successful_requests == 0

    def test_disabled_endpoints_skipped(self, persistence, chains):
        kept = persistence.add_endpoint("kept", chains[0].id)
        dropped = persistence.add_endpoint("dropped", chains[0].id)
        persistence.set_endpoint_enabled(dropped.id, False)

        windows = persistence.load_endpoint_windows(FIXED_DATETIME)

        assert [w.endpoint.id for w in windows] == [kept.id]

    def test_ordered_by_chain_then_endpoint(self, persistence, chains):
        x1 = persistence.add_endpoint("x1", chains[1].id)
        e1 = persistence.add_endpoint("e1", chains[0].id)
        e2 = persistence.add_endpoint("e2", chains[0].id)

        windows = persistence.load_endpoint_windows(FIXED_DATETIME)

        assert [w.endpoint.id for w in windows] == [e1.id, e2.id, x1.id]

    def test_non_utc_timestamps_compared_as_instants(self, persistence, chains):
        endpoint = persistence.add_endpoint("rpc-1", chains[0].id)
        eastern = timezone(timedelta(hours=-5))
        # 13:00 UTC, inside a window starting at 12:00 UTC
        persistence.record_endpoint_request(endpoint.id, True, datetime(2026, 1, 1, 8, 0, tzinfo=eastern))
        # 11:00 UTC, before the window
        persistence.record_endpoint_request(endpoint.id, False, datetime(2026, 1, 1, 6, 0, tzinfo=eastern))

        [item] = persistence.load_endpoint_windows(datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc))

        assert item.window.total_requests == 1
        assert item.window.successful_requests == 1

    def test_naive_timestamp_rejected(self, persistence, chains):
        endpoint = persistence.add_endpoint("rpc-1", chains[0].id)

        with pytest.raises(ValueError):
            persistence.record_endpoint_request(endpoint.id, True, datetime(2026, 1, 1, 8, 0))


class TestEndpointUpdates:

    def test_weight_and_score_round_trip(self, persistence, chains):
        endpoint = persistence.add_endpoint("rpc-1", chains[0].id, weight=70)
        assert endpoint.last_score is None

        persistence.update_endpoint_weight(endpoint.id, 90, Decimal("98.00"))

        updated = persistence.get_endpoint(endpoint.id)
        assert updated.weight == 90
        assert updated.last_score == Decimal("98.00")

    def test_session_closes_connection_on_error(self, persistence):
        with pytest.raises(RuntimeError):
            with persistence.session() as conn:
                raise RuntimeError("boom")

        with pytest.raises(sqlite3.ProgrammingError):
            conn.execute("SELECT 1")

    def test_reopening_keeps_data(self, temp_db_path, chains):
        reopened = PersistenceAdapter(temp_db_path)
        assert len(reopened.list_chains()) == 2

    def test_status_times_stored_in_utc(self, persistence):
        tokyo = timezone(timedelta(hours=9))
        next_run = datetime(2026, 1, 1, 9, 0, tzinfo=tokyo)

        persistence.upsert_status("sync", False, None, next_run)

        stored = persistence.get_status("sync").next_run_at
        assert stored == next_run
        assert stored.utcoffset() == timedelta(0)

    def test_in_memory_database_rejected(self):
        with pytest.raises(ValueError):
            PersistenceAdapter(":memory:")
