"""
Unit tests for jobtrackr/store.py
"""

import pytest

from conftest import FakeRepository, make_record, valid_payload
from jobtrackr.errors import AuthorizationGap, RemoteOperationError, ValidationError
from jobtrackr.store import RecordStore
from jobtrackr.views import compute_stats, filter_applications, status_distribution, weekly_timeline


@pytest.fixture
def seeded():
    repo = FakeRepository([
        make_record(1, applied_date="2024-01-01", status="Applied"),
        make_record(2, applied_date="2024-01-05", status="Offer"),
        make_record(3, applied_date="2024-01-03", owner="user-2"),
    ])
    return repo, RecordStore(repo)


class TestList:
    def test_scoped_to_owner_and_most_recent_first(self, seeded):
        _, store = seeded
        rows = store.list("user-1")
        assert [r["id"] for r in rows] == [2, 1]
        assert all(r["user_id"] == "user-1" for r in rows)

    def test_empty_for_unknown_owner(self, seeded):
        _, store = seeded
        assert store.list("nobody") == []

    def test_cached_until_invalidated(self, seeded):
        repo, store = seeded
        store.list("user-1")
        store.list("user-1")
        assert repo.calls.count(("fetch", "user-1")) == 1

        store.invalidate()
        store.list("user-1")
        assert repo.calls.count(("fetch", "user-1")) == 2

    def test_owner_change_refetches(self, seeded):
        _, store = seeded
        store.list("user-1")
        assert [r["id"] for r in store.list("user-2")] == [3]

    def test_missing_owner_is_refused(self, seeded):
        repo, store = seeded
        with pytest.raises(AuthorizationGap):
            store.list(None)
        assert repo.calls == []

    def test_remote_failure_propagates(self, seeded):
        repo, store = seeded
        repo.fail_with = "connection refused"
        with pytest.raises(RemoteOperationError, match="connection refused"):
            store.list("user-1")


class TestCreateUpdate:
    def test_create_returns_row_with_id_and_refreshes(self, store, repo):
        store.list("user-1")
        created = store.create(valid_payload(), "user-1")
        assert created["id"] == 1
        assert created["user_id"] == "user-1"
        assert [r["id"] for r in store.list("user-1")] == [1]

    def test_create_trims_fields(self, store, repo):
        created = store.create(valid_payload(company_name="  Acme  "), "user-1")
        assert created["company_name"] == "Acme"

    def test_invalid_payload_never_reaches_remote(self, store, repo):
        with pytest.raises(ValidationError, match="Company name is required"):
            store.create(valid_payload(company_name="   "), "user-1")
        with pytest.raises(ValidationError, match="Job title is required"):
            store.create(valid_payload(job_title=""), "user-1")
        assert repo.mutations() == []

    def test_future_date_rejected(self, store, repo):
        with pytest.raises(ValidationError, match="future"):
            store.create(valid_payload(applied_date="2999-01-01"), "user-1")
        assert repo.mutations() == []

    def test_create_without_owner_is_refused(self, store, repo):
        with pytest.raises(AuthorizationGap):
            store.create(valid_payload(), "")
        assert repo.calls == []

    def test_update_keeps_owner(self, seeded):
        repo, store = seeded
        store.update(1, valid_payload(status="Interviewed", user_id="user-2"), "user-1")
        row = next(r for r in store.list("user-1") if r["id"] == 1)
        assert row["status"] == "Interviewed"
        assert row["user_id"] == "user-1"

    def test_update_validates(self, seeded):
        repo, store = seeded
        with pytest.raises(ValidationError, match="Invalid URL"):
            store.update(1, valid_payload(job_url="www.acme.example"), "user-1")
        assert repo.mutations() == []

    def test_failed_write_keeps_cache(self, seeded):
        repo, store = seeded
        store.list("user-1")
        repo.fail_with = "insert failed"
        with pytest.raises(RemoteOperationError):
            store.create(valid_payload(), "user-1")
        assert not store.stale


class TestDelete:
    def test_removed_from_list_and_views(self, seeded):
        _, store = seeded
        before = store.list("user-1")
        assert compute_stats(before)["total"] == 2

        store.delete(2, "user-1")

        after = store.list("user-1")
        assert [r["id"] for r in after] == [1]
        assert filter_applications(after, "") == after
        assert compute_stats(after) == {
            "total": 1, "interviews_secured": 0, "pending_responses": 1, "success_rate": 0,
        }
        assert status_distribution(after) == [{"status": "Applied", "count": 1}]
        assert sum(p["count"] for p in weekly_timeline(after)) == 1

    def test_record_present_while_delete_pending(self, seeded):
        repo, store = seeded
        store.list("user-1")
        seen = {}

        def during_delete(app_id):
            seen["pending"] = set(store.pending_deletes)
            seen["ids"] = [r["id"] for r in store.records]

        repo.on_delete = during_delete
        store.delete(2, "user-1")

        assert seen == {"pending": {2}, "ids": [2, 1]}
        assert store.pending_deletes == set()
        assert [r["id"] for r in store.records] == [1]

    def test_failed_delete_keeps_record(self, seeded):
        repo, store = seeded
        store.list("user-1")
        repo.fail_with = "timeout"
        with pytest.raises(RemoteOperationError):
            store.delete(2, "user-1")
        assert [r["id"] for r in store.records] == [2, 1]
        assert store.pending_deletes == set()

    def test_deleting_missing_id_is_an_error(self, seeded):
        _, store = seeded
        with pytest.raises(RemoteOperationError, match="not found"):
            store.delete(99, "user-1")

    def test_other_owners_record_is_not_found(self, seeded):
        repo, store = seeded
        with pytest.raises(RemoteOperationError, match="not found"):
            store.delete(3, "user-1")
        with pytest.raises(RemoteOperationError, match="not found"):
            store.update(3, valid_payload(company_name="Hijacked"), "user-1")
        assert [r["id"] for r in repo.rows] == [1, 2, 3]
        assert repo.rows[2]["company_name"] == "Acme Corp"

    def test_delete_without_owner_is_refused(self, seeded):
        repo, store = seeded
        with pytest.raises(AuthorizationGap):
            store.delete(1, None)
        assert repo.calls == []


class TestFetchOrdering:
    def test_older_fetch_cannot_overwrite_newer(self, store):
        first = store.begin_fetch()
        second = store.begin_fetch()

        assert store.complete_fetch(second, "user-1", [make_record(2)])
        assert not store.complete_fetch(first, "user-1", [make_record(1)])
        assert [r["id"] for r in store.records] == [2]

    def test_clear_discards_in_flight_fetch(self, store):
        token = store.begin_fetch()
        store.clear()
        assert not store.complete_fetch(token, "user-1", [make_record(1)])
        assert store.records == []
        assert store.stale
