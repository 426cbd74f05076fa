"""
Shared fixtures for the unit tests.

The hosted services are replaced by in-memory fakes that honour the same
contracts as PostgresRepository and HostedAuthClient, so the store, the
session gate and the derived views can be exercised without a network.
"""

import matplotlib

matplotlib.use("Agg")

import pytest

from jobtrackr.auth_client import AuthEvent, Session, SessionProvider
from jobtrackr.errors import RemoteOperationError
from jobtrackr.local_state import LocalState, ResetThrottle
from jobtrackr.session import SessionGate
from jobtrackr.store import RecordRepository, RecordStore


def make_record(id, company="Acme Corp", title="Engineer", status="Applied",
                applied_date="2024-01-01", owner="user-1", **extra):
    row = {
        "id": id,
        "user_id": owner,
        "company_name": company,
        "job_title": title,
        "status": status,
        "job_url": "https://example.com/job",
        "salary_range": "",
        "location": "Remote",
        "notes": "",
        "applied_date": applied_date,
        "created_at": "2024-01-01T00:00:00",
    }
    row.update(extra)
    return row


def valid_payload(**overrides):
    payload = {
        "company_name": "Acme Corp",
        "job_title": "Backend Engineer",
        "status": "Applied",
        "job_url": "https://acme.example/jobs/1",
        "salary_range": "100k-120k",
        "location": "Berlin",
        "notes": "",
        "applied_date": "2024-01-03",
    }
    payload.update(overrides)
    return payload


class FakeRepository(RecordRepository):
    def __init__(self, rows=None):
        self.rows = [dict(r) for r in (rows or [])]
        self.next_id = max([r["id"] for r in self.rows], default=0) + 1
        self.calls = []
        self.fail_with = None
        self.on_delete = None

    def _check(self):
        if self.fail_with:
            raise RemoteOperationError(self.fail_with)

    def fetch(self, owner_id):
        self.calls.append(("fetch", owner_id))
        self._check()
        rows = [dict(r) for r in self.rows if r["user_id"] == owner_id]
        return sorted(rows, key=lambda r: (r["applied_date"], r["id"]), reverse=True)

    def insert(self, payload, owner_id):
        self.calls.append(("insert", owner_id))
        self._check()
        row = dict(payload, id=self.next_id, user_id=owner_id, created_at="2024-01-01T00:00:00")
        self.next_id += 1
        self.rows.append(row)
        return dict(row)

    def update(self, app_id, payload, owner_id):
        self.calls.append(("update", app_id))
        self._check()
        for row in self.rows:
            if row["id"] == app_id and row["user_id"] == owner_id:
                row.update(payload)
                return dict(row)
        raise RemoteOperationError("Application not found")

    def delete(self, app_id, owner_id):
        self.calls.append(("delete", app_id))
        if self.on_delete:
            self.on_delete(app_id)
        self._check()
        before = len(self.rows)
        self.rows = [r for r in self.rows if not (r["id"] == app_id and r["user_id"] == owner_id)]
        if len(self.rows) == before:
            raise RemoteOperationError("Application not found")

    def mutations(self):
        return [c for c in self.calls if c[0] != "fetch"]


class FakeAuthProvider(SessionProvider):
    def __init__(self, existing=None):
        super().__init__()
        self.session = existing
        self.calls = []
        self.fail_with = None
        self.lookup_error = None

    def _check(self):
        if self.fail_with:
            raise RemoteOperationError(self.fail_with)

    def get_session(self):
        self.calls.append("get_session")
        if self.lookup_error:
            raise RemoteOperationError(self.lookup_error)
        return self.session

    def sign_in(self, email, password):
        self.calls.append("sign_in")
        self._check()
        self.session = Session(user_id=f"id-{email}", email=email, access_token="token")
        self._emit(AuthEvent.SIGNED_IN, self.session)
        return self.session

    def sign_up(self, email, password):
        self.calls.append("sign_up")
        self._check()
        return None

    def sign_out(self):
        self.calls.append("sign_out")
        self.session = None
        try:
            self._check()
        finally:
            self._emit(AuthEvent.SIGNED_OUT, None)

    def request_password_reset(self, email):
        self.calls.append("request_password_reset")
        self._check()

    def update_password(self, password):
        self.calls.append("update_password")
        self._check()
        self._emit(AuthEvent.USER_UPDATED, self.session)

    def recover_session(self, token_hash):
        self.calls.append("recover_session")
        self._check()
        self.session = Session(user_id="user-1", email="me@example.com", access_token="recovery")
        self._emit(AuthEvent.PASSWORD_RECOVERY, self.session)
        return self.session


@pytest.fixture
def repo():
    return FakeRepository()


@pytest.fixture
def store(repo):
    return RecordStore(repo)


@pytest.fixture
def provider():
    return FakeAuthProvider()


@pytest.fixture
def throttle(tmp_path):
    return ResetThrottle(LocalState(tmp_path), cooldown_seconds=60)


@pytest.fixture
def gate(provider, store, throttle):
    return SessionGate(provider, store, throttle)
