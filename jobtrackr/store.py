"""
In-memory record store for the signed-in owner's applications.

The store keeps the last fetched list and refetches it after any mutation
instead of patching it in place, so server-assigned fields (id, defaults,
created_at) always come from the database.
"""
import logging
from abc import ABC, abstractmethod
from typing import Optional

from jobtrackr.errors import AuthorizationGap
from jobtrackr.service import clean_payload, require_valid

logger = logging.getLogger(__name__)


class RecordRepository(ABC):
    """Remote record operations the store depends on."""

    @abstractmethod
    def fetch(self, owner_id: str) -> list[dict]:
        """All records of owner_id, most recently applied first."""

    @abstractmethod
    def insert(self, payload: dict, owner_id: str) -> dict:
        """Insert one record stamped with owner_id and return the stored row."""

    @abstractmethod
    def update(self, app_id, payload: dict, owner_id: str) -> dict:
        """Overwrite the editable fields of one of owner_id's records and return the stored row."""

    @abstractmethod
    def delete(self, app_id, owner_id: str) -> None:
        """
        Delete one of owner_id's records. Raises RemoteOperationError if no
        such record exists for that owner.
        """


def _require_owner(owner_id):
    if not owner_id:
        raise AuthorizationGap("You must be signed in to do that.")


class RecordStore:
    def __init__(self, repository: RecordRepository):
        self.repository = repository
        self._records: list[dict] = []
        self._owner_id: Optional[str] = None
        self._stale = True
        self._issued_token = 0
        self._applied_token = 0
        self.pending_deletes: set = set()

    @property
    def records(self) -> list[dict]:
        return list(self._records)

    @property
    def stale(self) -> bool:
        return self._stale

    # ---------------- Fetching ----------------
    def begin_fetch(self) -> int:
        self._issued_token += 1
        return self._issued_token

    def complete_fetch(self, token: int, owner_id: str, rows) -> bool:
        """
        Applies a fetch result unless a newer fetch already landed or the
        store was cleared after the fetch began.
        """
        if token <= self._applied_token:
            logger.debug("Dropping stale fetch %s (latest applied %s)", token, self._applied_token)
            return False
        self._applied_token = token
        self._owner_id = owner_id
        self._records = list(rows)
        self._stale = False
        return True

    def refresh(self, owner_id: str) -> list[dict]:
        _require_owner(owner_id)
        token = self.begin_fetch()
        rows = self.repository.fetch(owner_id)
        self.complete_fetch(token, owner_id, rows)
        return self.records

    def list(self, owner_id: str) -> list[dict]:
        _require_owner(owner_id)
        if self._stale or owner_id != self._owner_id:
            return self.refresh(owner_id)
        return self.records

    def invalidate(self):
        self._stale = True

    def clear(self):
        self._records = []
        self._owner_id = None
        self._stale = True
        self.pending_deletes.clear()
        # anything still in flight belongs to the previous session
        self._issued_token += 1
        self._applied_token = self._issued_token

    # ---------------- Mutations ----------------
    def create(self, payload: dict, owner_id: str) -> dict:
        _require_owner(owner_id)
        row = clean_payload(payload)
        require_valid(row)
        created = self.repository.insert(row, owner_id)
        logger.info("Created application %s", created.get("id"))
        self.invalidate()
        return created

    def update(self, app_id, payload: dict, owner_id: str) -> dict:
        _require_owner(owner_id)
        row = clean_payload(payload)
        require_valid(row)
        updated = self.repository.update(app_id, row, owner_id)
        logger.info("Updated application %s", app_id)
        self.invalidate()
        return updated

    def delete(self, app_id, owner_id: str):
        _require_owner(owner_id)
        self.pending_deletes.add(app_id)
        try:
            self.repository.delete(app_id, owner_id)
        finally:
            self.pending_deletes.discard(app_id)

        self._records = [r for r in self._records if r.get("id") != app_id]
        logger.info("Deleted application %s", app_id)
        self.invalidate()
