import logging
from typing import Optional

from jobtrackr.auth_client import AuthEvent, Session, SessionProvider
from jobtrackr.errors import AuthorizationGap, RemoteOperationError, ValidationError
from jobtrackr.local_state import ResetThrottle
from jobtrackr.service import validate_credentials, validate_email, validate_new_password
from jobtrackr.store import RecordStore

logger = logging.getLogger(__name__)


class SessionGate:
    """
    Tracks whether a user is signed in and keeps the record store in step.

    Losing the session (sign-out, or the provider reporting no session)
    empties the store, so no records of the previous owner remain in memory.
    """

    def __init__(self, provider: SessionProvider, store: RecordStore, throttle: ResetThrottle):
        self.provider = provider
        self.store = store
        self.throttle = throttle
        self.session: Optional[Session] = None
        self.recovery_mode = False
        self._unsubscribe = provider.subscribe(self._on_auth_event)

    @property
    def owner_id(self) -> Optional[str]:
        return self.session.user_id if self.session else None

    @property
    def is_authenticated(self) -> bool:
        return self.session is not None

    def close(self):
        self._unsubscribe()

    def _on_auth_event(self, event: str, session: Optional[Session]):
        logger.debug("Auth event %s", event)
        if event == AuthEvent.PASSWORD_RECOVERY:
            self.recovery_mode = True
        elif event == AuthEvent.SIGNED_OUT:
            self.recovery_mode = False
            session = None
        self._set_session(session)

    def _set_session(self, session: Optional[Session]):
        previous = self.owner_id
        self.session = session
        if session is None or session.user_id != previous:
            self.store.clear()

    def restore_session(self):
        """Picks up an existing session. No session is the normal logged-out state."""
        try:
            session = self.provider.get_session()
        except RemoteOperationError as exc:
            logger.info("No usable session: %s", exc)
            session = None
        self._set_session(session)
        return session

    # ---------------- Session operations ----------------
    def sign_in(self, email: str, password: str) -> Session:
        err = validate_credentials(email, password)
        if err:
            raise ValidationError(err)
        return self.provider.sign_in(email.strip(), password)

    def sign_up(self, email: str, password: str) -> Optional[Session]:
        err = validate_credentials(email, password, signup=True)
        if err:
            raise ValidationError(err)
        return self.provider.sign_up(email.strip(), password)

    def sign_out(self):
        try:
            self.provider.sign_out()
        finally:
            self.recovery_mode = False
            self._set_session(None)

    def request_password_reset(self, email: str, now: float = None):
        if not (email or "").strip():
            raise ValidationError("Please enter your email address first")
        if not validate_email(email):
            raise ValidationError("Please enter a valid email address")
        email = email.strip()
        self.throttle.check(email, now)
        self.provider.request_password_reset(email)
        self.throttle.record(email, now)

    def enter_recovery(self, token_hash: str) -> Session:
        return self.provider.recover_session(token_hash)

    def complete_password_reset(self, password: str, confirm: str):
        err = validate_new_password(password, confirm)
        if err:
            raise ValidationError(err)
        self.provider.update_password(password)
        self.recovery_mode = False

    # ---------------- Owner-scoped records ----------------
    def _require_session(self):
        if not self.is_authenticated:
            raise AuthorizationGap("You must be signed in to do that.")

    def records(self) -> list[dict]:
        if not self.is_authenticated:
            return []
        return self.store.list(self.owner_id)

    def create(self, payload: dict) -> dict:
        self._require_session()
        return self.store.create(payload, self.owner_id)

    def update(self, app_id, payload: dict) -> dict:
        self._require_session()
        return self.store.update(app_id, payload, self.owner_id)

    def delete(self, app_id):
        self._require_session()
        self.store.delete(app_id, self.owner_id)
