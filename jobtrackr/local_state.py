import json
import time
import logging
from pathlib import Path

from jobtrackr.errors import ValidationError

logger = logging.getLogger(__name__)

RESET_KEY = "password_reset_last_request"


def reset_key(email: str) -> str:
    return f"{RESET_KEY}:{email.strip().lower()}"


class LocalState:
    """Small JSON file of client-side values that outlive a browser session."""

    def __init__(self, state_dir):
        self.path = Path(state_dir) / "state.json"

    def _load(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r") as f:
                data = json.load(f)
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable state file %s: %s", self.path, exc)
            return {}
        return data if isinstance(data, dict) else {}

    def get(self, key: str, default=None):
        return self._load().get(key, default)

    def set(self, key: str, value):
        data = self._load()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            json.dump(data, f, indent=2)


class ResetThrottle:
    """Enforces a minimum interval between password reset e-mails to one address."""

    def __init__(self, state: LocalState, cooldown_seconds: int = 60):
        self.state = state
        self.cooldown_seconds = cooldown_seconds

    def _last_request(self, email: str):
        last = self.state.get(reset_key(email))
        if last is None:
            return None
        try:
            return float(last)
        except (TypeError, ValueError):
            logger.warning("Ignoring malformed reset timestamp %r", last)
            return None

    def check(self, email: str, now: float = None):
        now = time.time() if now is None else now
        last = self._last_request(email)
        if last is not None and now - last < self.cooldown_seconds:
            raise ValidationError("Please wait before requesting another reset email")

    def record(self, email: str, now: float = None):
        self.state.set(reset_key(email), time.time() if now is None else now)
