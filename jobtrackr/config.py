import os
import logging
from dataclasses import dataclass
from pathlib import Path

import streamlit as st

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_secret(key: str, default=None):
    try:
        value = st.secrets.get(key, None)
    except Exception:
        value = None
    if value:
        return value
    return os.environ.get(key, default)


@dataclass(frozen=True)
class Settings:
    database_url: str
    auth_url: str
    auth_key: str
    reset_redirect_url: str
    state_dir: Path
    log_level: str = "INFO"
    reset_cooldown_seconds: int = 60

    @property
    def auth_configured(self) -> bool:
        return bool(self.auth_url and self.auth_key)


def load_settings() -> Settings:
    state_dir = get_secret("JOBTRACKR_STATE_DIR") or str(Path.home() / ".jobtrackr")
    return Settings(
        database_url=get_secret("DATABASE_URL", ""),
        auth_url=get_secret("JOBTRACKR_AUTH_URL", ""),
        auth_key=get_secret("JOBTRACKR_AUTH_KEY", ""),
        reset_redirect_url=get_secret("JOBTRACKR_RESET_REDIRECT", ""),
        state_dir=Path(state_dir).expanduser(),
        log_level=str(get_secret("JOBTRACKR_LOG_LEVEL", "INFO")).upper(),
    )


def configure_logging(level: str = "INFO"):
    root = logging.getLogger()
    # streamlit re-runs the script on every interaction
    if not any(getattr(h, "_jobtrackr", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._jobtrackr = True
        root.addHandler(handler)
    logging.getLogger("jobtrackr").setLevel(level)


def configure_page():
    st.set_page_config(page_title="JobTrackr", layout="wide")
