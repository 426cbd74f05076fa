"""
Client for the hosted auth service (GoTrue-compatible REST API).

Session establishment, password reset e-mails and credential updates are all
handled remotely; this module only holds the current session and tells
subscribers when it changes.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Optional

import requests

from jobtrackr.errors import AuthorizationGap, RemoteOperationError

logger = logging.getLogger(__name__)


class AuthEvent:
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    PASSWORD_RECOVERY = "PASSWORD_RECOVERY"
    USER_UPDATED = "USER_UPDATED"


@dataclass
class Session:
    user_id: str
    email: str
    access_token: str
    refresh_token: str = ""


Listener = Callable[[str, Optional[Session]], None]


class SessionProvider(ABC):
    """Remote session operations the session gate depends on."""

    def __init__(self):
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, event: str, session: Optional[Session]):
        for listener in list(self._listeners):
            listener(event, session)

    @abstractmethod
    def get_session(self) -> Optional[Session]: ...

    @abstractmethod
    def sign_in(self, email: str, password: str) -> Session: ...

    @abstractmethod
    def sign_up(self, email: str, password: str) -> Optional[Session]: ...

    @abstractmethod
    def sign_out(self) -> None: ...

    @abstractmethod
    def request_password_reset(self, email: str) -> None: ...

    @abstractmethod
    def update_password(self, password: str) -> None: ...

    @abstractmethod
    def recover_session(self, token_hash: str) -> Session: ...


def _error_message(resp) -> str:
    try:
        body = resp.json()
    except ValueError:
        body = {}
    if isinstance(body, dict):
        for key in ("msg", "error_description", "message", "error"):
            if body.get(key):
                return str(body[key])
    return f"Request failed ({resp.status_code})"


def _session_from(data: dict) -> Session:
    user = data.get("user") or {}
    return Session(
        user_id=str(user["id"]),
        email=user.get("email", ""),
        access_token=data["access_token"],
        refresh_token=data.get("refresh_token", ""),
    )


class HostedAuthClient(SessionProvider):
    def __init__(self, base_url: str, api_key: str, redirect_to: str = "",
                 timeout: float = 10, http: requests.Session = None):
        super().__init__()
        self.base_url = base_url.rstrip("/") + "/auth/v1"
        self.redirect_to = redirect_to
        self.timeout = timeout
        self.http = http or requests.Session()
        self.http.headers.update({"apikey": api_key, "Content-Type": "application/json"})
        self.session: Optional[Session] = None

    def _request(self, method: str, path: str, token: str = None, **kwargs) -> dict:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        try:
            resp = self.http.request(
                method, self.base_url + path, headers=headers, timeout=self.timeout, **kwargs
            )
        except requests.RequestException as exc:
            logger.warning("Auth request %s %s failed: %s", method, path, exc)
            raise RemoteOperationError(str(exc)) from exc

        if resp.status_code >= 400:
            msg = _error_message(resp)
            logger.warning("Auth request %s %s rejected: %s", method, path, msg)
            raise RemoteOperationError(msg)
        if not resp.content:
            return {}
        try:
            return resp.json()
        except ValueError as exc:
            logger.warning("Auth request %s %s returned a non-JSON body", method, path)
            raise RemoteOperationError("Unexpected response from auth service") from exc

    def get_session(self) -> Optional[Session]:
        if self.session is None:
            return None
        try:
            user = self._request("GET", "/user", token=self.session.access_token)
        except RemoteOperationError:
            self.session = None
            raise
        self.session.email = user.get("email", self.session.email)
        return self.session

    def sign_in(self, email: str, password: str) -> Session:
        data = self._request(
            "POST", "/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        self.session = _session_from(data)
        logger.info("Signed in user %s", self.session.user_id)
        self._emit(AuthEvent.SIGNED_IN, self.session)
        return self.session

    def sign_up(self, email: str, password: str) -> Optional[Session]:
        """Returns the new session, or None when e-mail confirmation is pending."""
        data = self._request("POST", "/signup", json={"email": email, "password": password})
        if not data.get("access_token"):
            logger.info("Sign-up pending e-mail confirmation")
            return None
        self.session = _session_from(data)
        self._emit(AuthEvent.SIGNED_IN, self.session)
        return self.session

    def sign_out(self) -> None:
        session, self.session = self.session, None
        try:
            if session is not None:
                self._request("POST", "/logout", token=session.access_token)
        finally:
            logger.info("Signed out")
            self._emit(AuthEvent.SIGNED_OUT, None)

    def request_password_reset(self, email: str) -> None:
        params = {"redirect_to": self.redirect_to} if self.redirect_to else None
        self._request("POST", "/recover", params=params, json={"email": email})
        logger.info("Password reset e-mail requested")

    def update_password(self, password: str) -> None:
        if self.session is None:
            raise AuthorizationGap("You must be signed in to change your password.")
        self._request("PUT", "/user", token=self.session.access_token, json={"password": password})
        self._emit(AuthEvent.USER_UPDATED, self.session)

    def recover_session(self, token_hash: str) -> Session:
        data = self._request("POST", "/verify", json={"type": "recovery", "token_hash": token_hash})
        self.session = _session_from(data)
        logger.info("Entered password recovery for user %s", self.session.user_id)
        self._emit(AuthEvent.PASSWORD_RECOVERY, self.session)
        return self.session
