"""
Session handling for the client.

A session is either guest (local storage only) or authenticated (bearer
token from ``/api/auth/login``). Authenticated sessions are kept in storage
so they survive restarts; guest mode persists until storage is cleared.
"""

import json
import logging
from dataclasses import dataclass
from typing import Optional

from daily_review.client.api import ApiClient
from daily_review.client.errors import LoginError, NotAuthenticated, ValidationError
from daily_review.client.models import UserSession
from daily_review.client.storage import GUEST_MODE_KEY, ITEMS_KEY, SESSION_KEY, KeyValueStorage

logger = logging.getLogger(__name__)


@dataclass
class LoginResult:
    session: UserSession
    is_new_user: bool
    # Guest items are waiting to be uploaded
    needs_migration: bool


class SessionManager:
    def __init__(self, storage: KeyValueStorage, api_base_url: Optional[str] = None, http=None):
        self.storage = storage
        self.api_base_url = api_base_url
        self.http = http

    @property
    def remote_configured(self) -> bool:
        return bool(self.api_base_url)

    def is_guest_flag_set(self) -> bool:
        return self.storage.read(GUEST_MODE_KEY) == "true"

    def current(self) -> Optional[UserSession]:
        """The active session, or None when the user must log in.

        Without a configured backend the client drops into guest mode on its
        own.
        """
        if not self.remote_configured:
            self.enter_guest_mode()
            return UserSession.guest()

        stored = self.storage.read(SESSION_KEY)
        if stored:
            return UserSession(**json.loads(stored))

        if self.is_guest_flag_set():
            return UserSession.guest()
        return None

    def enter_guest_mode(self) -> UserSession:
        self.storage.write(GUEST_MODE_KEY, "true")
        return UserSession.guest()

    def login(self, username: str, password: str, invite_code: Optional[str] = None) -> LoginResult:
        """
        Log in or register.

        Raises:
            LoginError: with ``reason`` set to the server's terminal state
        """
        if not self.remote_configured:
            raise LoginError("Remote backend is not configured", reason="not_configured")

        api = ApiClient(self.api_base_url, http=self.http)
        payload = {"username": username, "password": password}
        if invite_code:
            payload["inviteCode"] = invite_code

        try:
            data = api.request("POST", "/api/auth/login", json=payload, authenticated=False)
        except ValidationError as e:
            raise LoginError(str(e), reason=e.body.get("reason", "")) from e

        session_data = data["session"]
        session = UserSession(
            kind="authenticated",
            access_token=session_data["access_token"],
            user_id=session_data["user"]["id"],
            username=session_data["user"]["username"],
        )
        self.storage.write(SESSION_KEY, json.dumps(session.__dict__))
        self.storage.remove(GUEST_MODE_KEY)

        stored_items = self.storage.read(ITEMS_KEY)
        try:
            needs_migration = bool(stored_items and json.loads(stored_items))
        except ValueError:
            logger.warning("Stored guest items are unreadable, skipping migration prompt")
            needs_migration = False

        logger.info(f"Logged in as {session.username} (new user: {data.get('isNewUser', False)})")
        return LoginResult(session=session, is_new_user=bool(data.get("isNewUser")), needs_migration=needs_migration)

    def verify(self, session: UserSession) -> bool:
        """Check a stored token with the server; forget it if rejected."""
        if session.is_guest:
            return True
        api = ApiClient(self.api_base_url, access_token=session.access_token, http=self.http)
        try:
            api.request("GET", "/api/auth/me")
        except NotAuthenticated:
            self.storage.remove(SESSION_KEY)
            return False
        return True

    def logout(self) -> None:
        self.storage.remove(SESSION_KEY)
        self.storage.remove(GUEST_MODE_KEY)
