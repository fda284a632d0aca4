"""Demo credential check standing in for a real identity provider."""

from __future__ import annotations

import hmac
import logging
import os
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_USERNAME = os.getenv("CLINIC_DEMO_USERNAME", "demo")
DEFAULT_PASSWORD = os.getenv("CLINIC_DEMO_PASSWORD", "password")
DEFAULT_DISPLAY_NAME = os.getenv("CLINIC_DEMO_DISPLAY_NAME", "Demo User")


@dataclass(frozen=True)
class User:
    username: str
    name: str


class AuthService:
    """Holds at most one signed-in user for the running session."""

    def __init__(
        self,
        *,
        username: str = DEFAULT_USERNAME,
        password: str = DEFAULT_PASSWORD,
        display_name: str = DEFAULT_DISPLAY_NAME,
    ) -> None:
        if not username or not password:
            raise ValueError("username and password must be provided")
        self._username = username.lower()
        self._password = password
        self._display_name = display_name
        self._current_user: Optional[User] = None

    @property
    def current_user(self) -> Optional[User]:
        return self._current_user

    @property
    def is_authenticated(self) -> bool:
        return self._current_user is not None

    def login(self, username: str, password: str) -> bool:
        if (username or "").lower() == self._username and hmac.compare_digest(
            password or "", self._password
        ):
            self._current_user = User(username=self._username, name=self._display_name)
            logger.info("User %s signed in", self._username)
            return True
        logger.warning("Rejected sign-in attempt for %r", username)
        return False

    def logout(self) -> None:
        if self._current_user is not None:
            logger.info("User %s signed out", self._current_user.username)
        self._current_user = None
