"""Explicit signed-in user context.

The auth backend owns sign-in; this module only holds the result so that
operations needing an owner id receive it as an argument instead of reading
ambient global state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .errors import NotAuthenticatedError

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SignedInUser:
    user_id: str
    email: str | None = None


class SessionContext:
    """Holds the current user between ``sign_in`` and ``sign_out``."""

    def __init__(self) -> None:
        self._user: SignedInUser | None = None

    @property
    def user(self) -> SignedInUser | None:
        return self._user

    @property
    def is_authenticated(self) -> bool:
        return self._user is not None

    def sign_in(self, user_id: str, email: str | None = None) -> SignedInUser:
        user_id = str(user_id or "").strip()
        if not user_id:
            raise ValueError("user_id must be a non-empty string")
        self._user = SignedInUser(user_id=user_id, email=email)
        LOGGER.info("Signed in user %s", user_id)
        return self._user

    def sign_out(self) -> None:
        if self._user is not None:
            LOGGER.info("Signed out user %s", self._user.user_id)
        self._user = None

    def require_user(self) -> SignedInUser:
        if self._user is None:
            raise NotAuthenticatedError()
        return self._user
