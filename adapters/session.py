import logging
import os
from typing import Dict, Optional

from constants import ACCESS_TOKEN_ENV

logger = logging.getLogger(__name__)


class AuthSession:
    """
    Holds the bearer credential for the signed-in user.

    One instance lives for the whole login; caches and API clients receive it
    instead of reading a global store.
    """

    def __init__(self, token: Optional[str] = None):
        self._token = token or None

    @classmethod
    def from_env(cls) -> "AuthSession":
        return cls(os.environ.get(ACCESS_TOKEN_ENV))

    @property
    def token(self) -> Optional[str]:
        return self._token

    @property
    def is_authenticated(self) -> bool:
        return bool(self._token)

    def sign_in(self, token: str):
        self._token = token or None

    def clear(self):
        if self._token:
            logger.info("Clearing session credential.")
        self._token = None

    def auth_headers(self) -> Dict[str, str]:
        if not self._token:
            return {}
        return {"Authorization": f"Bearer {self._token}"}
