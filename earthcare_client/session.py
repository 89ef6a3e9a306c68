"""Signed-in user, fetched once per session and cached."""
import logging
from typing import Any, Dict, Optional

from core.roles import get_default_redirect_path, role_of
from models.models import UserRole

from ._http import HTTPClient
from .cache import QueryCache
from .errors import ApiError

logger = logging.getLogger(__name__)

ME_PATH = "/api/auth/me"
AUTH_TAG = "auth"


class AuthSession:
    def __init__(self, http: HTTPClient, cache: QueryCache):
        self._http = http
        self._cache = cache

    @property
    def token(self) -> Optional[str]:
        return self._http.token

    def _start(self, data: Dict[str, Any]) -> Dict[str, Any]:
        self._cache.clear()
        self._http.token = data["access_token"]
        self._cache.set(ME_PATH, data["user"], tags=(AUTH_TAG,))
        return data["user"]

    def login(self, email: str, password: str) -> Dict[str, Any]:
        return self._start(self._http.post("/api/auth/login", {"email": email, "password": password}))

    def signup(self, email: str, password: str, **profile: Any) -> Dict[str, Any]:
        payload = {"email": email, "password": password, **profile}
        return self._start(self._http.post("/api/auth/signup", payload))

    def logout(self) -> None:
        self._http.token = None
        self._cache.clear()

    def current_user(self) -> Optional[Dict[str, Any]]:
        """
        The signed-in user, or ``None``. A failed fetch counts as signed out;
        the caller lands on a visitor path instead of seeing an error.
        """
        if not self._http.token:
            return None
        try:
            return self._cache.fetch(ME_PATH, lambda: self._http.get(ME_PATH), tags=(AUTH_TAG,))
        except ApiError as e:
            logger.info(f"Session lookup failed, continuing as visitor: {e.message}")
            return None

    def refresh(self) -> Optional[Dict[str, Any]]:
        self._cache.invalidate(AUTH_TAG)
        return self.current_user()

    @property
    def is_authenticated(self) -> bool:
        return self.current_user() is not None

    @property
    def role(self) -> UserRole:
        return role_of(self.current_user())

    def default_redirect_path(self) -> str:
        return get_default_redirect_path(self.current_user())
