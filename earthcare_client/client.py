"""Main Earth Care client."""

import os
from typing import Any, Dict, List, Optional

from ._http import HTTPClient
from .cache import QueryCache
from .favorites import Favorites
from .guards import RouteGuard
from .onboarding import OnboardingRepository
from .polling import JobPoller
from .session import AuthSession
from .storage import KeyValueStore, MemoryStore
from .subscription import SubscriptionGate
from .workspace import WorkspaceContext


class EarthCareClient:
    """Earth Care Network API client.

    Wires the HTTP transport, the shared query cache and a key/value store
    into the session, guard, workspace, subscription, onboarding and favorites
    contexts.

    Args:
        base_url: API root (default: ``EARTHCARE_BASE_URL`` or http://localhost:8000)
        token: bearer token from a previous login (default: ``EARTHCARE_TOKEN``)
        store: persistence for workspace selection and onboarding progress
        session: requests-compatible session, e.g. a FastAPI ``TestClient``

    Example:
        >>> client = EarthCareClient(base_url="https://api.example.org")
        >>> client.auth.login("me@example.org", "password123")
        >>> client.guard.resolve("/crm")
        '/member/dashboard'
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        store: Optional[KeyValueStore] = None,
        session: Any = None,
        timeout: int = 30,
        max_retries: int = 2,
    ):
        self.base_url = base_url or os.getenv("EARTHCARE_BASE_URL", "http://localhost:8000")
        self._http = HTTPClient(
            base_url=self.base_url,
            token=token or os.getenv("EARTHCARE_TOKEN"),
            timeout=timeout,
            max_retries=max_retries,
            session=session,
        )
        self.cache = QueryCache()
        self.store = store if store is not None else MemoryStore()

        self.auth = AuthSession(self._http, self.cache)
        self.subscription = SubscriptionGate(self._http, self.cache)
        self.guard = RouteGuard(self.auth, self.subscription)
        self.workspace = WorkspaceContext(self._http, self.cache, self.store)
        self.onboarding = OnboardingRepository(self._http, self.store)
        self.favorites = Favorites(self._http, self.cache)

    def health(self) -> Dict[str, Any]:
        return self._http.get("/health")

    def enterprises(self, **filters: Any) -> Dict[str, Any]:
        """Public directory listing (category, search, verified, limit, offset)."""
        params = {k: v for k, v in filters.items() if v is not None}
        return self._http.get("/api/enterprises/", params=params or None)

    def search(self, query: str, enterprise_id: Optional[int] = None) -> Dict[str, Any]:
        """Directory search; with ``enterprise_id`` also that workspace's people and opportunities."""
        params: Dict[str, Any] = {"q": query}
        if enterprise_id is not None:
            params["enterprise_id"] = enterprise_id
        return self._http.get("/api/search", params=params)

    def categories(self) -> List[Dict[str, Any]]:
        return self.cache.fetch(
            "/api/enterprises/categories",
            lambda: self._http.get("/api/enterprises/categories"),
            tags=("directory",),
        )

    def start_seed_job(self, urls: List[str]) -> Dict[str, Any]:
        result = self._http.post("/api/admin/enterprises/seed", {"urls": urls})
        self.cache.invalidate("directory")
        return result

    def seed_job(self, job_id: str) -> Dict[str, Any]:
        return self._http.get(f"/api/admin/enterprises/seed/{job_id}")

    def seed_job_poller(self, job_id: str, interval: float = 2.0, **kwargs: Any) -> JobPoller:
        return JobPoller(lambda: self.seed_job(job_id), interval=interval, **kwargs)

    def __repr__(self) -> str:
        return f"EarthCareClient(base_url={self.base_url!r})"
