"""Member favorites: bookmarked directory enterprises."""
from typing import Any, Dict, List, Optional

from ._http import HTTPClient
from .cache import QueryCache

FAVORITES_PATH = "/api/favorites/"
FAVORITES_TAG = "favorites"


class Favorites:
    def __init__(self, http: HTTPClient, cache: QueryCache):
        self._http = http
        self._cache = cache

    def list(self) -> List[Dict[str, Any]]:
        return self._cache.fetch(FAVORITES_PATH, lambda: self._http.get(FAVORITES_PATH), tags=(FAVORITES_TAG,))

    def stats(self) -> Dict[str, Any]:
        return self._cache.fetch(
            "/api/favorites/stats", lambda: self._http.get("/api/favorites/stats"), tags=(FAVORITES_TAG,)
        )

    def is_favorited(self, enterprise_id: int) -> bool:
        path = f"/api/enterprises/{enterprise_id}/favorite-status"
        return self._cache.fetch(path, lambda: self._http.get(path), tags=(FAVORITES_TAG,))["isFavorited"]

    def add(self, enterprise_id: int, notes: Optional[str] = None) -> Dict[str, Any]:
        result = self._http.post(FAVORITES_PATH, {"enterpriseId": enterprise_id, "notes": notes})
        self._cache.invalidate(FAVORITES_TAG)
        return result

    def remove(self, enterprise_id: int) -> None:
        self._http.delete(f"/api/favorites/{enterprise_id}")
        self._cache.invalidate(FAVORITES_TAG)

    def toggle(self, enterprise_id: int) -> bool:
        """Flip the bookmark; returns whether the enterprise is now a favorite."""
        if self.is_favorited(enterprise_id):
            self.remove(enterprise_id)
            return False
        self.add(enterprise_id)
        return True
