"""
Current CRM workspace (enterprise) for the signed-in user.

The selected enterprise id is remembered in the client store under
``currentEnterpriseId``. Every CRM read goes through ``crm_query`` and is
tagged so switching workspace drops it.
"""
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

from services.workspace_service import (
    ACTIVATION_PATH,
    CRM_QUERY_TAG,
    WorkspaceStatus,
    dashboard_path,
    resolve_current_enterprise,
)

from ._http import HTTPClient
from .cache import QueryCache
from .errors import NotFoundError
from .storage import KeyValueStore

logger = logging.getLogger(__name__)

STORAGE_KEY = "currentEnterpriseId"
MEMBERSHIPS_PATH = "/api/crm/user/enterprises"
MEMBERSHIPS_TAG = "memberships"


class WorkspaceContext:
    def __init__(self, http: HTTPClient, cache: QueryCache, store: KeyValueStore):
        self._http = http
        self._cache = cache
        self._store = store
        self.status = WorkspaceStatus.LOADING
        self.current_enterprise_id: Optional[int] = None
        self.memberships: List[Dict[str, Any]] = []

    def load(self) -> WorkspaceStatus:
        self.memberships = self._cache.fetch(
            MEMBERSHIPS_PATH, lambda: self._http.get(MEMBERSHIPS_PATH), tags=(MEMBERSHIPS_TAG,)
        )
        current = resolve_current_enterprise(self.memberships, self._store.get(STORAGE_KEY))
        self.current_enterprise_id = current
        if current is None:
            self.status = WorkspaceStatus.ACTIVATION_REQUIRED
        else:
            self.status = WorkspaceStatus.ACTIVE
            self._store.set(STORAGE_KEY, current)
        return self.status

    @property
    def current(self) -> Optional[Dict[str, Any]]:
        for membership in self.memberships:
            if membership["enterprise_id"] == self.current_enterprise_id:
                return membership
        return None

    def landing_path(self) -> str:
        if self.status == WorkspaceStatus.LOADING:
            self.load()
        if self.current_enterprise_id is None:
            return ACTIVATION_PATH
        return dashboard_path(self.current_enterprise_id)

    def switch_workspace(self, enterprise_id: int) -> str:
        """Select another membership; returns the dashboard path to navigate to."""
        if self.status == WorkspaceStatus.LOADING:
            self.load()
        if not any(m["enterprise_id"] == enterprise_id for m in self.memberships):
            raise NotFoundError("Enterprise not found", 404)

        dropped = self._cache.invalidate(CRM_QUERY_TAG)
        self.current_enterprise_id = enterprise_id
        self.status = WorkspaceStatus.ACTIVE
        self._store.set(STORAGE_KEY, enterprise_id)
        logger.debug(f"Switched to workspace {enterprise_id}, dropped {dropped} cached queries")
        return dashboard_path(enterprise_id)

    def refresh(self) -> WorkspaceStatus:
        self._cache.invalidate(MEMBERSHIPS_TAG)
        return self.load()

    def create_enterprise(self, name: str, category: str, **details: Any) -> Dict[str, Any]:
        """Create an enterprise (caller becomes owner) and switch into it."""
        enterprise = self._http.post("/api/crm/enterprises", {"name": name, "category": category, **details})
        self.refresh()
        self.switch_workspace(enterprise["id"])
        return enterprise

    def _crm_path(self, resource: str) -> str:
        if self.current_enterprise_id is None:
            if self.load() == WorkspaceStatus.ACTIVATION_REQUIRED:
                raise NotFoundError("No workspace selected", 404)
        return f"/api/crm/{self.current_enterprise_id}/{resource.strip('/')}"

    def crm_query(self, resource: str, params: Optional[Dict[str, Any]] = None) -> Any:
        path = self._crm_path(resource)
        key = f"{path}?{urlencode(sorted(params.items()))}" if params else path
        return self._cache.fetch(key, lambda: self._http.get(path, params=params), tags=(CRM_QUERY_TAG,))

    def crm_mutation(self, resource: str, payload: Dict[str, Any]) -> Any:
        result = self._http.post(self._crm_path(resource), payload)
        self._cache.invalidate(CRM_QUERY_TAG)
        return result

    def claim_enterprise(self, enterprise_id: int) -> Dict[str, Any]:
        """Claim a directory listing (caller becomes owner) and switch into it."""
        result = self._http.post(f"/api/enterprises/{enterprise_id}/claim-direct")
        self.refresh()
        self.switch_workspace(enterprise_id)
        return result
