"""
Onboarding progress with the server as source of truth and the client store
as offline cache.

Each flow is stored locally under ``onboarding_progress_{flow}``. Writes that
could not reach the server are remembered in ``onboarding_pending`` and
pushed by the next successful ``get`` or by ``sync``. Both sides resolve
conflicts last-write-wins on ``updatedAt``. The visitor flow never leaves the
client.
"""
import logging
from datetime import datetime, timezone
from typing import List

from services.onboarding_service import (
    LOCAL_ONLY_FLOWS,
    apply_complete,
    apply_step,
    empty_progress,
    get_flow,
    is_newer,
    normalize_progress,
)
from schemas.onboarding_schema import ProgressData

from ._http import HTTPClient
from .errors import AuthenticationError, ServerError, TransportError
from .storage import KeyValueStore

logger = logging.getLogger(__name__)

LOCAL_KEY = "onboarding_progress_{flow}"
PENDING_KEY = "onboarding_pending"

# Failures that mean "server unreachable for now", not "request is wrong"
OFFLINE_ERRORS = (TransportError, ServerError, AuthenticationError)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class OnboardingRepository:
    def __init__(self, http: HTTPClient, store: KeyValueStore):
        self._http = http
        self._store = store

    # ------------------------------------------------------------------
    # Local tier
    # ------------------------------------------------------------------
    def _load_local(self, flow_key: str) -> ProgressData:
        raw = self._store.get(LOCAL_KEY.format(flow=flow_key))
        if not raw:
            return empty_progress()
        return ProgressData.model_validate(raw)

    def _save_local(self, flow_key: str, progress: ProgressData) -> None:
        self._store.set(LOCAL_KEY.format(flow=flow_key), progress.model_dump(mode="json"))

    def pending_flows(self) -> List[str]:
        return list(self._store.get(PENDING_KEY, []))

    def _mark_pending(self, flow_key: str, pending: bool) -> None:
        flows = [f for f in self.pending_flows() if f != flow_key]
        if pending:
            flows.append(flow_key)
        self._store.set(PENDING_KEY, flows)

    # ------------------------------------------------------------------
    # Server tier
    # ------------------------------------------------------------------
    def _path(self, flow_key: str) -> str:
        return f"/api/onboarding/progress/{flow_key}"

    def _push(self, flow_key: str, progress: ProgressData) -> ProgressData:
        data = self._http.put(self._path(flow_key), progress.model_dump(mode="json"))
        stored = ProgressData.model_validate(data["progress"])
        self._save_local(flow_key, stored)
        self._mark_pending(flow_key, False)
        return stored

    def _is_local_only(self, flow_key: str) -> bool:
        return flow_key in LOCAL_ONLY_FLOWS or not self._http.token

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------
    def get(self, flow_key: str) -> ProgressData:
        get_flow(flow_key)
        local = self._load_local(flow_key)
        if self._is_local_only(flow_key):
            return local

        try:
            data = self._http.get(self._path(flow_key))
        except OFFLINE_ERRORS as e:
            logger.info(f"Onboarding server unavailable, using local progress for {flow_key}: {e.message}")
            return local

        server = ProgressData.model_validate(data["progress"])
        if flow_key in self.pending_flows() and is_newer(local, server) and local != server:
            try:
                return self._push(flow_key, local)
            except OFFLINE_ERRORS:
                return local

        self._save_local(flow_key, server)
        self._mark_pending(flow_key, False)
        return server

    def save(self, flow_key: str, progress: ProgressData) -> ProgressData:
        """Write a whole record; unknown step ids raise before anything is stored."""
        progress = normalize_progress(progress, get_flow(flow_key), _now())
        self._save_local(flow_key, progress)
        if self._is_local_only(flow_key):
            return progress

        self._mark_pending(flow_key, True)
        try:
            return self._push(flow_key, progress)
        except OFFLINE_ERRORS as e:
            logger.info(f"Onboarding progress for {flow_key} kept locally until next sync: {e.message}")
            return progress

    def complete_step(self, flow_key: str, step_id: str) -> ProgressData:
        """Mark one step done; a step that is already done causes no write."""
        flow = get_flow(flow_key)
        current = self.get(flow_key)
        updated = apply_step(current, flow, step_id, _now())
        if updated is current:
            return current
        return self.save(flow_key, updated)

    def complete_flow(self, flow_key: str) -> ProgressData:
        flow = get_flow(flow_key)
        current = self.get(flow_key)
        updated = apply_complete(current, flow, _now())
        if updated is current:
            return current
        return self.save(flow_key, updated)

    def reset(self, flow_key: str) -> ProgressData:
        get_flow(flow_key)
        if self._is_local_only(flow_key):
            self._store.delete(LOCAL_KEY.format(flow=flow_key))
            return empty_progress()
        # An empty record stamped now wins over anything older on either side
        return self.save(flow_key, ProgressData(updatedAt=_now()))

    def is_complete(self, flow_key: str) -> bool:
        return self.get(flow_key).completed

    def sync(self) -> List[str]:
        """Push every pending local write; returns the flows that reached the server."""
        synced = []
        for flow_key in self.pending_flows():
            try:
                self._push(flow_key, self._load_local(flow_key))
            except OFFLINE_ERRORS:
                break
            synced.append(flow_key)
        return synced
