"""Cached billing status and the plan gate built on it."""
import logging
from typing import Any, Dict, List, Optional

from core import plans

from ._http import HTTPClient
from .cache import QueryCache
from .errors import ApiError

logger = logging.getLogger(__name__)

STATUS_PATH = "/api/subscription/status"
PLANS_PATH = "/api/subscription/plans"
SUBSCRIPTION_TAG = "subscription"


class SubscriptionGate:
    def __init__(self, http: HTTPClient, cache: QueryCache):
        self._http = http
        self._cache = cache

    def status(self) -> Dict[str, Any]:
        return self._cache.fetch(STATUS_PATH, lambda: self._http.get(STATUS_PATH), tags=(SUBSCRIPTION_TAG,))

    def snapshot(self) -> Optional[Dict[str, Any]]:
        """The user billing view the plan predicates read, or ``None`` if unavailable."""
        if not self._http.token:
            return None
        try:
            return self.status()["user"]
        except ApiError as e:
            logger.info(f"Subscription status unavailable: {e.message}")
            return None

    def plans(self) -> List[Dict[str, Any]]:
        return self._cache.fetch(PLANS_PATH, lambda: self._http.get(PLANS_PATH), tags=("plans",))

    @property
    def current_plan(self) -> str:
        return plans.plan_of(self.snapshot()).value

    @property
    def is_active(self) -> bool:
        return plans.is_subscription_active(self.snapshot())

    def has_plan_access(self, required: Any) -> bool:
        return plans.has_plan_access(self.snapshot(), required)

    def can_access(self, required: Any) -> bool:
        return plans.can_access(self.snapshot(), required)

    def tokens_remaining(self) -> int:
        return plans.tokens_remaining(self.snapshot())

    def usage_percentage(self) -> float:
        return plans.usage_percentage(self.snapshot())

    def refresh(self) -> Optional[Dict[str, Any]]:
        self._cache.invalidate(SUBSCRIPTION_TAG)
        return self.snapshot()

    def cancel(self) -> Dict[str, Any]:
        result = self._http.post("/api/subscription/cancel")
        self._cache.invalidate(SUBSCRIPTION_TAG)
        return result

    def record_usage(self, operation_type: str, tokens_used: int, **extra: Any) -> Dict[str, Any]:
        payload = {"operation_type": operation_type, "tokens_used": tokens_used, **extra}
        result = self._http.post("/api/subscription/usage", payload)
        self._cache.invalidate(SUBSCRIPTION_TAG)
        return result
