# core/plans.py
"""
Plan tier ordering and the subscription gate.

The plan axis is independent of the role axis. Every predicate takes a
"subscription snapshot": anything exposing ``current_plan_type``,
``subscription_status``, ``token_usage_this_month`` and ``token_quota_limit``
(the ``User`` row itself, the status schema, or the decoded JSON dict).
``None`` means the status has not been fetched yet.
"""
from typing import Any

from models.models import PlanType, SubscriptionStatus


PLAN_HIERARCHY = (
    PlanType.FREE,
    PlanType.CRM_BASIC,
    PlanType.CRM_PRO,
    PlanType.BUILD_PRO_BUNDLE,
)
ACTIVE_STATUSES = frozenset({SubscriptionStatus.TRIAL, SubscriptionStatus.ACTIVE})


def _get(snapshot: Any, name: str, default: Any = None) -> Any:
    if snapshot is None:
        return default
    if isinstance(snapshot, dict):
        return snapshot.get(name, default)
    return getattr(snapshot, name, default)


def plan_of(snapshot: Any) -> PlanType:
    try:
        return PlanType(_get(snapshot, "current_plan_type") or PlanType.FREE)
    except ValueError:
        return PlanType.FREE


def plan_index(plan: Any) -> int:
    return PLAN_HIERARCHY.index(PlanType(plan))


def has_plan_access(snapshot: Any, required: Any) -> bool:
    """True when the snapshot's plan tier is at least ``required``."""
    if snapshot is None:
        return PlanType(required) == PlanType.FREE
    return PLAN_HIERARCHY.index(plan_of(snapshot)) >= plan_index(required)


def is_subscription_active(snapshot: Any) -> bool:
    status = _get(snapshot, "subscription_status")
    try:
        return SubscriptionStatus(status) in ACTIVE_STATUSES
    except ValueError:
        return False


def can_access(snapshot: Any, required: Any) -> bool:
    """Plan tier check plus, for paid tiers, an active or trialing subscription."""
    if not has_plan_access(snapshot, required):
        return False
    return PlanType(required) == PlanType.FREE or is_subscription_active(snapshot)


def tokens_remaining(snapshot: Any) -> int:
    used = _get(snapshot, "token_usage_this_month", 0) or 0
    limit = _get(snapshot, "token_quota_limit", 0) or 0
    return max(limit - used, 0)


def usage_percentage(snapshot: Any) -> float:
    used = _get(snapshot, "token_usage_this_month", 0) or 0
    limit = _get(snapshot, "token_quota_limit", 0) or 0
    if limit <= 0:
        return 100.0 if used > 0 else 0.0
    return min(round(used * 100.0 / limit, 2), 100.0)
