# core/guards.py
"""
Page-level guards.

A guard evaluation has three outcomes: ``loading`` while the session (or the
subscription status a page needs) is still being fetched, ``authorized``, or
``unauthorized`` together with the path the caller must navigate to instead
of rendering the page. Role and plan requirements are checked independently
and both have to pass.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, FrozenSet, Optional

from core.plans import can_access
from core.roles import (
    get_unauthorized_redirect_path,
    has_role,
    has_role_or_higher,
)
from models.models import PlanType, UserRole


class GuardState(str, Enum):
    LOADING = "loading"
    AUTHORIZED = "authorized"
    UNAUTHORIZED = "unauthorized"


UPGRADE_PATH = "/pricing"


@dataclass(frozen=True)
class PageRule:
    allowed_roles: Optional[FrozenSet[UserRole]] = None
    minimum_role: Optional[UserRole] = None
    requires_login: bool = False
    required_plan: Optional[PlanType] = None
    fallback_path: Optional[str] = None

    @property
    def is_public(self) -> bool:
        return not (self.requires_login or self.allowed_roles or self.minimum_role or self.required_plan)


@dataclass(frozen=True)
class GuardDecision:
    state: GuardState
    redirect_to: Optional[str] = None

    @property
    def is_authorized(self) -> bool:
        return self.state == GuardState.AUTHORIZED


PUBLIC = PageRule()
ADMIN_ONLY = PageRule(allowed_roles=frozenset({UserRole.ADMIN}), requires_login=True)
CRM_PRO_OR_ADMIN = PageRule(
    allowed_roles=frozenset({UserRole.CRM_PRO, UserRole.ADMIN}),
    requires_login=True,
)
AUTHENTICATED = PageRule(
    allowed_roles=frozenset({UserRole.FREE, UserRole.CRM_PRO, UserRole.ADMIN}),
    requires_login=True,
    fallback_path="/member-benefits",
)
COPILOT = PageRule(
    minimum_role=UserRole.CRM_PRO,
    requires_login=True,
    required_plan=PlanType.CRM_BASIC,
)

# Longest matching prefix wins; anything unlisted is public
PAGE_PERMISSIONS = {
    "/admin": ADMIN_ONLY,
    "/crm": CRM_PRO_OR_ADMIN,
    "/copilot": COPILOT,
    "/member": AUTHENTICATED,
    "/settings": AUTHENTICATED,
    "/onboarding": AUTHENTICATED,
    "/favorites": AUTHENTICATED,
    "/member-benefits": PUBLIC,
    "/enterprises": PUBLIC,
    "/pricing": PUBLIC,
    "/": PUBLIC,
}


def rule_for_path(path: str) -> PageRule:
    path = "/" + path.strip("/")
    best, best_len = PUBLIC, -1
    for prefix, rule in PAGE_PERMISSIONS.items():
        matches = path == prefix or path.startswith(prefix.rstrip("/") + "/")
        if matches and len(prefix) > best_len:
            best, best_len = rule, len(prefix)
    return best


def evaluate_guard(
    rule: PageRule,
    user: Any,
    *,
    loading: bool = False,
    subscription: Any = None,
    subscription_loading: bool = False,
) -> GuardDecision:
    """
    Decide whether ``user`` may see a page protected by ``rule``.

    ``user`` is ``None`` for visitors, including when the session fetch
    failed. ``subscription`` is only consulted when the rule needs a plan.
    """
    if loading:
        return GuardDecision(GuardState.LOADING)

    def deny() -> GuardDecision:
        if user is None and rule.fallback_path:
            return GuardDecision(GuardState.UNAUTHORIZED, rule.fallback_path)
        return GuardDecision(GuardState.UNAUTHORIZED, get_unauthorized_redirect_path(user))

    if rule.requires_login and user is None:
        return deny()
    if rule.allowed_roles is not None and not has_role(user, rule.allowed_roles):
        return deny()
    if rule.minimum_role is not None and not has_role_or_higher(user, rule.minimum_role):
        return deny()

    if rule.required_plan is not None:
        if subscription_loading:
            return GuardDecision(GuardState.LOADING)
        if not can_access(subscription, rule.required_plan):
            return GuardDecision(GuardState.UNAUTHORIZED, UPGRADE_PATH)

    return GuardDecision(GuardState.AUTHORIZED)


def evaluate_path(path: str, user: Any, **kwargs: Any) -> GuardDecision:
    return evaluate_guard(rule_for_path(path), user, **kwargs)
