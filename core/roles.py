# core/roles.py
"""
Global role vocabulary and the predicates every guard is built from.

Roles are strictly ordered ``free < crm_pro < admin``. All helpers accept an
absent user (``None``) and never raise: an absent user is evaluated as the
lowest role.
"""
from typing import Any, Iterable, Optional

from models.models import UserRole


ROLE_HIERARCHY = (UserRole.FREE, UserRole.CRM_PRO, UserRole.ADMIN)
DEFAULT_ROLE = UserRole.FREE

# Landing pages per role
ROLE_HOME_PATHS = {
    UserRole.ADMIN: "/admin/dashboard",
    UserRole.CRM_PRO: "/crm",
    UserRole.FREE: "/member/dashboard",
}
VISITOR_HOME_PATH = "/"
VISITOR_UNAUTHORIZED_PATH = "/member-benefits"


def _coerce_role(value: Any) -> Optional[UserRole]:
    if isinstance(value, UserRole):
        return value
    try:
        return UserRole(value)
    except ValueError:
        return None


def _raw_role(user: Any) -> Any:
    if isinstance(user, dict):
        return user.get("role")
    return getattr(user, "role", None)


def role_of(user: Any) -> UserRole:
    """Role of ``user`` (a model, a schema or a plain dict); default role when absent."""
    if user is None:
        return DEFAULT_ROLE
    return _coerce_role(_raw_role(user)) or DEFAULT_ROLE


def has_role(user: Any, roles: Iterable[Any]) -> bool:
    """True when the user's role is one of ``roles``."""
    allowed = {_coerce_role(r) for r in roles}
    return role_of(user) in allowed


def has_role_or_higher(user: Any, minimum: Any) -> bool:
    """False for a ``minimum`` outside the hierarchy, like ``has_role``."""
    required = _coerce_role(minimum)
    if required is None:
        return False
    return ROLE_HIERARCHY.index(role_of(user)) >= ROLE_HIERARCHY.index(required)


def has_specific_role(user: Any, role: Any) -> bool:
    if user is None:
        return False
    return _coerce_role(_raw_role(user)) == _coerce_role(role)


def is_admin(user: Any) -> bool:
    return has_specific_role(user, UserRole.ADMIN)


def is_crm_pro_or_higher(user: Any) -> bool:
    return user is not None and has_role_or_higher(user, UserRole.CRM_PRO)


def get_primary_role(user: Any) -> UserRole:
    return role_of(user)


def get_default_redirect_path(user: Any) -> str:
    if user is None:
        return VISITOR_HOME_PATH
    return ROLE_HOME_PATHS[role_of(user)]


def get_unauthorized_redirect_path(user: Any) -> str:
    # Visitors are sent to the benefits page to sign up instead of the landing page
    if user is None:
        return VISITOR_UNAUTHORIZED_PATH
    return get_default_redirect_path(user)
