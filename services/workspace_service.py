# services/workspace_service.py
"""
Workspace (CRM tenant) resolution.

The pure helpers are shared with ``earthcare_client.workspace``; the
session-bound helpers back the ``/api/crm`` membership routes.
"""
import logging
from datetime import datetime
from enum import Enum
from typing import Any, List, Optional, Sequence

from sqlmodel import Session, select

from models.models import Enterprise, EnterpriseTeamMember, MemberStatus, TeamRole, User
from schemas.enterprise_schema import EnterpriseCreate, MembershipRead

logger = logging.getLogger(__name__)

ACTIVATION_PATH = "/crm/activate"
CRM_QUERY_TAG = "/api/crm"


class WorkspaceStatus(str, Enum):
    LOADING = "loading"
    ACTIVE = "active"
    ACTIVATION_REQUIRED = "activation_required"


def _enterprise_id(membership: Any) -> Any:
    if isinstance(membership, dict):
        return membership.get("enterprise_id")
    return membership.enterprise_id


def resolve_current_enterprise(memberships: Sequence[Any], stored_id: Any = None) -> Optional[int]:
    """
    Pick the workspace for a session: the stored id while it is still one of
    the user's memberships, otherwise the first membership.
    """
    if not memberships:
        return None
    ids = [_enterprise_id(m) for m in memberships]
    if stored_id is not None:
        for enterprise_id in ids:
            if str(enterprise_id) == str(stored_id):
                return enterprise_id
    return ids[0]


def dashboard_path(enterprise_id: Any) -> str:
    return f"/crm/{enterprise_id}/dashboard"


def landing_path(memberships: Sequence[Any], stored_id: Any = None) -> str:
    current = resolve_current_enterprise(memberships, stored_id)
    return ACTIVATION_PATH if current is None else dashboard_path(current)


# ----------------------------------------------------------------------
# Database helpers
# ----------------------------------------------------------------------
def list_memberships(session: Session, user: User) -> List[MembershipRead]:
    rows = session.exec(
        select(EnterpriseTeamMember, Enterprise)
        .join(Enterprise, Enterprise.id == EnterpriseTeamMember.enterprise_id)
        .where(
            EnterpriseTeamMember.user_id == user.id,
            EnterpriseTeamMember.status == MemberStatus.ACTIVE.value,
        )
        .order_by(EnterpriseTeamMember.joined_at, EnterpriseTeamMember.id)
    ).all()
    return [
        MembershipRead(
            enterprise_id=enterprise.id,
            enterprise_name=enterprise.name,
            category=enterprise.category,
            role=member.role,
            status=member.status,
            joined_at=member.joined_at,
        )
        for member, enterprise in rows
    ]


def create_enterprise_workspace(session: Session, user: User, data: EnterpriseCreate) -> Enterprise:
    """Create an enterprise and make its creator the owner."""
    enterprise = Enterprise(
        name=data.name,
        category=data.category.value,
        description=data.description,
        location=data.location,
        website=data.website,
        contact_email=data.contact_email,
        tags=list(data.tags),
    )
    session.add(enterprise)
    session.flush()

    owner = EnterpriseTeamMember(
        enterprise_id=enterprise.id,
        user_id=user.id,
        role=TeamRole.OWNER.value,
        status=MemberStatus.ACTIVE.value,
        joined_at=datetime.utcnow(),
    )
    session.add(owner)
    session.commit()
    session.refresh(enterprise)
    logger.info(f"✅ Enterprise {enterprise.id} created, owner user {user.id}")
    return enterprise
