# routes/team.py: enterprise team membership management
from fastapi import APIRouter, HTTPException, Depends, status
from sqlmodel import Session, select
from sqlalchemy.exc import IntegrityError
from datetime import datetime
from typing import List

from core.database import get_session
from core.enterprise_roles import can_change_role, can_manage_team, can_remove_members
from core.security import EnterpriseAccess, require_enterprise_role
from models.models import EnterpriseTeamMember, MemberStatus, TeamRole, User
from schemas.enterprise_schema import TeamMemberCreate, TeamMemberRead, TeamMemberUpdate

import logging
logger = logging.getLogger(__name__)

router = APIRouter(tags=["Team"])


def _read(member: EnterpriseTeamMember, user: User = None) -> TeamMemberRead:
    user = user or member.user
    result = TeamMemberRead.model_validate(member)
    if user is not None:
        result.email = user.email
        result.full_name = user.full_name or None
    return result


def _get_member(session: Session, enterprise_id: int, member_id: int) -> EnterpriseTeamMember:
    member = session.get(EnterpriseTeamMember, member_id)
    if not member or member.enterprise_id != enterprise_id:
        raise HTTPException(status_code=404, detail="Team member not found")
    return member


def _owner_count(session: Session, enterprise_id: int) -> int:
    return len(session.exec(
        select(EnterpriseTeamMember).where(
            EnterpriseTeamMember.enterprise_id == enterprise_id,
            EnterpriseTeamMember.role == TeamRole.OWNER.value,
            EnterpriseTeamMember.status == MemberStatus.ACTIVE.value,
        )
    ).all())


# ----------------------------------------------------------------------
# ✅ List team
# ----------------------------------------------------------------------
@router.get("/{enterprise_id}/team", response_model=List[TeamMemberRead])
def list_team(
    access: EnterpriseAccess = Depends(require_enterprise_role(TeamRole.VIEWER)),
    session: Session = Depends(get_session),
):
    members = session.exec(
        select(EnterpriseTeamMember)
        .where(EnterpriseTeamMember.enterprise_id == access.enterprise.id)
        .order_by(EnterpriseTeamMember.joined_at, EnterpriseTeamMember.id)
    ).all()
    return [_read(m) for m in members]


# ----------------------------------------------------------------------
# ✅ Add member (admin team role or higher)
# ----------------------------------------------------------------------
@router.post("/{enterprise_id}/team", response_model=TeamMemberRead, status_code=status.HTTP_201_CREATED)
def add_member(
    data: TeamMemberCreate,
    access: EnterpriseAccess = Depends(require_enterprise_role(TeamRole.ADMIN)),
    session: Session = Depends(get_session),
):
    if not can_manage_team(access.role) or not can_change_role(access.role, data.role):
        raise HTTPException(status_code=403, detail="You cannot grant a role higher than your own")

    user = session.exec(select(User).where(User.email == data.email.strip().lower())).first()
    if not user:
        raise HTTPException(status_code=404, detail="No account found with this email")

    existing = session.exec(
        select(EnterpriseTeamMember).where(
            EnterpriseTeamMember.enterprise_id == access.enterprise.id,
            EnterpriseTeamMember.user_id == user.id,
        )
    ).first()
    if existing and existing.status == MemberStatus.ACTIVE.value:
        raise HTTPException(status_code=400, detail="User is already a member of this enterprise")

    member = existing or EnterpriseTeamMember(enterprise_id=access.enterprise.id, user_id=user.id)
    member.role = data.role.value
    member.status = MemberStatus.ACTIVE.value
    member.invited_by = access.user.id
    member.joined_at = datetime.utcnow()
    member.updated_at = datetime.utcnow()

    try:
        session.add(member)
        session.commit()
        session.refresh(member)
    except IntegrityError:
        session.rollback()
        raise HTTPException(status_code=400, detail="User is already a member of this enterprise")

    logger.info(f"✅ User {user.id} joined enterprise {access.enterprise.id} as {member.role}")
    return _read(member, user)


# ----------------------------------------------------------------------
# ✅ Change a member's role
# ----------------------------------------------------------------------
@router.patch("/{enterprise_id}/team/{member_id}", response_model=TeamMemberRead)
def change_member_role(
    member_id: int,
    data: TeamMemberUpdate,
    access: EnterpriseAccess = Depends(require_enterprise_role(TeamRole.ADMIN)),
    session: Session = Depends(get_session),
):
    member = _get_member(session, access.enterprise.id, member_id)

    # Both the current and the new role must be within the actor's reach
    if not can_change_role(access.role, member.role) or not can_change_role(access.role, data.role):
        raise HTTPException(status_code=403, detail="You cannot change a role higher than your own")

    if (
        member.role == TeamRole.OWNER.value
        and data.role != TeamRole.OWNER
        and _owner_count(session, access.enterprise.id) <= 1
    ):
        raise HTTPException(status_code=400, detail="An enterprise must keep at least one owner")

    member.role = data.role.value
    member.updated_at = datetime.utcnow()
    session.add(member)
    session.commit()
    session.refresh(member)
    return _read(member)


# ----------------------------------------------------------------------
# ✅ Remove a member
# ----------------------------------------------------------------------
@router.delete("/{enterprise_id}/team/{member_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_member(
    member_id: int,
    access: EnterpriseAccess = Depends(require_enterprise_role(TeamRole.ADMIN)),
    session: Session = Depends(get_session),
):
    member = _get_member(session, access.enterprise.id, member_id)

    if not can_remove_members(access.role) or not can_change_role(access.role, member.role):
        raise HTTPException(status_code=403, detail="You cannot remove a member with a higher role")
    if member.role == TeamRole.OWNER.value and _owner_count(session, access.enterprise.id) <= 1:
        raise HTTPException(status_code=400, detail="An enterprise must keep at least one owner")

    # Memberships are deactivated rather than deleted
    member.status = MemberStatus.INACTIVE.value
    member.updated_at = datetime.utcnow()
    session.add(member)
    session.commit()
    logger.info(f"🗑️ Member {member_id} removed from enterprise {access.enterprise.id}")
