# services/claim_service.py
"""
Directory claiming: a member takes ownership of an unclaimed listing, which
turns it into a CRM workspace with the claimant as owner.

A listing counts as claimed once any active owner membership exists. The
claimant's account email must match the listing's contact email, and members
without an active paid plan may hold one claim.
"""
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from core.plans import can_access
from models.models import (
    Enterprise, EnterpriseTeamMember, MemberStatus, PlanType, TeamRole, User,
)
from schemas.enterprise_schema import ClaimResult, ClaimStatus

logger = logging.getLogger(__name__)

FREE_CLAIM_LIMIT = 1


class ClaimError(Exception):
    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def has_owner(session: Session, enterprise_id: int) -> bool:
    return session.exec(
        select(EnterpriseTeamMember.id).where(
            EnterpriseTeamMember.enterprise_id == enterprise_id,
            EnterpriseTeamMember.role == TeamRole.OWNER.value,
            EnterpriseTeamMember.status == MemberStatus.ACTIVE.value,
        )
    ).first() is not None


def claim_limit(user: User) -> Optional[int]:
    """``None`` means unlimited."""
    if can_access(user, PlanType.CRM_BASIC):
        return None
    return FREE_CLAIM_LIMIT


def _membership(session: Session, enterprise_id: int, user_id: int) -> Optional[EnterpriseTeamMember]:
    return session.exec(
        select(EnterpriseTeamMember).where(
            EnterpriseTeamMember.enterprise_id == enterprise_id,
            EnterpriseTeamMember.user_id == user_id,
        )
    ).first()


def claim_status(session: Session, enterprise: Enterprise, user: Optional[User] = None) -> ClaimStatus:
    claimed = has_owner(session, enterprise.id)
    return ClaimStatus(
        enterprise_id=enterprise.id,
        isClaimed=claimed,
        canClaim=not claimed,
        isMember=user is not None and _membership(session, enterprise.id, user.id) is not None,
    )


def claim_enterprise(session: Session, user: User, enterprise_id: int) -> ClaimResult:
    enterprise = session.get(Enterprise, enterprise_id)
    if not enterprise:
        raise ClaimError("Enterprise not found", 404)
    if has_owner(session, enterprise_id):
        raise ClaimError("This enterprise is already claimed", 400)

    if not enterprise.contact_email or enterprise.contact_email.strip().lower() != user.email.lower():
        raise ClaimError(
            "You can only claim enterprises where your email matches the enterprise contact email",
            403,
        )

    limit = claim_limit(user)
    if limit is not None and (user.claimed_profiles_count or 0) >= limit:
        raise ClaimError(
            f"You've reached your free plan limit of {limit} enterprise claim. "
            "Upgrade to CRM Pro for unlimited claims.",
            403,
        )

    if _membership(session, enterprise_id, user.id) is not None:
        raise ClaimError("You are already a member of this enterprise team", 409)

    now = datetime.utcnow()
    session.add(EnterpriseTeamMember(
        enterprise_id=enterprise_id,
        user_id=user.id,
        role=TeamRole.OWNER.value,
        status=MemberStatus.ACTIVE.value,
        joined_at=now,
    ))
    user.claimed_profiles_count = (user.claimed_profiles_count or 0) + 1
    user.updated_at = now
    session.add(user)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        raise ClaimError("You are already a member of this enterprise team", 409)

    logger.info(f"✅ Enterprise {enterprise_id} claimed by user {user.id}")
    return ClaimResult(
        enterprise_id=enterprise_id,
        role=TeamRole.OWNER.value,
        message=f"You now own {enterprise.name}",
    )
