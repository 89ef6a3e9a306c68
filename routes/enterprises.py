# routes/enterprises.py: public enterprise directory
from fastapi import APIRouter, HTTPException, Depends, Query
from sqlmodel import Session, select
from sqlalchemy import func, or_
from typing import List, Optional

from core.database import get_session
from core.security import get_current_user, get_optional_user
from models.models import Enterprise, EnterpriseCategory, User, UserFavorite
from schemas.enterprise_schema import (
    EnterpriseRead, EnterpriseListResponse, CategoryCount, ClaimStatus, ClaimResult,
)
from schemas.favorites_schema import FavoriteStatus
from services.claim_service import ClaimError, claim_enterprise, claim_status

router = APIRouter(tags=["Enterprises"])


def matches_search(term: str):
    pattern = f"%{term.strip()}%"
    return or_(
        Enterprise.name.ilike(pattern),
        Enterprise.description.ilike(pattern),
        Enterprise.location.ilike(pattern),
    )


# ----------------------------------------------------------------------
# ✅ Directory listing (public)
# ----------------------------------------------------------------------
@router.get("/", response_model=EnterpriseListResponse)
def list_enterprises(
    category: Optional[EnterpriseCategory] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    verified: Optional[bool] = Query(None),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    session: Session = Depends(get_session),
):
    statement = select(Enterprise)
    if category is not None:
        statement = statement.where(Enterprise.category == category.value)
    if verified is not None:
        statement = statement.where(Enterprise.is_verified == verified)
    if search:
        statement = statement.where(matches_search(search))

    total = session.exec(select(func.count()).select_from(statement.subquery())).one()
    items = session.exec(
        statement.order_by(Enterprise.is_verified.desc(), Enterprise.name).offset(offset).limit(limit)
    ).all()
    return EnterpriseListResponse(
        items=[EnterpriseRead.model_validate(e) for e in items],
        total=total,
        limit=limit,
        offset=offset,
    )


# ----------------------------------------------------------------------
# ✅ Category counts
# ----------------------------------------------------------------------
@router.get("/categories", response_model=List[CategoryCount])
def category_counts(session: Session = Depends(get_session)):
    rows = session.exec(
        select(Enterprise.category, func.count(Enterprise.id)).group_by(Enterprise.category)
    ).all()
    counts = {category: count for category, count in rows}
    return [CategoryCount(category=c.value, count=counts.get(c.value, 0)) for c in EnterpriseCategory]


# ----------------------------------------------------------------------
# ✅ Enterprise detail
# ----------------------------------------------------------------------
@router.get("/{enterprise_id}", response_model=EnterpriseRead)
def get_enterprise(enterprise_id: int, session: Session = Depends(get_session)):
    enterprise = session.get(Enterprise, enterprise_id)
    if not enterprise:
        raise HTTPException(status_code=404, detail="Enterprise not found")
    return enterprise


# ----------------------------------------------------------------------
# ✅ Claiming
# ----------------------------------------------------------------------
@router.get("/{enterprise_id}/claim-status", response_model=ClaimStatus)
def get_claim_status(
    enterprise_id: int,
    current_user: Optional[User] = Depends(get_optional_user),
    session: Session = Depends(get_session),
):
    enterprise = session.get(Enterprise, enterprise_id)
    if not enterprise:
        raise HTTPException(status_code=404, detail="Enterprise not found")
    return claim_status(session, enterprise, current_user)


@router.post("/{enterprise_id}/claim-direct", response_model=ClaimResult)
def claim_direct(
    enterprise_id: int,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    try:
        return claim_enterprise(session, current_user, enterprise_id)
    except ClaimError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


# ----------------------------------------------------------------------
# ✅ Favorite status for the current member
# ----------------------------------------------------------------------
@router.get("/{enterprise_id}/favorite-status", response_model=FavoriteStatus)
def favorite_status(
    enterprise_id: int,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    favorite = session.exec(
        select(UserFavorite.id).where(
            UserFavorite.user_id == current_user.id,
            UserFavorite.enterprise_id == enterprise_id,
        )
    ).first()
    return FavoriteStatus(isFavorited=favorite is not None)
