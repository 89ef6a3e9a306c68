# routes/favorites.py: member bookmarks of directory enterprises
from fastapi import APIRouter, HTTPException, Depends, Query, Response, status
from sqlmodel import Session, select
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload
from typing import List

from core.database import get_session
from core.security import get_current_user
from models.models import Enterprise, User, UserFavorite
from schemas.favorites_schema import FavoriteCreate, FavoriteRead, FavoriteStats

import logging
logger = logging.getLogger(__name__)

router = APIRouter(tags=["Favorites"])


@router.get("/", response_model=List[FavoriteRead])
def list_favorites(
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return session.exec(
        select(UserFavorite)
        .where(UserFavorite.user_id == current_user.id)
        .options(selectinload(UserFavorite.enterprise))
        .order_by(UserFavorite.created_at.desc(), UserFavorite.id.desc())
        .offset(offset)
        .limit(limit)
    ).all()


@router.get("/stats", response_model=FavoriteStats)
def favorite_stats(
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    rows = session.exec(
        select(Enterprise.category, func.count(UserFavorite.id))
        .select_from(UserFavorite)
        .join(Enterprise, Enterprise.id == UserFavorite.enterprise_id)
        .where(UserFavorite.user_id == current_user.id)
        .group_by(Enterprise.category)
    ).all()
    by_category = {category: count for category, count in rows}
    return FavoriteStats(total=sum(by_category.values()), byCategory=by_category)


@router.post("/", response_model=FavoriteRead, status_code=status.HTTP_201_CREATED)
def add_favorite(
    data: FavoriteCreate,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    if not session.get(Enterprise, data.enterpriseId):
        raise HTTPException(status_code=404, detail="Enterprise not found")

    favorite = UserFavorite(user_id=current_user.id, enterprise_id=data.enterpriseId, notes=data.notes)
    try:
        session.add(favorite)
        session.commit()
    except IntegrityError:
        session.rollback()
        raise HTTPException(status_code=409, detail="Enterprise is already in your favorites")
    session.refresh(favorite)
    logger.info(f"⭐ User {current_user.id} favorited enterprise {data.enterpriseId}")
    return favorite


@router.delete("/{enterprise_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_favorite(
    enterprise_id: int,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    """Removing a favorite that is not there is still a 204."""
    favorite = session.exec(
        select(UserFavorite).where(
            UserFavorite.user_id == current_user.id,
            UserFavorite.enterprise_id == enterprise_id,
        )
    ).first()
    if favorite:
        session.delete(favorite)
        session.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
