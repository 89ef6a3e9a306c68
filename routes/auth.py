from fastapi import APIRouter, HTTPException, Depends, status
from sqlmodel import Session, select
from datetime import datetime
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from core.config import settings
from core.database import get_session
from core.security import (
    hash_password, verify_password, create_token_for_user,
    get_current_user,
)
from models.models import User, UserRole, PlanType
from schemas.user_schema import UserCreate, UserLogin, UserRead, TokenResponse
from services.subscription_service import SubscriptionService

import logging
logger = logging.getLogger(__name__)

router = APIRouter(tags=["Authentication"])


# ==========================================================
# ✅ Public Signup: every account starts as a free member
# ==========================================================
@router.post("/signup", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
def signup(user_data: UserCreate, session: Session = Depends(get_session)):
    email = user_data.email.lower()
    existing = session.exec(select(User).where(User.email == email)).first()
    if existing:
        raise HTTPException(
            status_code=400,
            detail="An account with this email already exists. Please log in instead.",
        )

    free_plan = SubscriptionService.get_plan_by_type(session, PlanType.FREE.value)
    new_user = User(
        email=email,
        first_name=user_data.first_name,
        last_name=user_data.last_name,
        password_hash=hash_password(user_data.password),
        role=UserRole.FREE.value,
        current_plan_type=PlanType.FREE.value,
        token_quota_limit=free_plan.token_quota_limit if free_plan else settings.FREE_TOKEN_QUOTA,
        created_at=datetime.utcnow(),
    )

    try:
        session.add(new_user)
        session.commit()
        session.refresh(new_user)
    except IntegrityError:
        session.rollback()
        raise HTTPException(
            status_code=400,
            detail="An account with this email already exists. Please log in instead.",
        )
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"❌ Database error during signup: {e}")
        raise HTTPException(
            status_code=500,
            detail="Something went wrong while creating your account. Please try again later.",
        )

    logger.info(f"📝 New account {new_user.id} ({new_user.email})")
    return TokenResponse(access_token=create_token_for_user(new_user), user=UserRead.model_validate(new_user))


# ==========================================================
# ✅ Login
# ==========================================================
@router.post("/login", response_model=TokenResponse)
def login(credentials: UserLogin, session: Session = Depends(get_session)):
    db_user = session.exec(select(User).where(User.email == credentials.email.lower())).first()

    if not db_user or not verify_password(credentials.password, db_user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid email or password.")

    if not db_user.is_active:
        raise HTTPException(status_code=403, detail="Your account is inactive. Contact an administrator.")

    return TokenResponse(access_token=create_token_for_user(db_user), user=UserRead.model_validate(db_user))


# ==========================================================
# ✅ Current session user
# ==========================================================
@router.get("/me", response_model=UserRead)
def read_me(current_user: User = Depends(get_current_user)):
    """Return current user info (decoded from JWT)."""
    return current_user
