# routes/admin.py: global admin users, stats and bulk seeding
from fastapi import APIRouter, BackgroundTasks, HTTPException, Depends, Query, status
from sqlmodel import Session, select
from sqlalchemy import func
from typing import List, Optional

from core.database import get_session
from core.security import get_current_admin
from models.models import Enterprise, PlanType, Subscription, User, UserRole
from schemas.admin_schema import AdminStats, SeedJobCreate, SeedJobRead, SeedJobStarted
from schemas.user_schema import UserRead, UserRoleUpdate, UserStatusUpdate
from services.seeding_service import SeedingError, get_seed_job, run_seed_job, start_seed_job
from services.subscription_service import ACTIVE_STATUS_VALUES

import logging
logger = logging.getLogger(__name__)

router = APIRouter(tags=["Admin"])


# ----------------------------------------------------------------------
# ✅ Users
# ----------------------------------------------------------------------
@router.get("/users", response_model=List[UserRead])
def list_users(
    role: Optional[UserRole] = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    admin: User = Depends(get_current_admin),
    session: Session = Depends(get_session),
):
    statement = select(User)
    if role is not None:
        statement = statement.where(User.role == role.value)
    return session.exec(statement.order_by(User.id).offset(offset).limit(limit)).all()


def _get_user(session: Session, user_id: int) -> User:
    user = session.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.patch("/users/{user_id}/role", response_model=UserRead)
def update_user_role(
    user_id: int,
    data: UserRoleUpdate,
    admin: User = Depends(get_current_admin),
    session: Session = Depends(get_session),
):
    user = _get_user(session, user_id)
    if user.id == admin.id and data.role != UserRole.ADMIN:
        raise HTTPException(status_code=400, detail="Admins cannot remove their own admin role")

    user.role = data.role.value
    session.add(user)
    session.commit()
    session.refresh(user)
    logger.info(f"🛡️ Admin {admin.id} set role of user {user.id} to {user.role}")
    return user


@router.patch("/users/{user_id}/status", response_model=UserRead)
def update_user_status(
    user_id: int,
    data: UserStatusUpdate,
    admin: User = Depends(get_current_admin),
    session: Session = Depends(get_session),
):
    user = _get_user(session, user_id)
    if user.id == admin.id and not data.is_active:
        raise HTTPException(status_code=400, detail="Admins cannot deactivate themselves")

    user.is_active = data.is_active
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


# ----------------------------------------------------------------------
# ✅ Platform stats
# ----------------------------------------------------------------------
@router.get("/stats", response_model=AdminStats)
def platform_stats(admin: User = Depends(get_current_admin), session: Session = Depends(get_session)):
    by_role = dict(session.exec(select(User.role, func.count(User.id)).group_by(User.role)).all())
    by_plan = dict(
        session.exec(select(User.current_plan_type, func.count(User.id)).group_by(User.current_plan_type)).all()
    )
    enterprises = session.exec(select(func.count(Enterprise.id))).one()
    verified = session.exec(
        select(func.count(Enterprise.id)).where(Enterprise.is_verified == True)  # noqa: E712
    ).one()
    active_subscriptions = session.exec(
        select(func.count(Subscription.id)).where(Subscription.status.in_(ACTIVE_STATUS_VALUES))
    ).one()

    return AdminStats(
        users_by_role={r.value: by_role.get(r.value, 0) for r in UserRole},
        users_by_plan={p.value: by_plan.get(p.value, 0) for p in PlanType},
        enterprises=enterprises,
        verified_enterprises=verified,
        active_subscriptions=active_subscriptions,
    )


# ----------------------------------------------------------------------
# ✅ Bulk enterprise seeding
# ----------------------------------------------------------------------
@router.post("/enterprises/seed", response_model=SeedJobStarted, status_code=status.HTTP_201_CREATED)
def start_seeding(
    data: SeedJobCreate,
    background_tasks: BackgroundTasks,
    admin: User = Depends(get_current_admin),
    session: Session = Depends(get_session),
):
    try:
        job = start_seed_job(session, data.urls, created_by=admin.id)
    except SeedingError as e:
        raise HTTPException(status_code=400, detail=str(e))

    background_tasks.add_task(run_seed_job, job.id)
    return SeedJobStarted(jobId=job.id, message="Seeding started", totalUrls=job.total_urls)


@router.get("/enterprises/seed/{job_id}", response_model=SeedJobRead)
def seeding_status(
    job_id: str,
    admin: User = Depends(get_current_admin),
    session: Session = Depends(get_session),
):
    job = get_seed_job(session, job_id)
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")
    return job
