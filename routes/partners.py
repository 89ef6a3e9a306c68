# routes/partners.py: partner applications (public form, staff review)
from datetime import datetime
from fastapi import APIRouter, HTTPException, Depends, Query, status
from sqlmodel import Session, select
from typing import List, Optional

from core.database import get_session
from core.security import require_min_role, require_roles
from models.models import PartnerApplication, PartnerApplicationStatus, User, UserRole
from schemas.partner_schema import PartnerApplicationCreate, PartnerApplicationRead, PartnerApplicationReview

import logging
logger = logging.getLogger(__name__)

router = APIRouter(tags=["Partners"])


@router.post("/partner-applications", response_model=PartnerApplicationRead, status_code=status.HTTP_201_CREATED)
def submit_application(data: PartnerApplicationCreate, session: Session = Depends(get_session)):
    application = PartnerApplication(**data.model_dump())
    session.add(application)
    session.commit()
    session.refresh(application)
    logger.info(f"🤝 Partner application {application.id} received from {application.organization_name}")
    return application


@router.get("/crm/partner-applications", response_model=List[PartnerApplicationRead])
def list_applications(
    status_filter: Optional[PartnerApplicationStatus] = Query(None, alias="status"),
    current_user: User = Depends(require_min_role(UserRole.CRM_PRO)),
    session: Session = Depends(get_session),
):
    statement = select(PartnerApplication)
    if status_filter is not None:
        statement = statement.where(PartnerApplication.status == status_filter.value)
    return session.exec(statement.order_by(PartnerApplication.created_at.desc(), PartnerApplication.id.desc())).all()


@router.get("/crm/partner-applications/{application_id}", response_model=PartnerApplicationRead)
def get_application(
    application_id: int,
    current_user: User = Depends(require_min_role(UserRole.CRM_PRO)),
    session: Session = Depends(get_session),
):
    application = session.get(PartnerApplication, application_id)
    if not application:
        raise HTTPException(status_code=404, detail="Partner application not found")
    return application


@router.patch("/admin/partner-applications/{application_id}", response_model=PartnerApplicationRead)
def review_application(
    application_id: int,
    data: PartnerApplicationReview,
    current_user: User = Depends(require_roles(UserRole.ADMIN)),
    session: Session = Depends(get_session),
):
    application = session.get(PartnerApplication, application_id)
    if not application:
        raise HTTPException(status_code=404, detail="Partner application not found")

    application.status = data.status.value
    if data.notes is not None:
        application.notes = data.notes
    application.reviewed_by = current_user.id
    application.updated_at = datetime.utcnow()
    session.add(application)
    session.commit()
    session.refresh(application)
    logger.info(f"🤝 Partner application {application_id} marked {application.status} by admin {current_user.id}")
    return application
