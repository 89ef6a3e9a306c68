# routes/crm.py: workspace memberships and enterprise-scoped CRM data
from fastapi import APIRouter, HTTPException, Depends, Query, status
from sqlmodel import Session, select
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from typing import List, Optional

from core.database import get_session
from core.security import EnterpriseAccess, get_current_user, require_enterprise_role
from models.models import (
    EnterpriseTeamMember, MemberStatus, Opportunity, OpportunityStatus, Person,
    Task, TaskStatus, TeamRole, User,
)
from schemas.crm_schema import (
    DashboardRead, OpportunityCreate, OpportunityRead, PersonCreate, PersonRead,
    TaskCreate, TaskRead,
)
from schemas.enterprise_schema import EnterpriseCreate, EnterpriseRead, MembershipRead
from services.workspace_service import create_enterprise_workspace, list_memberships

import logging
logger = logging.getLogger(__name__)

router = APIRouter(tags=["CRM"])

can_view = require_enterprise_role(TeamRole.VIEWER)
can_edit = require_enterprise_role(TeamRole.EDITOR)


def _commit(session: Session, instance, what: str):
    try:
        session.add(instance)
        session.commit()
        session.refresh(instance)
        return instance
    except IntegrityError:
        session.rollback()
        raise HTTPException(status_code=400, detail=f"Could not save {what}: a database constraint was violated.")
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"❌ Database error while saving {what}: {e}")
        raise HTTPException(status_code=500, detail=f"A database error occurred while saving the {what}.")


def _same_enterprise(session: Session, model, object_id: Optional[int], enterprise_id: int, label: str) -> None:
    if object_id is None:
        return
    obj = session.get(model, object_id)
    if not obj or obj.enterprise_id != enterprise_id:
        raise HTTPException(status_code=400, detail=f"{label} does not belong to this enterprise")


# ----------------------------------------------------------------------
# ✅ Memberships of the current user
# ----------------------------------------------------------------------
@router.get("/user/enterprises", response_model=List[MembershipRead])
def my_enterprises(
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    """Active enterprise memberships, oldest first. Empty means activation is needed."""
    return list_memberships(session, current_user)


# ----------------------------------------------------------------------
# ✅ Create an enterprise workspace (creator becomes owner)
# ----------------------------------------------------------------------
@router.post("/enterprises", response_model=EnterpriseRead, status_code=status.HTTP_201_CREATED)
def create_enterprise(
    data: EnterpriseCreate,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    try:
        return create_enterprise_workspace(session, current_user, data)
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"❌ Failed to create enterprise: {e}")
        raise HTTPException(status_code=500, detail="A database error occurred while creating the enterprise.")


# ----------------------------------------------------------------------
# ✅ Dashboard
# ----------------------------------------------------------------------
@router.get("/{enterprise_id}/dashboard", response_model=DashboardRead)
def dashboard(access: EnterpriseAccess = Depends(can_view), session: Session = Depends(get_session)):
    enterprise_id = access.enterprise.id
    people_count = session.exec(
        select(func.count(Person.id)).where(Person.enterprise_id == enterprise_id)
    ).one()
    opportunity_count = session.exec(
        select(func.count(Opportunity.id)).where(Opportunity.enterprise_id == enterprise_id)
    ).one()
    open_task_count = session.exec(
        select(func.count(Task.id)).where(
            Task.enterprise_id == enterprise_id,
            Task.status.in_([TaskStatus.PENDING.value, TaskStatus.IN_PROGRESS.value]),
        )
    ).one()
    pipeline_value = session.exec(
        select(func.coalesce(func.sum(Opportunity.value), 0)).where(
            Opportunity.enterprise_id == enterprise_id,
            Opportunity.status.notin_([OpportunityStatus.CLOSED_WON.value, OpportunityStatus.CLOSED_LOST.value]),
        )
    ).one()

    return DashboardRead(
        enterprise_id=enterprise_id,
        enterprise_name=access.enterprise.name,
        role=access.role.value,
        people_count=people_count,
        opportunity_count=opportunity_count,
        open_task_count=open_task_count,
        pipeline_value=pipeline_value or 0,
    )


# ----------------------------------------------------------------------
# ✅ People
# ----------------------------------------------------------------------
@router.get("/{enterprise_id}/people", response_model=List[PersonRead])
def list_people(
    search: Optional[str] = Query(None, max_length=100),
    access: EnterpriseAccess = Depends(can_view),
    session: Session = Depends(get_session),
):
    statement = select(Person).where(Person.enterprise_id == access.enterprise.id)
    if search:
        pattern = f"%{search.strip()}%"
        statement = statement.where(
            or_(Person.first_name.ilike(pattern), Person.last_name.ilike(pattern), Person.email.ilike(pattern))
        )
    return session.exec(statement.order_by(Person.last_name, Person.first_name)).all()


@router.post("/{enterprise_id}/people", response_model=PersonRead, status_code=status.HTTP_201_CREATED)
def create_person(
    data: PersonCreate,
    access: EnterpriseAccess = Depends(can_edit),
    session: Session = Depends(get_session),
):
    person = Person(enterprise_id=access.enterprise.id, **data.model_dump())
    return _commit(session, person, "contact")


# ----------------------------------------------------------------------
# ✅ Opportunities
# ----------------------------------------------------------------------
@router.get("/{enterprise_id}/opportunities", response_model=List[OpportunityRead])
def list_opportunities(
    status_filter: Optional[OpportunityStatus] = Query(None, alias="status"),
    access: EnterpriseAccess = Depends(can_view),
    session: Session = Depends(get_session),
):
    statement = select(Opportunity).where(Opportunity.enterprise_id == access.enterprise.id)
    if status_filter is not None:
        statement = statement.where(Opportunity.status == status_filter.value)
    return session.exec(statement.order_by(Opportunity.created_at.desc(), Opportunity.id.desc())).all()


@router.post("/{enterprise_id}/opportunities", response_model=OpportunityRead, status_code=status.HTTP_201_CREATED)
def create_opportunity(
    data: OpportunityCreate,
    access: EnterpriseAccess = Depends(can_edit),
    session: Session = Depends(get_session),
):
    _same_enterprise(session, Person, data.primary_contact_id, access.enterprise.id, "Primary contact")
    opportunity = Opportunity(enterprise_id=access.enterprise.id, **data.model_dump(mode="python"))
    opportunity.status = data.status.value
    return _commit(session, opportunity, "opportunity")


# ----------------------------------------------------------------------
# ✅ Tasks
# ----------------------------------------------------------------------
@router.get("/{enterprise_id}/tasks", response_model=List[TaskRead])
def list_tasks(
    status_filter: Optional[TaskStatus] = Query(None, alias="status"),
    assigned_to_me: bool = Query(False),
    access: EnterpriseAccess = Depends(can_view),
    session: Session = Depends(get_session),
):
    statement = select(Task).where(Task.enterprise_id == access.enterprise.id)
    if status_filter is not None:
        statement = statement.where(Task.status == status_filter.value)
    if assigned_to_me:
        statement = statement.where(Task.assigned_to_id == access.user.id)
    return session.exec(statement.order_by(Task.due_date, Task.id)).all()


@router.post("/{enterprise_id}/tasks", response_model=TaskRead, status_code=status.HTTP_201_CREATED)
def create_task(
    data: TaskCreate,
    access: EnterpriseAccess = Depends(can_edit),
    session: Session = Depends(get_session),
):
    enterprise_id = access.enterprise.id
    _same_enterprise(session, Person, data.related_person_id, enterprise_id, "Related person")
    _same_enterprise(session, Opportunity, data.related_opportunity_id, enterprise_id, "Related opportunity")

    if data.assigned_to_id is not None:
        assignee = session.exec(
            select(EnterpriseTeamMember).where(
                EnterpriseTeamMember.enterprise_id == enterprise_id,
                EnterpriseTeamMember.user_id == data.assigned_to_id,
                EnterpriseTeamMember.status == MemberStatus.ACTIVE.value,
            )
        ).first()
        if not assignee:
            raise HTTPException(status_code=400, detail="Assignee is not a member of this enterprise")

    task = Task(enterprise_id=enterprise_id, **data.model_dump(mode="python"))
    task.priority = data.priority.value
    task.status = data.status.value
    return _commit(session, task, "task")
