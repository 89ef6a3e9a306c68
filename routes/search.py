# routes/search.py: one query across the directory and, optionally, a workspace
from fastapi import APIRouter, HTTPException, Depends, Query
from sqlmodel import Session, select
from sqlalchemy import or_
from typing import Optional

from core.database import get_session
from core.enterprise_roles import can_view_enterprise, effective_team_role
from core.security import get_optional_user
from models.models import Enterprise, EnterpriseTeamMember, Opportunity, Person, User
from routes.enterprises import matches_search
from schemas.crm_schema import OpportunityRead, PersonRead
from schemas.enterprise_schema import EnterpriseRead
from schemas.search_schema import SearchResponse

router = APIRouter(tags=["Search"])

RESULT_LIMIT = 20


@router.get("", response_model=SearchResponse)
def search(
    q: str = Query(..., min_length=1, max_length=100),
    enterprise_id: Optional[int] = Query(None),
    current_user: Optional[User] = Depends(get_optional_user),
    session: Session = Depends(get_session),
):
    """
    Directory matches are public. People and opportunities of a workspace are
    only searched when ``enterprise_id`` names one the caller can view; for
    anyone else that id is answered with 404.
    """
    term = q.strip()
    if not term:
        raise HTTPException(status_code=400, detail="Search query must not be blank")

    enterprises = session.exec(
        select(Enterprise)
        .where(matches_search(term))
        .order_by(Enterprise.is_verified.desc(), Enterprise.name)
        .limit(RESULT_LIMIT)
    ).all()
    response = SearchResponse(query=term, enterprises=[EnterpriseRead.model_validate(e) for e in enterprises])
    if enterprise_id is None:
        return response

    membership = None
    if current_user is not None:
        membership = session.exec(
            select(EnterpriseTeamMember).where(
                EnterpriseTeamMember.enterprise_id == enterprise_id,
                EnterpriseTeamMember.user_id == current_user.id,
            )
        ).first()
    if current_user is None or not can_view_enterprise(effective_team_role(current_user, membership)):
        raise HTTPException(status_code=404, detail="Enterprise not found")

    pattern = f"%{term}%"
    response.workspace_id = enterprise_id
    people = session.exec(
        select(Person)
        .where(
            Person.enterprise_id == enterprise_id,
            or_(Person.first_name.ilike(pattern), Person.last_name.ilike(pattern), Person.email.ilike(pattern)),
        )
        .order_by(Person.last_name, Person.first_name)
        .limit(RESULT_LIMIT)
    ).all()
    opportunities = session.exec(
        select(Opportunity)
        .where(
            Opportunity.enterprise_id == enterprise_id,
            or_(Opportunity.title.ilike(pattern), Opportunity.description.ilike(pattern)),
        )
        .order_by(Opportunity.created_at.desc(), Opportunity.id.desc())
        .limit(RESULT_LIMIT)
    ).all()
    response.people = [PersonRead.model_validate(p) for p in people]
    response.opportunities = [OpportunityRead.model_validate(o) for o in opportunities]
    return response
