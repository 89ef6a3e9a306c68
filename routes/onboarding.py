# routes/onboarding.py
from fastapi import APIRouter, HTTPException, Depends
from sqlmodel import Session
from typing import List

from core.database import get_session
from core.security import get_current_user
from models.models import User
from schemas.onboarding_schema import (
    OnboardingFlowRead, OnboardingStepRead, ProgressData, ProgressResponse,
)
from services import onboarding_service
from services.onboarding_service import OnboardingError

router = APIRouter(tags=["Onboarding"])


def _bad_request(e: OnboardingError) -> HTTPException:
    return HTTPException(status_code=400, detail=str(e))


# ----------------------------------------------------------------------
# ✅ Flow definitions (public)
# ----------------------------------------------------------------------
@router.get("/flows", response_model=List[OnboardingFlowRead])
def list_flows():
    return [
        OnboardingFlowRead(
            id=flow.id,
            title=flow.title,
            description=flow.description,
            server_synced=flow.id in onboarding_service.SERVER_FLOW_KEYS,
            steps=[OnboardingStepRead(**vars(step)) for step in flow.steps],
        )
        for flow in onboarding_service.FLOWS.values()
    ]


# ----------------------------------------------------------------------
# ✅ Progress
# ----------------------------------------------------------------------
@router.get("/progress/{flow_key}", response_model=ProgressResponse)
def get_progress(
    flow_key: str,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    try:
        progress = onboarding_service.get_progress(session, current_user, flow_key)
    except OnboardingError as e:
        raise _bad_request(e)
    return ProgressResponse(flowKey=flow_key, progress=progress)


@router.put("/progress/{flow_key}", response_model=ProgressResponse)
def update_progress(
    flow_key: str,
    data: ProgressData,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    """Replace the stored progress; a write older than the stored one is ignored."""
    try:
        progress = onboarding_service.replace_progress(session, current_user, flow_key, data)
    except OnboardingError as e:
        raise _bad_request(e)
    return ProgressResponse(
        flowKey=flow_key,
        progress=progress,
        message="Onboarding progress updated successfully",
    )


@router.post("/progress/{flow_key}/step/{step_id}", response_model=ProgressResponse)
def mark_step_complete(
    flow_key: str,
    step_id: str,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    try:
        progress = onboarding_service.complete_step(session, current_user, flow_key, step_id)
    except OnboardingError as e:
        raise _bad_request(e)
    return ProgressResponse(
        flowKey=flow_key,
        stepId=step_id,
        progress=progress,
        message="Step marked as complete",
    )


@router.post("/progress/{flow_key}/complete", response_model=ProgressResponse)
def mark_flow_complete(
    flow_key: str,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    try:
        progress = onboarding_service.complete_flow(session, current_user, flow_key)
    except OnboardingError as e:
        raise _bad_request(e)
    return ProgressResponse(flowKey=flow_key, progress=progress, message="Onboarding flow marked as complete")


@router.delete("/progress/{flow_key}", response_model=ProgressResponse)
def reset_progress(
    flow_key: str,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    try:
        progress = onboarding_service.reset_progress(session, current_user, flow_key)
    except OnboardingError as e:
        raise _bad_request(e)
    return ProgressResponse(flowKey=flow_key, progress=progress, message="Onboarding progress reset")
