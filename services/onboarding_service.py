# services/onboarding_service.py
"""
Onboarding flows and per-user progress.

Progress of a flow is ``{completed, steps: {stepId: bool}, completedAt,
updatedAt}``. The ``visitor`` flow only ever lives in client storage.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional

from sqlmodel import Session, select

from models.models import OnboardingProgress, User
from schemas.onboarding_schema import ProgressData

logger = logging.getLogger(__name__)


class OnboardingError(ValueError):
    """Unknown flow or step."""


@dataclass(frozen=True)
class OnboardingStep:
    id: str
    title: str
    description: str
    action: Optional[str] = None


@dataclass(frozen=True)
class OnboardingFlow:
    id: str
    title: str
    description: str
    steps: List[OnboardingStep] = field(default_factory=list)

    @property
    def step_ids(self) -> List[str]:
        return [step.id for step in self.steps]


# ============================================================
# FLOW REGISTRY
# ============================================================
FLOWS: Dict[str, OnboardingFlow] = {
    "visitor": OnboardingFlow(
        id="visitor",
        title="Welcome to the Platform",
        description="Get started with exploring businesses and opportunities",
        steps=[
            OnboardingStep("welcome", "Welcome!", "Discover businesses committed to sustainability and social impact"),
            OnboardingStep("platform_tour", "Platform Tour", "Learn about our directory, opportunities, and community features"),
            OnboardingStep("explore_directory", "Explore the Directory", "Browse our curated list of sustainable businesses", "View Directory"),
        ],
    ),
    "free_member": OnboardingFlow(
        id="free_member",
        title="Complete Your Profile",
        description="Set up your account and start claiming businesses",
        steps=[
            OnboardingStep("profile_setup", "Set Up Your Profile", "Add your information to personalize your experience", "Edit Profile"),
            OnboardingStep("first_claim", "Claim Your First Business", "Take ownership of your business listing to manage it directly", "Claim Business"),
            OnboardingStep("favorites_intro", "Save Your Favorites", "Keep track of businesses and opportunities you care about", "Browse Directory"),
        ],
    ),
    "crm_pro": OnboardingFlow(
        id="crm_pro",
        title="CRM Pro Setup",
        description="Configure your CRM tools and start managing relationships",
        steps=[
            OnboardingStep("crm_setup", "Set Up Your CRM", "Configure your workspace and customize your dashboard", "Go to CRM"),
            OnboardingStep("ai_copilot_config", "Configure AI Copilot", "Set up your AI assistant to help with relationship management", "Configure Copilot"),
            OnboardingStep("first_opportunity", "Create Your First Opportunity", "Track partnerships, deals, and collaborations", "Add Opportunity"),
        ],
    ),
    "build_pro": OnboardingFlow(
        id="build_pro",
        title="Build Pro Setup",
        description="Unlock advanced features and team collaboration",
        steps=[
            OnboardingStep("advanced_tour", "Advanced Features Tour", "Discover powerful tools for team collaboration and automation"),
            OnboardingStep("team_setup", "Invite Your Team", "Collaborate with team members and manage permissions", "Manage Team"),
            OnboardingStep("integrations", "Set Up Integrations", "Connect your favorite tools and streamline your workflow", "View Integrations"),
        ],
    ),
    "admin": OnboardingFlow(
        id="admin",
        title="Admin Dashboard",
        description="Master platform administration and moderation tools",
        steps=[
            OnboardingStep("platform_overview", "Platform Overview", "Understand key metrics and administrative capabilities", "View Dashboard"),
            OnboardingStep("moderation", "Moderation Tools", "Learn how to review and approve business claims and applications", "Review Claims"),
            OnboardingStep("pledge_tracking", "Pledge Tracking", "Monitor and manage business sustainability pledges", "View Pledges"),
            OnboardingStep("user_management", "User Management", "Manage user roles, permissions, and memberships", "Manage Users"),
        ],
    ),
}

LOCAL_ONLY_FLOWS = frozenset({"visitor"})
SERVER_FLOW_KEYS = ("free_member", "crm_pro", "build_pro", "admin")


def get_flow(flow_key: str) -> OnboardingFlow:
    try:
        return FLOWS[flow_key]
    except KeyError:
        raise OnboardingError(f"Unknown onboarding flow: {flow_key}")


def validate_server_flow(flow_key: str) -> OnboardingFlow:
    if flow_key not in SERVER_FLOW_KEYS:
        raise OnboardingError("Invalid flow key")
    return FLOWS[flow_key]


def empty_progress() -> ProgressData:
    return ProgressData(completed=False, steps={}, completedAt=None, updatedAt=None)


def apply_step(progress: ProgressData, flow: OnboardingFlow, step_id: str, now: datetime) -> ProgressData:
    """
    Return progress with ``step_id`` done. An already-completed step returns
    the input unchanged (same object, same ``updatedAt``).
    """
    if step_id not in flow.step_ids:
        raise OnboardingError("Invalid step ID")
    if progress.steps.get(step_id):
        return progress

    steps = dict(progress.steps)
    steps[step_id] = True
    completed = progress.completed or all(steps.get(s) for s in flow.step_ids)
    return ProgressData(
        completed=completed,
        steps=steps,
        completedAt=progress.completedAt or (now if completed else None),
        updatedAt=now,
    )


def apply_complete(progress: ProgressData, flow: OnboardingFlow, now: datetime) -> ProgressData:
    if progress.completed and all(progress.steps.get(s) for s in flow.step_ids):
        return progress
    steps = dict(progress.steps)
    for step_id in flow.step_ids:
        steps[step_id] = True
    return ProgressData(completed=True, steps=steps, completedAt=progress.completedAt or now, updatedAt=now)


def normalize_progress(progress: ProgressData, flow: OnboardingFlow, now: datetime) -> ProgressData:
    """
    Check a whole-record write against ``flow`` and derive the completion
    fields the way ``apply_step`` and ``apply_complete`` do. An untimestamped
    write is stamped ``now``.
    """
    unknown = sorted(s for s in progress.steps if s not in flow.step_ids)
    if unknown:
        raise OnboardingError(f"Invalid step ID: {unknown[0]}")

    updated_at = progress.updatedAt or now
    steps = {s: bool(done) for s, done in progress.steps.items()}
    completed = progress.completed or all(steps.get(s) for s in flow.step_ids)
    if not completed:
        return ProgressData(completed=False, steps=steps, completedAt=None, updatedAt=updated_at)
    for step_id in flow.step_ids:
        steps[step_id] = True
    return ProgressData(
        completed=True,
        steps=steps,
        completedAt=progress.completedAt or updated_at,
        updatedAt=updated_at,
    )


def _naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def is_newer(candidate: ProgressData, current: ProgressData) -> bool:
    """Last-write-wins ordering on ``updatedAt``; a missing timestamp is oldest."""
    if candidate.updatedAt is None:
        return current.updatedAt is None
    if current.updatedAt is None:
        return True
    return _naive_utc(candidate.updatedAt) >= _naive_utc(current.updatedAt)


# ============================================================
# SERVER STORE
# ============================================================
def _row(session: Session, user: User, flow_key: str) -> Optional[OnboardingProgress]:
    return session.exec(
        select(OnboardingProgress).where(
            OnboardingProgress.user_id == user.id,
            OnboardingProgress.flow_key == flow_key,
        )
    ).first()


def _to_data(row: Optional[OnboardingProgress]) -> ProgressData:
    if row is None:
        return empty_progress()
    return ProgressData(
        completed=row.completed,
        steps=dict(row.steps or {}),
        completedAt=row.completed_at,
        updatedAt=row.updated_at,
    )


def _save(session: Session, user: User, flow_key: str, row: Optional[OnboardingProgress], data: ProgressData) -> ProgressData:
    if row is None:
        row = OnboardingProgress(user_id=user.id, flow_key=flow_key)
    row.steps = dict(data.steps)
    row.completed = data.completed
    row.completed_at = _naive_utc(data.completedAt) if data.completedAt else None
    row.updated_at = _naive_utc(data.updatedAt or datetime.utcnow())
    session.add(row)
    session.commit()
    session.refresh(row)
    return _to_data(row)


def get_progress(session: Session, user: User, flow_key: str) -> ProgressData:
    validate_server_flow(flow_key)
    return _to_data(_row(session, user, flow_key))


def replace_progress(session: Session, user: User, flow_key: str, incoming: ProgressData) -> ProgressData:
    """Store ``incoming`` unless the stored copy was written later."""
    flow = validate_server_flow(flow_key)
    data = normalize_progress(incoming, flow, datetime.utcnow())

    row = _row(session, user, flow_key)
    current = _to_data(row)
    if row is not None and not is_newer(data, current):
        logger.info(f"ℹ️ Ignoring stale onboarding write for user {user.id}, flow {flow_key}")
        return current
    return _save(session, user, flow_key, row, data)


def complete_step(session: Session, user: User, flow_key: str, step_id: str) -> ProgressData:
    flow = validate_server_flow(flow_key)
    if not step_id or not step_id.strip():
        raise OnboardingError("Invalid step ID")
    row = _row(session, user, flow_key)
    current = _to_data(row)
    updated = apply_step(current, flow, step_id, datetime.utcnow())
    if updated is current:
        return current
    return _save(session, user, flow_key, row, updated)


def complete_flow(session: Session, user: User, flow_key: str) -> ProgressData:
    flow = validate_server_flow(flow_key)
    row = _row(session, user, flow_key)
    current = _to_data(row)
    updated = apply_complete(current, flow, datetime.utcnow())
    if updated is current:
        return current
    return _save(session, user, flow_key, row, updated)


def reset_progress(session: Session, user: User, flow_key: str) -> ProgressData:
    """
    Clear a flow by writing an empty record stamped now, so a pending write
    from another device that predates the reset stays ignored.
    """
    validate_server_flow(flow_key)
    row = _row(session, user, flow_key)
    return _save(session, user, flow_key, row, ProgressData(updatedAt=datetime.utcnow()))
