# models/models.py
from typing import Optional, List, Dict, Any
from datetime import datetime
from enum import Enum
import uuid

from sqlmodel import SQLModel, Field, Relationship
from sqlalchemy import UniqueConstraint, Column, JSON


# ============================================================
# ENUMS
# ============================================================
class UserRole(str, Enum):
    FREE = "free"
    CRM_PRO = "crm_pro"
    ADMIN = "admin"


class PlanType(str, Enum):
    FREE = "free"
    CRM_BASIC = "crm_basic"
    CRM_PRO = "crm_pro"
    BUILD_PRO_BUNDLE = "build_pro_bundle"


class SubscriptionStatus(str, Enum):
    TRIAL = "trial"
    ACTIVE = "active"
    PAST_DUE = "past_due"
    CANCELED = "canceled"
    UNPAID = "unpaid"
    INCOMPLETE = "incomplete"
    INCOMPLETE_EXPIRED = "incomplete_expired"


class EnterpriseCategory(str, Enum):
    LAND_PROJECTS = "land_projects"
    CAPITAL_SOURCES = "capital_sources"
    OPEN_SOURCE_TOOLS = "open_source_tools"
    NETWORK_ORGANIZERS = "network_organizers"


class TeamRole(str, Enum):
    VIEWER = "viewer"
    EDITOR = "editor"
    ADMIN = "admin"
    OWNER = "owner"


class MemberStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    PENDING = "pending"


class OpportunityStatus(str, Enum):
    LEAD = "lead"
    QUALIFIED = "qualified"
    PROPOSAL = "proposal"
    NEGOTIATION = "negotiation"
    CLOSED_WON = "closed_won"
    CLOSED_LOST = "closed_lost"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class TaskStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class SeedJobStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class PartnerApplicationStatus(str, Enum):
    PENDING = "pending"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    REJECTED = "rejected"


class ChatRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


# ============================================================
# USER
# ============================================================
class User(SQLModel, table=True):
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(index=True, unique=True, max_length=255, nullable=False)
    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    password_hash: str = Field(nullable=False)

    role: str = Field(default=UserRole.FREE.value, max_length=20, index=True)
    is_active: bool = Field(default=True)

    # Billing mirror (kept in sync by the subscription service)
    stripe_customer_id: Optional[str] = Field(default=None, max_length=255, index=True)
    stripe_subscription_id: Optional[str] = Field(default=None, max_length=255)
    subscription_status: Optional[str] = Field(default=None, max_length=30)
    current_plan_type: str = Field(default=PlanType.FREE.value, max_length=30)
    subscription_current_period_end: Optional[datetime] = None

    # AI usage
    token_usage_this_month: int = Field(default=0)
    token_quota_limit: int = Field(default=10000)
    last_token_usage_reset: datetime = Field(default_factory=datetime.utcnow)

    # Directory claims (free plan is limited)
    claimed_profiles_count: int = Field(default=0)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    memberships: List["EnterpriseTeamMember"] = Relationship(
        back_populates="user",
        sa_relationship_kwargs={"foreign_keys": "[EnterpriseTeamMember.user_id]"},
    )
    subscriptions: List["Subscription"] = Relationship(back_populates="user")

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)


# ============================================================
# ENTERPRISE (directory listing + CRM tenant)
# ============================================================
class Enterprise(SQLModel, table=True):
    __tablename__ = "enterprises"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=200, index=True)
    description: Optional[str] = None
    category: str = Field(max_length=40, index=True)
    location: Optional[str] = Field(default=None, max_length=200)
    website: Optional[str] = Field(default=None, max_length=500)
    image_url: Optional[str] = Field(default=None, max_length=500)
    contact_email: Optional[str] = Field(default=None, max_length=255)
    tags: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    is_verified: bool = Field(default=False, index=True)
    follower_count: int = Field(default=0)
    source_url: Optional[str] = Field(default=None, max_length=500, index=True)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    team_members: List["EnterpriseTeamMember"] = Relationship(back_populates="enterprise")
    people: List["Person"] = Relationship(back_populates="enterprise")
    opportunities: List["Opportunity"] = Relationship(back_populates="enterprise")


# ============================================================
# ENTERPRISE TEAM MEMBER (enterprise-scoped role)
# ============================================================
class EnterpriseTeamMember(SQLModel, table=True):
    __tablename__ = "enterprise_team_members"
    __table_args__ = (UniqueConstraint("enterprise_id", "user_id", name="uq_enterprise_member"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    enterprise_id: int = Field(foreign_key="enterprises.id", index=True, nullable=False)
    user_id: int = Field(foreign_key="users.id", index=True, nullable=False)
    role: str = Field(default=TeamRole.VIEWER.value, max_length=20)
    status: str = Field(default=MemberStatus.ACTIVE.value, max_length=20)
    invited_by: Optional[int] = Field(default=None, foreign_key="users.id")
    joined_at: datetime = Field(default_factory=datetime.utcnow)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    enterprise: Optional["Enterprise"] = Relationship(back_populates="team_members")
    user: Optional["User"] = Relationship(
        back_populates="memberships",
        sa_relationship_kwargs={"foreign_keys": "[EnterpriseTeamMember.user_id]"},
    )


# ============================================================
# CRM: PEOPLE / OPPORTUNITIES / TASKS
# ============================================================
class Person(SQLModel, table=True):
    __tablename__ = "people"

    id: Optional[int] = Field(default=None, primary_key=True)
    enterprise_id: int = Field(foreign_key="enterprises.id", index=True, nullable=False)
    first_name: str = Field(max_length=100)
    last_name: str = Field(max_length=100)
    email: Optional[str] = Field(default=None, max_length=255, index=True)
    phone: Optional[str] = Field(default=None, max_length=50)
    title: Optional[str] = Field(default=None, max_length=200)
    notes: Optional[str] = None
    last_contacted_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    enterprise: Optional["Enterprise"] = Relationship(back_populates="people")


class Opportunity(SQLModel, table=True):
    __tablename__ = "opportunities"

    id: Optional[int] = Field(default=None, primary_key=True)
    enterprise_id: int = Field(foreign_key="enterprises.id", index=True, nullable=False)
    primary_contact_id: Optional[int] = Field(default=None, foreign_key="people.id")
    title: str = Field(max_length=200)
    description: Optional[str] = None
    value: Optional[int] = None  # cents
    status: str = Field(default=OpportunityStatus.LEAD.value, max_length=20)
    probability: int = Field(default=0, ge=0, le=100)
    expected_close_date: Optional[datetime] = None
    notes: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    enterprise: Optional["Enterprise"] = Relationship(back_populates="opportunities")


class Task(SQLModel, table=True):
    __tablename__ = "tasks"

    id: Optional[int] = Field(default=None, primary_key=True)
    enterprise_id: int = Field(foreign_key="enterprises.id", index=True, nullable=False)
    title: str = Field(max_length=200)
    description: Optional[str] = None
    priority: str = Field(default=TaskPriority.MEDIUM.value, max_length=20)
    status: str = Field(default=TaskStatus.PENDING.value, max_length=20)
    due_date: Optional[datetime] = None
    assigned_to_id: Optional[int] = Field(default=None, foreign_key="users.id")
    related_person_id: Optional[int] = Field(default=None, foreign_key="people.id")
    related_opportunity_id: Optional[int] = Field(default=None, foreign_key="opportunities.id")
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


# ============================================================
# SUBSCRIPTION PLANS / SUBSCRIPTIONS
# ============================================================
class SubscriptionPlan(SQLModel, table=True):
    __tablename__ = "subscription_plans"

    id: Optional[int] = Field(default=None, primary_key=True)
    plan_type: str = Field(max_length=30, unique=True, index=True)
    name: str = Field(max_length=100)
    description: Optional[str] = None
    price_monthly: int = Field(default=0)  # cents
    price_yearly: Optional[int] = None  # cents
    stripe_price_id_monthly: Optional[str] = Field(default=None, max_length=255)
    stripe_price_id_yearly: Optional[str] = Field(default=None, max_length=255)
    features: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    token_quota_limit: int = Field(default=10000)
    is_active: bool = Field(default=True)
    display_order: int = Field(default=0)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    subscriptions: List["Subscription"] = Relationship(back_populates="plan")


class Subscription(SQLModel, table=True):
    __tablename__ = "subscriptions"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True, nullable=False)
    plan_id: int = Field(foreign_key="subscription_plans.id", index=True, nullable=False)

    stripe_subscription_id: Optional[str] = Field(default=None, max_length=255, unique=True, index=True)
    stripe_customer_id: Optional[str] = Field(default=None, max_length=255)
    stripe_price_id: Optional[str] = Field(default=None, max_length=255)

    status: str = Field(default=SubscriptionStatus.ACTIVE.value, max_length=30, index=True)
    current_period_start: datetime = Field(default_factory=datetime.utcnow)
    current_period_end: datetime = Field(default_factory=datetime.utcnow)
    trial_start: Optional[datetime] = None
    trial_end: Optional[datetime] = None
    cancel_at: Optional[datetime] = None
    canceled_at: Optional[datetime] = None

    is_yearly: bool = Field(default=False)
    last_payment_amount: Optional[int] = None  # cents
    last_payment_at: Optional[datetime] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    user: Optional["User"] = Relationship(back_populates="subscriptions")
    plan: Optional["SubscriptionPlan"] = Relationship(back_populates="subscriptions")


# ============================================================
# AI USAGE LOG
# ============================================================
class AiUsageLog(SQLModel, table=True):
    __tablename__ = "ai_usage_logs"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True, nullable=False)
    subscription_id: Optional[int] = Field(default=None, foreign_key="subscriptions.id")
    operation_type: str = Field(max_length=50)
    tokens_used: int
    cost: Optional[int] = None  # cents
    entity_type: Optional[str] = Field(default=None, max_length=50)
    entity_id: Optional[str] = Field(default=None, max_length=100)
    usage_metadata: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column("metadata", JSON))
    created_at: datetime = Field(default_factory=datetime.utcnow)


# ============================================================
# ONBOARDING PROGRESS (per user + flow)
# ============================================================
class OnboardingProgress(SQLModel, table=True):
    __tablename__ = "onboarding_progress"
    __table_args__ = (UniqueConstraint("user_id", "flow_key", name="uq_user_flow"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True, nullable=False)
    flow_key: str = Field(max_length=30)
    steps: Dict[str, bool] = Field(default_factory=dict, sa_column=Column(JSON))
    completed: bool = Field(default=False)
    completed_at: Optional[datetime] = None
    updated_at: datetime = Field(default_factory=datetime.utcnow)


# ============================================================
# BULK SEEDING JOB
# ============================================================
class SeedJob(SQLModel, table=True):
    __tablename__ = "seed_jobs"

    id: str = Field(default_factory=lambda: uuid.uuid4().hex, primary_key=True, max_length=32)
    status: str = Field(default=SeedJobStatus.PENDING.value, max_length=20)
    urls: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    total_urls: int = Field(default=0)
    processed_urls: int = Field(default=0)
    success_count: int = Field(default=0)
    failure_count: int = Field(default=0)
    errors: List[Dict[str, str]] = Field(default_factory=list, sa_column=Column(JSON))
    created_by: Optional[int] = Field(default=None, foreign_key="users.id")
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)


# ============================================================
# WEBHOOK EVENT LOG
# ============================================================
class WebhookEvent(SQLModel, table=True):
    __tablename__ = "webhook_events"

    id: Optional[int] = Field(default=None, primary_key=True)
    stripe_event_id: str = Field(unique=True, index=True, max_length=255)
    event_type: str = Field(max_length=100, index=True)
    payload: str = Field()
    processed: bool = Field(default=False)
    processing_error: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)


# ============================================================
# FAVORITES (member bookmarks of directory enterprises)
# ============================================================
class UserFavorite(SQLModel, table=True):
    __tablename__ = "user_favorites"
    __table_args__ = (UniqueConstraint("user_id", "enterprise_id", name="uq_user_favorite"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True, nullable=False)
    enterprise_id: int = Field(foreign_key="enterprises.id", index=True, nullable=False)
    notes: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)

    enterprise: Optional["Enterprise"] = Relationship()


# ============================================================
# AI COPILOT CONVERSATIONS
# ============================================================
class Conversation(SQLModel, table=True):
    __tablename__ = "conversations"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True, nullable=False)
    enterprise_id: int = Field(foreign_key="enterprises.id", index=True, nullable=False)
    title: Optional[str] = Field(default=None, max_length=200)
    last_message_at: datetime = Field(default_factory=datetime.utcnow)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    messages: List["ChatMessage"] = Relationship(back_populates="conversation")


class ChatMessage(SQLModel, table=True):
    __tablename__ = "chat_messages"

    id: Optional[int] = Field(default=None, primary_key=True)
    conversation_id: int = Field(foreign_key="conversations.id", index=True, nullable=False)
    role: str = Field(default=ChatRole.USER.value, max_length=20)
    content: str
    message_metadata: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column("metadata", JSON))
    created_at: datetime = Field(default_factory=datetime.utcnow)

    conversation: Optional["Conversation"] = Relationship(back_populates="messages")


# ============================================================
# PARTNER APPLICATIONS (public form, reviewed by admins)
# ============================================================
class PartnerApplication(SQLModel, table=True):
    __tablename__ = "partner_applications"

    id: Optional[int] = Field(default=None, primary_key=True)
    organization_name: str = Field(max_length=200)
    contact_person: str = Field(max_length=200)
    email: str = Field(max_length=255, index=True)
    phone: Optional[str] = Field(default=None, max_length=50)
    website: Optional[str] = Field(default=None, max_length=500)
    description: Optional[str] = None
    areas_of_focus: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    contribution: Optional[str] = None
    status: str = Field(default=PartnerApplicationStatus.PENDING.value, max_length=20, index=True)
    notes: Optional[str] = None
    reviewed_by: Optional[int] = Field(default=None, foreign_key="users.id")
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
