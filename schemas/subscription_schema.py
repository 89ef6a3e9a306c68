# subscription_schema.py
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List, Dict, Any
from datetime import datetime


class PlanRead(BaseModel):
    id: int
    plan_type: str
    name: str
    description: Optional[str] = None
    price_monthly: int
    price_yearly: Optional[int] = None
    features: List[str] = Field(default_factory=list)
    token_quota_limit: int
    display_order: int = 0

    model_config = ConfigDict(from_attributes=True)


class SubscriptionRead(BaseModel):
    id: int
    plan_id: int
    plan_type: Optional[str] = None
    status: str
    stripe_subscription_id: Optional[str] = None
    current_period_start: datetime
    current_period_end: datetime
    cancel_at: Optional[datetime] = None
    canceled_at: Optional[datetime] = None
    is_yearly: bool = False

    model_config = ConfigDict(from_attributes=True)


class SubscriptionUserStatus(BaseModel):
    """Billing view of the current user; the plan gate evaluates this."""
    current_plan_type: str = "free"
    subscription_status: Optional[str] = None
    subscription_current_period_end: Optional[datetime] = None
    token_usage_this_month: int = 0
    token_quota_limit: int = 0
    tokens_remaining: int = 0
    usage_percentage: float = 0.0
    is_active: bool = False


class SubscriptionStatusResponse(BaseModel):
    user: SubscriptionUserStatus
    subscription: Optional[SubscriptionRead] = None


class CancelResponse(BaseModel):
    message: str
    subscription: SubscriptionRead


class UsageCreate(BaseModel):
    operation_type: str = Field(..., min_length=1, max_length=50)
    tokens_used: int = Field(..., gt=0)
    cost: Optional[int] = Field(default=None, ge=0)
    entity_type: Optional[str] = Field(default=None, max_length=50)
    entity_id: Optional[str] = Field(default=None, max_length=100)
    metadata: Optional[Dict[str, Any]] = None


class UsageLogRead(BaseModel):
    id: int
    operation_type: str
    tokens_used: int
    cost: Optional[int] = None
    entity_type: Optional[str] = None
    entity_id: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UsageResponse(BaseModel):
    usage: SubscriptionUserStatus
    logs: List[UsageLogRead] = Field(default_factory=list)
