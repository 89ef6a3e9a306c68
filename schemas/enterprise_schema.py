# enterprise_schema.py
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List
from datetime import datetime

from models.models import EnterpriseCategory, TeamRole


class EnterpriseCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    category: EnterpriseCategory
    description: Optional[str] = None
    location: Optional[str] = Field(default=None, max_length=200)
    website: Optional[str] = Field(default=None, max_length=500)
    contact_email: Optional[str] = Field(default=None, max_length=255)
    tags: List[str] = Field(default_factory=list)


class EnterpriseRead(BaseModel):
    id: int
    name: str
    category: str
    description: Optional[str] = None
    location: Optional[str] = None
    website: Optional[str] = None
    image_url: Optional[str] = None
    contact_email: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    is_verified: bool = False
    follower_count: int = 0
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class EnterpriseListResponse(BaseModel):
    items: List[EnterpriseRead]
    total: int
    limit: int
    offset: int


class CategoryCount(BaseModel):
    category: str
    count: int


# ---------------------------
# Workspace memberships
# ---------------------------
class MembershipRead(BaseModel):
    enterprise_id: int
    enterprise_name: str
    category: str
    role: str
    status: str
    joined_at: datetime


class TeamMemberCreate(BaseModel):
    email: str
    role: TeamRole = TeamRole.VIEWER


class TeamMemberUpdate(BaseModel):
    role: TeamRole


class TeamMemberRead(BaseModel):
    id: int
    enterprise_id: int
    user_id: int
    email: Optional[str] = None
    full_name: Optional[str] = None
    role: str
    status: str
    invited_by: Optional[int] = None
    joined_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ---------------------------
# Claiming
# ---------------------------
class ClaimStatus(BaseModel):
    enterprise_id: int
    isClaimed: bool
    canClaim: bool
    isMember: bool = False


class ClaimResult(BaseModel):
    success: bool = True
    enterprise_id: int
    role: str
    message: str
