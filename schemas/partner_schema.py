# partner_schema.py
from pydantic import BaseModel, EmailStr, Field, ConfigDict
from typing import Optional, List
from datetime import datetime

from models.models import PartnerApplicationStatus


class PartnerApplicationCreate(BaseModel):
    organization_name: str = Field(..., min_length=1, max_length=200)
    contact_person: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    phone: Optional[str] = Field(default=None, max_length=50)
    website: Optional[str] = Field(default=None, max_length=500)
    description: Optional[str] = None
    areas_of_focus: List[str] = Field(default_factory=list)
    contribution: Optional[str] = None


class PartnerApplicationRead(BaseModel):
    id: int
    organization_name: str
    contact_person: str
    email: str
    phone: Optional[str] = None
    website: Optional[str] = None
    description: Optional[str] = None
    areas_of_focus: List[str] = Field(default_factory=list)
    contribution: Optional[str] = None
    status: str
    notes: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PartnerApplicationReview(BaseModel):
    status: PartnerApplicationStatus
    notes: Optional[str] = None
