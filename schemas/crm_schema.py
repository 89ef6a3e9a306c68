# crm_schema.py
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from datetime import datetime

from models.models import OpportunityStatus, TaskPriority, TaskStatus


# People
class PersonCreate(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: Optional[str] = Field(default=None, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=50)
    title: Optional[str] = Field(default=None, max_length=200)
    notes: Optional[str] = None


class PersonRead(BaseModel):
    id: int
    enterprise_id: int
    first_name: str
    last_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    title: Optional[str] = None
    notes: Optional[str] = None
    last_contacted_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# Opportunities
class OpportunityCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    value: Optional[int] = Field(default=None, ge=0)
    status: OpportunityStatus = OpportunityStatus.LEAD
    probability: int = Field(default=0, ge=0, le=100)
    primary_contact_id: Optional[int] = None
    expected_close_date: Optional[datetime] = None
    notes: Optional[str] = None


class OpportunityRead(BaseModel):
    id: int
    enterprise_id: int
    title: str
    description: Optional[str] = None
    value: Optional[int] = None
    status: str
    probability: int
    primary_contact_id: Optional[int] = None
    expected_close_date: Optional[datetime] = None
    notes: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# Tasks
class TaskCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    priority: TaskPriority = TaskPriority.MEDIUM
    status: TaskStatus = TaskStatus.PENDING
    due_date: Optional[datetime] = None
    assigned_to_id: Optional[int] = None
    related_person_id: Optional[int] = None
    related_opportunity_id: Optional[int] = None


class TaskRead(BaseModel):
    id: int
    enterprise_id: int
    title: str
    description: Optional[str] = None
    priority: str
    status: str
    due_date: Optional[datetime] = None
    assigned_to_id: Optional[int] = None
    related_person_id: Optional[int] = None
    related_opportunity_id: Optional[int] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DashboardRead(BaseModel):
    enterprise_id: int
    enterprise_name: str
    role: str
    people_count: int
    opportunity_count: int
    open_task_count: int
    pipeline_value: int
