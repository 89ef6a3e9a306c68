# admin_schema.py
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List, Dict
from datetime import datetime


class SeedJobCreate(BaseModel):
    urls: List[str] = Field(default_factory=list)


class SeedJobStarted(BaseModel):
    jobId: str
    message: str
    totalUrls: int


class SeedJobRead(BaseModel):
    id: str
    status: str
    total_urls: int
    processed_urls: int
    success_count: int
    failure_count: int
    errors: List[Dict[str, str]] = Field(default_factory=list)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AdminStats(BaseModel):
    users_by_role: Dict[str, int]
    users_by_plan: Dict[str, int]
    enterprises: int
    verified_enterprises: int
    active_subscriptions: int
