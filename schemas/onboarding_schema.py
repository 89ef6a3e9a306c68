# onboarding_schema.py
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List, Dict
from datetime import datetime


class OnboardingStepRead(BaseModel):
    id: str
    title: str
    description: str
    action: Optional[str] = None


class OnboardingFlowRead(BaseModel):
    id: str
    title: str
    description: str
    server_synced: bool
    steps: List[OnboardingStepRead]


class ProgressData(BaseModel):
    """Wire shape of one flow's progress (camelCase keys, as stored client-side)."""
    completed: bool = False
    steps: Dict[str, bool] = Field(default_factory=dict)
    completedAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

    model_config = ConfigDict(extra="ignore")


class ProgressResponse(BaseModel):
    flowKey: str
    progress: ProgressData
    message: Optional[str] = None
    stepId: Optional[str] = None
