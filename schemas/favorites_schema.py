# favorites_schema.py
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, Dict
from datetime import datetime

from .enterprise_schema import EnterpriseRead


class FavoriteCreate(BaseModel):
    enterpriseId: int
    notes: Optional[str] = Field(default=None, max_length=1000)


class FavoriteRead(BaseModel):
    id: int
    enterprise_id: int
    notes: Optional[str] = None
    created_at: datetime
    enterprise: EnterpriseRead

    model_config = ConfigDict(from_attributes=True)


class FavoriteStatus(BaseModel):
    isFavorited: bool


class FavoriteStats(BaseModel):
    total: int
    byCategory: Dict[str, int]
