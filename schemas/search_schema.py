# search_schema.py
from pydantic import BaseModel, Field
from typing import List, Optional

from .enterprise_schema import EnterpriseRead
from .crm_schema import PersonRead, OpportunityRead


class SearchResponse(BaseModel):
    query: str
    enterprises: List[EnterpriseRead] = Field(default_factory=list)
    # Only filled when the caller searched inside one of their workspaces
    workspace_id: Optional[int] = None
    people: List[PersonRead] = Field(default_factory=list)
    opportunities: List[OpportunityRead] = Field(default_factory=list)
