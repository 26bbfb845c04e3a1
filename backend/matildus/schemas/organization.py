from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class OrgSummary(BaseModel):
    id: int
    name: str
    role: str
    location: Optional[str] = None


class OrgResponse(BaseModel):
    id: int
    name: str
    slug: Optional[str] = None
    location: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
