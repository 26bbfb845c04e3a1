from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel


class MatchResponse(BaseModel):
    id: int
    organization_id: int
    listing_id: int
    talent_user_id: int
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class MatchStatusUpdate(BaseModel):
    status: Literal["chatting", "completed"]
