from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel


class CandidateJobStateResponse(BaseModel):
    listing_id: int
    status: str
    application_id: Optional[int] = None
    updated_at: Optional[datetime] = None


class ApplicationRequest(BaseModel):
    payload: Optional[Dict[str, Any]] = None


class ApplicationResponse(BaseModel):
    id: int
    candidate_id: int
    listing_id: int
    status: str
    payload: Optional[Dict[str, Any]] = None
    submitted_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
