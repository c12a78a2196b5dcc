"""
Saved route schemas.
"""

from pydantic import Field
from typing import Optional
from datetime import datetime
from tripsync.app.schemas.base import CamelModel


class SavedRouteCreate(CamelModel):
    """Schema for POST /saved-routes."""
    origin: str = Field(..., min_length=1, max_length=500)
    destination: str = Field(..., min_length=1, max_length=500)
    stay: Optional[str] = Field(None, max_length=500)


class SavedRouteResponse(CamelModel):
    """Schema for saved route response."""
    id: int
    user_id: int
    origin: str
    destination: str
    stay: Optional[str]
    created_at: datetime
