"""
Trip schemas.

Schemas for trip creation, update and listing.
"""

from pydantic import Field, model_validator
from typing import List, Optional
from datetime import date, datetime
from tripsync.app.models.trip_enums import TripStatus, TripType
from tripsync.app.schemas.base import CamelModel

NULLABLE_TRIP_FIELDS = {"vehicle", "custom_vehicle"}


class LatLngSchema(CamelModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class TripStopSchema(CamelModel):
    """Schema for a stop; list position is visit order."""
    location: LatLngSchema
    name: Optional[str] = None
    stopover: bool = True


class CustomVehicleSchema(CamelModel):
    name: str
    mileage: Optional[float] = None


class TripCreate(CamelModel):
    """Schema for POST /trips."""
    origin: str = Field(..., min_length=1)
    destination: str = Field(..., min_length=1)
    start_date: date
    start_time: str = Field(..., min_length=1, max_length=20)
    vehicle: Optional[str] = None
    custom_vehicle: Optional[CustomVehicleSchema] = None
    travelers: int = Field(default=1, ge=1)
    trip_type: TripType = TripType.ONE_WAY
    status: TripStatus = TripStatus.PLANNED
    stops: List[TripStopSchema] = []


class TripUpdate(CamelModel):
    """
    Schema for PUT /trips/{id}; only provided fields are applied.

    vehicle and customVehicle may be cleared with null; every other field
    must carry a value when present.
    """
    origin: Optional[str] = Field(None, min_length=1)
    destination: Optional[str] = Field(None, min_length=1)
    start_date: Optional[date] = None
    start_time: Optional[str] = Field(None, min_length=1, max_length=20)
    vehicle: Optional[str] = None
    custom_vehicle: Optional[CustomVehicleSchema] = None
    travelers: Optional[int] = Field(None, ge=1)
    trip_type: Optional[TripType] = None
    status: Optional[TripStatus] = None
    stops: Optional[List[TripStopSchema]] = None

    @model_validator(mode="after")
    def reject_null_required_fields(self):
        nulls = sorted(
            name for name in self.model_fields_set - NULLABLE_TRIP_FIELDS
            if getattr(self, name) is None
        )
        if nulls:
            raise ValueError(f"Fields cannot be null: {', '.join(nulls)}")
        return self


class TripResponse(CamelModel):
    """Schema for trip response."""
    id: int
    user_id: int
    origin: str
    destination: str
    start_date: date
    start_time: str
    vehicle: Optional[str]
    custom_vehicle: Optional[CustomVehicleSchema]
    travelers: int
    trip_type: TripType
    status: TripStatus
    stops: List[TripStopSchema] = []
    created_at: datetime
    updated_at: datetime
