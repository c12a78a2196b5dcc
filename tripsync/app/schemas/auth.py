"""
Authentication Pydantic schemas.

Defines request and response schemas for authentication endpoints.
"""

from pydantic import Field
from pydantic.alias_generators import to_camel
from datetime import datetime
from typing import List, Optional
from tripsync.app.schemas.base import CamelModel


class VehicleSchema(CamelModel):
    """A registered vehicle inside one of the user's collections."""
    id: str = Field(..., min_length=1, description="Identifier, unique within its collection")
    reg_number: str = Field(default="", max_length=30, description="Registration number (may be blank)")


class VehicleCollections(CamelModel):
    """
    Both vehicle collections of a user.

    Used by PUT /auth/me/vehicles. Ids must be unique within each
    collection; see duplicate_vehicle_ids().
    """
    two_wheelers: List[VehicleSchema] = Field(default_factory=list)
    four_wheelers: List[VehicleSchema] = Field(default_factory=list)


class UserSignup(VehicleCollections):
    """
    Schema for user registration.

    Used by POST /auth/signup endpoint.
    """
    name: str = Field(..., min_length=1, max_length=100, description="Display name")
    phone: str = Field(..., min_length=6, max_length=20, description="Unique phone number")
    password: str = Field(..., min_length=6, description="Password (min 6 characters)")


class UserLogin(CamelModel):
    """
    Schema for user login.

    Used by POST /auth/login endpoint.
    """
    phone: str = Field(..., description="Registered phone number")
    password: str = Field(..., description="Password")


class UserResponse(CamelModel):
    """
    Schema for user profile response.

    Used by GET /auth/me endpoint.
    """
    id: int
    phone: str
    name: str
    two_wheelers: List[VehicleSchema] = []
    four_wheelers: List[VehicleSchema] = []
    created_at: Optional[datetime] = None


class AuthResponse(UserResponse):
    """
    User profile plus session token.

    Returned by successful login/signup operations.
    """
    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")


def duplicate_vehicle_ids(collections: VehicleCollections) -> dict:
    """Ids used more than once, keyed by collection alias; empty when valid."""
    duplicates = {}
    for field in ("two_wheelers", "four_wheelers"):
        seen, repeated = set(), set()
        for vehicle in getattr(collections, field):
            if vehicle.id in seen:
                repeated.add(vehicle.id)
            seen.add(vehicle.id)
        if repeated:
            duplicates[to_camel(field)] = sorted(repeated)
    return duplicates
