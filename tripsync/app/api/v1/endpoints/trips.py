"""
Trip API Endpoints.

Users create, list, update and delete their own trips.
"""

import logging
from typing import List
from fastapi import APIRouter, Depends, status, Path
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from tripsync.app.db.session import get_db
from tripsync.app.models.trip import Trip
from tripsync.app.models.trip_enums import TripStatus
from tripsync.app.schemas.trip import TripCreate, TripUpdate, TripResponse
from tripsync.app.core.dependencies import get_current_user
from tripsync.app.core.guards import OwnershipGuard
from tripsync.app.core.exceptions import ResourceNotFoundError, ValidationFailedError

router = APIRouter(prefix="/trips", tags=["Trips"])
ownership_guard = OwnershipGuard()
logger = logging.getLogger(__name__)


async def _load_owned_trip(db: AsyncSession, trip_id: int, current_user: dict) -> Trip:
    result = await db.execute(select(Trip).where(Trip.id == trip_id))
    trip = result.scalar_one_or_none()

    if not trip:
        raise ResourceNotFoundError("Trip", trip_id)

    ownership_guard.enforce(trip.user_id, current_user, "trip")
    return trip


@router.get("", response_model=List[TripResponse])
async def list_trips(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    List the caller's trips, newest first.
    """
    result = await db.execute(
        select(Trip)
        .where(Trip.user_id == ownership_guard.owner_id(current_user))
        .order_by(Trip.created_at.desc(), Trip.id.desc())
    )
    return [TripResponse.model_validate(t) for t in result.scalars().all()]


@router.post("", response_model=TripResponse, status_code=status.HTTP_201_CREATED)
async def create_trip(
    trip_data: TripCreate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Create a trip owned by the authenticated user.
    """
    new_trip = Trip(user_id=current_user["user_id"], **trip_data.model_dump())

    db.add(new_trip)
    await db.commit()
    await db.refresh(new_trip)

    logger.info("Trip %s created for user %s", new_trip.id, new_trip.user_id)
    return TripResponse.model_validate(new_trip)


@router.put("/{trip_id}", response_model=TripResponse)
async def update_trip(
    trip_data: TripUpdate,
    trip_id: int = Path(..., description="Trip ID"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Update a trip (owner only).

    Completed trips are frozen: only their status may change.
    """
    trip = await _load_owned_trip(db, trip_id, current_user)

    changes = trip_data.model_dump(exclude_unset=True)
    if trip.status == TripStatus.COMPLETED and set(changes) - {"status"}:
        raise ValidationFailedError(
            "Completed trips can only change status",
            details={"fields": sorted(set(changes) - {"status"})}
        )

    for field, value in changes.items():
        setattr(trip, field, value)

    await db.commit()
    await db.refresh(trip)

    return TripResponse.model_validate(trip)


@router.delete("/{trip_id}")
async def delete_trip(
    trip_id: int = Path(..., description="Trip ID"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Delete a trip (owner only).
    """
    trip = await _load_owned_trip(db, trip_id, current_user)

    await db.delete(trip)
    await db.commit()

    return {"message": "Trip removed"}
