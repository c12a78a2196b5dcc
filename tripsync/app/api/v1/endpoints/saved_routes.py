"""
Saved Route API Endpoints.

Routes are add/remove only; there is no update endpoint.
"""

import logging
from typing import List
from fastapi import APIRouter, Depends, status, Path, Response
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from tripsync.app.db.session import get_db
from tripsync.app.models.saved_route import SavedRoute
from tripsync.app.schemas.saved_route import SavedRouteCreate, SavedRouteResponse
from tripsync.app.core.dependencies import get_current_user
from tripsync.app.core.guards import OwnershipGuard
from tripsync.app.core.exceptions import ResourceNotFoundError

router = APIRouter(prefix="/saved-routes", tags=["Saved Routes"])
ownership_guard = OwnershipGuard()
logger = logging.getLogger(__name__)


@router.get("", response_model=List[SavedRouteResponse])
async def list_saved_routes(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    List the caller's saved routes, newest first.
    """
    result = await db.execute(
        select(SavedRoute)
        .where(SavedRoute.user_id == ownership_guard.owner_id(current_user))
        .order_by(SavedRoute.created_at.desc(), SavedRoute.id.desc())
    )
    return [SavedRouteResponse.model_validate(r) for r in result.scalars().all()]


async def _find_saved_route(db: AsyncSession, user_id: int, origin: str, destination: str):
    result = await db.execute(
        select(SavedRoute).where(
            SavedRoute.user_id == user_id,
            SavedRoute.origin == origin,
            SavedRoute.destination == destination,
        )
    )
    return result.scalar_one_or_none()


@router.post("", response_model=SavedRouteResponse, status_code=status.HTTP_201_CREATED)
async def create_saved_route(
    route_data: SavedRouteCreate,
    response: Response,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Save a route for the caller.

    Saving an (origin, destination) pair that already exists returns the
    existing route with 200 instead of creating a duplicate. This also holds
    when two identical requests race past the lookup: the loser hits the
    unique constraint and gets the winner's row.
    """
    user_id = current_user["user_id"]

    existing = await _find_saved_route(db, user_id, route_data.origin, route_data.destination)
    if existing:
        response.status_code = status.HTTP_200_OK
        return SavedRouteResponse.model_validate(existing)

    new_route = SavedRoute(user_id=user_id, **route_data.model_dump())

    db.add(new_route)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        existing = await _find_saved_route(db, user_id, route_data.origin, route_data.destination)
        if existing is None:
            raise
        logger.info("Saved route %s -> %s created concurrently", route_data.origin, route_data.destination)
        response.status_code = status.HTTP_200_OK
        return SavedRouteResponse.model_validate(existing)
    await db.refresh(new_route)

    return SavedRouteResponse.model_validate(new_route)


@router.delete("/{route_id}")
async def delete_saved_route(
    route_id: int = Path(..., description="Saved route ID"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Delete a saved route (owner only).
    """
    result = await db.execute(select(SavedRoute).where(SavedRoute.id == route_id))
    saved_route = result.scalar_one_or_none()

    if not saved_route:
        raise ResourceNotFoundError("Saved route", route_id)

    ownership_guard.enforce(saved_route.user_id, current_user, "saved route")

    await db.delete(saved_route)
    await db.commit()

    return {"message": "Saved route removed"}
