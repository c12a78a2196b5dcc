"""
Authentication API endpoints.

Provides signup, login, profile and vehicle endpoints for the TripSync client.
"""

import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from tripsync.app.db.session import get_db
from tripsync.app.models.user import User
from tripsync.app.schemas.auth import (
    UserSignup, UserLogin, AuthResponse, UserResponse, VehicleCollections,
    duplicate_vehicle_ids
)
from tripsync.app.core.security import get_password_hash, verify_password
from tripsync.app.core.jwt import issue_user_token
from tripsync.app.core.dependencies import get_current_user
from tripsync.app.core.exceptions import ValidationFailedError

router = APIRouter(prefix="/auth", tags=["Authentication"])
logger = logging.getLogger(__name__)


def _dump_vehicles(vehicles) -> list:
    return [v.model_dump(by_alias=True) for v in vehicles]


def _auth_response(user: User) -> AuthResponse:
    access_token = issue_user_token(user.id, user.phone)
    profile = UserResponse.model_validate(user)
    return AuthResponse(**profile.model_dump(), access_token=access_token, token_type="bearer")


def _ensure_unique_vehicles(vehicles: VehicleCollections) -> None:
    duplicates = duplicate_vehicle_ids(vehicles)
    if duplicates:
        raise ValidationFailedError(
            "Vehicle ids must be unique within a collection",
            details={"duplicates": duplicates}
        )


async def _load_user(db: AsyncSession, user_id: int) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )
    return user


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    user_data: UserSignup,
    db: AsyncSession = Depends(get_db)
):
    """
    Register a new user with their vehicle collections.

    The phone number is the login identifier and must be unique.
    """
    _ensure_unique_vehicles(user_data)

    result = await db.execute(select(User).where(User.phone == user_data.phone))
    if result.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Phone number already registered"
        )

    new_user = User(
        phone=user_data.phone,
        name=user_data.name,
        hashed_password=get_password_hash(user_data.password),
        two_wheelers=_dump_vehicles(user_data.two_wheelers),
        four_wheelers=_dump_vehicles(user_data.four_wheelers),
        is_active=True,
    )

    db.add(new_user)
    await db.commit()
    await db.refresh(new_user)

    logger.info("User %s signed up", new_user.id)
    return _auth_response(new_user)


@router.post("/login", response_model=AuthResponse)
async def login(
    credentials: UserLogin,
    db: AsyncSession = Depends(get_db)
):
    """
    Login user and return profile with JWT token.
    """
    result = await db.execute(select(User).where(User.phone == credentials.phone))
    user = result.scalar_one_or_none()

    if not user or not verify_password(credentials.password, user.hashed_password):
        logger.warning("Failed login attempt for phone %s", credentials.phone)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Inactive user account"
        )

    return _auth_response(user)


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Get current authenticated user profile.
    """
    user = await _load_user(db, current_user["user_id"])
    return UserResponse.model_validate(user)


@router.put("/me/vehicles", response_model=UserResponse)
async def replace_vehicles(
    vehicles: VehicleCollections,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Replace both vehicle collections of the current user.

    The client adds, removes and edits vehicles locally and then syncs the
    full collections here.
    """
    _ensure_unique_vehicles(vehicles)
    user = await _load_user(db, current_user["user_id"])

    user.two_wheelers = _dump_vehicles(vehicles.two_wheelers)
    user.four_wheelers = _dump_vehicles(vehicles.four_wheelers)

    await db.commit()
    await db.refresh(user)

    return UserResponse.model_validate(user)
