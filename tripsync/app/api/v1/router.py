"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from tripsync.app.api.v1.endpoints import auth, trips, saved_routes

router = APIRouter()

# Accounts and vehicle collections
router.include_router(auth.router)

# User-scoped resources
router.include_router(trips.router)
router.include_router(saved_routes.router)
