"""
Ownership guard for user-scoped resources.

Trips and saved routes belong to exactly one user; every by-id operation
loads the resource first and then checks it against the caller.
"""

from fastapi import Depends
from tripsync.app.core.dependencies import get_current_user
from tripsync.app.core.exceptions import InsufficientPermissionsError


def verify_ownership(
    resource_owner_id: int,
    current_user: dict = Depends(get_current_user)
) -> bool:
    """
    Verify that the current user owns the resource.

    Args:
        resource_owner_id: The owner ID of the resource being accessed
        current_user: Authenticated user from JWT

    Returns:
        True if user has ownership access, False otherwise
    """
    return current_user.get("user_id") == resource_owner_id


class OwnershipGuard:
    """
    Class-based ownership guard.

    Usage:
        ownership_guard = OwnershipGuard()

        @router.delete("/trips/{trip_id}")
        async def delete_trip(
            trip_id: int,
            current_user: dict = Depends(get_current_user),
            db: AsyncSession = Depends(get_db)
        ):
            trip = await load_trip(trip_id, db)
            ownership_guard.enforce(trip.user_id, current_user, "trip")
            ...
    """

    def enforce(
        self,
        resource_owner_id: int,
        current_user: dict,
        resource_name: str = "resource"
    ):
        """
        Enforce ownership validation, raise 403 if access denied.

        Raises:
            InsufficientPermissionsError if ownership check fails
        """
        if not verify_ownership(resource_owner_id, current_user):
            raise InsufficientPermissionsError(
                message=f"Not authorized. You do not have permission to access this {resource_name}.",
                details={"resource": resource_name}
            )

    def owner_id(self, current_user: dict) -> int:
        """Owner id to filter list queries by."""
        return current_user["user_id"]
