"""
Database seeding script for a demo account.

Creates one user with a vehicle in each collection and a saved route, so a
fresh client can log in right away. Run this script after the database is
set up.
"""

import asyncio

from sqlalchemy import select

from tripsync.app.db.session import AsyncSessionLocal, Base, engine
from tripsync.app.models.user import User
from tripsync.app.models.trip import Trip  # noqa: F401
from tripsync.app.models.saved_route import SavedRoute
from tripsync.app.core.security import get_password_hash

DEMO_PHONE = "9999900000"
DEMO_PASSWORD = "demo1234"


async def seed_demo_user(db) -> bool:
    """
    Seed the demo user. Returns False if it already exists.
    """
    result = await db.execute(select(User).where(User.phone == DEMO_PHONE))
    if result.scalar_one_or_none():
        print("ℹ️  Demo user already exists, skipping seeding")
        return False

    user = User(
        phone=DEMO_PHONE,
        name="Demo Traveler",
        hashed_password=get_password_hash(DEMO_PASSWORD),
        two_wheelers=[{"id": "tw0", "regNumber": "MH12XY0001"}],
        four_wheelers=[{"id": "fw0", "regNumber": "MH12XY0002"}],
        is_active=True,
    )
    db.add(user)
    await db.flush()

    db.add(SavedRoute(user_id=user.id, origin="Pune", destination="Lonavala"))
    await db.commit()

    print(f"✅ Created demo user (phone: {DEMO_PHONE}, password: {DEMO_PASSWORD})")
    return True


async def main():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    async with AsyncSessionLocal() as db:
        await seed_demo_user(db)
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
