"""
Persisted client keys.
"""

import json

import pytest

from tripsync.client.services.storage import (
    ACTIVE_TAB_KEY, SCREEN_KEY, THEME_KEY, USER_KEY, ping_redis,
)
from tripsync.client.state.types import MainTab, Screen, Theme, UserProfile, Vehicle


@pytest.mark.asyncio
async def test_defaults_when_empty(storage):
    assert await storage.load_screen() == Screen.SPLASH
    assert await storage.load_user() is None
    assert await storage.load_active_tab() == MainTab.HOME
    assert await storage.load_theme() == Theme.DARK


@pytest.mark.asyncio
async def test_values_stored_as_json(storage, redis_client):
    user = UserProfile(
        id=7, phone="9000000001", name="Asha",
        four_wheelers=[Vehicle(id="fw0", reg_number="MH12")], access_token="tok",
    )
    await storage.save_screen(Screen.HOME)
    await storage.save_user(user)
    await storage.save_active_tab(MainTab.PLANNER)
    await storage.save_theme(Theme.LIGHT)

    assert json.loads(redis_client.store[SCREEN_KEY]) == "home"
    assert json.loads(redis_client.store[ACTIVE_TAB_KEY]) == "planner"
    assert json.loads(redis_client.store[THEME_KEY]) == "light"
    stored_user = json.loads(redis_client.store[USER_KEY])
    assert stored_user["fourWheelers"] == [{"id": "fw0", "regNumber": "MH12"}]
    assert stored_user["accessToken"] == "tok"

    assert await storage.load_user() == user
    assert await storage.load_active_tab() == MainTab.PLANNER


@pytest.mark.asyncio
async def test_clearing_user_deletes_key(storage, redis_client):
    await storage.save_user(UserProfile(id=1, phone="1", name="A"))
    await storage.save_user(None)
    assert USER_KEY not in redis_client.store


@pytest.mark.asyncio
async def test_unreadable_values_fall_back(storage, redis_client):
    redis_client.store[SCREEN_KEY] = "{not json"
    redis_client.store[THEME_KEY] = json.dumps("sepia")
    redis_client.store[USER_KEY] = json.dumps({"name": "missing fields"})

    assert await storage.load_screen() == Screen.SPLASH
    assert await storage.load_theme() == Theme.DARK
    assert await storage.load_user() is None


@pytest.mark.asyncio
async def test_ping(redis_client):
    assert await ping_redis(redis_client) is True
    await redis_client.aclose()
    assert await ping_redis(redis_client) is False
