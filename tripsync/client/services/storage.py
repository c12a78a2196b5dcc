"""
Persistent client state.

A handful of UI keys survive restarts without a server round trip. Values
are stored as JSON strings in the client's key-value store (Redis) and are
restored verbatim; there is no schema versioning.
"""

import json
import logging
from typing import Any, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from tripsync.client.config import client_settings
from tripsync.client.state.types import MainTab, Screen, Theme, UserProfile

logger = logging.getLogger(__name__)

SCREEN_KEY = "tripsync-screen"
USER_KEY = "tripsync-user"
ACTIVE_TAB_KEY = "tripsync-activeTab"
THEME_KEY = "tripsync-theme"


def create_redis_client():
    return redis.from_url(
        client_settings.redis_url,
        decode_responses=client_settings.redis_decode_responses,
    )


async def ping_redis(client) -> bool:
    """
    Test the key-value store connection.

    Returns:
        True if connection successful, False otherwise
    """
    try:
        return await client.ping()
    except (RedisError, OSError):
        return False


class PersistentClientState:
    """Typed accessors over the persisted UI keys."""

    def __init__(self, client=None):
        self.client = client if client is not None else create_redis_client()

    async def _load(self, key: str) -> Optional[Any]:
        try:
            raw = await self.client.get(key)
        except RedisError as e:
            logger.error("Failed to read %s: %s", key, e)
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("Discarding unreadable value stored under %s", key)
            return None

    async def _save(self, key: str, value: Any) -> None:
        try:
            if value is None:
                await self.client.delete(key)
            else:
                await self.client.set(key, json.dumps(value))
        except RedisError as e:
            logger.error("Failed to persist %s: %s", key, e)

    async def load_screen(self) -> Screen:
        value = await self._load(SCREEN_KEY)
        try:
            return Screen(value) if value else Screen.SPLASH
        except ValueError:
            return Screen.SPLASH

    async def save_screen(self, screen: Screen) -> None:
        await self._save(SCREEN_KEY, screen.value)

    async def load_user(self) -> Optional[UserProfile]:
        value = await self._load(USER_KEY)
        if not value:
            return None
        try:
            return UserProfile.model_validate(value)
        except ValueError:
            logger.warning("Stored user profile is malformed; starting signed out")
            return None

    async def save_user(self, user: Optional[UserProfile]) -> None:
        await self._save(USER_KEY, user.model_dump(by_alias=True) if user else None)

    async def load_active_tab(self) -> MainTab:
        value = await self._load(ACTIVE_TAB_KEY)
        try:
            return MainTab(value) if value else MainTab.HOME
        except ValueError:
            return MainTab.HOME

    async def save_active_tab(self, tab: MainTab) -> None:
        await self._save(ACTIVE_TAB_KEY, tab.value)

    async def load_theme(self) -> Theme:
        value = await self._load(THEME_KEY)
        try:
            return Theme(value) if value else Theme.DARK
        except ValueError:
            return Theme.DARK

    async def save_theme(self, theme: Theme) -> None:
        await self._save(THEME_KEY, theme.value)

    async def close(self) -> None:
        await self.client.aclose()
