"""
Keystroke debouncing with a per-field staleness guard.

Every keystroke restarts the field's timer. Once the timer fires, the fetch
runs to completion even if the user keeps typing, so each fetch carries the
request token it was issued with and its result is applied only if no newer
request was issued for that field in the meantime.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Set

from tripsync.client.config import client_settings

logger = logging.getLogger(__name__)


class Debouncer:

    def __init__(self, delay_ms: int = None):
        if delay_ms is None:
            delay_ms = client_settings.autocomplete_debounce_ms
        self.delay = delay_ms / 1000
        self._tokens: Dict[str, int] = {}
        self._timers: Dict[str, asyncio.Task] = {}
        self._tasks: Set[asyncio.Task] = set()

    def _next_token(self, field: str) -> int:
        token = self._tokens.get(field, 0) + 1
        self._tokens[field] = token
        return token

    def is_current(self, field: str, token: int) -> bool:
        return self._tokens.get(field) == token

    def schedule(
        self,
        field: str,
        fetch: Callable[[], Awaitable[Any]],
        apply: Callable[[Any], None],
    ) -> int:
        """Restart the timer for ``field``; returns the new request token."""
        self._cancel_timer(field)
        token = self._next_token(field)

        task = asyncio.create_task(self._run(field, token, fetch, apply))
        self._timers[field] = task
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return token

    def invalidate(self, field: str) -> None:
        """Drop the pending timer and any in-flight result for ``field``."""
        self._cancel_timer(field)
        self._next_token(field)

    async def _run(self, field, token, fetch, apply) -> None:
        await asyncio.sleep(self.delay)
        if self._timers.get(field) is asyncio.current_task():
            del self._timers[field]

        result = await fetch()
        if not self.is_current(field, token):
            logger.debug("Dropping stale %s response (token %d)", field, token)
            return
        apply(result)

    def _cancel_timer(self, field: str) -> None:
        timer = self._timers.pop(field, None)
        if timer is not None:
            timer.cancel()

    async def drain(self) -> None:
        """Wait for every scheduled fetch to settle."""
        while True:
            pending = [t for t in self._tasks if not t.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    async def close(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        await asyncio.gather(*list(self._tasks), return_exceptions=True)
        self._timers.clear()
