"""
Voice search over the host speech recognizer.

At most one recognition session is active. Toggling while a session runs
stops it instead of starting another one.
"""

import asyncio
import logging
from typing import Callable, Optional

from tripsync.client.services.device import (
    MicrophonePermissionError, SpeechRecognitionError, SpeechRecognizer, SpeechUnsupportedError,
)

logger = logging.getLogger(__name__)

UNSUPPORTED_MESSAGE = "Speech recognition is not supported by your browser. Please try a different browser."
PERMISSION_MESSAGE = (
    "Microphone access denied. Please enable microphone permissions in your browser "
    "and device settings to use voice search."
)


class VoiceSearch:

    def __init__(self, recognizer: SpeechRecognizer):
        self.recognizer = recognizer
        self.listening_for: Optional[str] = None
        self.error: Optional[Exception] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def is_active(self) -> bool:
        return self._task is not None and not self._task.done()

    async def toggle(self, field: str, on_result: Callable[[str, str], None]) -> bool:
        """
        Start listening for ``field``, or stop the running session.

        Returns True when a new session was started. The transcript is
        delivered through ``on_result(field, transcript)``.
        """
        if self.is_active:
            await self.stop()
            return False

        self.error = None
        if not self.recognizer.is_supported():
            self.error = SpeechUnsupportedError(UNSUPPORTED_MESSAGE)
            return False

        try:
            await self.recognizer.request_microphone()
        except MicrophonePermissionError as e:
            logger.warning("Microphone permission error: %s", e)
            self.error = MicrophonePermissionError(PERMISSION_MESSAGE)
            return False

        self.listening_for = field
        self._task = asyncio.create_task(self._listen(field, on_result))
        return True

    async def _listen(self, field: str, on_result: Callable[[str, str], None]) -> None:
        try:
            transcript = await self.recognizer.listen()
            if transcript:
                on_result(field, transcript)
        except SpeechRecognitionError as e:
            self.error = SpeechRecognitionError(
                f"A speech recognition error occurred: {e}. Please try again."
            )
        finally:
            self.listening_for = None

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None or task.done():
            return
        await self.recognizer.stop()
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        self.listening_for = None

    async def wait(self) -> None:
        """Wait for the running session to finish on its own."""
        if self._task is not None:
            await self._task

    def clear_error(self) -> None:
        self.error = None
