"""
Host device capabilities.

Geolocation and speech recognition belong to whatever runtime hosts the
client. Flows only depend on these protocols; tests pass fakes.
"""

from typing import AsyncIterator, Protocol

from tripsync.client.state.types import LatLng

PERMISSION_DENIED = 1
POSITION_UNAVAILABLE = 2
TIMEOUT = 3

GEOLOCATION_MESSAGES = {
    PERMISSION_DENIED: "Location access denied. Please enable location permissions.",
    POSITION_UNAVAILABLE: "Location information is unavailable.",
    TIMEOUT: "Location request timed out.",
}


class GeolocationError(Exception):
    def __init__(self, code: int, message: str = None):
        self.code = code
        self.message = message or GEOLOCATION_MESSAGES.get(code, "Unable to get your location.")
        super().__init__(self.message)

    @property
    def is_permission(self) -> bool:
        return self.code == PERMISSION_DENIED


class MicrophonePermissionError(Exception):
    pass


class SpeechUnsupportedError(Exception):
    pass


class SpeechRecognitionError(Exception):
    pass


class GeolocationProvider(Protocol):
    async def current_position(self, timeout: float) -> LatLng:
        """One-shot high-accuracy fix. Raises GeolocationError."""
        ...

    def watch(self) -> AsyncIterator[LatLng]:
        """Continuous position updates. Raises GeolocationError."""
        ...


class SpeechRecognizer(Protocol):
    def is_supported(self) -> bool:
        ...

    async def request_microphone(self) -> None:
        """Raises MicrophonePermissionError when access is refused."""
        ...

    async def listen(self) -> str:
        """Single utterance transcript. Raises SpeechRecognitionError."""
        ...

    async def stop(self) -> None:
        ...
