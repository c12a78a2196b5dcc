"""
HTTP client for the TripSync backend.

Thin wrapper over httpx that attaches the bearer token and turns error
envelopes into ``ApiError``.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from tripsync.client.config import ClientSettings, client_settings

logger = logging.getLogger(__name__)


class ApiError(Exception):
    def __init__(self, status_code: int, message: str, error_code: str = None):
        self.status_code = status_code
        self.message = message
        self.error_code = error_code
        super().__init__(f"{status_code}: {message}")


class ApiClient:

    def __init__(self, http_client: Optional[httpx.AsyncClient] = None, settings: ClientSettings = client_settings):
        self._client = http_client or httpx.AsyncClient(
            base_url=settings.api_base_url,
            timeout=settings.api_timeout_seconds,
        )
        self.token: Optional[str] = None

    async def aclose(self):
        await self._client.aclose()

    async def _request(self, method: str, path: str, json: Any = None) -> Any:
        headers = {"Authorization": f"Bearer {self.token}"} if self.token else {}
        try:
            response = await self._client.request(method, path, json=json, headers=headers)
        except httpx.HTTPError as e:
            logger.error("%s %s failed: %s", method, path, e)
            raise ApiError(0, "Network error") from e

        if response.is_error:
            try:
                body = response.json()
            except ValueError:
                body = {}
            message = body.get("message") or body.get("detail") or response.reason_phrase
            raise ApiError(response.status_code, message, body.get("error_code"))
        return response.json()

    # Auth
    async def login(self, phone: str, password: str) -> Dict[str, Any]:
        return await self._request("POST", "/auth/login", {"phone": phone, "password": password})

    async def signup(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", "/auth/signup", payload)

    async def me(self) -> Dict[str, Any]:
        return await self._request("GET", "/auth/me")

    async def replace_vehicles(self, two_wheelers: List[dict], four_wheelers: List[dict]) -> Dict[str, Any]:
        return await self._request(
            "PUT", "/auth/me/vehicles", {"twoWheelers": two_wheelers, "fourWheelers": four_wheelers}
        )

    # Trips
    async def list_trips(self) -> List[Dict[str, Any]]:
        return await self._request("GET", "/trips")

    async def create_trip(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", "/trips", payload)

    async def update_trip(self, trip_id: int, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("PUT", f"/trips/{trip_id}", payload)

    async def delete_trip(self, trip_id: int) -> None:
        await self._request("DELETE", f"/trips/{trip_id}")

    # Saved routes
    async def list_saved_routes(self) -> List[Dict[str, Any]]:
        return await self._request("GET", "/saved-routes")

    async def create_saved_route(self, origin: str, destination: str, stay: Optional[str] = None) -> Dict[str, Any]:
        return await self._request(
            "POST", "/saved-routes", {"origin": origin, "destination": destination, "stay": stay}
        )

    async def delete_saved_route(self, route_id: int) -> None:
        await self._request("DELETE", f"/saved-routes/{route_id}")
