"""Service layer for map provider operations.

Wraps the Google Maps web service APIs (Places autocomplete, text search,
place details, Directions and Geocoding). Every public coroutine degrades
to an empty list, ``None`` or the ``UNKNOWN_LOCATION`` sentinel instead of
raising, so callers only ever branch on emptiness.
"""

import logging
import re
from typing import Any, Dict, List, Optional, Sequence

import httpx

from tripsync.client.config import ClientSettings, client_settings
from tripsync.client.services.cache import CacheService
from tripsync.client.services.geo import calculate_distance
from tripsync.client.services.reliability import CircuitBreaker, CircuitOpenError
from tripsync.client.state.types import (
    Geometry, LatLng, Leg, Place, PlaceDetails, PlacePrediction, Route,
    RouteLocation, Step, Waypoint,
)

logger = logging.getLogger(__name__)

UNKNOWN_LOCATION = "Unknown Location"

# Statuses that mean "the request worked but matched nothing"
EMPTY_STATUSES = {"ZERO_RESULTS", "NOT_FOUND"}

DETAIL_FIELDS = "name,geometry,formatted_address,photos,rating"

_TAG_RE = re.compile(r"<[^>]+>")


class MapProviderError(Exception):
    """Transport failure or a non-OK provider status."""

    def __init__(self, endpoint: str, reason: str):
        self.endpoint = endpoint
        self.reason = reason
        super().__init__(f"{endpoint}: {reason}")


class NoResults(Exception):
    """The provider answered but found nothing."""


def _format_location(location: RouteLocation) -> str:
    if isinstance(location, LatLng):
        return f"{location.lat},{location.lng}"
    return location


def _strip_html(text: str) -> str:
    return _TAG_RE.sub(" ", text or "").replace("  ", " ").strip()


def _lat_lng(raw: Dict[str, Any]) -> LatLng:
    return LatLng(lat=float(raw["lat"]), lng=float(raw["lng"]))


class MapService:
    """Async adapter over the map provider's HTTP APIs."""

    def __init__(
        self,
        http_client: Optional[httpx.AsyncClient] = None,
        settings: ClientSettings = client_settings,
        breaker: Optional[CircuitBreaker] = None,
        cache: Optional[CacheService] = None,
    ):
        self.settings = settings
        self._client = http_client or httpx.AsyncClient(
            base_url=settings.maps_base_url,
            timeout=settings.maps_timeout_seconds,
        )
        self._breaker = breaker or CircuitBreaker(
            name="maps",
            failure_threshold=settings.maps_failure_threshold,
            reset_timeout=settings.maps_reset_timeout_seconds,
        )
        self._details_cache = cache or CacheService(ttl_seconds=settings.place_details_cache_ttl_seconds)

    async def aclose(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------ #
    # Transport
    # ------------------------------------------------------------------ #
    async def _fetch(self, endpoint: str, params: Dict[str, Any]) -> Dict[str, Any]:
        if not self.settings.google_maps_api_key:
            raise MapProviderError(endpoint, "no API key configured")

        query = {"key": self.settings.google_maps_api_key, "language": self.settings.maps_language}
        query.update({k: v for k, v in params.items() if v is not None})

        try:
            response = await self._client.get(f"/{endpoint}/json", params=query)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as e:
            raise MapProviderError(endpoint, f"{type(e).__name__}: {e}") from e
        except ValueError as e:
            raise MapProviderError(endpoint, "invalid JSON body") from e

        status = payload.get("status", "UNKNOWN_ERROR")
        if status != "OK" and status not in EMPTY_STATUSES:
            raise MapProviderError(endpoint, f"{status} {payload.get('error_message', '')}".strip())
        return payload

    async def _request(self, endpoint: str, params: Dict[str, Any]) -> Dict[str, Any]:
        """Call the provider through the circuit breaker.

        Raises:
            NoResults: provider status was ZERO_RESULTS / NOT_FOUND
            MapProviderError / CircuitOpenError: anything else that went wrong
        """
        payload = await self._breaker.call(self._fetch, endpoint, params)
        if payload.get("status") in EMPTY_STATUSES:
            raise NoResults(endpoint)
        return payload

    def _photo_url(self, photo: Dict[str, Any], max_width: int = 400) -> Optional[str]:
        reference = photo.get("photo_reference")
        if not reference:
            return None
        return (
            f"{self.settings.maps_base_url}/place/photo"
            f"?maxwidth={max_width}&photo_reference={reference}&key={self.settings.google_maps_api_key}"
        )

    def _photos(self, raw: Dict[str, Any]) -> List[str]:
        urls = (self._photo_url(p) for p in raw.get("photos") or [])
        return [u for u in urls if u]

    def _geometry(self, raw: Dict[str, Any]) -> Optional[Geometry]:
        location = (raw.get("geometry") or {}).get("location")
        return Geometry(location=_lat_lng(location)) if location else None

    # ------------------------------------------------------------------ #
    # Places
    # ------------------------------------------------------------------ #
    async def get_place_predictions(self, text: str) -> List[PlacePrediction]:
        """Autocomplete predictions for free text.

        Inputs shorter than the minimum length return [] without a request.
        """
        if not text or len(text) < self.settings.min_prediction_chars:
            return []

        try:
            payload = await self._request("place/autocomplete", {"input": text})
            return [
                PlacePrediction(
                    description=p["description"],
                    place_id=p["place_id"],
                    main_text=p.get("structured_formatting", {}).get("main_text", ""),
                    secondary_text=p.get("structured_formatting", {}).get("secondary_text", ""),
                )
                for p in payload.get("predictions", [])
            ]
        except NoResults:
            logger.debug("No predictions for '%s'", text)
        except (MapProviderError, CircuitOpenError, KeyError, TypeError, ValueError) as e:
            logger.error("Autocomplete failed for '%s': %s", text, e)
        return []

    async def search_nearby_places(
        self,
        keyword: str,
        location: Optional[LatLng] = None,
        radius: Optional[int] = None,
    ) -> List[Place]:
        """Text search, biased to ``location`` when given.

        Returns [] both when nothing matched and when the request failed;
        the two cases are only distinguished in the log.
        """
        params: Dict[str, Any] = {"query": keyword}
        if location is not None:
            params["location"] = _format_location(location)
            params["radius"] = radius if radius is not None else self.settings.search_radius_meters

        try:
            payload = await self._request("place/textsearch", params)
            return [
                Place(
                    id=r["place_id"],
                    name=r.get("name", ""),
                    vicinity=r.get("formatted_address") or r.get("vicinity") or "",
                    rating=r.get("rating"),
                    user_ratings_total=r.get("user_ratings_total"),
                    geometry=self._geometry(r),
                    photos=self._photos(r),
                    icon=r.get("icon"),
                )
                for r in payload.get("results", [])
            ]
        except NoResults:
            logger.warning("Places text search found nothing for '%s'", keyword)
        except (MapProviderError, CircuitOpenError, KeyError, TypeError, ValueError) as e:
            logger.error("Places text search failed for '%s': %s", keyword, e)
        return []

    async def get_place_details(self, place_id: str) -> Optional[PlaceDetails]:
        """Details for a place id, or None when unknown or on failure."""
        cached = await self._details_cache.get(place_id)
        if cached is not None:
            return cached

        try:
            payload = await self._request("place/details", {"place_id": place_id, "fields": DETAIL_FIELDS})
            raw = payload.get("result") or {}
            details = PlaceDetails(
                place_id=place_id,
                name=raw.get("name", ""),
                formatted_address=raw.get("formatted_address", ""),
                geometry=self._geometry(raw),
                photos=self._photos(raw),
                rating=raw.get("rating"),
            )
        except NoResults:
            logger.warning("Place %s not found", place_id)
            return None
        except (MapProviderError, CircuitOpenError, KeyError, TypeError, ValueError) as e:
            logger.error("Place details failed for %s: %s", place_id, e)
            return None

        await self._details_cache.set(place_id, details)
        return details

    # ------------------------------------------------------------------ #
    # Directions / geocoding
    # ------------------------------------------------------------------ #
    async def get_directions(
        self,
        origin: RouteLocation,
        destination: RouteLocation,
        waypoints: Sequence[Waypoint] = (),
    ) -> Optional[Route]:
        """Driving route through the ordered waypoints, or None."""
        params: Dict[str, Any] = {
            "origin": _format_location(origin),
            "destination": _format_location(destination),
            "mode": "driving",
        }
        if waypoints:
            params["waypoints"] = "|".join(
                _format_location(wp.location) if wp.stopover else f"via:{_format_location(wp.location)}"
                for wp in waypoints
            )

        try:
            payload = await self._request("directions", params)
            routes = payload.get("routes") or []
            if not routes:
                raise NoResults("directions")
            return self._parse_route(routes[0])
        except NoResults:
            logger.error("Directions request found no route from %s to %s", params["origin"], params["destination"])
        except (MapProviderError, CircuitOpenError, KeyError, TypeError, ValueError) as e:
            logger.error("Directions request failed: %s", e)
        return None

    def _parse_route(self, raw: Dict[str, Any]) -> Route:
        legs = []
        for raw_leg in raw.get("legs", []):
            steps = [
                Step(
                    instruction=_strip_html(s.get("html_instructions", "")),
                    maneuver=s.get("maneuver"),
                    distance_text=s.get("distance", {}).get("text", ""),
                    distance_meters=s.get("distance", {}).get("value", 0),
                    duration_text=s.get("duration", {}).get("text", ""),
                    duration_seconds=s.get("duration", {}).get("value", 0),
                    end_location=_lat_lng(s["end_location"]),
                )
                for s in raw_leg.get("steps", [])
            ]
            legs.append(Leg(
                start_address=raw_leg.get("start_address", ""),
                end_address=raw_leg.get("end_address", ""),
                distance_text=raw_leg.get("distance", {}).get("text", ""),
                distance_meters=raw_leg.get("distance", {}).get("value", 0),
                duration_text=raw_leg.get("duration", {}).get("text", ""),
                duration_seconds=raw_leg.get("duration", {}).get("value", 0),
                steps=steps,
            ))
        return Route(
            summary=raw.get("summary", ""),
            legs=legs,
            overview_polyline=(raw.get("overview_polyline") or {}).get("points", ""),
        )

    async def reverse_geocode(self, lat: float, lng: float) -> str:
        """Formatted address for a coordinate, or UNKNOWN_LOCATION."""
        try:
            payload = await self._request("geocode", {"latlng": f"{lat},{lng}"})
            results = payload.get("results") or []
            if results and results[0].get("formatted_address"):
                return results[0]["formatted_address"]
            logger.warning("Geocoder returned no address for %s,%s", lat, lng)
        except NoResults:
            logger.warning("Geocoder found nothing at %s,%s", lat, lng)
        except (MapProviderError, CircuitOpenError, KeyError, TypeError, ValueError) as e:
            logger.error("Geocoder failed due to: %s", e)
        return UNKNOWN_LOCATION

    @staticmethod
    def calculate_distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
        """Great-circle distance in metres."""
        return calculate_distance(lat1, lng1, lat2, lng2)


__all__ = ["MapService", "MapProviderError", "UNKNOWN_LOCATION"]
