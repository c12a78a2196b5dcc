"""
Live turn-by-turn navigation.

A NavigationSession follows the device position along a driving route.
Position updates are handled one at a time in arrival order; each one may
move the step pointer forward by at most one step. The route itself is
only fetched when the origin, destination or waypoints change; a new route
picks up at the step nearest the driver, never behind the current one.
"""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import List, Optional

from pydantic import BaseModel

from tripsync.client.config import ClientSettings, client_settings
from tripsync.client.services.device import GeolocationError, GeolocationProvider
from tripsync.client.services.geo import CURRENT_LOCATION, format_distance, parse_route_location
from tripsync.client.services.map_service import UNKNOWN_LOCATION, MapService
from tripsync.client.state import actions
from tripsync.client.state.store import AppStore
from tripsync.client.state.types import (
    LatLng, Place, Route, Step, StopCandidate, TripDetails, TripSummary, Waypoint,
)

logger = logging.getLogger(__name__)

RECENTER_ZOOM = 17


class NavigationError(BaseModel):
    type: str  # permission | network | generic
    message: str


class TripMetrics(BaseModel):
    eta: str = "--:--"
    remaining_distance: str = "--.- km"
    duration: str = "-- min"


class NavigationSession:

    def __init__(
        self,
        trip_details: TripDetails,
        map_service: MapService,
        geolocation: GeolocationProvider,
        store: AppStore,
        settings: ClientSettings = client_settings,
    ):
        self.trip = trip_details.model_copy()
        self.map_service = map_service
        self.geolocation = geolocation
        self.store = store
        self.settings = settings

        self.route: Optional[Route] = None
        self.waypoints: List[Waypoint] = []
        self.step_index = 0
        self.distance_to_next_turn = ""
        self.trip_metrics = TripMetrics()
        self.user_location: Optional[LatLng] = None
        self.is_auto_centering = True
        self.camera_center: Optional[LatLng] = None
        self.camera_zoom: Optional[int] = None
        self.error: Optional[NavigationError] = None
        self.stop_results: Optional[List[StopCandidate]] = None

        self._lock = asyncio.Lock()
        self._watch_task: Optional[asyncio.Task] = None

    async def start(self) -> None:
        await self.store.dispatch(actions.StartNavigation(details=self.trip))
        await self.refresh_route()
        self._watch_task = asyncio.create_task(self.watch())

    # ------------------------------------------------------------------ #
    # Route
    # ------------------------------------------------------------------ #
    @property
    def steps(self) -> List[Step]:
        return self.route.steps if self.route else []

    @property
    def current_step(self) -> Optional[Step]:
        steps = self.steps
        return steps[self.step_index] if self.step_index < len(steps) else None

    def _resolve(self, value: str):
        location = parse_route_location(value)
        if location == CURRENT_LOCATION:
            return self.user_location
        return location

    async def refresh_route(self) -> Optional[Route]:
        origin = self._resolve(self.trip.from_)
        destination = self._resolve(self.trip.to)
        if origin is None or destination is None:
            logger.debug("Route endpoints not resolved yet")
            return None

        route = await self.map_service.get_directions(origin, destination, self.waypoints)
        if route is None:
            self.error = NavigationError(type="generic", message="Could not fetch directions.")
            return None

        self.route = route
        self.step_index = self._anchor_step(route.steps)
        self.error = None
        if route.legs:
            leg = route.legs[0]
            eta = datetime.now() + timedelta(seconds=leg.duration_seconds)
            self.trip_metrics = TripMetrics(
                eta=eta.strftime("%H:%M"),
                remaining_distance=leg.distance_text or "--",
                duration=leg.duration_text or "--",
            )
        return route

    def _anchor_step(self, steps: List[Step]) -> int:
        """
        Step to follow on a freshly fetched route.

        With a known position this is the step whose end lies nearest the
        driver (or the one after it when that turn is already within the
        advance threshold). The pointer never moves back.
        """
        if not steps:
            return 0
        last = len(steps) - 1
        if self.user_location is None:
            return min(self.step_index, last)

        position = self.user_location
        distances = [
            self.map_service.calculate_distance(
                position.lat, position.lng, s.end_location.lat, s.end_location.lng
            )
            for s in steps
        ]
        nearest = min(range(len(steps)), key=distances.__getitem__)
        if distances[nearest] < self.settings.step_advance_threshold_meters:
            nearest += 1
        return min(max(nearest, self.step_index), last)

    # ------------------------------------------------------------------ #
    # Position tracking
    # ------------------------------------------------------------------ #
    async def handle_position(self, position: LatLng) -> None:
        async with self._lock:
            first_fix = self.user_location is None
            rerouted = False
            self.user_location = position

            if self.is_auto_centering:
                self.camera_center = position

            if self.trip.from_ == CURRENT_LOCATION:
                address = await self.map_service.reverse_geocode(position.lat, position.lng)
                if address and address != UNKNOWN_LOCATION:
                    self.trip = self.trip.model_copy(update={"from_": address})
                    rerouted = await self.refresh_route() is not None
                elif first_fix and self.route is None:
                    rerouted = await self.refresh_route() is not None

            self._advance(position, move=not rerouted)

    def _advance(self, position: LatLng, move: bool = True) -> None:
        step = self.current_step
        if step is None:
            return

        distance = self.map_service.calculate_distance(
            position.lat, position.lng, step.end_location.lat, step.end_location.lng
        )
        self.distance_to_next_turn = format_distance(distance)

        if move and distance < self.settings.step_advance_threshold_meters and self.step_index < len(self.steps) - 1:
            self.step_index += 1

    async def watch(self) -> None:
        try:
            async for position in self.geolocation.watch():
                await self.handle_position(position)
        except GeolocationError as e:
            logger.error("Location watch failed: %s", e)
            if e.is_permission:
                self.error = NavigationError(type="permission", message="Location permission denied.")
            else:
                self.error = NavigationError(type="generic", message=e.message)

    def on_user_pan(self) -> None:
        self.is_auto_centering = False

    def recenter(self) -> None:
        if self.user_location is None:
            return
        self.camera_center = self.user_location
        self.camera_zoom = RECENTER_ZOOM
        self.is_auto_centering = True

    # ------------------------------------------------------------------ #
    # Stops
    # ------------------------------------------------------------------ #
    async def add_stop_category(self, keyword: str) -> List[StopCandidate]:
        """Nearby places of one category, closest first."""
        position = self.user_location
        if position is None:
            self.error = NavigationError(type="generic", message="Could not get current location.")
            return []

        self.stop_results = None
        places = await self.map_service.search_nearby_places(keyword, position)
        candidates = []
        for place in places:
            if place.geometry is None:
                continue
            location = place.geometry.location
            distance = self.map_service.calculate_distance(position.lat, position.lng, location.lat, location.lng)
            candidates.append(StopCandidate(
                place=place, distance_meters=distance, distance_text=format_distance(distance),
            ))

        if not candidates:
            self.error = NavigationError(type="generic", message=f"No {keyword} found nearby.")
            return []

        candidates.sort(key=lambda c: c.distance_meters)
        self.stop_results = candidates
        return candidates

    async def _add_waypoint(self, location) -> None:
        self.waypoints = self.waypoints + [Waypoint(location=location, stopover=True)]
        await self.refresh_route()

    async def select_stop(self, candidate: StopCandidate) -> None:
        place: Place = candidate.place
        location = place.geometry.location if place.geometry else place.name
        self.stop_results = None
        await self._add_waypoint(location)

    async def select_place(self, place_id: str) -> bool:
        details = await self.map_service.get_place_details(place_id)
        if details is None or details.geometry is None:
            self.error = NavigationError(type="generic", message="Could not get details for selected stop.")
            return False
        await self._add_waypoint(details.geometry.location)
        return True

    async def remove_all_stops(self) -> None:
        self.waypoints = []
        await self.refresh_route()

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #
    def _stops_payload(self) -> List[dict]:
        return [
            {"location": wp.location.model_dump(), "stopover": wp.stopover}
            for wp in self.waypoints
            if isinstance(wp.location, LatLng)
        ]

    async def end(self) -> Optional[TripSummary]:
        """Stop tracking and record the trip."""
        await self.close()
        distance_km = round(self.route.distance_meters / 1000, 1) if self.route else 0
        return await self.store.dispatch(actions.EndNavigation(
            distance_km=distance_km,
            stops=self._stops_payload(),
        ))

    async def close(self) -> None:
        task, self._watch_task = self._watch_task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
