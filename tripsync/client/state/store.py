"""
Application state store.

Single owner of cross-screen client state. Screens and flows read
``store.state`` and change it only through ``await store.dispatch(action)``.
Server-backed collections (trips, saved routes, vehicles) are synchronized
with the backend through ApiClient; failures are logged and reported to the
user through the ``notify`` callback.
"""

import logging
import uuid
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel

from tripsync.client.services.api_client import ApiClient, ApiError
from tripsync.client.services.geo import CURRENT_LOCATION
from tripsync.client.services.storage import PersistentClientState
from tripsync.client.state import actions
from tripsync.client.state.types import (
    MainTab, ProfileSetupData, SavedRoute, Screen, Theme, TravelMode, TripDetails,
    TripSummary, UserProfile, Vehicle, VehicleCollection,
)

logger = logging.getLogger(__name__)


class PendingSignup(BaseModel):
    phone: str
    password: str


class AppState(BaseModel):
    screen: Screen = Screen.SPLASH
    user: Optional[UserProfile] = None
    saved_routes: List[SavedRoute] = []
    trips: List[TripSummary] = []
    navigation_origin: Optional[str] = CURRENT_LOCATION
    navigation_destination: Optional[str] = None
    profile_setup_data: Optional[ProfileSetupData] = None
    pending_signup: Optional[PendingSignup] = None
    active_tab: MainTab = MainTab.HOME
    active_modal: Optional[str] = None
    is_navigating: bool = False
    current_trip_details: Optional[TripDetails] = None
    theme: Theme = Theme.DARK


class ActionResult(BaseModel):
    success: bool
    message: Optional[str] = None


def format_trip_date(value: date) -> str:
    return f"{value:%b} {value.day}, {value.year}"


def trip_summary_from_response(data: Dict[str, Any], mode: TravelMode = TravelMode.FOUR_WHEELER,
                               distance_km: float = 0) -> TripSummary:
    """Map a /trips response body onto the trips screen view."""
    start_date = date.fromisoformat(data["startDate"])
    return TripSummary(
        id=data["id"],
        trip_name=f"Trip to {data['destination']}",
        from_=data["origin"],
        to=data["destination"],
        date=format_trip_date(start_date),
        start_time=data["startTime"],
        distance=distance_km,
        vehicle_number=data.get("vehicle"),
        travelers=data.get("travelers", 1),
        stops=len(data.get("stops") or []),
        mode=mode,
        status=data.get("status", "planned"),
    )


class AppStore:

    def __init__(
        self,
        api: ApiClient,
        storage: PersistentClientState,
        notify: Optional[Callable[[str], None]] = None,
    ):
        self.api = api
        self.storage = storage
        self.notify = notify or (lambda message: logger.info("Notify: %s", message))
        self.state = AppState()
        self._listeners: List[Callable[[AppState], None]] = []
        self._handlers = {
            actions.FinishSplash: self._finish_splash,
            actions.Login: self._login,
            actions.Signup: self._signup,
            actions.Logout: self._logout,
            actions.StartProfileSetup: self._start_profile_setup,
            actions.CompleteProfileSetup: self._complete_profile_setup,
            actions.SkipProfileSetup: self._skip_profile_setup,
            actions.FetchTrips: self._fetch_trips,
            actions.FetchSavedRoutes: self._fetch_saved_routes,
            actions.AddRoute: self._add_route,
            actions.RemoveRoute: self._remove_route,
            actions.ToggleRoute: self._toggle_route,
            actions.ReverseRoute: self._reverse_route,
            actions.AddTrip: self._add_trip,
            actions.RemoveTrip: self._remove_trip,
            actions.ClearTrips: self._clear_trips,
            actions.StartNavigation: self._start_navigation,
            actions.EndNavigation: self._end_navigation,
            actions.StartNavigationFrom: self._start_navigation_from,
            actions.AddVehicle: self._add_vehicle,
            actions.RemoveVehicle: self._remove_vehicle,
            actions.UpdateVehicle: self._update_vehicle,
            actions.SetScreen: self._set_screen,
            actions.SetActiveTab: self._set_active_tab,
            actions.SetActiveModal: self._set_active_modal,
            actions.SetTheme: self._set_theme,
        }

    def subscribe(self, listener: Callable[[AppState], None]) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    async def start(self) -> None:
        """Restore persisted keys; a restored user gets their data fetched."""
        self.state.screen = await self.storage.load_screen()
        self.state.active_tab = await self.storage.load_active_tab()
        self.state.theme = await self.storage.load_theme()
        user = await self.storage.load_user()
        if user is not None:
            await self._set_user(user)
        self._emit()

    async def dispatch(self, action: actions.Action) -> Any:
        handler = self._handlers.get(type(action))
        if handler is None:
            raise ValueError(f"Unknown action {type(action).__name__}")
        result = await handler(action)
        self._emit()
        return result

    def _emit(self) -> None:
        for listener in list(self._listeners):
            listener(self.state)

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #
    async def _set_screen(self, action: actions.SetScreen) -> None:
        self.state.screen = action.screen
        await self.storage.save_screen(action.screen)

    async def _goto(self, screen: Screen) -> None:
        await self._set_screen(actions.SetScreen(screen=screen))

    async def _set_user(self, user: Optional[UserProfile]) -> None:
        self.state.user = user
        self.api.token = user.access_token if user else None
        await self.storage.save_user(user)
        if user is not None:
            await self._fetch_trips(actions.FetchTrips())
            await self._fetch_saved_routes(actions.FetchSavedRoutes())
        else:
            self.state.trips = []
            self.state.saved_routes = []

    async def _store_user_profile(self, data: Dict[str, Any]) -> None:
        """Keep the session token when the server returns a bare profile."""
        profile = UserProfile.model_validate(data)
        if profile.access_token is None and self.state.user is not None:
            profile.access_token = self.state.user.access_token
        self.state.user = profile
        await self.storage.save_user(profile)

    def _report(self, message: str, error: ApiError) -> None:
        logger.error("%s: %s", message, error)
        self.notify(message)

    # ------------------------------------------------------------------ #
    # Session / onboarding
    # ------------------------------------------------------------------ #
    async def _finish_splash(self, action: actions.FinishSplash) -> None:
        if self.state.screen == Screen.SPLASH:
            await self._goto(Screen.HOME if self.state.user else Screen.LOGIN)

    async def _login(self, action: actions.Login) -> ActionResult:
        try:
            data = await self.api.login(action.phone, action.password)
        except ApiError as e:
            logger.error("Login failed: %s", e)
            return ActionResult(success=False, message=e.message or "Login failed")

        await self._set_user(UserProfile.model_validate(data))
        await self._goto(Screen.HOME)
        return ActionResult(success=True)

    async def _signup(self, action: actions.Signup) -> ActionResult:
        # Account creation is deferred until the profile steps are done
        self.state.pending_signup = PendingSignup(phone=action.phone, password=action.password)
        await self._goto(Screen.PROFILE_SETUP_1)
        return ActionResult(success=True)

    async def _logout(self, action: actions.Logout) -> None:
        await self._set_user(None)
        await self._goto(Screen.LOGIN)

    async def _start_profile_setup(self, action: actions.StartProfileSetup) -> None:
        self.state.profile_setup_data = action.data
        await self._goto(Screen.PROFILE_SETUP_2)

    async def _create_account(self, two_wheelers: List[dict], four_wheelers: List[dict]) -> ActionResult:
        setup, pending = self.state.profile_setup_data, self.state.pending_signup
        if setup is None or pending is None:
            return ActionResult(success=False, message="Profile setup has not been started")

        payload = {
            "name": setup.name,
            "phone": pending.phone,
            "password": pending.password,
            "twoWheelers": two_wheelers,
            "fourWheelers": four_wheelers,
        }
        try:
            data = await self.api.signup(payload)
        except ApiError as e:
            self._report(f"Signup failed: {e.message}", e)
            return ActionResult(success=False, message=e.message)

        self.state.profile_setup_data = None
        self.state.pending_signup = None
        await self._set_user(UserProfile.model_validate(data))
        await self._goto(Screen.HOME)
        return ActionResult(success=True)

    async def _complete_profile_setup(self, action: actions.CompleteProfileSetup) -> ActionResult:
        return await self._create_account(
            [{"id": f"tw{i}", "regNumber": reg} for i, reg in enumerate(action.two_wheelers)],
            [{"id": f"fw{i}", "regNumber": reg} for i, reg in enumerate(action.four_wheelers)],
        )

    async def _skip_profile_setup(self, action: actions.SkipProfileSetup) -> ActionResult:
        setup = self.state.profile_setup_data
        if setup is None:
            return ActionResult(success=False, message="Profile setup has not been started")
        return await self._create_account(
            [{"id": f"tw_skip_{i}", "regNumber": ""} for i in range(setup.num_two_wheelers)],
            [{"id": f"fw_skip_{i}", "regNumber": ""} for i in range(setup.num_four_wheelers)],
        )

    # ------------------------------------------------------------------ #
    # Trips
    # ------------------------------------------------------------------ #
    async def _fetch_trips(self, action: actions.FetchTrips) -> None:
        try:
            data = await self.api.list_trips()
        except ApiError as e:
            logger.error("Error fetching trips: %s", e)
            return
        self.state.trips = [trip_summary_from_response(t) for t in data]

    async def _add_trip(self, action: actions.AddTrip) -> Optional[TripSummary]:
        details = action.details
        now = datetime.now()
        payload = {
            "origin": details.from_,
            "destination": details.to,
            "startDate": now.date().isoformat(),
            "startTime": now.strftime("%I:%M %p"),
            "vehicle": details.vehicle_number,
            "travelers": details.travelers,
            "tripType": "one-way",
            "stops": action.stops,
        }
        try:
            data = await self.api.create_trip(payload)
        except ApiError as e:
            self._report("Failed to add trip", e)
            return None

        trip = trip_summary_from_response(data, mode=details.mode, distance_km=action.distance_km)
        self.state.trips = [trip] + self.state.trips
        return trip

    async def _remove_trip(self, action: actions.RemoveTrip) -> None:
        try:
            await self.api.delete_trip(action.trip_id)
        except ApiError as e:
            self._report("Failed to delete trip", e)
            return
        self.state.trips = [t for t in self.state.trips if t.id != action.trip_id]

    async def _clear_trips(self, action: actions.ClearTrips) -> None:
        # Local view only; persisted trips come back on the next fetch
        self.state.trips = []

    # ------------------------------------------------------------------ #
    # Saved routes
    # ------------------------------------------------------------------ #
    async def _fetch_saved_routes(self, action: actions.FetchSavedRoutes) -> None:
        try:
            data = await self.api.list_saved_routes()
        except ApiError as e:
            logger.error("Error fetching saved routes: %s", e)
            return
        self.state.saved_routes = [SavedRoute.model_validate(r) for r in data]

    def find_route(self, origin: str, destination: str) -> Optional[SavedRoute]:
        return next(
            (r for r in self.state.saved_routes if r.key == (origin, destination)),
            None,
        )

    async def _add_route(self, action: actions.AddRoute) -> Optional[SavedRoute]:
        try:
            data = await self.api.create_saved_route(action.origin, action.destination, action.stay)
        except ApiError as e:
            self._report("Failed to save route", e)
            return None

        route = SavedRoute.model_validate(data)
        others = [r for r in self.state.saved_routes if r.id != route.id]
        self.state.saved_routes = [route] + others
        return route

    async def _remove_route(self, action: actions.RemoveRoute) -> None:
        try:
            await self.api.delete_saved_route(action.route_id)
        except ApiError as e:
            self._report("Failed to remove route", e)
            return
        self.state.saved_routes = [r for r in self.state.saved_routes if r.id != action.route_id]

    async def _toggle_route(self, action: actions.ToggleRoute) -> bool:
        """Returns True when the route is saved after the toggle."""
        existing = self.find_route(action.origin, action.destination)
        if existing is not None:
            await self._remove_route(actions.RemoveRoute(route_id=existing.id))
            return self.find_route(action.origin, action.destination) is not None

        added = await self._add_route(actions.AddRoute(
            origin=action.origin, destination=action.destination, stay=action.stay,
        ))
        return added is not None

    async def _reverse_route(self, action: actions.ReverseRoute) -> None:
        # Swapped in the local view only; the backend keeps the saved direction
        self.state.saved_routes = [
            r.model_copy(update={"origin": r.destination, "destination": r.origin})
            if r.id == action.route_id else r
            for r in self.state.saved_routes
        ]

    # ------------------------------------------------------------------ #
    # Navigation
    # ------------------------------------------------------------------ #
    async def _start_navigation(self, action: actions.StartNavigation) -> None:
        self.state.current_trip_details = action.details
        self.state.is_navigating = True
        self.state.navigation_destination = None

    async def _end_navigation(self, action: actions.EndNavigation) -> Optional[TripSummary]:
        trip = None
        if self.state.current_trip_details is not None:
            trip = await self._add_trip(actions.AddTrip(
                details=self.state.current_trip_details,
                distance_km=action.distance_km,
                stops=action.stops,
            ))
        self.state.is_navigating = False
        self.state.current_trip_details = None
        self.state.navigation_origin = CURRENT_LOCATION
        return trip

    async def _start_navigation_from(self, action: actions.StartNavigationFrom) -> None:
        self.state.navigation_origin = action.origin
        self.state.navigation_destination = action.destination
        await self._set_active_tab(actions.SetActiveTab(tab=MainTab.SAKHA))
        await self._goto(Screen.MAIN)
        self.state.active_modal = "travelMode"

    # ------------------------------------------------------------------ #
    # Vehicles
    # ------------------------------------------------------------------ #
    async def _replace_vehicles(self, collection: VehicleCollection, vehicles: List[Vehicle]) -> bool:
        """
        Apply a vehicle change locally, then sync it. A failed sync restores
        the previous profile in state and storage and returns False.
        """
        previous = user = self.state.user
        if collection == VehicleCollection.TWO_WHEELERS:
            user = user.model_copy(update={"two_wheelers": vehicles})
        else:
            user = user.model_copy(update={"four_wheelers": vehicles})
        self.state.user = user
        await self.storage.save_user(user)

        try:
            data = await self.api.replace_vehicles(
                [v.model_dump(by_alias=True) for v in user.two_wheelers],
                [v.model_dump(by_alias=True) for v in user.four_wheelers],
            )
        except ApiError as e:
            self.state.user = previous
            await self.storage.save_user(previous)
            self._report("Failed to sync vehicles", e)
            return False
        await self._store_user_profile(data)
        return True

    async def _add_vehicle(self, action: actions.AddVehicle) -> Optional[Vehicle]:
        if self.state.user is None or not action.reg_number:
            return None

        current = self.state.user.vehicles(action.collection)
        taken = {v.id for v in current}
        vehicle_id = uuid.uuid4().hex[:12]
        while vehicle_id in taken:
            vehicle_id = uuid.uuid4().hex[:12]

        vehicle = Vehicle(id=vehicle_id, reg_number=action.reg_number)
        if not await self._replace_vehicles(action.collection, current + [vehicle]):
            return None
        return vehicle

    async def _remove_vehicle(self, action: actions.RemoveVehicle) -> None:
        if self.state.user is None:
            return
        current = self.state.user.vehicles(action.collection)
        await self._replace_vehicles(action.collection, [v for v in current if v.id != action.vehicle_id])

    async def _update_vehicle(self, action: actions.UpdateVehicle) -> None:
        if self.state.user is None:
            return
        current = self.state.user.vehicles(action.collection)
        await self._replace_vehicles(action.collection, [
            v.model_copy(update={"reg_number": action.vehicle.reg_number}) if v.id == action.vehicle.id else v
            for v in current
        ])

    # ------------------------------------------------------------------ #
    # UI
    # ------------------------------------------------------------------ #
    async def _set_active_tab(self, action: actions.SetActiveTab) -> None:
        self.state.active_tab = action.tab
        await self.storage.save_active_tab(action.tab)

    async def _set_active_modal(self, action: actions.SetActiveModal) -> None:
        self.state.active_modal = action.modal

    async def _set_theme(self, action: actions.SetTheme) -> None:
        self.state.theme = action.theme
        await self.storage.save_theme(action.theme)
