"""
Actions accepted by AppStore.dispatch().
"""

from typing import List, Optional
from pydantic import BaseModel

from tripsync.client.state.types import (
    MainTab, ProfileSetupData, Screen, Theme, TripDetails, Vehicle, VehicleCollection,
)


class Action(BaseModel):
    class Config:
        frozen = True


# Session / onboarding

class FinishSplash(Action):
    pass


class Login(Action):
    phone: str
    password: str


class Signup(Action):
    phone: str
    password: str


class Logout(Action):
    pass


class StartProfileSetup(Action):
    data: ProfileSetupData


class CompleteProfileSetup(Action):
    two_wheelers: List[str] = []
    four_wheelers: List[str] = []


class SkipProfileSetup(Action):
    pass


# Server-backed collections

class FetchTrips(Action):
    pass


class FetchSavedRoutes(Action):
    pass


class AddRoute(Action):
    origin: str
    destination: str
    stay: Optional[str] = None


class RemoveRoute(Action):
    route_id: int


class ToggleRoute(Action):
    """Remove the route keyed by (origin, destination) if saved, else save it."""
    origin: str
    destination: str
    stay: Optional[str] = None


class ReverseRoute(Action):
    route_id: int


class AddTrip(Action):
    details: TripDetails
    distance_km: float = 0
    stops: List[dict] = []


class RemoveTrip(Action):
    trip_id: int


class ClearTrips(Action):
    pass


# Navigation

class StartNavigation(Action):
    details: TripDetails


class EndNavigation(Action):
    distance_km: float = 0
    stops: List[dict] = []


class StartNavigationFrom(Action):
    origin: str
    destination: str


# Vehicles

class AddVehicle(Action):
    collection: VehicleCollection
    reg_number: str


class RemoveVehicle(Action):
    collection: VehicleCollection
    vehicle_id: str


class UpdateVehicle(Action):
    collection: VehicleCollection
    vehicle: Vehicle


# UI

class SetScreen(Action):
    screen: Screen


class SetActiveTab(Action):
    tab: MainTab


class SetActiveModal(Action):
    modal: Optional[str] = None


class SetTheme(Action):
    theme: Theme
