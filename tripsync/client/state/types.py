"""
Client-side data types.

Wire-facing models use the backend's camelCase field names; everything
else is ephemeral view state derived from map provider results.
"""

import enum
from typing import List, Optional, Union
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True


class Screen(str, enum.Enum):
    SPLASH = "splash"
    LOGIN = "login"
    PROFILE_SETUP_1 = "profile_setup_1"
    PROFILE_SETUP_2 = "profile_setup_2"
    HOME = "home"
    MAIN = "main"


class MainTab(str, enum.Enum):
    HOME = "home"
    SAKHA = "sakha"  # live navigation tab
    PLANNER = "planner"
    TRIPS = "trips"
    PROFILE = "profile"


class Theme(str, enum.Enum):
    LIGHT = "light"
    DARK = "dark"


class VehicleCollection(str, enum.Enum):
    TWO_WHEELERS = "twoWheelers"
    FOUR_WHEELERS = "fourWheelers"


class TravelMode(str, enum.Enum):
    TWO_WHEELER = "2W"
    FOUR_WHEELER = "4W"


class LatLng(BaseModel):
    lat: float
    lng: float


class Vehicle(CamelModel):
    id: str
    reg_number: str = ""


class UserProfile(CamelModel):
    """Signed-in user as returned by /auth/login and /auth/signup."""
    id: int
    phone: str
    name: str
    two_wheelers: List[Vehicle] = []
    four_wheelers: List[Vehicle] = []
    access_token: Optional[str] = None

    def vehicles(self, collection: VehicleCollection) -> List[Vehicle]:
        if collection == VehicleCollection.TWO_WHEELERS:
            return self.two_wheelers
        return self.four_wheelers


class ProfileSetupData(BaseModel):
    name: str
    num_two_wheelers: int = 0
    num_four_wheelers: int = 0


class SavedRoute(CamelModel):
    id: int
    origin: str
    destination: str
    stay: Optional[str] = None

    @property
    def key(self) -> tuple:
        return (self.origin, self.destination)


class TripSummary(CamelModel):
    """A persisted trip as the trips screen shows it."""
    id: int
    trip_name: str
    from_: str = Field(alias="from")
    to: str
    date: str
    start_time: str
    distance: float = 0
    vehicle_number: Optional[str] = None
    travelers: int = 1
    stops: int = 0
    mode: TravelMode = TravelMode.FOUR_WHEELER
    status: str = "planned"


class TripDetails(CamelModel):
    """In-flight navigation context, discarded once the trip is saved."""
    from_: str = Field(alias="from")
    to: str
    vehicle_number: Optional[str] = None
    travelers: int = 1
    mode: TravelMode = TravelMode.FOUR_WHEELER
    stops: int = 0


class PlacePrediction(BaseModel):
    description: str
    place_id: str
    main_text: str = ""
    secondary_text: str = ""


class Geometry(BaseModel):
    location: LatLng


class Place(BaseModel):
    """Normalized text/nearby search result."""
    id: str
    name: str
    vicinity: str = ""
    rating: Optional[float] = None
    user_ratings_total: Optional[int] = None
    geometry: Optional[Geometry] = None
    photos: List[str] = []
    icon: Optional[str] = None


class PlaceDetails(BaseModel):
    place_id: str
    name: str = ""
    formatted_address: str = ""
    geometry: Optional[Geometry] = None
    photos: List[str] = []
    rating: Optional[float] = None


class PlaceCard(BaseModel):
    """Stay or attraction entry shown by the planner."""
    id: str
    name: str
    distance: str
    rating: float
    image: str


class Step(BaseModel):
    instruction: str
    maneuver: Optional[str] = None
    distance_text: str = ""
    distance_meters: int = 0
    duration_text: str = ""
    duration_seconds: int = 0
    end_location: LatLng


class Leg(BaseModel):
    start_address: str = ""
    end_address: str = ""
    distance_text: str = ""
    distance_meters: int = 0
    duration_text: str = ""
    duration_seconds: int = 0
    steps: List[Step] = []


class Route(BaseModel):
    summary: str = ""
    legs: List[Leg] = []
    overview_polyline: str = ""

    @property
    def distance_meters(self) -> int:
        return sum(leg.distance_meters for leg in self.legs)

    @property
    def steps(self) -> List[Step]:
        return [step for leg in self.legs for step in leg.steps]


RouteLocation = Union[LatLng, str]


class Waypoint(BaseModel):
    location: RouteLocation
    stopover: bool = True


class StopCandidate(BaseModel):
    """Nearby search result annotated with its distance from the traveler."""
    place: Place
    distance_meters: float
    distance_text: str
