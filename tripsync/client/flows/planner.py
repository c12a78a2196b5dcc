"""
Trip planner flow.

Three explicit steps, each with its own state model:

    1. DestinationState      pick where to go ("Current Location" resolves
                             through geolocation and reverse geocoding)
    2. StaySelectionState    enter a planned stay or pick one of the
                             lodging suggestions near the destination
    3. AttractionState       attractions near the destination, each one
                             toggled as a saved route from the stay
"""

import enum
import logging
from typing import List, Optional

from pydantic import BaseModel

from tripsync.client.config import ClientSettings, client_settings
from tripsync.client.services.debounce import Debouncer
from tripsync.client.services.device import GeolocationError, GeolocationProvider
from tripsync.client.services.geo import CURRENT_LOCATION
from tripsync.client.services.map_service import UNKNOWN_LOCATION, MapService
from tripsync.client.services.voice import VoiceSearch
from tripsync.client.state import actions
from tripsync.client.state.store import AppStore
from tripsync.client.state.types import LatLng, Place, PlaceCard, PlacePrediction, Screen

logger = logging.getLogger(__name__)

LODGING_KEYWORD = "hotels and resorts"
ATTRACTION_KEYWORD = "tourist attractions"
MAX_SUGGESTIONS = 15
DEFAULT_STAY_RATING = 4.0
DEFAULT_ATTRACTION_RATING = 4.2

STAY_IMAGES = [
    "https://images.unsplash.com/photo-1582719508461-905c673771fd?q=80&w=2825&auto=format&fit=crop",
    "https://images.unsplash.com/photo-1566073771259-6a8506099945?q=80&w=2940&auto=format&fit=crop",
    "https://images.unsplash.com/photo-1551882547-ff40c63fe5fa?q=80&w=2940&auto=format&fit=crop",
    "https://images.unsplash.com/photo-1445019980597-93fa8acb246c?q=80&w=2948&auto=format&fit=crop",
]
ATTRACTION_IMAGES = [
    "https://images.unsplash.com/photo-1500835556837-99ac94a94552?q=80&w=2574&auto=format&fit=crop",
    "https://images.unsplash.com/photo-1476514525535-07fb3b4ae5f1?q=80&w=2940&auto=format&fit=crop",
    "https://images.unsplash.com/photo-1469854523086-cc02fe5d8800?q=80&w=2021&auto=format&fit=crop",
    "https://images.unsplash.com/photo-1533929736472-594e45db7054?q=80&w=2940&auto=format&fit=crop",
]

LOCATION_FALLBACK_MESSAGE = "Could not get your location. Please enter a destination manually."
STAYS_ERROR_MESSAGE = "Could not find any stays. Please try a different destination."
ATTRACTIONS_ERROR_MESSAGE = "Could not find attractions for this destination."

DESTINATION_FIELD = "destination"
STAY_FIELD = "stay"


class PlannerStep(int, enum.Enum):
    DESTINATION = 1
    STAY_SELECTION = 2
    ATTRACTIONS = 3


class DestinationState(BaseModel):
    destination: str = CURRENT_LOCATION
    predictions: List[PlacePrediction] = []
    location_error: Optional[str] = None
    is_fetching_location: bool = False


class StaySelectionState(BaseModel):
    has_stay_planned: bool = False
    stay_location: str = ""
    predictions: List[PlacePrediction] = []
    stays: List[PlaceCard] = []
    is_loading_stays: bool = False
    stays_error: Optional[str] = None
    selected_stay_id: Optional[str] = None


class AttractionState(BaseModel):
    attractions: List[PlaceCard] = []
    is_loading: bool = False
    attractions_error: Optional[str] = None


def to_place_cards(places: List[Place], default_rating: float, images: List[str],
                   default_distance: str = "") -> List[PlaceCard]:
    return [
        PlaceCard(
            id=place.id,
            name=place.name,
            distance=place.vicinity or default_distance,
            rating=place.rating or default_rating,
            image=place.photos[0] if place.photos else images[i % len(images)],
        )
        for i, place in enumerate(places[:MAX_SUGGESTIONS])
    ]


class PlannerFlow:

    def __init__(
        self,
        map_service: MapService,
        store: AppStore,
        geolocation: GeolocationProvider,
        voice: Optional[VoiceSearch] = None,
        debouncer: Optional[Debouncer] = None,
        settings: ClientSettings = client_settings,
    ):
        self.map_service = map_service
        self.store = store
        self.geolocation = geolocation
        self.voice = voice
        self.debouncer = debouncer or Debouncer(settings.autocomplete_debounce_ms)
        self.settings = settings

        self.step = PlannerStep.DESTINATION
        self.destination_state = DestinationState()
        self.stay_state = StaySelectionState()
        self.attraction_state = AttractionState()
        self._load_token = 0

    # ------------------------------------------------------------------ #
    # Step 1: destination
    # ------------------------------------------------------------------ #
    @property
    def destination(self) -> str:
        return self.destination_state.destination

    def focus_destination(self) -> None:
        if self.destination == CURRENT_LOCATION:
            self.set_destination("")

    def blur_destination(self) -> None:
        if not self.destination.strip():
            self.set_destination(CURRENT_LOCATION)

    def set_destination(self, text: str) -> None:
        self.destination_state.destination = text
        if len(text) < self.settings.min_prediction_chars or text == CURRENT_LOCATION:
            self.debouncer.invalidate(DESTINATION_FIELD)
            self.destination_state.predictions = []
            return
        self.debouncer.schedule(
            DESTINATION_FIELD,
            lambda: self.map_service.get_place_predictions(text),
            self._apply_destination_predictions,
        )

    def _apply_destination_predictions(self, predictions: List[PlacePrediction]) -> None:
        self.destination_state.predictions = predictions

    async def submit_destination(self) -> bool:
        """Advance to stay selection. Returns True when the step changed."""
        state = self.destination_state
        state.location_error = None
        if self.step != PlannerStep.DESTINATION or not state.destination:
            return False

        if state.destination == CURRENT_LOCATION:
            address = await self._resolve_current_location()
            if address is None:
                return False
            state.destination = address

        self.debouncer.invalidate(DESTINATION_FIELD)
        state.predictions = []
        self.step = PlannerStep.STAY_SELECTION
        if not self.stay_state.has_stay_planned:
            await self._load_stays()
        return True

    async def _resolve_current_location(self) -> Optional[str]:
        state = self.destination_state
        state.is_fetching_location = True
        try:
            position = await self.geolocation.current_position(self.settings.geolocation_timeout_seconds)
            address = await self.map_service.reverse_geocode(position.lat, position.lng)
        except GeolocationError as e:
            logger.error("Error getting current location for planner: %s", e)
            state.location_error = e.message
            return None
        finally:
            state.is_fetching_location = False

        if not address or address == UNKNOWN_LOCATION:
            state.location_error = LOCATION_FALLBACK_MESSAGE
            return None
        return address

    async def retry_location(self) -> bool:
        return await self.submit_destination()

    def dismiss_location_error(self) -> None:
        self.destination_state.location_error = None
        if self.destination == CURRENT_LOCATION:
            self.destination_state.destination = ""

    # ------------------------------------------------------------------ #
    # Step 2: stay
    # ------------------------------------------------------------------ #
    def set_stay_location(self, text: str) -> None:
        self.stay_state.stay_location = text
        if len(text) < self.settings.min_prediction_chars:
            self.debouncer.invalidate(STAY_FIELD)
            self.stay_state.predictions = []
            return

        query = f"{text} near {self.destination}" if self.destination else text
        self.debouncer.schedule(
            STAY_FIELD,
            lambda: self.map_service.get_place_predictions(query),
            self._apply_stay_predictions,
        )

    def _apply_stay_predictions(self, predictions: List[PlacePrediction]) -> None:
        self.stay_state.predictions = predictions

    async def set_has_stay_planned(self, value: bool) -> None:
        if value == self.stay_state.has_stay_planned:
            return
        self.stay_state.has_stay_planned = value
        if not value and self.step == PlannerStep.STAY_SELECTION:
            await self._load_stays()

    async def toggle_stay_planned(self) -> None:
        await self.set_has_stay_planned(not self.stay_state.has_stay_planned)

    def select_stay(self, stay_id: str) -> None:
        self.stay_state.selected_stay_id = stay_id

    @property
    def stay_name(self) -> Optional[str]:
        state = self.stay_state
        if state.has_stay_planned:
            return state.stay_location or None
        selected = next((s for s in state.stays if s.id == state.selected_stay_id), None)
        return selected.name if selected else None

    @property
    def can_submit_stay(self) -> bool:
        state = self.stay_state
        if state.has_stay_planned:
            return bool(state.stay_location)
        return state.selected_stay_id is not None

    async def submit_stay(self) -> bool:
        if self.step != PlannerStep.STAY_SELECTION or not self.can_submit_stay:
            return False
        self.debouncer.invalidate(STAY_FIELD)
        self.stay_state.predictions = []
        self.step = PlannerStep.ATTRACTIONS
        await self._load_attractions()
        return True

    async def _resolve_destination_coords(self) -> Optional[LatLng]:
        results = await self.map_service.search_nearby_places(self.destination)
        if results and results[0].geometry:
            return results[0].geometry.location
        logger.warning("Failed to resolve coords for %s", self.destination)
        return None

    async def _load_stays(self) -> None:
        self._load_token += 1
        token = self._load_token
        state = self.stay_state
        state.is_loading_stays = True
        state.stays_error = None
        state.stays = []
        state.selected_stay_id = None

        coords = await self._resolve_destination_coords()
        results = await self.map_service.search_nearby_places(
            LODGING_KEYWORD, coords, self.settings.search_radius_meters
        )
        if token != self._load_token:
            return

        if results:
            state.stays = to_place_cards(results, DEFAULT_STAY_RATING, STAY_IMAGES)
        else:
            state.stays_error = STAYS_ERROR_MESSAGE
        state.is_loading_stays = False

    # ------------------------------------------------------------------ #
    # Step 3: attractions
    # ------------------------------------------------------------------ #
    async def _load_attractions(self) -> None:
        self._load_token += 1
        token = self._load_token
        state = self.attraction_state
        state.is_loading = True
        state.attractions_error = None
        state.attractions = []

        coords = await self._resolve_destination_coords()
        results = await self.map_service.search_nearby_places(
            ATTRACTION_KEYWORD, coords, self.settings.search_radius_meters
        )
        if token != self._load_token:
            return

        if results:
            state.attractions = to_place_cards(
                results, DEFAULT_ATTRACTION_RATING, ATTRACTION_IMAGES, "Details unavailable"
            )
        else:
            state.attractions_error = ATTRACTIONS_ERROR_MESSAGE
        state.is_loading = False

    def is_attraction_saved(self, card: PlaceCard) -> bool:
        stay = self.stay_name
        return stay is not None and self.store.find_route(stay, card.name) is not None

    async def toggle_attraction(self, card: PlaceCard) -> bool:
        """Save or unsave the route stay -> attraction. Returns the new saved state."""
        stay = self.stay_name
        if not stay:
            return False
        return await self.store.dispatch(actions.ToggleRoute(origin=stay, destination=card.name, stay=stay))

    async def complete_and_go_home(self) -> None:
        await self.debouncer.close()
        self._load_token += 1
        self.step = PlannerStep.DESTINATION
        self.destination_state = DestinationState()
        self.stay_state = StaySelectionState()
        self.attraction_state = AttractionState()
        await self.store.dispatch(actions.SetScreen(screen=Screen.HOME))

    async def back(self) -> None:
        """One step back, keeping what was entered earlier."""
        if self.step == PlannerStep.ATTRACTIONS:
            self._load_token += 1
            self.attraction_state = AttractionState()
            self.step = PlannerStep.STAY_SELECTION
        elif self.step == PlannerStep.STAY_SELECTION:
            self._load_token += 1
            self.debouncer.invalidate(STAY_FIELD)
            self.stay_state = self.stay_state.model_copy(update={
                "predictions": [], "stays": [], "stays_error": None,
                "is_loading_stays": False, "selected_stay_id": None,
            })
            self.step = PlannerStep.DESTINATION

    # ------------------------------------------------------------------ #
    # Shared input helpers
    # ------------------------------------------------------------------ #
    def select_prediction(self, field: str, prediction: PlacePrediction) -> None:
        self.debouncer.invalidate(field)
        if field == DESTINATION_FIELD:
            self.destination_state.destination = prediction.description
            self.destination_state.predictions = []
        elif field == STAY_FIELD:
            self.stay_state.stay_location = prediction.description
            self.stay_state.predictions = []
        else:
            raise ValueError(f"Unknown planner field {field!r}")

    def _apply_transcript(self, field: str, transcript: str) -> None:
        if field == DESTINATION_FIELD:
            self.set_destination(transcript)
        else:
            self.set_stay_location(transcript)

    async def toggle_voice(self, field: str) -> bool:
        if self.voice is None:
            return False
        return await self.voice.toggle(field, self._apply_transcript)

    async def close(self) -> None:
        await self.debouncer.close()
        if self.voice is not None:
            await self.voice.stop()
