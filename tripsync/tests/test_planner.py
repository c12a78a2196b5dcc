"""
Planner flow: destination -> stay -> attractions.
"""

import asyncio

import pytest

from tripsync.client.flows.planner import (
    LOCATION_FALLBACK_MESSAGE, STAYS_ERROR_MESSAGE, STAY_IMAGES, PlannerFlow, PlannerStep,
)
from tripsync.client.services.debounce import Debouncer
from tripsync.client.services.voice import VoiceSearch
from tripsync.client.state import actions
from tripsync.client.state.types import PlacePrediction, ProfileSetupData, Screen


@pytest.fixture
def lonavala(map_provider):
    """Text search answers for a Lonavala trip."""
    hotels = [
        map_provider.place(f"h{i}", f"Hotel {i}", 18.75 + i / 1000, 73.40, rating=4.5 if i % 2 else None,
                           photo="hotelref" if i == 0 else None)
        for i in range(20)
    ]
    attractions = [
        map_provider.place("a1", "Tiger Point", 18.72, 73.37, rating=4.6),
        map_provider.place("a2", "Bhushi Dam", 18.77, 73.40),
    ]

    def textsearch(request):
        query = request.url.params["query"]
        if query == "hotels and resorts":
            return {"status": "OK", "results": hotels}
        if query == "tourist attractions":
            return {"status": "OK", "results": attractions}
        if query.startswith("Lonavala"):
            return {"status": "OK", "results": [map_provider.place("dest", "Lonavala", 18.7546, 73.4062)]}
        return {"status": "ZERO_RESULTS", "results": []}

    map_provider.responses["place/textsearch"] = textsearch
    map_provider.responses["place/autocomplete"] = lambda request: {
        "status": "OK",
        "predictions": [{"description": f"{request.url.params['input']}, Maharashtra", "place_id": "x"}],
    }
    return map_provider


@pytest.fixture
def planner(map_service, store, geolocation, recognizer, client_settings):
    return PlannerFlow(
        map_service, store, geolocation,
        voice=VoiceSearch(recognizer),
        debouncer=Debouncer(delay_ms=0),
        settings=client_settings,
    )


def lodging_searches(provider):
    return [q for q in provider.queries("place/textsearch") if q == "hotels and resorts"]


@pytest.mark.asyncio
async def test_lonavala_destination_to_stays(planner, lonavala):
    planner.focus_destination()
    assert planner.destination == ""
    assert await planner.submit_destination() is False
    assert planner.step == PlannerStep.DESTINATION

    planner.set_destination("Lonavala")
    await planner.debouncer.drain()
    assert planner.destination_state.predictions[0].description == "Lonavala, Maharashtra"

    assert await planner.submit_destination() is True
    assert planner.step == PlannerStep.STAY_SELECTION
    assert planner.destination_state.predictions == []

    # exactly one lodging search, biased to the destination coordinates
    assert len(lodging_searches(lonavala)) == 1
    lodging = [r for r in lonavala.calls("place/textsearch") if r.url.params["query"] == "hotels and resorts"][0]
    assert lodging.url.params["location"] == "18.7546,73.4062"
    assert lodging.url.params["radius"] == "5000"

    stays = planner.stay_state.stays
    assert len(stays) == 15
    assert stays[0].image.endswith("key=test-key") and "hotelref" in stays[0].image
    assert stays[1].rating == 4.5
    assert stays[2].rating == 4.0
    assert stays[2].image in STAY_IMAGES
    assert planner.stay_state.is_loading_stays is False


@pytest.mark.asyncio
async def test_stay_submission_rules(planner, lonavala):
    planner.set_destination("Lonavala")
    await planner.submit_destination()

    assert planner.can_submit_stay is False
    assert await planner.submit_stay() is False

    await planner.set_has_stay_planned(True)
    assert planner.can_submit_stay is False
    planner.set_stay_location("Fariyas Resort")
    assert planner.can_submit_stay is True
    # turning the toggle on does not search for lodging
    assert len(lodging_searches(lonavala)) == 1

    await planner.set_has_stay_planned(False)
    assert planner.can_submit_stay is False
    assert len(lodging_searches(lonavala)) == 2

    planner.select_stay("h3")
    assert planner.stay_name == "Hotel 3"
    assert await planner.submit_stay() is True
    assert planner.step == PlannerStep.ATTRACTIONS
    assert [a.name for a in planner.attraction_state.attractions] == ["Tiger Point", "Bhushi Dam"]
    assert planner.attraction_state.attractions[1].rating == 4.2


@pytest.mark.asyncio
async def test_stay_predictions_are_scoped_to_destination(planner, lonavala):
    planner.set_destination("Lonavala")
    await planner.submit_destination()
    await planner.set_has_stay_planned(True)

    planner.set_stay_location("Fa")
    planner.set_stay_location("Fariyas")
    await planner.debouncer.drain()

    assert lonavala.queries("place/autocomplete", "input") == ["Fariyas near Lonavala"]
    prediction = planner.stay_state.predictions[0]
    planner.select_prediction("stay", prediction)
    assert planner.stay_state.stay_location == "Fariyas near Lonavala, Maharashtra"
    assert planner.stay_state.predictions == []


@pytest.mark.asyncio
async def test_current_location_yields_no_predictions(planner, lonavala):
    planner.set_destination("Current Location")
    await planner.debouncer.drain()
    assert lonavala.calls("place/autocomplete") == []
    assert planner.destination_state.predictions == []


@pytest.mark.asyncio
async def test_current_location_resolves_address(planner, lonavala):
    lonavala.responses["geocode"] = {"status": "OK", "results": [{"formatted_address": "Lonavala, Maharashtra"}]}

    assert planner.destination == "Current Location"
    assert await planner.submit_destination() is True
    assert planner.destination == "Lonavala, Maharashtra"
    assert planner.step == PlannerStep.STAY_SELECTION


@pytest.mark.asyncio
async def test_current_location_unknown_address(planner, map_provider):
    assert await planner.submit_destination() is False
    assert planner.step == PlannerStep.DESTINATION
    assert planner.destination_state.location_error == LOCATION_FALLBACK_MESSAGE


@pytest.mark.asyncio
async def test_current_location_permission_denied(map_service, store, denied_geolocation, client_settings):
    planner = PlannerFlow(map_service, store, denied_geolocation, settings=client_settings)

    assert await planner.submit_destination() is False
    assert planner.destination_state.location_error == "Location access denied. Please enable location permissions."
    assert planner.destination_state.is_fetching_location is False

    planner.dismiss_location_error()
    assert planner.destination == ""
    assert planner.destination_state.location_error is None


@pytest.mark.asyncio
async def test_retry_location_after_permission_granted(map_service, store, denied_geolocation, map_provider,
                                                       client_settings):
    from tripsync.client.state.types import LatLng

    map_provider.responses["geocode"] = {"status": "OK", "results": [{"formatted_address": "Khandala"}]}
    planner = PlannerFlow(map_service, store, denied_geolocation, settings=client_settings)
    await planner.submit_destination()

    denied_geolocation.error = None
    denied_geolocation.position = LatLng(lat=18.76, lng=73.38)
    assert await planner.retry_location() is True
    assert planner.destination == "Khandala"


@pytest.mark.asyncio
async def test_no_stays_found(planner, map_provider):
    planner.set_destination("Atlantis")
    assert await planner.submit_destination() is True
    assert planner.stay_state.stays == []
    assert planner.stay_state.stays_error == STAYS_ERROR_MESSAGE


@pytest.mark.asyncio
async def test_toggle_attraction_saves_route_from_stay(planner, lonavala, store):
    await store.dispatch(actions.Signup(phone="9000000001", password="secret123"))
    await store.dispatch(actions.StartProfileSetup(data=ProfileSetupData(name="Asha")))
    await store.dispatch(actions.CompleteProfileSetup())

    planner.set_destination("Lonavala")
    await planner.submit_destination()
    await planner.set_has_stay_planned(True)
    planner.set_stay_location("Fariyas Resort")
    await planner.submit_stay()

    tiger_point = planner.attraction_state.attractions[0]
    assert await planner.toggle_attraction(tiger_point) is True
    assert planner.is_attraction_saved(tiger_point)
    assert store.state.saved_routes[0].key == ("Fariyas Resort", "Tiger Point")
    assert store.state.saved_routes[0].stay == "Fariyas Resort"

    assert await planner.toggle_attraction(tiger_point) is False
    assert not planner.is_attraction_saved(tiger_point)


@pytest.mark.asyncio
async def test_back_and_complete(planner, lonavala, store):
    planner.set_destination("Lonavala")
    await planner.submit_destination()
    planner.select_stay("h0")
    await planner.submit_stay()

    await planner.back()
    assert planner.step == PlannerStep.STAY_SELECTION
    await planner.back()
    assert planner.step == PlannerStep.DESTINATION
    assert planner.destination == "Lonavala"

    await planner.submit_destination()
    await planner.complete_and_go_home()
    assert planner.step == PlannerStep.DESTINATION
    assert planner.destination == "Current Location"
    assert planner.stay_state.has_stay_planned is False
    assert store.state.screen == Screen.HOME


@pytest.mark.asyncio
async def test_voice_fills_destination(planner, recognizer, lonavala):
    assert await planner.toggle_voice("destination") is True
    recognizer.transcripts.put_nowait("Lonavala")
    await planner.voice.wait()
    await planner.debouncer.drain()

    assert planner.destination == "Lonavala"
    assert planner.destination_state.predictions

    # a second tap while listening only stops the session
    await planner.toggle_voice("stay")
    await asyncio.sleep(0)
    assert await planner.toggle_voice("stay") is False
    assert recognizer.stopped == 1


@pytest.mark.asyncio
async def test_select_prediction_unknown_field(planner):
    with pytest.raises(ValueError):
        planner.select_prediction("origin", PlacePrediction(description="x", place_id="y"))
