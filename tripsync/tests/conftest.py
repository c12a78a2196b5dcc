"""
Centralized Test Configuration.
"""

import asyncio

import httpx
import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import Pool, StaticPool

from tripsync.app.main import app
from tripsync.app.db.session import get_db, Base
from tripsync.client.config import ClientSettings
from tripsync.client.services.api_client import ApiClient
from tripsync.client.services.device import GeolocationError
from tripsync.client.services.map_service import MapService
from tripsync.client.services.storage import PersistentClientState
from tripsync.client.state.store import AppStore
from tripsync.client.state.types import LatLng

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@event.listens_for(Pool, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    if 'sqlite' in str(type(dbapi_conn)):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


engine = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


async def override_get_db():
    async with TestingSessionLocal() as session:
        yield session

app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
async def setup_database():
    """Create tables before each test function and drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def client():
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def db_session():
    async with TestingSessionLocal() as session:
        yield session


@pytest.fixture
def register_user(client):
    """Sign up a user and return (profile, auth headers)."""
    async def _register(phone="9000000001", name="Asha", password="secret123", **extra):
        payload = {"name": name, "phone": phone, "password": password}
        payload.update(extra)
        response = await client.post("/v1/auth/signup", json=payload)
        assert response.status_code == 201, response.text
        data = response.json()
        return data, {"Authorization": f"Bearer {data['accessToken']}"}
    return _register


# Mock Redis for the client key-value store
class MockRedis:
    def __init__(self):
        self.store = {}
        self._closed = False

    async def ping(self):
        if self._closed:
            return False
        return True

    async def get(self, key):
        if self._closed:
            return None
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        if self._closed:
            return False
        self.store[key] = value
        return True

    async def delete(self, key):
        if self._closed:
            return 0
        if key in self.store:
            del self.store[key]
            return 1
        return 0

    async def exists(self, key):
        if self._closed:
            return 0
        return 1 if key in self.store else 0

    async def flushdb(self):
        if not self._closed:
            self.store = {}

    async def aclose(self):
        self._closed = True
        self.store = {}


@pytest.fixture
def redis_client():
    return MockRedis()


@pytest.fixture
def storage(redis_client):
    return PersistentClientState(redis_client)


@pytest.fixture
async def api_client():
    http_client = AsyncClient(transport=ASGITransport(app=app), base_url="http://test/v1")
    api = ApiClient(http_client=http_client)
    yield api
    await api.aclose()


@pytest.fixture
def notifications():
    return []


@pytest.fixture
def store(api_client, storage, notifications):
    return AppStore(api_client, storage, notify=notifications.append)


# Map provider fakes

class FakeMapProvider:
    """httpx MockTransport handler standing in for the map web services."""

    def __init__(self):
        self.requests = []
        self.responses = {}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        endpoint = request.url.path.split("/maps/api/", 1)[1].rsplit("/json", 1)[0]
        handler = self.responses.get(endpoint)
        if handler is None:
            return httpx.Response(200, json={"status": "ZERO_RESULTS", "results": []})
        payload = handler(request) if callable(handler) else handler
        if isinstance(payload, httpx.Response):
            return payload
        return httpx.Response(200, json=payload)

    def calls(self, endpoint):
        return [r for r in self.requests if f"/maps/api/{endpoint}/json" in r.url.path]

    def queries(self, endpoint, param="query"):
        return [r.url.params.get(param) for r in self.calls(endpoint)]

    @staticmethod
    def place(place_id, name, lat, lng, rating=None, photo=None, address=None):
        result = {
            "place_id": place_id,
            "name": name,
            "formatted_address": address or f"{name} Road",
            "geometry": {"location": {"lat": lat, "lng": lng}},
        }
        if rating is not None:
            result["rating"] = rating
        if photo:
            result["photos"] = [{"photo_reference": photo}]
        return result

    @staticmethod
    def step(end_lat, end_lng, text="Head north", meters=200, maneuver=None):
        step = {
            "html_instructions": f"<b>{text}</b>",
            "distance": {"text": f"{meters} m", "value": meters},
            "duration": {"text": "1 min", "value": 60},
            "end_location": {"lat": end_lat, "lng": end_lng},
        }
        if maneuver:
            step["maneuver"] = maneuver
        return step

    @staticmethod
    def directions(*legs, summary="NH48"):
        """Each leg is a list of step dicts."""
        return {
            "status": "OK",
            "routes": [{
                "summary": summary,
                "overview_polyline": {"points": "abc"},
                "legs": [
                    {
                        "start_address": "Start",
                        "end_address": "End",
                        "distance": {"text": "12.3 km", "value": sum(s["distance"]["value"] for s in steps)},
                        "duration": {"text": "25 mins", "value": 1500},
                        "steps": steps,
                    }
                    for steps in legs
                ],
            }],
        }


@pytest.fixture
def client_settings():
    return ClientSettings(
        google_maps_api_key="test-key",
        autocomplete_debounce_ms=0,
        maps_failure_threshold=3,
        maps_reset_timeout_seconds=30,
    )


@pytest.fixture
def map_provider():
    return FakeMapProvider()


@pytest.fixture
async def map_service(map_provider, client_settings):
    http_client = AsyncClient(
        transport=httpx.MockTransport(map_provider),
        base_url=client_settings.maps_base_url,
    )
    service = MapService(http_client=http_client, settings=client_settings)
    yield service
    await service.aclose()


# Device fakes

class FakeGeolocation:
    def __init__(self, position=None, error=None):
        self.position = position
        self.error = error
        self.queue = asyncio.Queue()
        self.watch_error = None

    async def current_position(self, timeout):
        if self.error is not None:
            raise self.error
        return self.position

    async def watch(self):
        if self.watch_error is not None:
            raise self.watch_error
        while True:
            position = await self.queue.get()
            if position is None:
                return
            yield position

    def push(self, lat, lng):
        self.queue.put_nowait(LatLng(lat=lat, lng=lng))


class FakeRecognizer:
    def __init__(self, supported=True, permission_error=None):
        self.supported = supported
        self.permission_error = permission_error
        self.transcripts = asyncio.Queue()
        self.stopped = 0
        self.started = 0

    def is_supported(self):
        return self.supported

    async def request_microphone(self):
        if self.permission_error is not None:
            raise self.permission_error

    async def listen(self):
        self.started += 1
        result = await self.transcripts.get()
        if isinstance(result, Exception):
            raise result
        return result

    async def stop(self):
        self.stopped += 1


@pytest.fixture
def geolocation():
    return FakeGeolocation(position=LatLng(lat=18.7546, lng=73.4062))


@pytest.fixture
def recognizer():
    return FakeRecognizer()


@pytest.fixture
def denied_geolocation():
    return FakeGeolocation(error=GeolocationError(1))
