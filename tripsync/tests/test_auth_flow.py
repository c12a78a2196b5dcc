"""
Integration tests for Authentication Flow.

Verifies Signup -> Login -> Me -> Vehicles.
"""

import pytest


@pytest.mark.asyncio
async def test_signup_returns_profile_and_token(client):
    payload = {
        "name": "Asha",
        "phone": "9000000001",
        "password": "secret123",
        "twoWheelers": [{"id": "tw0", "regNumber": "MH12AB1234"}],
        "fourWheelers": [],
    }
    response = await client.post("/v1/auth/signup", json=payload)
    assert response.status_code == 201
    data = response.json()
    assert data["phone"] == "9000000001"
    assert data["twoWheelers"] == [{"id": "tw0", "regNumber": "MH12AB1234"}]
    assert data["accessToken"]
    assert data["tokenType"] == "bearer"
    assert "password" not in data
    assert "hashedPassword" not in data


@pytest.mark.asyncio
async def test_duplicate_phone_rejected(client, register_user):
    await register_user(phone="9000000001")
    response = await client.post(
        "/v1/auth/signup",
        json={"name": "Other", "phone": "9000000001", "password": "secret123"},
    )
    assert response.status_code == 400
    assert response.json()["error_code"] == "ERR_BAD_REQUEST"


@pytest.mark.asyncio
async def test_signup_duplicate_vehicle_ids_rejected(client):
    response = await client.post("/v1/auth/signup", json={
        "name": "Asha",
        "phone": "9000000001",
        "password": "secret123",
        "fourWheelers": [{"id": "fw0", "regNumber": "A"}, {"id": "fw0", "regNumber": "B"}],
    })
    assert response.status_code == 400
    assert response.json()["error_code"] == "ERR_VALIDATION_002"
    assert response.json()["details"]["duplicates"] == {"fourWheelers": ["fw0"]}


@pytest.mark.asyncio
async def test_login_success(client, register_user):
    await register_user(phone="9000000002", password="secret123")
    response = await client.post("/v1/auth/login", json={"phone": "9000000002", "password": "secret123"})
    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "Asha"
    assert data["accessToken"]


@pytest.mark.asyncio
async def test_login_bad_credentials(client, register_user):
    await register_user(phone="9000000003", password="secret123")

    response = await client.post("/v1/auth/login", json={"phone": "9000000003", "password": "wrong-pass"})
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid credentials"

    response = await client.post("/v1/auth/login", json={"phone": "9999999999", "password": "secret123"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_me_requires_token(client, register_user):
    response = await client.get("/v1/auth/me")
    assert response.status_code in (401, 403)

    response = await client.get("/v1/auth/me", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401

    profile, headers = await register_user()
    response = await client.get("/v1/auth/me", headers=headers)
    assert response.status_code == 200
    assert response.json()["id"] == profile["id"]


@pytest.mark.asyncio
async def test_replace_vehicles(client, register_user):
    _, headers = await register_user(fourWheelers=[{"id": "fw0", "regNumber": "OLD"}])

    response = await client.put("/v1/auth/me/vehicles", headers=headers, json={
        "twoWheelers": [{"id": "a1", "regNumber": "MH01"}],
        "fourWheelers": [{"id": "fw0", "regNumber": "NEW"}, {"id": "fw1", "regNumber": ""}],
    })
    assert response.status_code == 200
    data = response.json()
    assert [v["id"] for v in data["twoWheelers"]] == ["a1"]
    assert data["fourWheelers"][0]["regNumber"] == "NEW"

    response = await client.get("/v1/auth/me", headers=headers)
    assert len(response.json()["fourWheelers"]) == 2


@pytest.mark.asyncio
async def test_replace_vehicles_duplicate_ids_rejected(client, register_user):
    _, headers = await register_user()
    response = await client.put("/v1/auth/me/vehicles", headers=headers, json={
        "twoWheelers": [{"id": "x", "regNumber": "1"}, {"id": "x", "regNumber": "2"}],
        "fourWheelers": [],
    })
    assert response.status_code == 400
    assert response.json()["details"]["duplicates"] == {"twoWheelers": ["x"]}


@pytest.mark.asyncio
async def test_health_and_root(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"

    response = await client.get("/")
    assert response.json()["health"] == "/health"


@pytest.mark.asyncio
async def test_correlation_id_echoed(client):
    response = await client.get("/health", headers={"X-Correlation-ID": "trip-123"})
    assert response.headers["X-Correlation-ID"] == "trip-123"

    response = await client.get("/health")
    assert len(response.headers["X-Correlation-ID"]) == 32
