"""Health Checks — liveness and database readiness."""


async def test_liveness(client):
    res = await client.get("/api/v1/health/")
    assert res.status_code == 200
    assert res.json()["service"] == "venturenet-api"


async def test_readiness_with_database(client):
    res = await client.get("/api/v1/health/ready")
    assert res.status_code == 200
    assert res.json()["checks"]["database"] == "healthy"


async def test_validation_errors_use_envelope(client, make_user, auth):
    _, token = await make_user("startup")
    res = await client.post("/api/v1/connections", json={"target_id": "not-a-uuid"}, headers=auth(token))
    assert res.status_code == 400
    body = res.json()
    assert body["error"] == "Invalid request data"
    assert body["status"] == 400
    assert body["details"][0]["field"].endswith("target_id")


async def test_request_id_is_echoed(client):
    res = await client.get("/api/v1/health/", headers={"X-Request-ID": "req-123"})
    assert res.headers["X-Request-ID"] == "req-123"


async def test_request_id_generated_when_absent(client):
    res = await client.get("/api/v1/health/")
    assert len(res.headers["X-Request-ID"]) == 32
