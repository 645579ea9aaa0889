def test_request_id_header_roundtrip(client):
    r = client.get("/api/v1/health/live")
    assert r.status_code == 200
    assert "X-Request-Id" in r.headers
    assert len(r.headers["X-Request-Id"]) > 10


def test_request_id_passthrough(client):
    rid = "test-rid-123"
    r = client.get("/api/v1/health/live", headers={"X-Request-Id": rid})
    assert r.headers.get("X-Request-Id") == rid


def test_request_id_echoed_in_bind_errors(client):
    rid = "bind-rid-456"
    r = client.post("/api/v1/users", json={"unknown": 1}, headers={"X-Request-Id": rid})
    assert r.status_code == 422
    assert r.json()["request_id"] == rid
    assert r.headers.get("X-Request-Id") == rid
