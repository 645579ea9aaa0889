def test_metrics_snapshot_endpoint_exists(client):
    # generate some traffic
    client.get("/api/v1/health/live")
    r = client.get("/api/v1/metrics/snapshot")
    assert r.status_code == 200
    body = r.json()
    assert "requests" in body
    assert isinstance(body["requests"], dict)


def test_health_metrics_increment(client):
    r1 = client.get("/api/v1/health/live")
    assert r1.status_code == 200

    data = client.get("/api/v1/metrics/snapshot").json()
    assert data.get("health_live", 0) >= 1
    assert data.get("requests_total", 0) >= 1


def test_bind_counters_in_snapshot(client):
    client.post("/api/v1/users", json={"id": 1})
    client.post("/api/v1/users", json={"id": {"nested": True}})

    data = client.get("/api/v1/metrics/snapshot").json()
    assert data.get("bind_ok", 0) >= 1
    assert data.get("bind_nested_value", 0) >= 1
    assert data.get("users_bound", 0) >= 1
    assert data.get("field_index_builds", 0) >= 1
    assert data.get("requests_POST", 0) >= 2


def test_prometheus_metrics_endpoint_returns_200(client):
    client.post("/api/v1/users", json={"id": 1})
    r = client.get("/metrics")
    assert r.status_code == 200
    assert "bodybind_http_requests_total" in r.text
    assert "bodybind_bind_total" in r.text
    assert "bodybind_field_index_builds_total" in r.text
