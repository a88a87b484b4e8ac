from __future__ import annotations

import httpx


def _device_server(calls, *, fail=None):
    """MockTransport that behaves like the device's own HTTP API."""

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append((request.method, str(request.url), request.content))
        if fail == "timeout":
            raise httpx.ConnectTimeout("timed out", request=request)
        if fail == "refused":
            raise httpx.ConnectError("connection refused", request=request)
        if request.url.path == "/api/start":
            return httpx.Response(200, json={"status": "ok", "message": "Sampling started"})
        if request.url.path == "/api/status":
            return httpx.Response(200, json={"status": "ok", "sampling": False, "message": "System ready"})
        if request.url.path == "/api/config/dashboard":
            return httpx.Response(200, json={"status": "success", "message": "Dashboard config updated"})
        return httpx.Response(404, json={"status": "error", "message": "not found"})

    return httpx.MockTransport(handler)


def test_submit_reading_updates_snapshot(client):
    resp = client.post("/api/esp32/data", json={"Temperature": 26.1, "ADC_Value": [1, 2, 3, 4]})
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["data"]["temperature"] == 26.1
    assert body["data"]["gas4"] == 4.0

    snapshot = client.get("/api/esp32/snapshot").json()["data"]
    assert snapshot["temperature"] == 26.1
    assert snapshot["gas1"] == 1.0

    # pressure omitted twice, still the default
    client.post("/api/esp32/data", json={"humidity": 33})
    snapshot = client.get("/api/esp32/snapshot").json()["data"]
    assert (snapshot["temperature"], snapshot["humidity"], snapshot["pressure"]) == (26.1, 33.0, 0.0)


def test_submit_reading_rejects_malformed_body(client):
    resp = client.post("/api/esp32/data", content=b"{broken", headers={"content-type": "application/json"})
    assert resp.status_code == 400
    assert resp.json()["success"] is False

    resp = client.post("/api/esp32/data", json=[1, 2, 3])
    assert resp.status_code == 400


def test_submit_reading_records_payload_address(client):
    client.post("/api/esp32/data", json={"temperature": 20, "ip": "192.168.0.122"})
    assert client.get("/api/esp32/config").json() == {"success": True, "esp32IP": "192.168.0.122"}


def test_register_address(client):
    resp = client.post("/api/esp32/register", json={"ip": "192.168.1.77"})
    assert resp.status_code == 200
    assert resp.json()["esp32IP"] == "192.168.1.77"
    assert client.get("/api/esp32/config").json()["esp32IP"] == "192.168.1.77"


def test_register_address_requires_ip(client):
    resp = client.post("/api/esp32/register", json={"ip": "  "})
    assert resp.status_code == 400


def test_config_without_device_is_404(client):
    resp = client.get("/api/esp32/config")
    assert resp.status_code == 404
    assert resp.json()["success"] is False


def test_start_sampling_calls_device(make_client):
    calls = []
    client = make_client(_device_server(calls))
    client.post("/api/esp32/register", json={"ip": "192.168.1.77"})

    resp = client.post("/api/esp32/start-sampling")

    assert resp.status_code == 200
    assert resp.json()["message"] == "Sampling started"
    assert calls[0][:2] == ("POST", "http://192.168.1.77/api/start")


def test_start_sampling_without_device_is_404(make_client):
    calls = []
    client = make_client(_device_server(calls))
    assert client.post("/api/esp32/start-sampling").status_code == 404
    assert calls == []


def test_start_sampling_timeout_is_504(make_client):
    client = make_client(_device_server([], fail="timeout"))
    client.post("/api/esp32/register", json={"ip": "192.168.1.77"})
    resp = client.post("/api/esp32/start-sampling")
    assert resp.status_code == 504
    assert resp.json()["success"] is False


def test_start_sampling_refused_is_503(make_client):
    client = make_client(_device_server([], fail="refused"))
    client.post("/api/esp32/register", json={"ip": "192.168.1.77"})
    assert client.post("/api/esp32/start-sampling").status_code == 503


def test_status_and_dashboard_config_are_forwarded(make_client):
    calls = []
    client = make_client(_device_server(calls))
    client.post("/api/esp32/register", json={"ip": "192.168.1.77"})

    status = client.get("/api/esp32/status")
    assert status.status_code == 200
    assert status.json()["device"]["sampling"] is False

    resp = client.post("/api/esp32/config", json={"host": "192.168.1.10", "port": 3000})
    assert resp.status_code == 200
    method, url, content = calls[-1]
    assert (method, url) == ("POST", "http://192.168.1.77/api/config/dashboard")
    assert b'"port":3000' in content.replace(b" ", b"")


def test_dashboard_config_validates_port(client):
    resp = client.post("/api/esp32/config", json={"host": "192.168.1.10", "port": 70000})
    assert resp.status_code == 400


def test_health_reports_connections(client):
    body = client.get("/health").json()
    assert body["status"] == "ok"
    assert body["connections"] == {"unset": 0, "device": 0, "dashboard": 0}
    assert body["ota"] is None
