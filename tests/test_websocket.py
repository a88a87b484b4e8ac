from __future__ import annotations

IMAGE = b":020000040000FA\n:100000000C9434000C9446000C9446000C9446006A\n:00000001FF\n"

def _register_dashboard(ws):
    ws.send_json({"kind": "register", "role": "dashboard"})
    ws.send_json({"kind": "snapshot-request"})
    return ws.receive_json()

def test_dashboard_sync_then_live_reading(client):
    with client.websocket_connect("/ws") as dashboard, client.websocket_connect("/ws") as device:
        initial = _register_dashboard(dashboard)
        assert initial["kind"] == "snapshot"
        assert initial["data"]["temperature"] == 0.0

        device.send_json({"kind": "register", "role": "device"})
        device.send_json({"kind": "reading", "temperature": 24.5, "Gas2": 7})

        update = dashboard.receive_json()
        assert update["kind"] == "snapshot"
        assert update["data"]["temperature"] == 24.5
        assert update["data"]["gas2"] == 7.0
        assert update["data"]["humidity"] == 0.0
        assert update["data"]["time"]

        counts = client.get("/health").json()["connections"]
        assert counts["device"] == 1
        assert counts["dashboard"] == 1

def test_legacy_client_on_root_path(client):
    with client.websocket_connect("/") as dashboard:
        dashboard.send_json({"type": "register", "clientType": "frontend"})
        dashboard.send_json({"type": "sync-request"})
        assert dashboard.receive_json()["kind"] == "snapshot"

def test_websocket_ota_end_to_end(client):
    resp = client.post(
        "/api/firmware/upload",
        data={"versionName": "2.0.0"},
        files={"firmwareFile": ("fw.bin", IMAGE, "application/octet-stream")},
    )
    assert resp.status_code == 200

    with client.websocket_connect("/ws") as dashboard, client.websocket_connect("/ws") as device:
        _register_dashboard(dashboard)
        device.send_json({"kind": "register", "role": "device"})
        device.send_json({"kind": "reading", "temperature": 20})
        # device registration has been processed once its reading is broadcast
        assert dashboard.receive_json()["kind"] == "snapshot"

        dashboard.send_json({"kind": "catalog-request"})
        catalog = dashboard.receive_json()
        assert catalog["kind"] == "catalog"
        assert [item["version"] for item in catalog["versions"]] == ["2.0.0"]

        dashboard.send_json({"kind": "ota-start", "version": "2.0.0"})
        assert device.receive_json() == {"kind": "ota-start", "version": "2.0.0"}
        assert dashboard.receive_json() == {"kind": "ota-start", "version": "2.0.0"}

        dashboard.send_json({"kind": "ota-stream", "version": "2.0.0"})
        device_messages = [device.receive_json() for _ in range(4)]
        dashboard_messages = [dashboard.receive_json() for _ in range(3)]

    lines = IMAGE.decode().split()
    assert [m["kind"] for m in device_messages] == ["ota-chunk", "ota-chunk", "ota-chunk", "ota-done"]
    assert [m["payload"] for m in device_messages[:3]] == lines
    assert [m["index"] for m in device_messages[:3]] == [0, 1, 2]
    assert device_messages[2]["percent"] == 100.0
    assert dashboard_messages == device_messages[:3]
