import sqlite3


def _load_campus(client):
    assert client.post("/api/topology/generate", json={"kind": "campus", "seed": 3}).status_code == 201


def test_list_devices_filters_by_type_and_search(client_ctx):
    client = client_ctx["client"]
    _load_campus(client)

    switches = client.get("/api/devices?type=switch").get_json()
    assert switches["count"] == 15
    assert {d["type"] for d in switches["devices"]} == {"switch"}

    found = client.get("/api/devices?search=fw-perimeter").get_json()
    assert [d["id"] for d in found["devices"]] == ["firewall-01"]


def test_get_device_includes_its_connections(client_ctx):
    client = client_ctx["client"]
    _load_campus(client)

    device = client.get("/api/devices/dist-switch-02").get_json()
    assert device["hostname"] == "dist-sw-2"
    # one uplink to the core plus four access switches
    assert len(device["connections"]) == 5


def test_get_unknown_device_returns_404(client_ctx):
    client = client_ctx["client"]

    response = client.get("/api/devices/ghost")
    assert response.status_code == 404
    assert "Device not found" in response.get_json()["error"]


def test_create_update_delete_device_round(client_ctx):
    client = client_ctx["client"]
    state = client_ctx["state"]
    store = client_ctx["store"]
    _load_campus(client)

    created = client.post(
        "/api/devices",
        json={"id": "lab-1", "hostname": "lab-host", "type": "server", "ip_addresses": ["10.9.9.9"]},
    )
    assert created.status_code == 201
    assert created.get_json()["label"] == "lab-host"
    assert state.snapshot().discovery_stats.total_devices == 111

    duplicate = client.post("/api/devices", json={"id": "lab-1", "hostname": "again"})
    assert duplicate.status_code == 409

    updated = client.put("/api/devices/lab-1", json={"cpu": 42.5, "status": "warning"})
    assert updated.status_code == 200
    assert updated.get_json()["cpu"] == 42.5
    assert state.get_device("lab-1").status == "warning"

    deleted = client.delete("/api/devices/lab-1")
    assert deleted.status_code == 200
    assert deleted.get_json() == {"deleted": "lab-1", "connections_removed": 0}

    actions = [e["action"] for e in store.list_audit_entries()]
    assert actions[:3] == ["device.deleted", "device.updated", "device.created"]


def test_delete_device_removes_touching_connections(client_ctx):
    client = client_ctx["client"]
    state = client_ctx["state"]
    _load_campus(client)

    response = client.delete("/api/devices/core-router-01")
    assert response.status_code == 200
    # three distribution switches plus the firewall
    assert response.get_json()["connections_removed"] == 4
    snap = state.snapshot()
    assert all("core-router-01" not in (c.source, c.target) for c in snap.connections)
    assert snap.discovery_stats.total_connections == 105


def test_create_device_validation(client_ctx):
    client = client_ctx["client"]

    missing = client.post("/api/devices", json={"hostname": "no-id"})
    assert missing.status_code == 400

    bad_type = client.post("/api/devices", json={"id": "x", "hostname": "x", "type": "toaster"})
    assert bad_type.status_code == 400
    assert "Invalid device type" in bad_type.get_json()["error"]


def test_update_device_cannot_change_id(client_ctx):
    client = client_ctx["client"]
    _load_campus(client)

    response = client.put("/api/devices/firewall-01", json={"id": "firewall-99"})
    assert response.status_code == 400


def test_malformed_nested_device_fields_are_rejected(client_ctx):
    client = client_ctx["client"]
    state = client_ctx["state"]
    _load_campus(client)

    not_a_list = client.post("/api/devices", json={"id": "x1", "hostname": "h", "interfaces": "eth0"})
    assert not_a_list.status_code == 400
    assert not_a_list.get_json()["error"] == "interfaces must be a list"

    missing_id = client.put("/api/devices/core-router-01", json={"interfaces": [{"name": "eth9"}]})
    assert missing_id.status_code == 400
    assert "Invalid NetworkInterface" in missing_id.get_json()["error"]

    bad_snmp = client.put("/api/devices/core-router-01", json={"snmp_info": "public"})
    assert bad_snmp.status_code == 400

    assert "x1" not in state.snapshot().device_index()
    assert all(i.name != "eth9" for i in state.get_device("core-router-01").interfaces)


def test_failed_persistence_rolls_back_device_change(client_ctx, monkeypatch):
    client = client_ctx["client"]
    state = client_ctx["state"]
    store = client_ctx["store"]
    _load_campus(client)

    def broken_audit(*args, **kwargs):
        raise sqlite3.OperationalError("database is locked")

    monkeypatch.setattr(store, "add_audit_entry", broken_audit)

    response = client.delete("/api/devices/firewall-01")
    assert response.status_code == 500
    assert state.get_device("firewall-01").hostname == "fw-perimeter"
    assert state.snapshot().discovery_stats.total_devices == 110


def test_inventory_endpoint_filters_by_type(client_ctx):
    client = client_ctx["client"]

    payload = client.get("/api/inventory?type=router").get_json()
    assert payload["count"] == 12
    assert payload["stats"]["total_devices"] == 153
    assert {d["type"] for d in payload["devices"]} == {"router"}


def test_device_position_is_used_by_custom_layout(client_ctx):
    client = client_ctx["client"]
    _load_campus(client)

    response = client.put("/api/devices/core-router-01/position", json={"x": 12.5, "y": 40})
    assert response.status_code == 200
    assert response.get_json()["position"] == {"x": 12.5, "y": 40.0}

    layout = client.get("/api/topology/layout?type=custom").get_json()
    assert layout["positions"]["core-router-01"] == {"x": 12.5, "y": 40.0}

    assert client.put("/api/devices/core-router-01/position", json={"x": "left"}).status_code == 400
    assert client.put("/api/devices/ghost/position", json={"x": 1, "y": 2}).status_code == 404


def test_connection_crud(client_ctx):
    client = client_ctx["client"]
    store = client_ctx["store"]
    _load_campus(client)

    created = client.post(
        "/api/connections",
        json={"id": "link-x", "source": "core-router-01", "target": "ws-1-1", "latency": 7.5},
    )
    assert created.status_code == 201
    assert client.get("/api/topology/stats").get_json()["total_connections"] == 110

    updated = client.put("/api/connections/link-x", json={"status": "degraded"})
    assert updated.get_json()["status"] == "degraded"
    assert updated.get_json()["latency"] == 7.5

    assert client.delete("/api/connections/link-x").get_json() == {"deleted": "link-x"}
    assert client.delete("/api/connections/link-x").status_code == 404
    actions = [e["action"] for e in store.list_audit_entries(limit=10)]
    assert actions[:3] == ["connection.deleted", "connection.updated", "connection.created"]


def test_connection_to_unknown_device_is_rejected(client_ctx):
    client = client_ctx["client"]
    _load_campus(client)

    response = client.post("/api/connections", json={"id": "bad", "source": "core-router-01", "target": "ghost"})
    assert response.status_code == 400
    assert response.get_json()["violations"] == ["connection bad references unknown device ghost"]
    assert client.post("/api/connections", json={"id": "x"}).status_code == 400
