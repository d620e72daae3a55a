from settings.config import settings

NEW_TYPE = {
    "name": "Lunch Box",
    "description": "Reusable food container",
    "price": 250,
    "rebate_value": 20,
}


def test_create_defaults_max_uses(client, admin_headers):
    response = client.post("/api/container-types", json=NEW_TYPE, headers=admin_headers)
    assert response.status_code == 201
    body = response.json()
    assert body["max_uses"] == settings.DEFAULT_MAX_USES
    assert body["is_active"] is True
    assert body["image"] == "default-container.png"


def test_negative_rebate_rejected(client, admin_headers):
    response = client.post("/api/container-types", json={**NEW_TYPE, "rebate_value": -1}, headers=admin_headers)
    assert response.status_code == 422


def test_list_active_types(client, admin_headers, customer_headers, container_type):
    client.post("/api/container-types", json={**NEW_TYPE, "is_active": False}, headers=admin_headers)
    names = [t["name"] for t in client.get("/api/container-types", headers=customer_headers).json()]
    assert names == ["Coffee Cup"]
    all_types = client.get("/api/container-types", params={"include_inactive": True}, headers=admin_headers).json()
    assert len(all_types) == 2


def test_update_and_get(client, admin_headers, customer_headers, container_type):
    tid = str(container_type["_id"])
    response = client.put(f"/api/container-types/{tid}", json={"rebate_value": 12.5}, headers=admin_headers)
    assert response.status_code == 200
    fetched = client.get(f"/api/container-types/{tid}", headers=customer_headers).json()
    assert fetched["rebate_value"] == 12.5
    assert client.put(f"/api/container-types/{tid}", json={"price": 1}, headers=customer_headers).status_code == 403


def test_delete_refused_while_in_use(client, admin_headers, available_container, container_type):
    tid = str(container_type["_id"])
    assert client.delete(f"/api/container-types/{tid}", headers=admin_headers).status_code == 409

    client.delete(f"/api/containers/{available_container['id']}", headers=admin_headers)
    assert client.delete(f"/api/container-types/{tid}", headers=admin_headers).status_code == 200
    assert client.get(f"/api/container-types/{tid}", headers=admin_headers).status_code == 404


def test_type_changes_are_audited(client, admin_headers, container_type):
    tid = str(container_type["_id"])
    client.put(f"/api/container-types/{tid}", json={"rebate_value": 7}, headers=admin_headers)
    client.delete(f"/api/container-types/{tid}", headers=admin_headers)

    logs = client.get("/api/admin/audit-logs", headers=admin_headers).json()
    assert [log["action"] for log in logs] == ["delete_container_type", "update_container_type"]
    assert logs[1]["after"] == {"rebate_value": 7.0}
    assert logs[0]["before"] == {"name": "Coffee Cup"}
