import pytest
from conftest import auth_headers, run
from db.db_operation import mongo_conn
from services.container_service import uses_left, validate_transition


@pytest.mark.parametrize("current,new", [
    ("available", "active"), ("available", "lost"), ("active", "returned"),
    ("active", "damaged"), ("returned", "available"), ("lost", "available"),
])
def test_allowed_transitions(current, new):
    validate_transition(current, new)


@pytest.mark.parametrize("current,new", [
    ("available", "returned"), ("returned", "active"), ("lost", "active"), ("damaged", "available"),
])
def test_rejected_transitions(current, new):
    with pytest.raises(ValueError):
        validate_transition(current, new)


def test_uses_left_never_negative():
    assert uses_left({"uses_count": 1}, {"max_uses": 3}) == 2
    assert uses_left({"uses_count": 7}, {"max_uses": 3}) == 0
    assert uses_left({"uses_count": 0}, None) is None


def test_staff_generates_for_own_restaurant(available_container, restaurant, container_type):
    assert available_container["status"] == "available"
    assert available_container["qr_code"].startswith("AQRO-")
    assert available_container["restaurant_id"] == str(restaurant["_id"])
    assert available_container["container_type"]["name"] == "Coffee Cup"
    assert available_container["uses_left"] == 3


def test_unapproved_staff_cannot_generate(client, make_user, restaurant, container_type):
    pending = make_user("staff", restaurant_id=str(restaurant["_id"]), approved=False)
    response = client.post(
        "/api/containers/generate",
        json={"container_type_id": str(container_type["_id"])},
        headers=auth_headers(pending),
    )
    assert response.status_code == 403


def test_admin_creates_container_with_qr(client, admin_headers, container_type):
    body = {"container_type_id": str(container_type["_id"]), "qr_code": "CUP-0001"}
    first = client.post("/api/containers", json=body, headers=admin_headers)
    assert first.status_code == 201
    assert first.json()["restaurant_id"] is None
    assert client.post("/api/containers", json=body, headers=admin_headers).status_code == 409


def test_register_container(client, customer, customer_headers, active_container):
    assert active_container["status"] == "active"
    assert active_container["customer_id"] == str(customer["_id"])
    assert active_container["registration_date"] is not None

    # registering again is a no-op for the same owner
    again = client.post("/api/containers/register", json={"qr_code": active_container["qr_code"]}, headers=customer_headers)
    assert again.status_code == 200
    assert again.json()["id"] == active_container["id"]

    mine = client.get("/api/containers", headers=customer_headers).json()
    assert [c["id"] for c in mine] == [active_container["id"]]


def test_register_taken_or_unknown_container(client, make_user, active_container):
    other = auth_headers(make_user("customer"))
    taken = client.post("/api/containers/register", json={"qr_code": active_container["qr_code"]}, headers=other)
    assert taken.status_code == 400
    missing = client.post("/api/containers/register", json={"qr_code": "AQRO-NOPE"}, headers=other)
    assert missing.status_code == 404


def test_staff_cannot_register(client, staff_headers, available_container):
    response = client.post("/api/containers/register", json={"qr_code": available_container["qr_code"]}, headers=staff_headers)
    assert response.status_code == 403


def test_lookup_by_qr(client, staff_headers, customer_headers, available_container):
    qr = available_container["qr_code"]
    assert client.get(f"/api/containers/qr/{qr}", headers=staff_headers).json()["id"] == available_container["id"]
    assert client.get(f"/api/containers/qr/{qr}", headers=customer_headers).status_code == 403
    assert client.get("/api/containers/qr/AQRO-NOPE", headers=staff_headers).status_code == 404


def test_process_rebate_uses_container_type_value(client, staff_headers, customer_headers, active_container):
    response = client.post("/api/containers/process-rebate", json={"qr_code": active_container["qr_code"]}, headers=staff_headers)
    assert response.status_code == 200
    body = response.json()
    assert body["amount"] == 10.0
    assert body["uses_left"] == 2
    assert body["container"]["uses_count"] == 1
    assert body["container"]["status"] == "active"

    stats = client.get("/api/containers/stats", headers=customer_headers).json()
    assert stats == {"active_containers": 1, "returned_containers": 0, "total_rebate": 10.0}


def test_process_rebate_prefers_restaurant_mapping(client, admin_headers, staff_headers, restaurant, container_type, active_container):
    client.post("/api/rebates", json={
        "restaurant_id": str(restaurant["_id"]),
        "container_type_id": str(container_type["_id"]),
        "rebate_value": 15.5,
    }, headers=admin_headers)

    response = client.post("/api/containers/process-rebate", json={"container_id": active_container["id"]}, headers=staff_headers)
    assert response.json()["amount"] == 15.5

    value = client.get(f"/api/containers/rebate-value/{container_type['_id']}", headers=staff_headers).json()
    assert value["rebate_value"] == 15.5
    assert value["source"] == "restaurant"


def test_container_retired_after_max_uses(client, staff_headers, customer_headers, active_container):
    payload = {"qr_code": active_container["qr_code"]}
    for _ in range(3):
        last = client.post("/api/containers/process-rebate", json=payload, headers=staff_headers)
        assert last.status_code == 200
    assert last.json()["container"]["status"] == "returned"
    assert last.json()["uses_left"] == 0

    # a retired container no longer earns rebates
    assert client.post("/api/containers/process-rebate", json=payload, headers=staff_headers).status_code == 400

    stats = client.get("/api/containers/stats", headers=customer_headers).json()
    assert stats == {"active_containers": 0, "returned_containers": 1, "total_rebate": 30.0}

    types = [a["type"] for a in client.get("/api/activities", headers=customer_headers).json()["activities"]]
    assert types.count("rebate") == 3
    assert "return" in types


def test_process_rebate_requires_active_container(client, staff_headers, available_container):
    response = client.post("/api/containers/process-rebate", json={"qr_code": available_container["qr_code"]}, headers=staff_headers)
    assert response.status_code == 400


def test_process_rebate_requires_identifier(client, staff_headers):
    assert client.post("/api/containers/process-rebate", json={}, headers=staff_headers).status_code == 422


def test_process_rebate_needs_assigned_restaurant(client, admin_headers, active_container):
    response = client.post("/api/containers/process-rebate", json={"qr_code": active_container["qr_code"]}, headers=admin_headers)
    assert response.status_code == 400


def test_mark_status_flow(client, staff_headers, active_container):
    cid = active_container["id"]
    returned = client.post("/api/containers/mark-status", json={"container_id": cid, "status": "returned"}, headers=staff_headers)
    assert returned.status_code == 200
    assert returned.json()["status"] == "returned"

    available = client.post("/api/containers/mark-status", json={"container_id": cid, "status": "available"}, headers=staff_headers)
    assert available.json()["customer_id"] is None
    assert available.json()["uses_count"] == 0

    invalid = client.post("/api/containers/mark-status", json={"container_id": cid, "status": "returned"}, headers=staff_headers)
    assert invalid.status_code == 400


def test_damaged_is_terminal(client, staff_headers, available_container):
    cid = available_container["id"]
    client.post("/api/containers/mark-status", json={"container_id": cid, "status": "damaged"}, headers=staff_headers)
    response = client.post("/api/containers/mark-status", json={"container_id": cid, "status": "available"}, headers=staff_headers)
    assert response.status_code == 400


def test_mark_status_rejects_unknown_status(client, staff_headers, available_container):
    response = client.post("/api/containers/mark-status",
                           json={"container_id": available_container["id"], "status": "broken"}, headers=staff_headers)
    assert response.status_code == 422


def test_rebate_value_admin_needs_restaurant(client, admin_headers, restaurant, container_type):
    url = f"/api/containers/rebate-value/{container_type['_id']}"
    assert client.get(url, headers=admin_headers).status_code == 400
    value = client.get(url, params={"restaurant_id": str(restaurant["_id"])}, headers=admin_headers).json()
    assert value == {
        "container_type_id": str(container_type["_id"]),
        "restaurant_id": str(restaurant["_id"]),
        "rebate_value": 10.0,
        "source": "container_type",
    }


def test_restaurant_containers_and_stats(client, staff_headers, restaurant, active_container):
    rid = str(restaurant["_id"])
    client.post("/api/containers/process-rebate", json={"qr_code": active_container["qr_code"]}, headers=staff_headers)

    listed = client.get(f"/api/containers/restaurant/{rid}", headers=staff_headers).json()
    assert [c["id"] for c in listed] == [active_container["id"]]

    stats = client.get(f"/api/containers/restaurant/{rid}/stats", headers=staff_headers).json()
    assert stats["total"] == 1
    assert stats["by_status"]["active"] == 1
    assert stats["total_rebate"] == 10.0


def test_staff_blocked_from_other_restaurant(client, admin_headers, staff_headers):
    other = client.post("/api/restaurants", json={
        "name": "Other Shop",
        "location": {"address": "1 Side St", "city": "Mandaue"},
        "contact_number": "0917000",
    }, headers=admin_headers).json()
    assert client.get(f"/api/containers/restaurant/{other['id']}", headers=staff_headers).status_code == 403
    assert client.get(f"/api/containers/restaurant/{other['id']}/stats", headers=staff_headers).status_code == 403


def test_admin_lists_all_containers(client, admin_headers, staff_headers, container_type, active_container):
    client.post("/api/containers/generate", json={"container_type_id": str(container_type["_id"])}, headers=staff_headers)

    everything = client.get("/api/containers/all", headers=admin_headers).json()
    assert len(everything) == 2
    active = client.get("/api/containers/all", params={"status": "active"}, headers=admin_headers).json()
    assert [c["id"] for c in active] == [active_container["id"]]
    assert client.get("/api/containers/all", headers=staff_headers).status_code == 403


def test_admin_override_skips_transition_check(client, admin_headers, available_container):
    cid = available_container["id"]
    response = client.put(f"/api/containers/{cid}", json={"status": "returned", "uses_count": 2}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["status"] == "returned"
    assert response.json()["uses_left"] == 1

    logs = client.get("/api/admin/audit-logs", headers=admin_headers).json()
    assert logs[0]["action"] == "update_container"
    assert logs[0]["after"] == {"status": "returned", "uses_count": 2}


def test_admin_deletes_container(client, admin_headers, available_container):
    cid = available_container["id"]
    assert client.delete(f"/api/containers/{cid}", headers=admin_headers).status_code == 200
    assert client.delete(f"/api/containers/{cid}", headers=admin_headers).status_code == 404
    assert run(mongo_conn.containers.count_documents({})) == 0


def test_mark_status_cannot_activate(client, staff_headers, customer_headers, available_container):
    response = client.post("/api/containers/mark-status",
                           json={"container_id": available_container["id"], "status": "active"}, headers=staff_headers)
    assert response.status_code == 400
    assert client.get(f"/api/containers/qr/{available_container['qr_code']}", headers=staff_headers).json()["status"] == "available"

    # still open for a customer to claim
    registered = client.post("/api/containers/register", json={"qr_code": available_container["qr_code"]},
                             headers=customer_headers)
    assert registered.status_code == 200
    assert registered.json()["status"] == "active"


def test_container_delete_is_audited(client, admin_headers, available_container):
    client.delete(f"/api/containers/{available_container['id']}", headers=admin_headers)
    logs = client.get("/api/admin/audit-logs", headers=admin_headers).json()
    assert logs[0]["action"] == "delete_container"
    assert logs[0]["resource_id"] == available_container["id"]
    assert logs[0]["before"]["qr_code"] == available_container["qr_code"]
