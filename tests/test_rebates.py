from conftest import auth_headers


def mapping_body(restaurant, container_type, value=12.0):
    return {
        "restaurant_id": str(restaurant["_id"]),
        "container_type_id": str(container_type["_id"]),
        "rebate_value": value,
    }


def test_create_and_list_mappings(client, admin_headers, staff_headers, restaurant, container_type):
    created = client.post("/api/rebates", json=mapping_body(restaurant, container_type), headers=admin_headers)
    assert created.status_code == 201
    assert created.json()["rebate_value"] == 12.0

    listed = client.get("/api/rebates", params={"restaurant_id": str(restaurant["_id"])}, headers=admin_headers).json()
    assert [m["id"] for m in listed] == [created.json()["id"]]

    by_type = client.get(f"/api/rebates/container-type/{container_type['_id']}", headers=staff_headers).json()
    assert len(by_type) == 1


def test_duplicate_mapping_conflicts(client, admin_headers, restaurant, container_type):
    client.post("/api/rebates", json=mapping_body(restaurant, container_type), headers=admin_headers)
    again = client.post("/api/rebates", json=mapping_body(restaurant, container_type, 20.0), headers=admin_headers)
    assert again.status_code == 409


def test_mapping_requires_existing_refs(client, admin_headers, restaurant):
    body = {"restaurant_id": str(restaurant["_id"]), "container_type_id": "65f000000000000000000000", "rebate_value": 5}
    assert client.post("/api/rebates", json=body, headers=admin_headers).status_code == 404
    body["container_type_id"] = "not-an-id"
    assert client.post("/api/rebates", json=body, headers=admin_headers).status_code == 400


def test_update_and_delete_mapping(client, admin_headers, restaurant, container_type):
    mapping_id = client.post("/api/rebates", json=mapping_body(restaurant, container_type), headers=admin_headers).json()["id"]

    updated = client.put(f"/api/rebates/{mapping_id}", json={"rebate_value": 8.25}, headers=admin_headers)
    assert updated.json()["rebate_value"] == 8.25

    assert client.delete(f"/api/rebates/{mapping_id}", headers=admin_headers).status_code == 200
    assert client.delete(f"/api/rebates/{mapping_id}", headers=admin_headers).status_code == 404


def test_mappings_admin_only(client, customer_headers, staff_headers, restaurant, container_type):
    body = mapping_body(restaurant, container_type)
    assert client.post("/api/rebates", json=body, headers=staff_headers).status_code == 403
    assert client.get("/api/rebates", headers=customer_headers).status_code == 403


def test_rebate_totals(client, staff, staff_headers, admin_headers, make_user, restaurant, active_container):
    for _ in range(2):
        client.post("/api/containers/process-rebate", json={"qr_code": active_container["qr_code"]}, headers=staff_headers)

    staff_totals = client.get(f"/api/rebates/staff/{staff['_id']}/totals", headers=staff_headers).json()
    assert staff_totals == {"total_rebate_amount": 20.0, "rebate_count": 2}

    shop_totals = client.get(f"/api/rebates/restaurant/{restaurant['_id']}/totals", headers=admin_headers).json()
    assert shop_totals == {"total_rebate_amount": 20.0, "rebate_count": 2}

    colleague = auth_headers(make_user("staff", restaurant_id=str(restaurant["_id"])))
    assert client.get(f"/api/rebates/staff/{staff['_id']}/totals", headers=colleague).status_code == 403
