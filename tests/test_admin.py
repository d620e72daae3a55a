from conftest import auth_headers, run
from db.db_operation import mongo_conn


def test_admin_routes_require_admin(client, customer_headers, staff_headers):
    assert client.get("/api/admin/users", headers=customer_headers).status_code == 403
    assert client.get("/api/admin/users", headers=staff_headers).status_code == 403


def test_list_and_filter_users(client, admin_headers, customer, staff):
    response = client.get("/api/admin/users", headers=admin_headers)
    assert response.status_code == 200
    assert len(response.json()) == 3

    staff_only = client.get("/api/admin/users", params={"role": "staff"}, headers=admin_headers).json()
    assert [u["email"] for u in staff_only] == [staff["email"]]
    assert "password" not in staff_only[0]


def test_get_user_invalid_and_missing(client, admin_headers):
    assert client.get("/api/admin/users/not-an-id", headers=admin_headers).status_code == 400
    assert client.get("/api/admin/users/65f000000000000000000000", headers=admin_headers).status_code == 404


def test_create_user_is_verified_and_approved(client, admin_headers, restaurant):
    response = client.post("/api/admin/users", json={
        "email": "barista@example.com",
        "password": "Secret123!",
        "first_name": "Ana",
        "last_name": "Reyes",
        "role": "staff",
        "restaurant_id": str(restaurant["_id"]),
    }, headers=admin_headers)
    assert response.status_code == 201
    body = response.json()
    assert body["is_email_verified"] is True
    assert body["is_approved"] is True
    assert body["restaurant_id"] == str(restaurant["_id"])

    duplicate = client.post("/api/admin/users", json={
        "email": "barista@example.com", "password": "Secret123!", "first_name": "A", "last_name": "R"
    }, headers=admin_headers)
    assert duplicate.status_code == 409


def test_create_user_unknown_restaurant(client, admin_headers):
    response = client.post("/api/admin/users", json={
        "email": "x@example.com", "password": "Secret123!", "first_name": "X", "last_name": "Y",
        "role": "staff", "restaurant_id": "65f000000000000000000000",
    }, headers=admin_headers)
    assert response.status_code == 404


def test_update_role_revokes_existing_tokens(client, admin_headers, customer, customer_headers):
    response = client.put(f"/api/admin/users/{customer['_id']}", json={"role": "staff"}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["role"] == "staff"
    assert client.get("/api/users/profile", headers=customer_headers).status_code == 401


def test_deactivate_user(client, admin_headers, customer, customer_headers):
    response = client.put(f"/api/admin/users/{customer['_id']}", json={"is_active": False}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["is_active"] is False
    stored = run(mongo_conn.users.find_one({"_id": customer["_id"]}))
    assert client.get("/api/users/profile", headers=auth_headers(stored)).status_code == 403


def test_delete_user(client, admin, admin_headers, customer):
    assert client.delete(f"/api/admin/users/{admin['_id']}", headers=admin_headers).status_code == 400
    assert client.delete(f"/api/admin/users/{customer['_id']}", headers=admin_headers).status_code == 200
    assert run(mongo_conn.users.find_one({"_id": customer["_id"]})) is None


def test_revoke_tokens(client, admin_headers, customer, customer_headers):
    response = client.post(f"/api/admin/users/{customer['_id']}/revoke", json={"reason": "lost phone"},
                           headers=admin_headers)
    assert response.status_code == 200
    assert client.get("/api/users/profile", headers=customer_headers).status_code == 401


def test_staff_approval_flow(client, admin_headers, make_user, restaurant, container_type):
    pending = make_user("staff", approved=False)
    pending_headers = auth_headers(pending)

    blocked = client.post("/api/containers/generate", json={"container_type_id": str(container_type["_id"])},
                          headers=pending_headers)
    assert blocked.status_code == 403

    listed = client.get("/api/admin/pending-staff", headers=admin_headers).json()
    assert [u["id"] for u in listed] == [str(pending["_id"])]

    approved = client.post(f"/api/admin/approve-staff/{pending['_id']}",
                           json={"restaurant_id": str(restaurant["_id"])}, headers=admin_headers)
    assert approved.status_code == 200
    assert approved.json()["approval_status"] == "approved"
    assert approved.json()["restaurant_id"] == str(restaurant["_id"])
    assert client.get("/api/admin/pending-staff", headers=admin_headers).json() == []

    allowed = client.post("/api/containers/generate", json={"container_type_id": str(container_type["_id"])},
                          headers=pending_headers)
    assert allowed.status_code == 201
    assert allowed.json()["restaurant_id"] == str(restaurant["_id"])


def test_reject_staff(client, admin_headers, make_user, customer):
    pending = make_user("staff", approved=False)
    response = client.post(f"/api/admin/reject-staff/{pending['_id']}", json={"reason": "Blurry permit"},
                           headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["approval_status"] == "rejected"

    not_staff = client.post(f"/api/admin/approve-staff/{customer['_id']}", headers=admin_headers)
    assert not_staff.status_code == 400


def test_audit_log_records_admin_actions(client, admin, admin_headers, customer):
    client.post(f"/api/admin/users/{customer['_id']}/revoke", headers=admin_headers)
    client.put(f"/api/admin/users/{customer['_id']}", json={"first_name": "Changed"}, headers=admin_headers)

    logs = client.get("/api/admin/audit-logs", headers=admin_headers).json()
    assert [entry["action"] for entry in logs] == ["update_user", "revoke_tokens"]
    assert logs[0]["actor_email"] == admin["email"]
    assert logs[1]["after"] == {"token_version": 1}
