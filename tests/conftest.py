import asyncio
import pytest
from datetime import datetime
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from db.db_operation import mongo_conn
from main import app
from services.user_service import new_user_doc
from utils.jwt_handler import build_token_claims, create_access_token

PASSWORD = "Secret123!"


def run(coro):
    """Run a coroutine against the mocked database from sync test code."""
    return asyncio.run(coro)


@pytest.fixture(autouse=True)
def mock_db():
    mongo_conn.bind(AsyncMongoMockClient())
    yield mongo_conn


@pytest.fixture
def client(mock_db):
    with TestClient(app) as c:
        yield c


def auth_headers(user: dict) -> dict:
    token = create_access_token(build_token_claims(user))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_user():
    """Insert a verified user and return the stored document."""
    counter = {"n": 0}

    def _make(role="customer", restaurant_id=None, approved=True, verified=True, **extra):
        counter["n"] += 1
        doc = new_user_doc(
            f"{role}{counter['n']}@example.com", PASSWORD, role.title(), f"Tester{counter['n']}",
            role=role, restaurant_id=restaurant_id, verified=verified, approved=approved
        )
        doc.update(extra)
        result = run(mongo_conn.users.insert_one(doc))
        doc["_id"] = result.inserted_id
        return doc

    return _make


@pytest.fixture
def restaurant():
    now = datetime.utcnow()
    doc = {
        "name": "Green Bites",
        "location": {"address": "12 Osmena Blvd", "city": "Cebu City", "coordinates": None},
        "description": "",
        "contact_number": "09171234567",
        "logo": "default-restaurant.png",
        "is_active": True,
        "created_by": None,
        "created_at": now,
        "updated_at": now,
    }
    doc["_id"] = run(mongo_conn.restaurants.insert_one(doc)).inserted_id
    return doc


@pytest.fixture
def container_type():
    now = datetime.utcnow()
    doc = {
        "name": "Coffee Cup",
        "description": "Reusable 12oz coffee cup",
        "price": 150.0,
        "image": "default-container.png",
        "rebate_value": 10.0,
        "max_uses": 3,
        "is_active": True,
        "created_at": now,
        "updated_at": now,
    }
    doc["_id"] = run(mongo_conn.container_types.insert_one(doc)).inserted_id
    return doc


@pytest.fixture
def admin(make_user):
    return make_user("admin")


@pytest.fixture
def customer(make_user):
    return make_user("customer")


@pytest.fixture
def staff(make_user, restaurant):
    return make_user("staff", restaurant_id=str(restaurant["_id"]))


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture
def customer_headers(customer):
    return auth_headers(customer)


@pytest.fixture
def staff_headers(staff):
    return auth_headers(staff)


@pytest.fixture
def available_container(client, staff_headers, container_type):
    response = client.post(
        "/api/containers/generate",
        json={"container_type_id": str(container_type["_id"])},
        headers=staff_headers,
    )
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def active_container(client, customer_headers, available_container):
    response = client.post(
        "/api/containers/register",
        json={"qr_code": available_container["qr_code"]},
        headers=customer_headers,
    )
    assert response.status_code == 200
    return response.json()
