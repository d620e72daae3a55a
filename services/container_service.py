from db.db_operation import mongo_conn
from datetime import datetime
from bson import ObjectId
from bson.errors import InvalidId
from pymongo.errors import DuplicateKeyError, PyMongoError
from core.exceptions import ConflictException, NotFoundException
from services.activity_log import log_activity
from services.admin_service import write_audit
from services.container_type_service import container_type_to_out, get_container_type_doc
from services.rebate_service import customer_rebate_total, resolve_rebate_value, restaurant_rebate_totals
from services.restaurant_service import get_restaurant_doc
from settings.config import settings
from utils.logger import get_logger
from utils.token import generate_qr_code

logger = get_logger("Container_Service")

CONTAINER_STATUSES = ["available", "active", "returned", "lost", "damaged"]

# allowed transitions
ALLOWED_TRANSITIONS = {
    "available": ["active", "lost", "damaged"],
    "active": ["returned", "lost", "damaged"],
    "returned": ["available", "damaged"],
    "lost": ["available"],
    "damaged": []
}

def validate_transition(current: str, new: str):
    if new not in ALLOWED_TRANSITIONS.get(current, []):
        raise ValueError(f"Cannot change container status from {current} to {new}")

def uses_left(container: dict, container_type: dict | None) -> int | None:
    if container_type is None:
        return None
    max_uses = int(container_type.get("max_uses") or settings.DEFAULT_MAX_USES)
    return max(max_uses - int(container.get("uses_count", 0)), 0)

def container_oid(container_id: str) -> ObjectId:
    try:
        return ObjectId(container_id)
    except (InvalidId, TypeError):
        raise ValueError("Invalid container id")

def container_to_out(doc: dict, container_type: dict | None = None) -> dict:
    return {
        "id": str(doc["_id"]),
        "qr_code": doc["qr_code"],
        "customer_id": doc.get("customer_id"),
        "status": doc.get("status", "available"),
        "container_type_id": doc["container_type_id"],
        "container_type": container_type_to_out(container_type) if container_type else None,
        "restaurant_id": doc.get("restaurant_id"),
        "purchase_date": doc.get("purchase_date"),
        "registration_date": doc.get("registration_date"),
        "last_used": doc.get("last_used"),
        "uses_count": int(doc.get("uses_count", 0)),
        "uses_left": uses_left(doc, container_type),
        "created_at": doc.get("created_at"),
        "updated_at": doc.get("updated_at")
    }

async def populate_containers(docs: list) -> list:
    """
    Serialize containers with their container type embedded, fetching each type once.
    """
    type_ids = {d["container_type_id"] for d in docs if d.get("container_type_id")}
    oids = []
    for tid in type_ids:
        try:
            oids.append(ObjectId(tid))
        except InvalidId:
            continue
    types = {}
    if oids:
        for t in await mongo_conn.container_types.find({"_id": {"$in": oids}}).to_list(length=None):
            types[str(t["_id"])] = t
    return [container_to_out(d, types.get(d.get("container_type_id"))) for d in docs]

async def get_container_doc(container_id: str) -> dict:
    doc = await mongo_conn.containers.find_one({"_id": container_oid(container_id)})
    if not doc:
        raise NotFoundException("Container not found")
    return doc

async def _container_out(doc: dict) -> dict:
    return (await populate_containers([doc]))[0]

async def create_container(container_type_id: str, restaurant_id: str | None = None,
                           qr_code: str | None = None, actor_email: str = None):
    """
    Issue a new container in the 'available' state.
    """
    container_type = await get_container_type_doc(container_type_id)
    if not container_type.get("is_active", True):
        raise ValueError("Container type is not active")
    if restaurant_id:
        await get_restaurant_doc(restaurant_id)
    if qr_code and await mongo_conn.containers.find_one({"qr_code": qr_code}):
        raise ConflictException("A container with this QR code already exists")

    now = datetime.utcnow()
    doc = {
        "qr_code": qr_code or generate_qr_code(),
        "customer_id": None,
        "status": "available",
        "container_type_id": container_type_id,
        "restaurant_id": restaurant_id,
        "purchase_date": now,
        "registration_date": None,
        "last_used": None,
        "uses_count": 0,
        "created_at": now,
        "updated_at": now
    }
    try:
        result = await mongo_conn.containers.insert_one(doc)
    except DuplicateKeyError:
        raise ConflictException("A container with this QR code already exists")
    except PyMongoError:
        logger.exception("DB error creating container")
        raise
    doc["_id"] = result.inserted_id
    logger.info("Container created", extra={"actor": actor_email, "container_id": str(result.inserted_id)})
    return container_to_out(doc, container_type)

async def get_container_by_qr(qr_code: str):
    doc = await mongo_conn.containers.find_one({"qr_code": qr_code})
    if not doc:
        raise NotFoundException("Container not found")
    return await _container_out(doc)

async def register_container(qr_code: str, customer_id: str):
    container = await mongo_conn.containers.find_one({"qr_code": qr_code})
    if not container:
        raise NotFoundException("Container not found")

    owner = container.get("customer_id")
    if owner and owner != customer_id:
        raise ValueError("Container is already registered to another user")
    if owner == customer_id and container.get("status") == "active":
        logger.info(f"Container {qr_code} already registered to {customer_id}")
        return await _container_out(container)
    validate_transition(container.get("status", "available"), "active")

    now = datetime.utcnow()
    result = await mongo_conn.containers.update_one(
        {"_id": container["_id"], "status": container.get("status", "available")},
        {"$set": {"customer_id": customer_id, "status": "active", "registration_date": now, "updated_at": now}}
    )
    if result.matched_count == 0:
        raise ConflictException("Container was modified concurrently, try again")

    container = await mongo_conn.containers.find_one({"_id": container["_id"]})
    await log_activity(customer_id, container, "registration", restaurant_id=container.get("restaurant_id"))
    logger.info(f"Container {qr_code} registered to customer {customer_id}")
    return await _container_out(container)

async def list_customer_containers(customer_id: str):
    cursor = mongo_conn.containers.find({"customer_id": customer_id}, sort=[("updated_at", -1), ("_id", -1)])
    return await populate_containers(await cursor.to_list(length=None))

async def customer_container_stats(customer_id: str):
    containers = mongo_conn.containers
    return {
        "active_containers": await containers.count_documents({"customer_id": customer_id, "status": "active"}),
        "returned_containers": await containers.count_documents({"customer_id": customer_id, "status": "returned"}),
        "total_rebate": await customer_rebate_total(customer_id)
    }

async def process_rebate(payload, staff_id: str, restaurant_id: str | None):
    """
    A customer brings an active container to a partner shop: count the use,
    credit the rebate for this restaurant and retire the container once it
    has reached its maximum number of uses.
    """
    if not restaurant_id:
        raise ValueError("Staff not associated with any restaurant")

    if payload.container_id:
        container = await get_container_doc(payload.container_id)
    else:
        container = await mongo_conn.containers.find_one({"qr_code": payload.qr_code})
        if not container:
            raise NotFoundException("Container not found")

    if container.get("status") != "active" or not container.get("customer_id"):
        raise ValueError(f"Container is not active (status: {container.get('status')})")

    container_type = await get_container_type_doc(container["container_type_id"])
    max_uses = int(container_type.get("max_uses") or settings.DEFAULT_MAX_USES)
    current_uses = int(container.get("uses_count", 0))
    if current_uses >= max_uses:
        raise ValueError("Container has reached its maximum number of uses")

    restaurant = await get_restaurant_doc(restaurant_id)
    amount, source = await resolve_rebate_value(restaurant_id, container_type)

    now = datetime.utcnow()
    new_uses = current_uses + 1
    update = {"uses_count": new_uses, "last_used": now, "updated_at": now}
    if new_uses >= max_uses:
        update["status"] = "returned"
    result = await mongo_conn.containers.update_one(
        {"_id": container["_id"], "status": "active", "uses_count": current_uses},
        {"$set": update}
    )
    if result.matched_count == 0:
        raise ConflictException("Container was modified concurrently, try again")

    location = payload.location or restaurant["location"].get("address")
    customer_id = container["customer_id"]
    await mongo_conn.rebates.insert_one({
        "container_id": str(container["_id"]),
        "customer_id": customer_id,
        "staff_id": staff_id,
        "restaurant_id": restaurant_id,
        "amount": amount,
        "location": location,
        "date": now,
        "created_at": now
    })
    container.update(update)
    await log_activity(customer_id, container, "rebate", restaurant_id=restaurant_id, amount=amount,
                       location=location, notes=f"Rebate value from {source}")
    if update.get("status") == "returned":
        await log_activity(customer_id, container, "return", restaurant_id=restaurant_id, location=location,
                           notes="Maximum uses reached")

    logger.info(f"Rebate of {amount} processed for container {container['qr_code']} by staff {staff_id}")
    return {
        "container": container_to_out(container, container_type),
        "amount": amount,
        "uses_left": max(max_uses - new_uses, 0)
    }

async def mark_container_status(container_id: str, new_status: str, actor_id: str,
                                restaurant_id: str | None = None, notes: str | None = None):
    container = await get_container_doc(container_id)
    current = container.get("status", "available")
    if new_status == "active":
        # ownership and the active state come from registration only
        raise ValueError("Containers become active when a customer registers them")
    validate_transition(current, new_status)

    now = datetime.utcnow()
    update = {"status": new_status, "updated_at": now}
    if new_status == "available":
        update.update({"customer_id": None, "registration_date": None, "uses_count": 0})
    result = await mongo_conn.containers.update_one({"_id": container["_id"], "status": current}, {"$set": update})
    if result.matched_count == 0:
        raise ConflictException("Container was modified concurrently, try again")

    activity_user = container.get("customer_id") or actor_id
    activity_type = "return" if new_status == "returned" else "status_change"
    container.update(update)
    await log_activity(activity_user, container, activity_type, restaurant_id=restaurant_id,
                       notes=notes or f"Status changed from {current} to {new_status}")
    logger.info(f"Container {container_id} status {current} -> {new_status} by {actor_id}")
    return await _container_out(container)

async def get_rebate_value(container_type_id: str, restaurant_id: str):
    container_type = await get_container_type_doc(container_type_id)
    await get_restaurant_doc(restaurant_id)
    value, source = await resolve_rebate_value(restaurant_id, container_type)
    return {
        "container_type_id": container_type_id,
        "restaurant_id": restaurant_id,
        "rebate_value": value,
        "source": source
    }

async def list_restaurant_containers(restaurant_id: str):
    await get_restaurant_doc(restaurant_id)
    cursor = mongo_conn.containers.find({"restaurant_id": restaurant_id}, sort=[("updated_at", -1), ("_id", -1)])
    return await populate_containers(await cursor.to_list(length=None))

async def restaurant_container_stats(restaurant_id: str):
    await get_restaurant_doc(restaurant_id)
    by_status = {}
    for s in CONTAINER_STATUSES:
        by_status[s] = await mongo_conn.containers.count_documents({"restaurant_id": restaurant_id, "status": s})
    totals = await restaurant_rebate_totals(restaurant_id)
    return {
        "total": sum(by_status.values()),
        "by_status": by_status,
        "total_rebate": totals["total_rebate_amount"]
    }

async def list_all_containers(status: str | None = None, skip: int = 0, limit: int = 50):
    q = {"status": status} if status else {}
    cursor = mongo_conn.containers.find(q, sort=[("updated_at", -1), ("_id", -1)], skip=skip, limit=limit)
    return await populate_containers(await cursor.to_list(length=limit))

async def admin_update_container(container_id: str, payload, actor_email: str = None):
    """
    Admin override: fields are written as given, without the transition check.
    """
    container = await get_container_doc(container_id)
    update_doc = {k: v for k, v in payload.model_dump().items() if v is not None}
    if "container_type_id" in update_doc:
        await get_container_type_doc(update_doc["container_type_id"])
    if "restaurant_id" in update_doc:
        await get_restaurant_doc(update_doc["restaurant_id"])
    if update_doc.get("status") == "available":
        update_doc.setdefault("uses_count", 0)
        update_doc.update({"customer_id": None, "registration_date": None})
    update_doc["updated_at"] = datetime.utcnow()
    await mongo_conn.containers.update_one({"_id": container["_id"]}, {"$set": update_doc})
    await mongo_conn.audit_logs.insert_one({
        "actor_email": actor_email,
        "action": "update_container",
        "resource_type": "container",
        "resource_id": container_id,
        "before": {k: container.get(k) for k in update_doc if k != "updated_at"},
        "after": {k: v for k, v in update_doc.items() if k != "updated_at"},
        "timestamp": datetime.utcnow()
    })
    logger.info(f"{actor_email} updated container {container_id}")
    return await _container_out(await get_container_doc(container_id))

async def delete_container(container_id: str, actor_email: str = None):
    container = await get_container_doc(container_id)
    await mongo_conn.containers.delete_one({"_id": container["_id"]})
    await write_audit(actor_email, "delete_container", "container", container_id,
                      before={"qr_code": container["qr_code"], "status": container.get("status"),
                              "customer_id": container.get("customer_id")})
    logger.info(f"{actor_email} deleted container {container_id}")
    return {"message": "Container deleted", "container_id": container_id}
