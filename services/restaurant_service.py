# services/restaurant_service.py
from db.db_operation import mongo_conn
from datetime import datetime
from bson import ObjectId
from bson.errors import InvalidId
from core.exceptions import ConflictException, NotFoundException
from services.user_service import user_to_out
from utils.logger import get_logger
from pymongo.errors import PyMongoError

logger = get_logger("Restaurant_Service")

def restaurant_oid(restaurant_id: str) -> ObjectId:
    try:
        return ObjectId(restaurant_id)
    except (InvalidId, TypeError):
        raise ValueError("Invalid restaurant id")

def restaurant_to_out(doc: dict) -> dict:
    return {
        "id": str(doc["_id"]),
        "name": doc["name"],
        "location": doc["location"],
        "description": doc.get("description", ""),
        "contact_number": doc["contact_number"],
        "logo": doc.get("logo"),
        "is_active": doc.get("is_active", False),
        "created_by": doc.get("created_by"),
        "created_at": doc.get("created_at"),
        "updated_at": doc.get("updated_at")
    }

async def create_restaurant(payload, actor_id: str = None, actor_email: str = None):
    now = datetime.utcnow()
    doc = {
        **payload.model_dump(),
        "name": payload.name.strip(),
        "created_by": actor_id,
        "created_at": now,
        "updated_at": now
    }
    try:
        result = await mongo_conn.restaurants.insert_one(doc)
    except PyMongoError:
        logger.exception("DB error creating restaurant")
        raise
    doc["_id"] = result.inserted_id
    logger.info("Restaurant created", extra={"actor": actor_email, "restaurant_id": str(result.inserted_id)})
    return restaurant_to_out(doc)

async def get_restaurant_doc(restaurant_id: str) -> dict:
    doc = await mongo_conn.restaurants.find_one({"_id": restaurant_oid(restaurant_id)})
    if not doc:
        raise NotFoundException("Restaurant not found")
    return doc

async def get_restaurant_by_id(restaurant_id: str):
    return restaurant_to_out(await get_restaurant_doc(restaurant_id))

async def list_restaurants(only_active: bool = True):
    q = {"is_active": True} if only_active else {}
    cursor = mongo_conn.restaurants.find(q, sort=[("name", 1)])
    docs = await cursor.to_list(length=None)
    return [restaurant_to_out(d) for d in docs]

async def update_restaurant(restaurant_id: str, payload, actor_email: str = None):
    oid = restaurant_oid(restaurant_id)
    update_doc = {k: v for k, v in payload.model_dump().items() if v is not None}
    update_doc["updated_at"] = datetime.utcnow()
    result = await mongo_conn.restaurants.update_one({"_id": oid}, {"$set": update_doc})
    if result.matched_count == 0:
        raise NotFoundException("Restaurant not found")
    await mongo_conn.audit_logs.insert_one({
        "actor_email": actor_email,
        "action": "update_restaurant",
        "resource_type": "restaurant",
        "resource_id": restaurant_id,
        "after": update_doc,
        "timestamp": datetime.utcnow()
    })
    return await get_restaurant_by_id(restaurant_id)

async def delete_restaurant(restaurant_id: str, actor_email: str = None):
    doc = await get_restaurant_doc(restaurant_id)
    if await mongo_conn.users.count_documents({"restaurant_id": restaurant_id}) > 0:
        raise ConflictException("Restaurant still has staff assigned")
    await mongo_conn.restaurants.delete_one({"_id": doc["_id"]})
    # mappings are meaningless without the restaurant
    await mongo_conn.rebate_mappings.delete_many({"restaurant_id": restaurant_id})
    await mongo_conn.audit_logs.insert_one({
        "actor_email": actor_email,
        "action": "delete_restaurant",
        "resource_type": "restaurant",
        "resource_id": restaurant_id,
        "before": {"name": doc["name"]},
        "timestamp": datetime.utcnow()
    })
    logger.info(f"{actor_email} deleted restaurant {restaurant_id}")
    return {"message": "Restaurant deleted", "restaurant_id": restaurant_id}

async def list_restaurant_staff(restaurant_id: str):
    await get_restaurant_doc(restaurant_id)
    cursor = mongo_conn.users.find({"restaurant_id": restaurant_id, "role": "staff"}, {"password": 0})
    return [user_to_out(u) for u in await cursor.to_list(length=None)]
