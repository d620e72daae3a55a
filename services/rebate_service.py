from db.db_operation import mongo_conn
from datetime import datetime
from bson import ObjectId
from bson.errors import InvalidId
from pymongo.errors import DuplicateKeyError
from core.exceptions import ConflictException, NotFoundException
from services.container_type_service import get_container_type_doc
from services.restaurant_service import get_restaurant_doc
from utils.logger import get_logger

logger = get_logger("Rebate_Service")

def mapping_to_out(doc: dict) -> dict:
    return {
        "id": str(doc["_id"]),
        "restaurant_id": doc["restaurant_id"],
        "container_type_id": doc["container_type_id"],
        "rebate_value": float(doc["rebate_value"]),
        "created_at": doc.get("created_at"),
        "updated_at": doc.get("updated_at")
    }

def _mapping_oid(mapping_id: str) -> ObjectId:
    try:
        return ObjectId(mapping_id)
    except (InvalidId, TypeError):
        raise ValueError("Invalid rebate mapping id")

async def resolve_rebate_value(restaurant_id: str | None, container_type: dict) -> tuple[float, str]:
    """
    Rebate for returning a container of this type at this restaurant.
    A restaurant specific mapping wins over the container type's own value.
    Returns (value, source).
    """
    if restaurant_id:
        mapping = await mongo_conn.rebate_mappings.find_one({
            "restaurant_id": restaurant_id,
            "container_type_id": str(container_type["_id"])
        })
        if mapping:
            return round(float(mapping["rebate_value"]), 2), "restaurant"
    return round(float(container_type.get("rebate_value", 0)), 2), "container_type"

async def list_mappings(restaurant_id: str | None = None, container_type_id: str | None = None):
    q = {}
    if restaurant_id:
        q["restaurant_id"] = restaurant_id
    if container_type_id:
        q["container_type_id"] = container_type_id
    cursor = mongo_conn.rebate_mappings.find(q, sort=[("created_at", -1), ("_id", -1)])
    return [mapping_to_out(d) for d in await cursor.to_list(length=None)]

async def create_mapping(payload, actor_email: str = None):
    await get_restaurant_doc(payload.restaurant_id)
    await get_container_type_doc(payload.container_type_id)
    now = datetime.utcnow()
    doc = {
        "restaurant_id": payload.restaurant_id,
        "container_type_id": payload.container_type_id,
        "rebate_value": float(payload.rebate_value),
        "created_at": now,
        "updated_at": now
    }
    if await mongo_conn.rebate_mappings.find_one({"restaurant_id": doc["restaurant_id"], "container_type_id": doc["container_type_id"]}):
        raise ConflictException("Rebate mapping already exists for this restaurant and container type")
    try:
        result = await mongo_conn.rebate_mappings.insert_one(doc)
    except DuplicateKeyError:
        raise ConflictException("Rebate mapping already exists for this restaurant and container type")
    doc["_id"] = result.inserted_id
    logger.info(f"{actor_email} created rebate mapping {result.inserted_id}")
    return mapping_to_out(doc)

async def update_mapping(mapping_id: str, payload, actor_email: str = None):
    oid = _mapping_oid(mapping_id)
    result = await mongo_conn.rebate_mappings.update_one(
        {"_id": oid},
        {"$set": {"rebate_value": float(payload.rebate_value), "updated_at": datetime.utcnow()}}
    )
    if result.matched_count == 0:
        raise NotFoundException("Rebate mapping not found")
    logger.info(f"{actor_email} updated rebate mapping {mapping_id} to {payload.rebate_value}")
    return mapping_to_out(await mongo_conn.rebate_mappings.find_one({"_id": oid}))

async def delete_mapping(mapping_id: str, actor_email: str = None):
    result = await mongo_conn.rebate_mappings.delete_one({"_id": _mapping_oid(mapping_id)})
    if result.deleted_count == 0:
        raise NotFoundException("Rebate mapping not found")
    logger.info(f"{actor_email} deleted rebate mapping {mapping_id}")
    return {"message": "Rebate mapping deleted", "id": mapping_id}

async def _totals(q: dict) -> dict:
    rebates = await mongo_conn.rebates.find(q, {"amount": 1}).to_list(length=None)
    return {
        "total_rebate_amount": round(sum(float(r.get("amount", 0)) for r in rebates), 2),
        "rebate_count": len(rebates)
    }

async def staff_rebate_totals(staff_id: str):
    return await _totals({"staff_id": staff_id})

async def restaurant_rebate_totals(restaurant_id: str):
    return await _totals({"restaurant_id": restaurant_id})

async def customer_rebate_total(customer_id: str) -> float:
    return (await _totals({"customer_id": customer_id}))["total_rebate_amount"]
