from db.db_operation import mongo_conn
from datetime import datetime
from bson import ObjectId
from bson.errors import InvalidId
from core.exceptions import ConflictException, NotFoundException
from services.admin_service import write_audit
from settings.config import settings
from utils.logger import get_logger

logger = get_logger("ContainerType_Service")

def container_type_oid(container_type_id: str) -> ObjectId:
    try:
        return ObjectId(container_type_id)
    except (InvalidId, TypeError):
        raise ValueError("Invalid container type id")

def container_type_to_out(doc: dict) -> dict:
    return {
        "id": str(doc["_id"]),
        "name": doc["name"],
        "description": doc["description"],
        "price": float(doc["price"]),
        "image": doc.get("image"),
        "rebate_value": float(doc["rebate_value"]),
        "max_uses": int(doc.get("max_uses") or settings.DEFAULT_MAX_USES),
        "is_active": doc.get("is_active", True),
        "created_at": doc.get("created_at"),
        "updated_at": doc.get("updated_at")
    }

async def create_container_type(payload, actor_email: str = None):
    now = datetime.utcnow()
    doc = payload.model_dump()
    doc["name"] = doc["name"].strip()
    if doc.get("max_uses") is None:
        doc["max_uses"] = settings.DEFAULT_MAX_USES
    doc["created_at"] = now
    doc["updated_at"] = now
    result = await mongo_conn.container_types.insert_one(doc)
    doc["_id"] = result.inserted_id
    logger.info(f"{actor_email} created container type {doc['name']} ({result.inserted_id})")
    return container_type_to_out(doc)

async def get_container_type_doc(container_type_id: str) -> dict:
    doc = await mongo_conn.container_types.find_one({"_id": container_type_oid(container_type_id)})
    if not doc:
        raise NotFoundException("Container type not found")
    return doc

async def get_container_type(container_type_id: str):
    return container_type_to_out(await get_container_type_doc(container_type_id))

async def list_container_types(only_active: bool = True):
    q = {"is_active": True} if only_active else {}
    cursor = mongo_conn.container_types.find(q, sort=[("name", 1)])
    return [container_type_to_out(d) for d in await cursor.to_list(length=None)]

async def update_container_type(container_type_id: str, payload, actor_email: str = None):
    oid = container_type_oid(container_type_id)
    update_doc = {k: v for k, v in payload.model_dump().items() if v is not None}
    update_doc["updated_at"] = datetime.utcnow()
    result = await mongo_conn.container_types.update_one({"_id": oid}, {"$set": update_doc})
    if result.matched_count == 0:
        raise NotFoundException("Container type not found")
    await write_audit(actor_email, "update_container_type", "container_type", container_type_id,
                      after={k: v for k, v in update_doc.items() if k != "updated_at"})
    logger.info(f"{actor_email} updated container type {container_type_id}")
    return await get_container_type(container_type_id)

async def delete_container_type(container_type_id: str, actor_email: str = None):
    doc = await get_container_type_doc(container_type_id)
    if await mongo_conn.containers.count_documents({"container_type_id": container_type_id}) > 0:
        raise ConflictException("Container type is still used by containers")
    await mongo_conn.container_types.delete_one({"_id": doc["_id"]})
    await mongo_conn.rebate_mappings.delete_many({"container_type_id": container_type_id})
    await write_audit(actor_email, "delete_container_type", "container_type", container_type_id,
                      before={"name": doc["name"]})
    logger.info(f"{actor_email} deleted container type {container_type_id}")
    return {"message": "Container type deleted", "container_type_id": container_type_id}
