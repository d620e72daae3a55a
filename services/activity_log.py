from datetime import datetime
from db.db_operation import mongo_conn
from utils.logger import get_logger

logger = get_logger("Activity_Log")

async def log_activity(user_id: str, container: dict, type: str, restaurant_id: str | None = None,
                       amount: float = 0, status: str = "completed", location: str | None = None,
                       notes: str | None = None) -> dict:
    """
    Insert one activity row for a container event and return the stored document.
    """
    doc = {
        "user_id": user_id,
        "container_id": str(container["_id"]),
        "container_type_id": container.get("container_type_id"),
        "restaurant_id": restaurant_id,
        "type": type,
        "amount": round(float(amount or 0), 2),
        "status": status,
        "location": location,
        "notes": notes,
        "created_at": datetime.utcnow()
    }
    result = await mongo_conn.activities.insert_one(doc)
    doc["_id"] = result.inserted_id
    logger.debug(f"Activity {type} recorded for container {doc['container_id']}")
    return doc
