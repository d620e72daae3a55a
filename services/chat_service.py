from datetime import datetime
from db.db_operation import mongo_conn
from utils.logger import get_logger

logger = get_logger("Chat_Service")

def _history_out(user_id: str, doc: dict | None) -> dict:
    return {
        "user_id": user_id,
        "messages": doc.get("messages", []) if doc else [],
        "updated_at": doc.get("updated_at") if doc else None
    }

async def get_history(user_id: str):
    doc = await mongo_conn.chat_histories.find_one({"user_id": user_id})
    return _history_out(user_id, doc)

async def append_messages(user_id: str, messages: list):
    now = datetime.utcnow()
    entries = [
        {"from": m.sender, "text": m.text, "timestamp": m.timestamp or now}
        for m in messages
    ]
    await mongo_conn.chat_histories.update_one(
        {"user_id": user_id},
        {
            "$push": {"messages": {"$each": entries}},
            "$set": {"updated_at": now},
            "$setOnInsert": {"created_at": now}
        },
        upsert=True
    )
    logger.info(f"Appended {len(entries)} chat messages for user {user_id}")
    return await get_history(user_id)

async def clear_history(user_id: str):
    await mongo_conn.chat_histories.delete_one({"user_id": user_id})
    logger.info(f"Chat history cleared for user {user_id}")
    return {"message": "Chat history cleared"}
