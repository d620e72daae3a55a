# services/admin_service.py
from db.db_operation import mongo_conn
from datetime import datetime
from bson import ObjectId
from bson.errors import InvalidId
from core.exceptions import NotFoundException
from services.user_service import insert_user, new_user_doc, user_to_out
from utils.logger import get_logger

logger = get_logger("Admin_Service")

def _oid(user_id: str) -> ObjectId:
    try:
        return ObjectId(user_id)
    except (InvalidId, TypeError):
        raise ValueError("Invalid user id")

async def _get_user_doc(user_id: str) -> dict:
    user = await mongo_conn.users.find_one({"_id": _oid(user_id)})
    if not user:
        raise NotFoundException("User not found")
    return user

async def _ensure_restaurant(restaurant_id: str | None):
    if restaurant_id is None:
        return
    try:
        oid = ObjectId(restaurant_id)
    except (InvalidId, TypeError):
        raise ValueError("Invalid restaurant id")
    if not await mongo_conn.restaurants.find_one({"_id": oid}):
        raise NotFoundException("Restaurant not found")

async def write_audit(actor_email: str, action: str, resource_type: str, resource_id: str,
                      before: dict | None = None, after: dict | None = None, reason: str | None = None):
    await mongo_conn.audit_logs.insert_one({
        "actor_email": actor_email,
        "action": action,
        "resource_type": resource_type,
        "resource_id": resource_id,
        "before": before,
        "after": after,
        "reason": reason,
        "timestamp": datetime.utcnow()
    })

#admin can list users with pagination
async def list_users(role: str | None = None, skip: int = 0, limit: int = 50):
    """
    Return list of users with pagination, optionally filtered by role.
    """
    q = {"role": role} if role else {}
    cursor = mongo_conn.users.find(q, {"password": 0}, sort=[("created_at", -1)], skip=skip, limit=limit)
    users = await cursor.to_list(length=limit)
    return [user_to_out(u) for u in users]

async def get_user_by_id(user_id: str):
    return user_to_out(await _get_user_doc(user_id))

async def create_user(payload, actor_email: str):
    """
    Admin-created accounts skip e-mail verification and staff approval.
    """
    await _ensure_restaurant(payload.restaurant_id)
    doc = new_user_doc(
        payload.email, payload.password, payload.first_name, payload.last_name,
        role=payload.role, restaurant_id=payload.restaurant_id, verified=True, approved=True
    )
    if doc["role"] == "staff":
        doc["approved_at"] = doc["created_at"]
    user = await insert_user(doc)
    await write_audit(actor_email, "create_user", "user", str(user["_id"]),
                      after={"email": user["email"], "role": user["role"], "restaurant_id": user["restaurant_id"]})
    logger.info(f"{actor_email} created user {user['email']} with role {user['role']}")
    return user_to_out(user)

async def update_user(user_id: str, payload, actor_email: str):
    user = await _get_user_doc(user_id)
    update_doc = {k: v for k, v in payload.model_dump(exclude_unset=True).items() if v is not None or k == "restaurant_id"}
    if "restaurant_id" in update_doc:
        await _ensure_restaurant(update_doc["restaurant_id"])
    if not update_doc:
        return user_to_out(user)

    before = {k: user.get(k) for k in update_doc}
    update = {"$set": {**update_doc, "updated_at": datetime.utcnow()}}
    # role or activation changes invalidate existing sessions
    if ("role" in update_doc and update_doc["role"] != user.get("role")) or \
            ("is_active" in update_doc and update_doc["is_active"] != user.get("is_active", True)):
        update["$inc"] = {"token_version": 1}
    await mongo_conn.users.update_one({"_id": user["_id"]}, update)
    await write_audit(actor_email, "update_user", "user", user_id, before=before, after=update_doc)
    logger.info(f"{actor_email} updated user {user_id}: {list(update_doc)}")
    return await get_user_by_id(user_id)

async def delete_user(user_id: str, actor_email: str, actor_id: str):
    if user_id == actor_id:
        raise ValueError("You cannot delete your own account")
    user = await _get_user_doc(user_id)
    await mongo_conn.users.delete_one({"_id": user["_id"]})
    await write_audit(actor_email, "delete_user", "user", user_id,
                      before={"email": user["email"], "role": user.get("role")})
    logger.info(f"{actor_email} deleted user {user_id}")
    return {"message": "User deleted", "user_id": user_id}

async def revoke_user_tokens(target_user_id: str, actor_email: str, reason: str | None = None):
    """
    Increment token_version to revoke tokens and create audit log.
    """
    user = await _get_user_doc(target_user_id)
    current = int(user.get("token_version", 0))
    await mongo_conn.users.update_one({"_id": user["_id"]}, {"$inc": {"token_version": 1}})
    await write_audit(actor_email, "revoke_tokens", "user", target_user_id,
                      before={"token_version": current}, after={"token_version": current + 1}, reason=reason)
    logger.info(f"{actor_email} revoked tokens for {target_user_id}")
    return {"message": "tokens_revoked", "user_id": target_user_id}

async def list_pending_staff():
    cursor = mongo_conn.users.find(
        {"role": "staff", "approval_status": "pending"}, {"password": 0},
        sort=[("approval_requested_at", 1)]
    )
    return [user_to_out(u) for u in await cursor.to_list(length=None)]

async def _get_staff_doc(user_id: str) -> dict:
    user = await _get_user_doc(user_id)
    if user.get("role") != "staff":
        raise ValueError("User is not a staff member")
    return user

async def approve_staff(user_id: str, actor_email: str, actor_id: str, restaurant_id: str | None = None):
    user = await _get_staff_doc(user_id)
    await _ensure_restaurant(restaurant_id)
    now = datetime.utcnow()
    update = {
        "is_approved": True,
        "approval_status": "approved",
        "approved_at": now,
        "approved_by": actor_id,
        "revision_reason": None,
        "updated_at": now
    }
    if restaurant_id is not None:
        update["restaurant_id"] = restaurant_id
    await mongo_conn.users.update_one({"_id": user["_id"]}, {"$set": update})
    await write_audit(actor_email, "approve_staff", "user", user_id,
                      before={"approval_status": user.get("approval_status")},
                      after={"approval_status": "approved", "restaurant_id": update.get("restaurant_id", user.get("restaurant_id"))})
    logger.info(f"{actor_email} approved staff {user_id}")
    return await get_user_by_id(user_id)

async def reject_staff(user_id: str, actor_email: str, reason: str | None = None):
    user = await _get_staff_doc(user_id)
    await mongo_conn.users.update_one(
        {"_id": user["_id"]},
        {"$set": {
            "is_approved": False,
            "approval_status": "rejected",
            "revision_reason": reason,
            "updated_at": datetime.utcnow()
        }, "$inc": {"token_version": 1}}
    )
    await write_audit(actor_email, "reject_staff", "user", user_id,
                      before={"approval_status": user.get("approval_status")},
                      after={"approval_status": "rejected"}, reason=reason)
    logger.info(f"{actor_email} rejected staff {user_id}")
    return await get_user_by_id(user_id)

async def list_audit_logs(skip: int = 0, limit: int = 50):
    """
    Simple pagination for audit logs, newest first.
    """
    cursor = mongo_conn.audit_logs.find({}, sort=[("timestamp", -1), ("_id", -1)], skip=skip, limit=limit)
    items = await cursor.to_list(length=limit)
    return [
        {
            "id": str(a["_id"]),
            "actor_email": a["actor_email"],
            "action": a["action"],
            "resource_type": a["resource_type"],
            "resource_id": a["resource_id"],
            "before": a.get("before"),
            "after": a.get("after"),
            "reason": a.get("reason"),
            "timestamp": a["timestamp"]
        } for a in items
    ]
