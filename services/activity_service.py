import math
from collections import defaultdict
from datetime import datetime, timedelta
from bson import ObjectId
from bson.errors import InvalidId
from core.exceptions import ForbiddenException
from db.db_operation import mongo_conn
from services.activity_log import log_activity
from services.container_service import get_container_doc, populate_containers
from utils.logger import get_logger

logger = get_logger("Activity_Service")

TIME_FRAMES = {
    "week": timedelta(days=7),
    "month": timedelta(days=30),
    "year": timedelta(days=365),
}

def activity_to_out(doc: dict, container: dict | None = None, restaurant_name: str | None = None) -> dict:
    return {
        "id": str(doc["_id"]),
        "user_id": doc["user_id"],
        "container_id": doc["container_id"],
        "container_type_id": doc.get("container_type_id"),
        "restaurant_id": doc.get("restaurant_id"),
        "type": doc["type"],
        "amount": float(doc.get("amount", 0)),
        "status": doc.get("status", "completed"),
        "location": doc.get("location"),
        "notes": doc.get("notes"),
        "container": container,
        "restaurant_name": restaurant_name,
        "created_at": doc.get("created_at")
    }

def _oids(ids) -> list:
    out = []
    for i in ids:
        try:
            out.append(ObjectId(i))
        except (InvalidId, TypeError):
            continue
    return out

async def _populate(docs: list) -> list:
    """
    Attach container (with type) and restaurant name to each activity.
    """
    container_ids = _oids({d["container_id"] for d in docs})
    restaurant_ids = _oids({d["restaurant_id"] for d in docs if d.get("restaurant_id")})

    containers = {}
    if container_ids:
        raw = await mongo_conn.containers.find({"_id": {"$in": container_ids}}).to_list(length=None)
        containers = {c["id"]: c for c in await populate_containers(raw)}
    restaurants = {}
    if restaurant_ids:
        for r in await mongo_conn.restaurants.find({"_id": {"$in": restaurant_ids}}, {"name": 1}).to_list(length=None):
            restaurants[str(r["_id"])] = r["name"]

    return [
        activity_to_out(d, containers.get(d["container_id"]), restaurants.get(d.get("restaurant_id")))
        for d in docs
    ]

async def record_activity(payload, user_id: str, role: str = "customer", restaurant_id: str | None = None):
    """
    Manual activity entry. Rebate amounts are credited by staff through
    process-rebate, so customers may only log unpaid events on their own containers.
    """
    container = await get_container_doc(payload.container_id)
    if role == "customer":
        if payload.type == "rebate" or payload.amount:
            raise ForbiddenException("Only staff can record rebates")
        if container.get("customer_id") != user_id:
            raise ForbiddenException("Container is not registered to you")
    doc = await log_activity(
        user_id, container, payload.type, restaurant_id=restaurant_id, amount=payload.amount,
        status=payload.status, location=payload.location, notes=payload.notes
    )
    logger.info(f"Activity {payload.type} recorded by {user_id} for container {payload.container_id}")
    return (await _populate([doc]))[0]

async def recent_activities(user_id: str, limit: int = 5):
    cursor = mongo_conn.activities.find({"user_id": user_id}, sort=[("created_at", -1), ("_id", -1)], limit=limit)
    return await _populate(await cursor.to_list(length=limit))

async def paginate_activities(q: dict, page: int = 1, limit: int = 20):
    skip = (page - 1) * limit
    cursor = mongo_conn.activities.find(q, sort=[("created_at", -1), ("_id", -1)], skip=skip, limit=limit)
    docs = await cursor.to_list(length=limit)
    total = await mongo_conn.activities.count_documents(q)
    return {
        "activities": await _populate(docs),
        "page": page,
        "total_pages": math.ceil(total / limit) if total else 0,
        "total_activities": total
    }

def scope_query(role: str, user_id: str, restaurant_id: str | None) -> dict:
    """
    Staff only ever see their restaurant, customers only themselves.
    """
    if role == "admin":
        return {}
    if role == "staff":
        if not restaurant_id:
            raise ValueError("Staff not associated with any restaurant")
        return {"restaurant_id": restaurant_id}
    return {"user_id": user_id}

async def filtered_report(role: str, user_id: str, restaurant_id: str | None,
                          start_date: datetime | None = None, end_date: datetime | None = None,
                          type: str | None = None, restaurant_ids: list | None = None,
                          user_ids: list | None = None, container_type_ids: list | None = None):
    q = {}
    if start_date and end_date:
        if start_date > end_date:
            raise ValueError("start_date must be before end_date")
        q["created_at"] = {"$gte": start_date, "$lte": end_date}
    elif start_date:
        q["created_at"] = {"$gte": start_date}
    elif end_date:
        q["created_at"] = {"$lte": end_date}

    if type and type != "all":
        q["type"] = type

    if role == "admin":
        if restaurant_ids:
            q["restaurant_id"] = {"$in": restaurant_ids}
        if user_ids:
            q["user_id"] = {"$in": user_ids}
    else:
        q.update(scope_query(role, user_id, restaurant_id))

    if container_type_ids:
        q["container_type_id"] = {"$in": container_type_ids}

    docs = await mongo_conn.activities.find(q, sort=[("created_at", -1), ("_id", -1)]).to_list(length=None)
    total_rebate = sum(float(d.get("amount", 0)) for d in docs if d["type"] == "rebate")
    return {
        "activities": await _populate(docs),
        "total_activities": len(docs),
        "total_rebate_amount": round(total_rebate, 2)
    }

async def chart_report(role: str, user_id: str, restaurant_id: str | None,
                       report_type: str, time_frame: str = "week"):
    """
    Chart payload for the reports screen:
    activity -> events per day, rebate -> rebate amount per day,
    container -> events per container type.
    """
    if report_type not in ("activity", "rebate", "container"):
        raise ValueError("Invalid report type specified")
    start = datetime.utcnow() - TIME_FRAMES.get(time_frame, TIME_FRAMES["week"])
    q = {"created_at": {"$gte": start}, **scope_query(role, user_id, restaurant_id)}
    if report_type == "rebate":
        q["type"] = "rebate"

    docs = await mongo_conn.activities.find(q, sort=[("created_at", 1), ("_id", 1)]).to_list(length=None)

    if report_type == "container":
        counts = defaultdict(int)
        for d in docs:
            if d.get("container_type_id"):
                counts[d["container_type_id"]] += 1
        names = {}
        type_oids = _oids(counts.keys())
        if type_oids:
            for t in await mongo_conn.container_types.find({"_id": {"$in": type_oids}}, {"name": 1}).to_list(length=None):
                names[str(t["_id"])] = t["name"]
        ranked = sorted(counts.items(), key=lambda kv: kv[1], reverse=True)
        return {
            "labels": [names.get(tid, "Unknown") for tid, _ in ranked],
            "datasets": [{"data": [float(c) for _, c in ranked]}],
            "legend": ["Container Usage"]
        }

    per_day = defaultdict(float)
    for d in docs:
        day = d["created_at"].strftime("%Y-%m-%d")
        per_day[day] += float(d.get("amount", 0)) if report_type == "rebate" else 1
    days = sorted(per_day)
    return {
        "labels": days,
        "datasets": [{"data": [round(per_day[day], 2) for day in days]}],
        "legend": ["Rebate Amounts"] if report_type == "rebate" else ["Container Activity"]
    }
