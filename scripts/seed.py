# scripts/seed.py
import asyncio
from datetime import datetime
from db.db_operation import mongo_conn, create_indexes
from services.user_service import new_user_doc
from settings.config import settings
from utils.logger import get_logger, setup_logging

logger = get_logger("Seed")

ADMIN_EMAIL = "admin@aqro.app"

CONTAINER_TYPES = [
    {"name": "Coffee Cup", "description": "Reusable 12oz coffee cup", "price": 150.0, "rebate_value": 10.0, "max_uses": 50},
    {"name": "Lunch Box", "description": "Reusable food container", "price": 250.0, "rebate_value": 20.0, "max_uses": 30},
    {"name": "Water Bottle", "description": "Reusable 500ml bottle", "price": 200.0, "rebate_value": 5.0, "max_uses": 100},
]

RESTAURANTS = [
    {"name": "Green Bites", "city": "Cebu City", "address": "12 Osmena Blvd", "contact_number": "09171234567"},
    {"name": "Zero Waste Cafe", "city": "Cebu City", "address": "45 Mango Ave", "contact_number": "09179876543"},
]

async def seed():
    await create_indexes()
    now = datetime.utcnow()

    if not await mongo_conn.users.find_one({"email": ADMIN_EMAIL}):
        admin_doc = new_user_doc(ADMIN_EMAIL, "Admin@123", "Platform", "Admin", role="admin", verified=True)
        result = await mongo_conn.users.insert_one(admin_doc)
        logger.info(f"Created admin {ADMIN_EMAIL} ({result.inserted_id})")
    else:
        logger.info("Admin already exists")

    type_ids = {}
    for ct in CONTAINER_TYPES:
        existing = await mongo_conn.container_types.find_one({"name": ct["name"]})
        if existing:
            type_ids[ct["name"]] = str(existing["_id"])
            continue
        result = await mongo_conn.container_types.insert_one({
            **ct, "image": "default-container.png", "is_active": True, "created_at": now, "updated_at": now
        })
        type_ids[ct["name"]] = str(result.inserted_id)
        logger.info(f"Created container type {ct['name']}")

    for r in RESTAURANTS:
        existing = await mongo_conn.restaurants.find_one({"name": r["name"]})
        if existing:
            restaurant_id = str(existing["_id"])
        else:
            result = await mongo_conn.restaurants.insert_one({
                "name": r["name"],
                "location": {"address": r["address"], "city": r["city"], "coordinates": None},
                "description": "",
                "contact_number": r["contact_number"],
                "logo": "default-restaurant.png",
                "is_active": True,
                "created_by": None,
                "created_at": now,
                "updated_at": now
            })
            restaurant_id = str(result.inserted_id)
            logger.info(f"Created restaurant {r['name']}")

        for ct in CONTAINER_TYPES:
            await mongo_conn.rebate_mappings.update_one(
                {"restaurant_id": restaurant_id, "container_type_id": type_ids[ct["name"]]},
                {"$setOnInsert": {"rebate_value": ct["rebate_value"], "created_at": now, "updated_at": now}},
                upsert=True
            )

    logger.info(f"Seeding of {settings.DB_NAME} finished")

if __name__ == "__main__":
    setup_logging()
    asyncio.run(seed())
