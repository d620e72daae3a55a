from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import ASCENDING, DESCENDING
from settings.config import settings
from utils.logger import get_logger

logger = get_logger("DB_OPERATION")

async def create_indexes():
    await mongo_conn.users.create_index("email", unique=True)
    await mongo_conn.containers.create_index("qr_code", unique=True)
    await mongo_conn.containers.create_index("customer_id")
    await mongo_conn.containers.create_index("restaurant_id")
    await mongo_conn.rebate_mappings.create_index(
        [("restaurant_id", ASCENDING), ("container_type_id", ASCENDING)], unique=True
    )
    await mongo_conn.rebates.create_index("staff_id")
    await mongo_conn.rebates.create_index("restaurant_id")
    await mongo_conn.activities.create_index(
        [("user_id", ASCENDING), ("restaurant_id", ASCENDING), ("created_at", DESCENDING)]
    )
    await mongo_conn.chat_histories.create_index("user_id", unique=True)
    logger.info("Indexes created")

class MongoConnection:
    def __init__(self):
        logger.info("Initializing MongoDB Connection")
        self.bind(AsyncIOMotorClient(settings.MONGO_URI))

    def bind(self, client):
        """
        Point the database and every collection handle at the given client.
        """
        self.client = client
        self.db = self.client[settings.DB_NAME]
        self.users = self.db["users"]
        self.restaurants = self.db["restaurants"]
        self.container_types = self.db["container_types"]
        self.containers = self.db["containers"]
        self.rebate_mappings = self.db["rebate_mappings"]
        self.rebates = self.db["rebates"]
        self.activities = self.db["activities"]
        self.chat_histories = self.db["chat_histories"]
        self.audit_logs = self.db["audit_logs"]

mongo_conn = MongoConnection()
