from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from settings.config import settings
from db.db_operation import create_indexes
from core.exceptions import global_exception_handler
from core.middleware import RequestLoggingMiddleware
from utils.logger import get_logger, setup_logging
from routes import (
    auth, user_routes, admin_routes, restaurant_routes, container_type_routes,
    container_routes, rebate_routes, activity_routes, chat_routes
)

setup_logging()
logger = get_logger("main")

app = FastAPI(title="aQRo Container Rebate API", version="1.0.0")

@app.get("/")
async def health_check():
    logger.info("Health check is successful")
    return {
        "status": "ok",
        "app": settings.PROJECT_NAME,
        "message": "Welcome to aQRo API"
    }

@app.on_event("startup")
async def startup_event():
    await create_indexes()

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)
app.add_exception_handler(Exception, global_exception_handler)

for module in (auth, user_routes, admin_routes, restaurant_routes, container_type_routes,
               container_routes, rebate_routes, activity_routes, chat_routes):
    app.include_router(module.router, prefix=settings.API_PREFIX)
