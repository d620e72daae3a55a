from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from bson import ObjectId
from bson.errors import InvalidId
from db.db_operation import mongo_conn
from typing import Optional
from pydantic import BaseModel
from settings.config import settings
from utils.jwt_handler import decode_access_token
from utils.logger import get_logger

logger = get_logger("Dependencies")

# tells fastapi to expect a token in the request header after login
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_PREFIX}/auth/login")

class CurrentUser(BaseModel):
    id: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: str = "customer"
    restaurant_id: Optional[str] = None
    is_approved: bool = True
    token_version: int = 0

async def get_current_user(token: str = Depends(oauth2_scheme)) -> CurrentUser:
    """
    Decode token, validate, fetch user from DB, and ensure token_version matches.
    Returns CurrentUser object.
    """
    try:
        payload = decode_access_token(token)
    except ValueError:
        logger.warning("Rejected request with invalid token")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    user_id = payload.get("id")
    if not user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token: no user id found")
    try:
        oid = ObjectId(user_id)
    except InvalidId:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    user = await mongo_conn.users.find_one({"_id": oid})
    if user is None:
        logger.warning(f"User not found for token subject: {payload.get('sub')}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User no longer exists")
    if not user.get("is_active", True):
        logger.warning(f"Deactivated user attempted access: {user['email']}")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User account has been deactivated")
    if int(user.get("token_version", 0)) != payload.get("token_version"):
        logger.warning(f"Token version mismatch for user: {user['email']}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token has been revoked")

    return CurrentUser(
        id=str(user["_id"]),
        email=user["email"],
        first_name=user.get("first_name"),
        last_name=user.get("last_name"),
        role=user.get("role", "customer"),
        restaurant_id=user.get("restaurant_id"),
        is_approved=user.get("is_approved", True),
        token_version=int(user.get("token_version", 0)),
    )

def require_role(*allowed_roles):
    """
    Ensures the current user has one of the allowed roles.
    """
    async def role_checker(current_user: CurrentUser = Depends(get_current_user)):
        if current_user.role not in allowed_roles:
            logger.warning(f"Forbidden: {current_user.email} role {current_user.role} not in allowed {allowed_roles}")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"User type {current_user.role} is not authorized to access this route"
            )
        return current_user

    return role_checker

async def require_approved_staff(current_user: CurrentUser = Depends(require_role("staff", "admin"))) -> CurrentUser:
    """
    Staff (or admin) whose account has been approved by an admin.
    """
    if current_user.role == "staff" and not current_user.is_approved:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Your staff account is pending admin approval")
    return current_user

def ensure_restaurant_access(current_user: CurrentUser, restaurant_id: str):
    """
    Admins see every restaurant, staff only the one they are assigned to.
    """
    if current_user.role == "admin":
        return
    if current_user.role == "staff" and current_user.restaurant_id == restaurant_id:
        return
    logger.warning(f"Forbidden: {current_user.email} is not assigned to restaurant {restaurant_id}")
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You are not allowed to access this restaurant")
