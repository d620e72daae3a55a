from datetime import datetime, timedelta
from bson import ObjectId
from fastapi.concurrency import run_in_threadpool
from pymongo.errors import DuplicateKeyError, PyMongoError
from core.exceptions import AppException, ConflictException, ForbiddenException, NotFoundException
from db.db_operation import mongo_conn
from models.user import UserCreate
from settings.config import settings
from utils.email import send_password_reset_email, send_verification_email
from utils.hash import hash_password, verify_password
from utils.jwt_handler import build_token_claims, create_access_token
from utils.logger import get_logger
from utils.token import code_expiry, generate_code

logger = get_logger("USER_SERVICE")

def user_to_out(user: dict) -> dict:
    return {
        "id": str(user["_id"]),
        "email": user["email"],
        "first_name": user.get("first_name"),
        "last_name": user.get("last_name"),
        "role": user.get("role", "customer"),
        "restaurant_id": user.get("restaurant_id"),
        "is_active": user.get("is_active", True),
        "is_email_verified": user.get("is_email_verified", False),
        "is_approved": user.get("is_approved", True),
        "approval_status": user.get("approval_status"),
        "created_at": user.get("created_at"),
        "updated_at": user.get("updated_at"),
    }

def new_user_doc(email: str, password: str, first_name: str, last_name: str, role: str = "customer",
                 restaurant_id: str | None = None, verified: bool = False, approved: bool | None = None) -> dict:
    """
    Build a user document with every field defaulted.
    Staff start unapproved unless told otherwise.
    """
    if approved is None:
        approved = role != "staff"
    now = datetime.utcnow()
    return {
        "email": email.strip().lower(),
        "password": hash_password(password),
        "first_name": first_name.strip(),
        "last_name": last_name.strip(),
        "role": role,
        "restaurant_id": restaurant_id,
        "is_active": True,
        "is_email_verified": verified,
        "verification_code": None,
        "verification_code_expires": None,
        "is_approved": approved,
        "approval_status": "approved" if approved else "pending",
        "approval_requested_at": None if approved else now,
        "reset_code": None,
        "reset_code_expires": None,
        "login_attempts": 0,
        "lock_until": None,
        "token_version": 0,
        "created_at": now,
        "updated_at": now,
    }

async def insert_user(doc: dict) -> dict:
    try:
        result = await mongo_conn.users.insert_one(doc)
    except DuplicateKeyError:
        raise ConflictException("User already exists with this email")
    except PyMongoError:
        logger.exception("DB error inserting user")
        raise
    doc["_id"] = result.inserted_id
    return doc

async def register_user(payload: UserCreate) -> dict:
    email = payload.email.lower()
    logger.info(f"User register request received for email: {email}")
    if payload.role == "admin":
        raise ValueError("Admin accounts cannot be self-registered")
    if await mongo_conn.users.find_one({"email": email}):
        raise ConflictException("User already exists with this email")

    doc = new_user_doc(email, payload.password, payload.first_name, payload.last_name, role=payload.role)
    code = generate_code()
    doc["verification_code"] = code
    doc["verification_code_expires"] = code_expiry()
    user = await insert_user(doc)
    logger.info(f"User inserted into database with id: {user['_id']}")

    # smtplib blocks, keep it off the event loop
    await run_in_threadpool(send_verification_email, email, user["first_name"], code)
    return user_to_out(user)

async def verify_email(email: str, code: str) -> dict:
    email = email.lower()
    user = await mongo_conn.users.find_one({
        "email": email,
        "verification_code": code,
        "verification_code_expires": {"$gt": datetime.utcnow()},
    })
    if not user:
        logger.warning(f"Invalid verification attempt for {email}")
        raise ValueError("Invalid or expired verification code")
    await mongo_conn.users.update_one(
        {"_id": user["_id"]},
        {"$set": {
            "is_email_verified": True,
            "verification_code": None,
            "verification_code_expires": None,
            "updated_at": datetime.utcnow(),
        }}
    )
    logger.info(f"Email verified for {email}")
    return {"message": "Email verified successfully"}

async def resend_verification(email: str) -> dict:
    email = email.lower()
    user = await mongo_conn.users.find_one({"email": email})
    if not user:
        raise NotFoundException("User not found")
    if user.get("is_email_verified"):
        raise ValueError("Email is already verified")
    code = generate_code()
    await mongo_conn.users.update_one(
        {"_id": user["_id"]},
        {"$set": {"verification_code": code, "verification_code_expires": code_expiry()}}
    )
    await run_in_threadpool(send_verification_email, email, user.get("first_name", ""), code)
    return {"message": "Verification code sent"}

async def authenticate_user(email: str, password: str) -> dict:
    """
    Check credentials and return {access_token, token_type, user}.
    Failed attempts are counted and lock the account for a while once the limit is hit.
    """
    email = email.lower()
    users = mongo_conn.users
    user = await users.find_one({"email": email})
    if not user:
        logger.warning(f"Login failed: user not found {email}")
        raise AppException(status_code=401, detail="Invalid credentials")

    now = datetime.utcnow()
    lock_until = user.get("lock_until")
    if lock_until and lock_until > now:
        logger.warning(f"Login refused: account locked {email}")
        raise AppException(status_code=423, detail="Account temporarily locked due to too many failed login attempts")

    if not verify_password(password, user["password"]):
        attempts = int(user.get("login_attempts", 0)) + 1
        update = {"login_attempts": attempts}
        if attempts >= settings.MAX_LOGIN_ATTEMPTS:
            update = {"login_attempts": 0, "lock_until": now + timedelta(minutes=settings.LOGIN_LOCK_MINUTES)}
            logger.warning(f"Locking account {email} after {attempts} failed attempts")
        await users.update_one({"_id": user["_id"]}, {"$set": update})
        logger.warning(f"Login failed: wrong password {email}")
        raise AppException(status_code=401, detail="Invalid credentials")

    if not user.get("is_active", True):
        raise ForbiddenException("User account has been deactivated")
    if settings.REQUIRE_EMAIL_VERIFICATION and not user.get("is_email_verified", False):
        raise ForbiddenException("Please verify your email first")

    await users.update_one({"_id": user["_id"]}, {"$set": {"login_attempts": 0, "lock_until": None, "last_login": now}})
    access_token = create_access_token(build_token_claims(user))
    logger.info(f"Login successful: {email}")
    return {"access_token": access_token, "token_type": "bearer", "user": user_to_out(user)}

async def forgot_password(email: str) -> dict:
    email = email.lower()
    user = await mongo_conn.users.find_one({"email": email})
    if user:
        code = generate_code()
        await mongo_conn.users.update_one(
            {"_id": user["_id"]},
            {"$set": {"reset_code": code, "reset_code_expires": code_expiry()}}
        )
        await run_in_threadpool(send_password_reset_email, email, user.get("first_name", ""), code)
        logger.info(f"Password reset code issued for {email}")
    else:
        logger.info(f"Password reset requested for unknown email {email}")
    return {"message": "If your email is registered, you will receive reset instructions"}

async def reset_password(email: str, code: str, new_password: str) -> dict:
    email = email.lower()
    user = await mongo_conn.users.find_one({
        "email": email,
        "reset_code": code,
        "reset_code_expires": {"$gt": datetime.utcnow()},
    })
    if not user:
        raise ValueError("Invalid or expired password reset code")
    await mongo_conn.users.update_one(
        {"_id": user["_id"]},
        {
            "$set": {
                "password": hash_password(new_password),
                "reset_code": None,
                "reset_code_expires": None,
                "login_attempts": 0,
                "lock_until": None,
                "updated_at": datetime.utcnow(),
            },
            "$inc": {"token_version": 1},
        }
    )
    logger.info(f"Password reset for {email}")
    return {"message": "Password has been reset successfully"}

async def get_profile(user_id: str) -> dict:
    user = await mongo_conn.users.find_one({"_id": ObjectId(user_id)})
    if not user:
        raise NotFoundException("User not found")
    return user_to_out(user)

async def update_profile(user_id: str, payload) -> dict:
    update_doc = {k: v.strip() for k, v in payload.model_dump().items() if v is not None}
    if update_doc:
        update_doc["updated_at"] = datetime.utcnow()
        await mongo_conn.users.update_one({"_id": ObjectId(user_id)}, {"$set": update_doc})
        logger.info(f"Profile updated for user {user_id}")
    return await get_profile(user_id)

async def update_password(user_id: str, current_password: str, new_password: str) -> dict:
    user = await mongo_conn.users.find_one({"_id": ObjectId(user_id)})
    if not user:
        raise NotFoundException("User not found")
    if not verify_password(current_password, user["password"]):
        raise ValueError("Current password is incorrect")
    await mongo_conn.users.update_one(
        {"_id": user["_id"]},
        {"$set": {"password": hash_password(new_password), "updated_at": datetime.utcnow()},
         "$inc": {"token_version": 1}}
    )
    logger.info(f"Password changed for user {user_id}")
    return {"message": "Password updated successfully"}
