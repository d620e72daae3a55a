from fastapi import APIRouter, HTTPException, status
from models.user import UserCreate, UserLogin, EmailCodePayload, EmailPayload, ResetPasswordPayload, RegisterResponse, TokenResponse
from services.user_service import register_user, verify_email, resend_verification, authenticate_user, forgot_password, reset_password
from utils.logger import get_logger

logger = get_logger("AUTH_ROUTE")

router = APIRouter(prefix="/auth", tags=["Authentication"])

@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
async def register(user: UserCreate):
    logger.info(f"Attempting to register user with email: {user.email}")
    try:
        created = await register_user(user)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return {"message": "Registration successful! Please verify your email to continue.", "user": created}

@router.post("/verify-email")
async def api_verify_email(payload: EmailCodePayload):
    try:
        return await verify_email(payload.email, payload.code)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

@router.post("/resend-verification")
async def api_resend_verification(payload: EmailPayload):
    try:
        return await resend_verification(payload.email)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

@router.post("/login", response_model=TokenResponse)
async def login(user: UserLogin):
    logger.info(f"Login attempt for: {user.email}")
    return await authenticate_user(user.email, user.password)

@router.post("/forgot-password")
async def api_forgot_password(payload: EmailPayload):
    return await forgot_password(payload.email)

@router.post("/reset-password")
async def api_reset_password(payload: ResetPasswordPayload):
    try:
        return await reset_password(payload.email, payload.code, payload.new_password)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
