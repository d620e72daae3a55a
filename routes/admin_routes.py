# routes/admin_routes.py
from fastapi import APIRouter, Depends, HTTPException, status, Query, Path
from core.dependencies import require_role, CurrentUser
from utils.logger import get_logger
from services.admin_service import (
    list_users, get_user_by_id, create_user, update_user, delete_user, revoke_user_tokens,
    list_pending_staff, approve_staff, reject_staff, list_audit_logs
)
from models.admin import AdminUserCreate, AdminUserUpdate, ApprovePayload, ReasonPayload, AuditItem
from models.user import UserOut, Role
from typing import List, Optional

router = APIRouter(prefix="/admin", tags=["Admin"])
logger = get_logger("Admin_Route")

admin_only = require_role("admin")

@router.get("/users", response_model=List[UserOut])
async def list_all_users(role: Optional[Role] = None, skip: int = Query(0, ge=0), limit: int = Query(50, ge=1, le=200),
                         current_admin: CurrentUser = Depends(admin_only)):
    """
    List users (admin only). Pagination supported via skip & limit.
    """
    return await list_users(role=role, skip=skip, limit=limit)

@router.post("/users", response_model=UserOut, status_code=status.HTTP_201_CREATED)
async def api_create_user(payload: AdminUserCreate, current_admin: CurrentUser = Depends(admin_only)):
    try:
        return await create_user(payload, current_admin.email)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

@router.get("/users/{user_id}", response_model=UserOut)
async def api_get_user(user_id: str = Path(..., description="User ObjectId string"), current_admin: CurrentUser = Depends(admin_only)):
    try:
        return await get_user_by_id(user_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

@router.put("/users/{user_id}", response_model=UserOut)
async def api_update_user(user_id: str, payload: AdminUserUpdate, current_admin: CurrentUser = Depends(admin_only)):
    try:
        return await update_user(user_id, payload, current_admin.email)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

@router.delete("/users/{user_id}")
async def api_delete_user(user_id: str, current_admin: CurrentUser = Depends(admin_only)):
    try:
        return await delete_user(user_id, current_admin.email, current_admin.id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

@router.post("/users/{user_id}/revoke")
async def api_revoke(user_id: str, payload: Optional[ReasonPayload] = None, current_admin: CurrentUser = Depends(admin_only)):
    try:
        return await revoke_user_tokens(user_id, current_admin.email, payload.reason if payload else None)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

@router.get("/pending-staff", response_model=List[UserOut])
async def api_pending_staff(current_admin: CurrentUser = Depends(admin_only)):
    return await list_pending_staff()

@router.post("/approve-staff/{user_id}", response_model=UserOut)
async def api_approve_staff(user_id: str, payload: Optional[ApprovePayload] = None, current_admin: CurrentUser = Depends(admin_only)):
    try:
        return await approve_staff(user_id, current_admin.email, current_admin.id, payload.restaurant_id if payload else None)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

@router.post("/reject-staff/{user_id}", response_model=UserOut)
async def api_reject_staff(user_id: str, payload: Optional[ReasonPayload] = None, current_admin: CurrentUser = Depends(admin_only)):
    try:
        return await reject_staff(user_id, current_admin.email, payload.reason if payload else None)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

@router.get("/audit-logs", response_model=list[AuditItem])
async def api_audit_logs(skip: int = Query(0, ge=0), limit: int = Query(50, ge=1, le=200), current_admin: CurrentUser = Depends(admin_only)):
    return await list_audit_logs(skip=skip, limit=limit)
