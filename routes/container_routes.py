from fastapi import APIRouter, Depends, HTTPException, status, Query
from core.dependencies import require_role, require_approved_staff, ensure_restaurant_access, CurrentUser
from models.container import (
    ContainerGenerate, ContainerCreate, ContainerRegister, ContainerStatusUpdate, ProcessRebateRequest,
    ContainerAdminUpdate, ContainerOut, ContainerStats, RestaurantContainerStats, ProcessRebateResult,
    RebateValueOut, ContainerStatus
)
from services.container_service import (
    create_container, get_container_by_qr, register_container, list_customer_containers, customer_container_stats,
    process_rebate, mark_container_status, get_rebate_value, list_restaurant_containers, restaurant_container_stats,
    list_all_containers, admin_update_container, delete_container
)
from utils.logger import get_logger
from typing import List, Optional

logger = get_logger("Container_Route")
router = APIRouter(prefix="/containers", tags=["Containers"])

customer_only = require_role("customer")
admin_only = require_role("admin")

@router.get("/stats", response_model=ContainerStats)
async def api_container_stats(current_user: CurrentUser = Depends(customer_only)):
    return await customer_container_stats(current_user.id)

@router.get("", response_model=List[ContainerOut])
async def api_my_containers(current_user: CurrentUser = Depends(customer_only)):
    return await list_customer_containers(current_user.id)

@router.post("/register", response_model=ContainerOut)
async def api_register_container(payload: ContainerRegister, current_user: CurrentUser = Depends(customer_only)):
    logger.info(f"Container register request for {payload.qr_code} by {current_user.email}")
    try:
        return await register_container(payload.qr_code, current_user.id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

@router.post("/generate", response_model=ContainerOut, status_code=status.HTTP_201_CREATED)
async def api_generate_container(payload: ContainerGenerate, current_user: CurrentUser = Depends(require_approved_staff)):
    restaurant_id = payload.restaurant_id
    if current_user.role == "staff":
        # staff issue containers for their own shop
        restaurant_id = restaurant_id or current_user.restaurant_id
        if restaurant_id:
            ensure_restaurant_access(current_user, restaurant_id)
    try:
        return await create_container(payload.container_type_id, restaurant_id, actor_email=current_user.email)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

@router.post("", response_model=ContainerOut, status_code=status.HTTP_201_CREATED)
async def api_create_container(payload: ContainerCreate, current_admin: CurrentUser = Depends(admin_only)):
    try:
        return await create_container(payload.container_type_id, payload.restaurant_id, qr_code=payload.qr_code,
                                      actor_email=current_admin.email)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

@router.get("/qr/{qr_code}", response_model=ContainerOut)
async def api_container_by_qr(qr_code: str, current_user: CurrentUser = Depends(require_role("staff", "admin"))):
    return await get_container_by_qr(qr_code)

@router.post("/process-rebate", response_model=ProcessRebateResult)
async def api_process_rebate(payload: ProcessRebateRequest, current_user: CurrentUser = Depends(require_approved_staff)):
    logger.info(f"Rebate requested by {current_user.email} for {payload.qr_code or payload.container_id}")
    try:
        return await process_rebate(payload, staff_id=current_user.id, restaurant_id=current_user.restaurant_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

@router.post("/mark-status", response_model=ContainerOut)
async def api_mark_status(payload: ContainerStatusUpdate, current_user: CurrentUser = Depends(require_approved_staff)):
    try:
        return await mark_container_status(payload.container_id, payload.status, actor_id=current_user.id,
                                           restaurant_id=current_user.restaurant_id, notes=payload.notes)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

@router.get("/rebate-value/{container_type_id}", response_model=RebateValueOut)
async def api_rebate_value(container_type_id: str, restaurant_id: Optional[str] = None,
                           current_user: CurrentUser = Depends(require_role("staff", "admin"))):
    if current_user.role == "staff":
        restaurant_id = current_user.restaurant_id
    if not restaurant_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="restaurant_id is required")
    try:
        return await get_rebate_value(container_type_id, restaurant_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

@router.get("/restaurant/{restaurant_id}", response_model=List[ContainerOut])
async def api_restaurant_containers(restaurant_id: str, current_user: CurrentUser = Depends(require_role("staff", "admin"))):
    ensure_restaurant_access(current_user, restaurant_id)
    try:
        return await list_restaurant_containers(restaurant_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

@router.get("/restaurant/{restaurant_id}/stats", response_model=RestaurantContainerStats)
async def api_restaurant_container_stats(restaurant_id: str, current_user: CurrentUser = Depends(require_role("staff", "admin"))):
    ensure_restaurant_access(current_user, restaurant_id)
    try:
        return await restaurant_container_stats(restaurant_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

@router.get("/all", response_model=List[ContainerOut])
async def api_all_containers(status_filter: Optional[ContainerStatus] = Query(None, alias="status"),
                             skip: int = Query(0, ge=0), limit: int = Query(50, ge=1, le=200),
                             current_admin: CurrentUser = Depends(admin_only)):
    return await list_all_containers(status=status_filter, skip=skip, limit=limit)

@router.put("/{container_id}", response_model=ContainerOut)
async def api_update_container(container_id: str, payload: ContainerAdminUpdate, current_admin: CurrentUser = Depends(admin_only)):
    try:
        return await admin_update_container(container_id, payload, actor_email=current_admin.email)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

@router.delete("/{container_id}")
async def api_delete_container(container_id: str, current_admin: CurrentUser = Depends(admin_only)):
    try:
        return await delete_container(container_id, actor_email=current_admin.email)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
