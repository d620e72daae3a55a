from fastapi import APIRouter, Depends, HTTPException, status
from core.dependencies import require_role, ensure_restaurant_access, CurrentUser
from models.rebate import RebateMappingCreate, RebateMappingUpdate, RebateMappingOut, RebateTotals
from services.rebate_service import (
    list_mappings, create_mapping, update_mapping, delete_mapping, staff_rebate_totals, restaurant_rebate_totals
)
from utils.logger import get_logger
from typing import List, Optional

logger = get_logger("Rebate_Route")
router = APIRouter(prefix="/rebates", tags=["Rebates"])

@router.get("", response_model=List[RebateMappingOut])
async def api_list_mappings(restaurant_id: Optional[str] = None, container_type_id: Optional[str] = None,
                            current_admin: CurrentUser = Depends(require_role("admin"))):
    return await list_mappings(restaurant_id=restaurant_id, container_type_id=container_type_id)

@router.post("", response_model=RebateMappingOut, status_code=status.HTTP_201_CREATED)
async def api_create_mapping(payload: RebateMappingCreate, current_admin: CurrentUser = Depends(require_role("admin"))):
    try:
        return await create_mapping(payload, actor_email=current_admin.email)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

@router.get("/container-type/{container_type_id}", response_model=List[RebateMappingOut])
async def api_mappings_for_type(container_type_id: str, current_user: CurrentUser = Depends(require_role("admin", "staff"))):
    return await list_mappings(container_type_id=container_type_id)

@router.get("/staff/{staff_id}/totals", response_model=RebateTotals)
async def api_staff_totals(staff_id: str, current_user: CurrentUser = Depends(require_role("admin", "staff"))):
    if current_user.role == "staff" and current_user.id != staff_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Staff can only view their own totals")
    return await staff_rebate_totals(staff_id)

@router.get("/restaurant/{restaurant_id}/totals", response_model=RebateTotals)
async def api_restaurant_totals(restaurant_id: str, current_user: CurrentUser = Depends(require_role("admin", "staff"))):
    ensure_restaurant_access(current_user, restaurant_id)
    return await restaurant_rebate_totals(restaurant_id)

@router.put("/{mapping_id}", response_model=RebateMappingOut)
async def api_update_mapping(mapping_id: str, payload: RebateMappingUpdate, current_admin: CurrentUser = Depends(require_role("admin"))):
    try:
        return await update_mapping(mapping_id, payload, actor_email=current_admin.email)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

@router.delete("/{mapping_id}")
async def api_delete_mapping(mapping_id: str, current_admin: CurrentUser = Depends(require_role("admin"))):
    try:
        return await delete_mapping(mapping_id, actor_email=current_admin.email)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
