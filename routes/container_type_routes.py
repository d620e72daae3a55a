from fastapi import APIRouter, Depends, HTTPException, status, Query
from core.dependencies import get_current_user, require_role, CurrentUser
from models.container_type import ContainerTypeCreate, ContainerTypeUpdate, ContainerTypeOut
from services.container_type_service import (
    create_container_type, get_container_type, list_container_types, update_container_type, delete_container_type
)
from typing import List

router = APIRouter(prefix="/container-types", tags=["Container Types"])

@router.get("", response_model=List[ContainerTypeOut])
async def api_list_container_types(include_inactive: bool = Query(False), current_user: CurrentUser = Depends(get_current_user)):
    only_active = not (include_inactive and current_user.role == "admin")
    return await list_container_types(only_active=only_active)

@router.get("/{container_type_id}", response_model=ContainerTypeOut)
async def api_get_container_type(container_type_id: str, current_user: CurrentUser = Depends(get_current_user)):
    try:
        return await get_container_type(container_type_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

@router.post("", response_model=ContainerTypeOut, status_code=status.HTTP_201_CREATED)
async def api_create_container_type(payload: ContainerTypeCreate, current_admin: CurrentUser = Depends(require_role("admin"))):
    return await create_container_type(payload, actor_email=current_admin.email)

@router.put("/{container_type_id}", response_model=ContainerTypeOut)
async def api_update_container_type(container_type_id: str, payload: ContainerTypeUpdate,
                                    current_admin: CurrentUser = Depends(require_role("admin"))):
    try:
        return await update_container_type(container_type_id, payload, actor_email=current_admin.email)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

@router.delete("/{container_type_id}")
async def api_delete_container_type(container_type_id: str, current_admin: CurrentUser = Depends(require_role("admin"))):
    try:
        return await delete_container_type(container_type_id, actor_email=current_admin.email)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
