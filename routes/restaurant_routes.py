# routes/restaurant_routes.py
from fastapi import APIRouter, Depends, HTTPException, status, Query, Path
from core.dependencies import get_current_user, require_role, CurrentUser
from models.restaurant import RestaurantCreate, RestaurantOut, RestaurantUpdate
from models.user import UserOut
from services.restaurant_service import (
    create_restaurant, get_restaurant_by_id, list_restaurants, update_restaurant, delete_restaurant, list_restaurant_staff
)
from utils.logger import get_logger
from typing import List

logger = get_logger("Restaurant_Route")
router = APIRouter(prefix="/restaurants", tags=["Restaurants"])

# Any role: list active restaurants
@router.get("", response_model=List[RestaurantOut])
async def api_list_restaurants(include_inactive: bool = Query(False), current_user: CurrentUser = Depends(get_current_user)):
    """
    Active partner shops. Admins may pass include_inactive=true to see every restaurant.
    """
    only_active = not (include_inactive and current_user.role == "admin")
    return await list_restaurants(only_active=only_active)

@router.get("/{restaurant_id}", response_model=RestaurantOut)
async def api_get_restaurant(restaurant_id: str = Path(...), current_user: CurrentUser = Depends(require_role("admin", "staff"))):
    try:
        return await get_restaurant_by_id(restaurant_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

@router.post("", response_model=RestaurantOut, status_code=status.HTTP_201_CREATED)
async def api_create_restaurant(payload: RestaurantCreate, current_admin: CurrentUser = Depends(require_role("admin"))):
    return await create_restaurant(payload, actor_id=current_admin.id, actor_email=current_admin.email)

@router.put("/{restaurant_id}", response_model=RestaurantOut)
async def api_update_restaurant(restaurant_id: str, payload: RestaurantUpdate, current_admin: CurrentUser = Depends(require_role("admin"))):
    try:
        return await update_restaurant(restaurant_id, payload, actor_email=current_admin.email)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

@router.delete("/{restaurant_id}")
async def api_delete_restaurant(restaurant_id: str, current_admin: CurrentUser = Depends(require_role("admin"))):
    try:
        return await delete_restaurant(restaurant_id, actor_email=current_admin.email)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

@router.get("/{restaurant_id}/staff", response_model=List[UserOut])
async def api_restaurant_staff(restaurant_id: str, current_admin: CurrentUser = Depends(require_role("admin"))):
    try:
        return await list_restaurant_staff(restaurant_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
