from fastapi import APIRouter, Depends, HTTPException, status
from models.user import UserOut, ProfileUpdate, PasswordUpdate
from core.dependencies import get_current_user, CurrentUser
from services.user_service import get_profile, update_profile, update_password

router = APIRouter(prefix="/users", tags=["Users"])

@router.get("/profile", response_model=UserOut)
async def read_profile(current_user: CurrentUser = Depends(get_current_user)):
    return await get_profile(current_user.id)

@router.put("/profile", response_model=UserOut)
async def api_update_profile(payload: ProfileUpdate, current_user: CurrentUser = Depends(get_current_user)):
    return await update_profile(current_user.id, payload)

@router.put("/password")
async def api_update_password(payload: PasswordUpdate, current_user: CurrentUser = Depends(get_current_user)):
    """
    Changing the password revokes every token issued so far.
    """
    try:
        return await update_password(current_user.id, payload.current_password, payload.new_password)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
