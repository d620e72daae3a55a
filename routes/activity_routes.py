from fastapi import APIRouter, Depends, HTTPException, status, Query
from core.dependencies import get_current_user, require_role, CurrentUser
from models.activity import ActivityCreate, ActivityOut, ActivityPage, FilteredReport, ChartReport
from services.activity_service import (
    record_activity, recent_activities, paginate_activities, filtered_report, chart_report
)
from datetime import datetime
from typing import List, Literal, Optional

router = APIRouter(prefix="/activities", tags=["Activities"])

@router.get("/recent", response_model=List[ActivityOut])
async def api_recent_activities(limit: int = Query(5, ge=1, le=50), current_user: CurrentUser = Depends(get_current_user)):
    return await recent_activities(current_user.id, limit=limit)

@router.get("", response_model=ActivityPage)
async def api_my_activities(page: int = Query(1, ge=1), limit: int = Query(20, ge=1, le=100),
                            current_user: CurrentUser = Depends(get_current_user)):
    return await paginate_activities({"user_id": current_user.id}, page=page, limit=limit)

@router.post("", response_model=ActivityOut, status_code=status.HTTP_201_CREATED)
async def api_record_activity(payload: ActivityCreate, current_user: CurrentUser = Depends(get_current_user)):
    try:
        return await record_activity(payload, current_user.id, role=current_user.role,
                                     restaurant_id=current_user.restaurant_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

@router.get("/admin", response_model=ActivityPage)
async def api_all_activities(page: int = Query(1, ge=1), limit: int = Query(20, ge=1, le=100),
                             current_admin: CurrentUser = Depends(require_role("admin"))):
    return await paginate_activities({}, page=page, limit=limit)

@router.get("/restaurant", response_model=ActivityPage)
async def api_restaurant_activities(page: int = Query(1, ge=1), limit: int = Query(20, ge=1, le=100),
                                    current_user: CurrentUser = Depends(require_role("staff"))):
    if not current_user.restaurant_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Staff not associated with any restaurant")
    return await paginate_activities({"restaurant_id": current_user.restaurant_id}, page=page, limit=limit)

@router.get("/reports/filtered", response_model=FilteredReport)
async def api_filtered_report(
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    type: Optional[str] = Query(None, description="registration, return, rebate, status_change or all"),
    restaurant_ids: Optional[List[str]] = Query(None),
    user_ids: Optional[List[str]] = Query(None),
    container_type_ids: Optional[List[str]] = Query(None),
    current_user: CurrentUser = Depends(get_current_user)
):
    try:
        return await filtered_report(
            current_user.role, current_user.id, current_user.restaurant_id,
            start_date=start_date, end_date=end_date, type=type, restaurant_ids=restaurant_ids,
            user_ids=user_ids, container_type_ids=container_type_ids
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

@router.get("/reports", response_model=ChartReport)
async def api_chart_report(type: str = Query(...), time_frame: Literal["week", "month", "year"] = "week",
                           current_user: CurrentUser = Depends(get_current_user)):
    try:
        return await chart_report(current_user.role, current_user.id, current_user.restaurant_id, type, time_frame)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
