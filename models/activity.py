from pydantic import BaseModel, Field
from typing import List, Literal, Optional
from datetime import datetime
from models.container import ContainerOut

ActivityType = Literal["registration", "return", "rebate", "status_change"]
ActivityStatus = Literal["completed", "pending", "cancelled"]

class ActivityCreate(BaseModel):
    container_id: str
    type: ActivityType
    amount: float = Field(0, ge=0)
    status: ActivityStatus = "completed"
    location: Optional[str] = None
    notes: Optional[str] = None

class ActivityOut(BaseModel):
    id: str
    user_id: str
    container_id: str
    container_type_id: Optional[str] = None
    restaurant_id: Optional[str] = None
    type: ActivityType
    amount: float = 0
    status: ActivityStatus = "completed"
    location: Optional[str] = None
    notes: Optional[str] = None
    container: Optional[ContainerOut] = None
    restaurant_name: Optional[str] = None
    created_at: Optional[datetime] = None

class ActivityPage(BaseModel):
    activities: List[ActivityOut]
    page: int
    total_pages: int
    total_activities: int

class FilteredReport(BaseModel):
    activities: List[ActivityOut]
    total_activities: int
    total_rebate_amount: float

class ChartDataset(BaseModel):
    data: List[float]

class ChartReport(BaseModel):
    labels: List[str]
    datasets: List[ChartDataset]
    legend: List[str]
