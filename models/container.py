from pydantic import BaseModel, Field, model_validator
from typing import Dict, Literal, Optional
from datetime import datetime
from models.container_type import ContainerTypeOut

ContainerStatus = Literal["available", "active", "returned", "lost", "damaged"]

class ContainerGenerate(BaseModel):
    container_type_id: str
    restaurant_id: Optional[str] = None

class ContainerCreate(ContainerGenerate):
    qr_code: Optional[str] = Field(None, min_length=4)

class ContainerRegister(BaseModel):
    qr_code: str = Field(..., min_length=1)

class ContainerStatusUpdate(BaseModel):
    container_id: str
    status: ContainerStatus
    notes: Optional[str] = None

class ProcessRebateRequest(BaseModel):
    qr_code: Optional[str] = None
    container_id: Optional[str] = None
    location: Optional[str] = None

    @model_validator(mode="after")
    def check_identifier(self):
        if not self.qr_code and not self.container_id:
            raise ValueError("qr_code or container_id is required")
        return self

class ContainerAdminUpdate(BaseModel):
    container_type_id: Optional[str] = None
    status: Optional[ContainerStatus] = None
    uses_count: Optional[int] = Field(None, ge=0)
    restaurant_id: Optional[str] = None

class ContainerOut(BaseModel):
    id: str
    qr_code: str
    customer_id: Optional[str] = None
    status: ContainerStatus
    container_type_id: str
    container_type: Optional[ContainerTypeOut] = None
    restaurant_id: Optional[str] = None
    purchase_date: Optional[datetime] = None
    registration_date: Optional[datetime] = None
    last_used: Optional[datetime] = None
    uses_count: int = 0
    uses_left: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class ContainerStats(BaseModel):
    active_containers: int
    returned_containers: int
    total_rebate: float

class RestaurantContainerStats(BaseModel):
    total: int
    by_status: Dict[str, int]
    total_rebate: float

class ProcessRebateResult(BaseModel):
    container: ContainerOut
    amount: float
    uses_left: int

class RebateValueOut(BaseModel):
    container_type_id: str
    restaurant_id: str
    rebate_value: float
    source: Literal["restaurant", "container_type"]
