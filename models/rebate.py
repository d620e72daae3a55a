from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

class RebateMappingCreate(BaseModel):
    restaurant_id: str
    container_type_id: str
    rebate_value: float = Field(..., ge=0)

class RebateMappingUpdate(BaseModel):
    rebate_value: float = Field(..., ge=0)

class RebateMappingOut(BaseModel):
    id: str
    restaurant_id: str
    container_type_id: str
    rebate_value: float
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class RebateTotals(BaseModel):
    total_rebate_amount: float
    rebate_count: int
