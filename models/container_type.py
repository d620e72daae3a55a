from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

class ContainerTypeCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    price: float = Field(..., ge=0)
    image: str = "default-container.png"
    rebate_value: float = Field(..., ge=0)
    max_uses: Optional[int] = Field(None, gt=0)
    is_active: bool = True

class ContainerTypeUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    image: Optional[str] = None
    rebate_value: Optional[float] = Field(None, ge=0)
    max_uses: Optional[int] = Field(None, gt=0)
    is_active: Optional[bool] = None

class ContainerTypeOut(BaseModel):
    id: str
    name: str
    description: str
    price: float
    image: Optional[str] = None
    rebate_value: float
    max_uses: int
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
