# models/admin.py
from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import datetime
from models.user import Role

class AdminUserCreate(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    role: Role = "customer"
    restaurant_id: Optional[str] = None

class AdminUserUpdate(BaseModel):
    first_name: Optional[str] = Field(None, min_length=1)
    last_name: Optional[str] = Field(None, min_length=1)
    role: Optional[Role] = None
    restaurant_id: Optional[str] = None
    is_active: Optional[bool] = None

class ApprovePayload(BaseModel):
    restaurant_id: Optional[str] = None

class ReasonPayload(BaseModel):
    reason: str | None = None

# Response for audit log item
class AuditItem(BaseModel):
    id: str
    actor_email: str
    action: str
    resource_type: str
    resource_id: str
    before: Optional[dict] = None
    after: Optional[dict] = None
    reason: Optional[str] = None
    timestamp: Optional[datetime] = None
