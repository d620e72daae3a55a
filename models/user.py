from pydantic import BaseModel, EmailStr, Field
from typing import Literal, Optional
from datetime import datetime

Role = Literal["customer", "staff", "admin"]

class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    role: Role = "customer"

class UserLogin(BaseModel):
    email: EmailStr
    password: str

class EmailCodePayload(BaseModel):
    email: EmailStr
    code: str

class EmailPayload(BaseModel):
    email: EmailStr

class ResetPasswordPayload(BaseModel):
    email: EmailStr
    code: str
    new_password: str = Field(min_length=6)

class UserOut(BaseModel):
    id: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: str
    restaurant_id: Optional[str] = None
    is_active: bool = True
    is_email_verified: bool = False
    is_approved: bool = True
    approval_status: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class ProfileUpdate(BaseModel):
    first_name: Optional[str] = Field(None, min_length=1)
    last_name: Optional[str] = Field(None, min_length=1)

class PasswordUpdate(BaseModel):
    current_password: str
    new_password: str = Field(min_length=6)

class RegisterResponse(BaseModel):
    message: str
    user: UserOut

class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserOut
