# models/restaurant.py
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

class Coordinates(BaseModel):
    lat: float
    lng: float

class Location(BaseModel):
    address: str = Field(min_length=1)
    city: str = Field(min_length=1)
    coordinates: Optional[Coordinates] = None

class RestaurantCreate(BaseModel):
    name: str = Field(min_length=2)
    location: Location
    description: str = ""
    contact_number: str = Field(min_length=3)
    logo: str = "default-restaurant.png"
    is_active: bool = False

class RestaurantUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2)
    location: Optional[Location] = None
    description: Optional[str] = None
    contact_number: Optional[str] = Field(None, min_length=3)
    logo: Optional[str] = None
    is_active: Optional[bool] = None

class RestaurantOut(BaseModel):
    id: str
    name: str
    location: Location
    description: str = ""
    contact_number: str
    logo: Optional[str] = None
    is_active: bool = False
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
