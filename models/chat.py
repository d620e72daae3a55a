from pydantic import BaseModel, Field
from typing import List, Literal, Optional
from datetime import datetime

class ChatMessage(BaseModel):
    sender: Literal["user", "ai"] = Field(alias="from")
    text: str = Field(min_length=1)
    timestamp: Optional[datetime] = None

    model_config = {"populate_by_name": True}

class ChatAppend(BaseModel):
    messages: List[ChatMessage] = Field(min_length=1)

class ChatHistoryOut(BaseModel):
    user_id: str
    messages: List[ChatMessage]
    updated_at: Optional[datetime] = None
