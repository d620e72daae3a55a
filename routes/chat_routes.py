from fastapi import APIRouter, Depends
from core.dependencies import get_current_user, CurrentUser
from models.chat import ChatAppend, ChatHistoryOut
from services.chat_service import get_history, append_messages, clear_history

router = APIRouter(prefix="/chat", tags=["Chat"])

@router.get("/history", response_model=ChatHistoryOut)
async def api_get_history(current_user: CurrentUser = Depends(get_current_user)):
    return await get_history(current_user.id)

@router.post("/history", response_model=ChatHistoryOut)
async def api_append_history(payload: ChatAppend, current_user: CurrentUser = Depends(get_current_user)):
    return await append_messages(current_user.id, payload.messages)

@router.delete("/history")
async def api_clear_history(current_user: CurrentUser = Depends(get_current_user)):
    return await clear_history(current_user.id)
