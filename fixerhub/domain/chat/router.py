"""Chat router - help chat endpoints"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...database import get_db
from .schemas import ChatClear, ChatMessage
from .service import ChatService

router = APIRouter(prefix="/chat", tags=["Chat"])


def get_chat_service(db: Session = Depends(get_db)) -> ChatService:
    """Dependency injection for ChatService"""
    return ChatService(db)


@router.post("/message")
async def send_message(data: ChatMessage, service: ChatService = Depends(get_chat_service)):
    return service.handle_message(data.message, data.userId, data.sessionId)


@router.get("/history")
async def get_history(
    userId: Optional[int] = Query(None),
    sessionId: Optional[str] = Query(None),
    service: ChatService = Depends(get_chat_service),
):
    return service.get_history(userId, sessionId)


@router.delete("/clear")
async def clear_conversation(data: ChatClear, service: ChatService = Depends(get_chat_service)):
    service.clear(data.userId, data.sessionId)
    return {"message": "Conversation cleared successfully"}


__all__ = ["router"]
