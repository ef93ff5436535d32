"""Chat schemas"""

from typing import Optional

from pydantic import BaseModel, field_validator


class ChatMessage(BaseModel):
    message: str
    userId: Optional[int] = None
    sessionId: Optional[str] = None

    @field_validator("message")
    @classmethod
    def check_message(cls, v):
        if not v or not v.strip():
            raise ValueError("Message is required")
        return v.strip()


class ChatClear(BaseModel):
    userId: Optional[int] = None
    sessionId: Optional[str] = None
