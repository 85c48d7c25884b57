# medassist/models/chat.py

from datetime import datetime
from typing import List, Literal, Optional
from pydantic import BaseModel, Field


class ChatMessage(BaseModel):
    id: Optional[str] = None
    session_id: Optional[str] = None
    content: str
    is_user: bool
    suggested_actions: Optional[List[str]] = None
    type: Optional[str] = None
    timestamp: Optional[datetime] = None


class ChatSession(BaseModel):
    session_id: str
    state: Literal["anonymous", "claimed"] = "anonymous"
    user_id: Optional[str] = None
    messages: List[ChatMessage] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    last_updated: Optional[datetime] = None

    @property
    def is_claimed(self) -> bool:
        return self.state == "claimed"
