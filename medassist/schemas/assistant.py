# medassist/schemas/assistant.py
from pydantic import BaseModel, Field, field_validator
from typing import Literal, List, Optional, Dict, Any

from medassist.models.chat import ChatMessage

# ---------------------
# Request / Response Models
# ---------------------

class AskRequest(BaseModel):
    query: str = Field(..., min_length=3, max_length=500, description="The medical question")
    user_type: Literal["patient", "guest", "doctor", "admin"] = Field(
        "guest", description="Kind of user asking the question"
    )
    session_id: Optional[str] = Field(None, description="Existing chat session to continue")

    @field_validator("query", mode="before")
    @classmethod
    def strip_query(cls, value):
        return value.strip() if isinstance(value, str) else value


class AnswerPayload(BaseModel):
    answer: str
    type: str
    suggested_actions: List[str] = Field(default_factory=list)
    disclaimer: Optional[str] = None
    data: Optional[Dict[str, Any]] = None
    cached: Optional[bool] = None
    debug: Optional[str] = None
    trace: Optional[str] = None


class AskResponse(BaseModel):
    success: bool
    data: AnswerPayload
    analysis: Optional[Dict[str, Any]] = None
    session_id: str
    timestamp: str


class SessionStats(BaseModel):
    total_messages: int = 0
    user_messages: int = 0
    bot_messages: int = 0
    session_created: Optional[str] = None
    last_activity: Optional[str] = None


class HistoryResponse(BaseModel):
    success: bool
    session_id: Optional[str] = None
    messages: List[ChatMessage]
    stats: SessionStats


class ExampleQuestion(BaseModel):
    question: str
    description: Optional[str] = None


class ExamplesResponse(BaseModel):
    success: bool
    examples: List[ExampleQuestion]
    instructions: List[str]
