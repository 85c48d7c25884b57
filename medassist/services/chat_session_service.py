# medassist/services/chat_session_service.py
"""
Chat Session Manager

Every assistant turn is stored on a chat session document. A session starts
`anonymous`; once a signed-in user asks a question in it, it is claimed by
that user (`claimed`) and its transcript is copied once into the user's
permanent history. Messages saved to a claimed session go to both places.
"""

import secrets
import time
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional
from uuid import uuid4

from pymongo import ReturnDocument

from medassist.core.config import settings
from medassist.core.logger import logger
from medassist.models.chat import ChatMessage, ChatSession
from medassist.services.question_cache import QuestionCache
from medassist.services.recommendation_engine import EMERGENCY_ADVISORY

SESSION_ANONYMOUS = "anonymous"
SESSION_CLAIMED = "claimed"


def generate_session_id() -> str:
    return f"chat_{int(time.time())}_{secrets.token_hex(8)}"


def merge_messages(messages: Iterable[ChatMessage], limit: int) -> List[ChatMessage]:
    """De-duplicate by message id, order oldest first and keep the newest ``limit``."""
    seen = set()
    unique = []
    for message in messages:
        if message.id is not None:
            if message.id in seen:
                continue
            seen.add(message.id)
        unique.append(message)
    unique.sort(key=lambda m: m.timestamp or datetime.min)
    return unique[-limit:] if limit > 0 else []


class ChatSessionService:
    def __init__(self, sessions=None, histories=None, user_history_limit: Optional[int] = None):
        if sessions is None or histories is None:
            from medassist.db.mongo import chat_histories_collection, chat_sessions_collection
            sessions = chat_sessions_collection if sessions is None else sessions
            histories = chat_histories_collection if histories is None else histories
        self.sessions = sessions
        self.histories = histories
        self.user_history_limit = user_history_limit or settings.USER_HISTORY_LIMIT

    async def get_or_create_session(self, session_id: Optional[str] = None) -> str:
        session_id = session_id or generate_session_id()
        now = datetime.utcnow()
        await self.sessions.update_one(
            {"session_id": session_id},
            {
                "$setOnInsert": {
                    "state": SESSION_ANONYMOUS,
                    "user_id": None,
                    "messages": [],
                    "created_at": now,
                },
                "$set": {"last_updated": now},
            },
            upsert=True,
        )
        return session_id

    async def get_session(self, session_id: str) -> Optional[ChatSession]:
        doc = await self.sessions.find_one({"session_id": session_id})
        if not doc:
            return None
        return ChatSession(**{k: v for k, v in doc.items() if k != "_id"})

    async def save_message(self, session_id: str, message: ChatMessage) -> ChatMessage:
        now = datetime.utcnow()
        stored = message.model_copy(update={
            "id": message.id or uuid4().hex,
            "session_id": session_id,
            "timestamp": message.timestamp or now,
        })
        doc = stored.model_dump()

        session = await self.sessions.find_one_and_update(
            {"session_id": session_id},
            {
                "$push": {"messages": doc},
                "$set": {"last_updated": now},
                "$setOnInsert": {"state": SESSION_ANONYMOUS, "user_id": None, "created_at": now},
            },
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )

        if session and session.get("state") == SESSION_CLAIMED and session.get("user_id"):
            await self._append_to_user_history(session["user_id"], [doc])
        return stored

    async def get_messages(self, session_id: str) -> List[ChatMessage]:
        doc = await self.sessions.find_one({"session_id": session_id})
        if not doc:
            return []
        return [ChatMessage(**m) for m in doc.get("messages", [])]

    async def get_user_history(self, user_id: str) -> List[ChatMessage]:
        doc = await self.histories.find_one({"user_id": user_id})
        if not doc:
            return []
        return [ChatMessage(**m) for m in doc.get("messages", [])]

    async def transfer_to_user(self, session_id: str, user_id: str) -> bool:
        """Claim an anonymous session for ``user_id``.

        The state check and the claim happen in one update, so concurrent
        calls copy the transcript into the user's history at most once.
        Returns False when the session is missing or already claimed.
        """
        session = await self.sessions.find_one_and_update(
            {"session_id": session_id, "state": SESSION_ANONYMOUS},
            {"$set": {"state": SESSION_CLAIMED, "user_id": user_id, "last_updated": datetime.utcnow()}},
            return_document=ReturnDocument.AFTER,
        )
        if not session:
            return False

        messages = session.get("messages", [])
        if messages:
            await self._append_to_user_history(user_id, messages)
        logger.info(f"Chat session {session_id} transferred to user {user_id} ({len(messages)} messages)")
        return True

    async def get_session_stats(self, session_id: str) -> Dict[str, Any]:
        doc = await self.sessions.find_one({"session_id": session_id})
        messages = doc.get("messages", []) if doc else []
        user_messages = sum(1 for m in messages if m.get("is_user"))
        return {
            "total_messages": len(messages),
            "user_messages": user_messages,
            "bot_messages": len(messages) - user_messages,
            "session_created": doc.get("created_at") if doc else None,
            "last_activity": doc.get("last_updated") if doc else None,
        }

    async def clear_session(self, session_id: str) -> bool:
        result = await self.sessions.delete_one({"session_id": session_id})
        return result.deleted_count > 0

    async def recent_question_cache(self, session_id: str) -> QuestionCache:
        """Build a QuestionCache from the question/answer pairs of a session."""
        cache = QuestionCache()
        messages = await self.get_messages(session_id)
        for question, answer in zip(messages, messages[1:]):
            if not question.is_user or answer.is_user or answer.type == "error":
                continue
            # Emergency advice is never replayed for a later question
            if answer.content.startswith(EMERGENCY_ADVISORY):
                continue
            cache.add(question.content, answer.content, answer.suggested_actions, answer.type)
        return cache

    async def _append_to_user_history(self, user_id: str, messages: List[Dict[str, Any]]):
        now = datetime.utcnow()
        await self.histories.update_one(
            {"user_id": user_id},
            {
                "$push": {"messages": {"$each": messages, "$slice": -self.user_history_limit}},
                "$set": {"last_updated": now},
                "$setOnInsert": {"created_at": now},
            },
            upsert=True,
        )


chat_session_service = ChatSessionService()
