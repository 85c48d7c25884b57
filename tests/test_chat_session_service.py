# tests/test_chat_session_service.py

import asyncio
import re
from datetime import datetime, timedelta

from medassist.models.chat import ChatMessage
from medassist.services.chat_session_service import generate_session_id, merge_messages
from medassist.services.recommendation_engine import EMERGENCY_ADVISORY


def test_session_id_format():
    assert re.fullmatch(r"chat_\d+_[0-9a-f]{16}", generate_session_id())


def test_get_or_create_session_is_idempotent(session_service):
    async def run():
        session_id = await session_service.get_or_create_session()
        again = await session_service.get_or_create_session(session_id)
        return session_id, again

    session_id, again = asyncio.run(run())
    assert again == session_id
    assert len(session_service.sessions.docs) == 1
    assert session_service.sessions.docs[0]["state"] == "anonymous"


def test_save_and_read_back_messages(session_service):
    async def run():
        session_id = await session_service.get_or_create_session("chat_1_abc")
        await session_service.save_message(session_id, ChatMessage(content="I have a headache", is_user=True))
        saved = await session_service.save_message(
            session_id,
            ChatMessage(content="See a neurologist", is_user=False, type="symptom_triage",
                        suggested_actions=["View doctors in Neurology"]),
        )
        return saved, await session_service.get_messages(session_id)

    saved, messages = asyncio.run(run())
    assert saved.id and saved.timestamp and saved.session_id == "chat_1_abc"
    assert [m.content for m in messages] == ["I have a headache", "See a neurologist"]
    assert messages[0].is_user and not messages[1].is_user
    assert messages[1].suggested_actions == ["View doctors in Neurology"]
    assert messages[1].type == "symptom_triage"


def test_transfer_copies_transcript_once(session_service):
    async def run():
        session_id = await session_service.get_or_create_session()
        await session_service.save_message(session_id, ChatMessage(content="q1", is_user=True))
        await session_service.save_message(session_id, ChatMessage(content="a1", is_user=False))
        first = await session_service.transfer_to_user(session_id, "user-1")
        second = await session_service.transfer_to_user(session_id, "user-1")
        other = await session_service.transfer_to_user(session_id, "user-2")
        return first, second, other, await session_service.get_user_history("user-1")

    first, second, other, history = asyncio.run(run())
    assert (first, second, other) == (True, False, False)
    assert [m.content for m in history] == ["q1", "a1"]


def test_messages_after_claim_go_to_user_history(session_service):
    async def run():
        session_id = await session_service.get_or_create_session()
        await session_service.save_message(session_id, ChatMessage(content="q1", is_user=True))
        await session_service.transfer_to_user(session_id, "user-1")
        await session_service.save_message(session_id, ChatMessage(content="q2", is_user=True))
        session = await session_service.get_session(session_id)
        return session, await session_service.get_user_history("user-1")

    session, history = asyncio.run(run())
    assert session.state == "claimed"
    assert session.user_id == "user-1"
    assert [m.content for m in history] == ["q1", "q2"]
    assert len({m.id for m in history}) == 2


def test_user_history_is_capped(session_service):
    session_service.user_history_limit = 3

    async def run():
        session_id = await session_service.get_or_create_session()
        await session_service.transfer_to_user(session_id, "user-1")
        for i in range(5):
            await session_service.save_message(session_id, ChatMessage(content=f"m{i}", is_user=True))
        return await session_service.get_user_history("user-1")

    assert [m.content for m in asyncio.run(run())] == ["m2", "m3", "m4"]


def test_transfer_unknown_session(session_service):
    assert asyncio.run(session_service.transfer_to_user("chat_missing", "user-1")) is False


def test_session_stats(session_service):
    async def run():
        session_id = await session_service.get_or_create_session()
        await session_service.save_message(session_id, ChatMessage(content="q1", is_user=True))
        await session_service.save_message(session_id, ChatMessage(content="a1", is_user=False))
        await session_service.save_message(session_id, ChatMessage(content="q2", is_user=True))
        return await session_service.get_session_stats(session_id)

    stats = asyncio.run(run())
    assert stats["total_messages"] == 3
    assert stats["user_messages"] == 2
    assert stats["bot_messages"] == 1
    assert stats["session_created"] is not None
    assert stats["last_activity"] >= stats["session_created"]


def test_clear_session(session_service):
    async def run():
        session_id = await session_service.get_or_create_session()
        cleared = await session_service.clear_session(session_id)
        return cleared, await session_service.clear_session(session_id), await session_service.get_messages(session_id)

    assert asyncio.run(run()) == (True, False, [])


def test_recent_question_cache_skips_errors(session_service):
    async def run():
        session_id = await session_service.get_or_create_session()
        for content, is_user, type in [
            ("Tell me about Gynecology", True, None),
            ("Gynecology answer", False, "specialization_info"),
            ("I have a headache", True, None),
            ("Sorry, something went wrong", False, "error"),
        ]:
            await session_service.save_message(session_id, ChatMessage(content=content, is_user=is_user, type=type))
        return await session_service.recent_question_cache(session_id)

    cache = asyncio.run(run())
    assert len(cache) == 1
    assert cache.find_similar("tell me about gynecology").answer == "Gynecology answer"
    assert cache.find_similar("I have a headache") is None


def test_recent_question_cache_skips_emergency_answers(session_service):
    async def run():
        session_id = await session_service.get_or_create_session()
        await session_service.save_message(session_id, ChatMessage(content="I have severe headache", is_user=True))
        await session_service.save_message(
            session_id,
            ChatMessage(
                content=EMERGENCY_ADVISORY + "Neurology answer",
                is_user=False,
                type="symptom_triage",
            ),
        )
        return await session_service.recent_question_cache(session_id)

    cache = asyncio.run(run())
    assert len(cache) == 0
    assert cache.find_similar("I have a headache") is None


def test_merge_messages_dedupes_sorts_and_caps():
    start = datetime(2025, 1, 1, 12, 0, 0)
    messages = [
        ChatMessage(id=f"m{i}", content=f"m{i}", is_user=i % 2 == 0, timestamp=start + timedelta(minutes=i))
        for i in range(60)
    ]
    merged = merge_messages(list(reversed(messages)) + messages[:10], 50)
    assert len(merged) == 50
    assert [m.id for m in merged] == [f"m{i}" for i in range(10, 60)]
