# medassist/routers/assistant.py

import traceback
from typing import List, Optional, Tuple
from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from medassist.core.config import settings
from medassist.core.logger import logger
from medassist.models.assistant import QueryAnalysis, RecommendationResult, Urgency
from medassist.models.chat import ChatMessage, ChatSession
from medassist.routers.deps import get_optional_user, has_role
from medassist.schemas.assistant import (
    AnswerPayload,
    AskRequest,
    ExampleQuestion,
    ExamplesResponse,
    HistoryResponse,
    SessionStats,
)
from medassist.services.chat_session_service import chat_session_service, merge_messages
from medassist.services.query_analyzer import query_analyzer
from medassist.services.recommendation_engine import DISCLAIMER, recommendation_engine
from medassist.services.vocabulary import load_vocabulary
from medassist.utils.errors import BadRequestError, ForbiddenError, NotFoundError
from medassist.utils.responses import TIMESTAMP_FORMAT, now_timestamp

router = APIRouter(tags=["assistant"])

# Key of the chat session id inside the signed browser session cookie
SESSION_KEY = "medical_chat_session"

INSTRUCTIONS = [
    "Ask about a medical specialization to learn what it treats",
    "Describe your symptoms to get a specialist recommendation",
    "Ask about one of our doctors by name",
    "In an emergency, call your local emergency number right away",
]


def _owns_session(user: Optional[dict], session: ChatSession) -> bool:
    if not session.is_claimed:
        return True
    return bool(user) and (user["user_id"] == session.user_id or has_role(user, ["admin"]))


async def _resolve_session(request: Request, requested: Optional[str], user: Optional[dict]) -> str:
    session_id = requested or request.session.get(SESSION_KEY)
    if session_id:
        session = await chat_session_service.get_session(session_id)
        if session and not _owns_session(user, session):
            logger.warning(f"Chat session {session_id} belongs to another user, starting a new one")
            session_id = None
    session_id = await chat_session_service.get_or_create_session(session_id)
    request.session[SESSION_KEY] = session_id
    return session_id


def _same_intent(analysis: QueryAnalysis, other: QueryAnalysis) -> bool:
    return (
        analysis.type == other.type
        and analysis.urgency == other.urgency
        and analysis.doctor_name == other.doctor_name
        and analysis.specializations == other.specializations
        and set(analysis.symptoms) == set(other.symptoms)
    )


async def _answer(query: str, session_id: str) -> Tuple[RecommendationResult, bool]:
    if settings.REUSE_SIMILAR_ANSWERS:
        analysis = query_analyzer.analyze(query)
        if analysis.urgency != Urgency.EMERGENCY:
            cache = await chat_session_service.recent_question_cache(session_id)
            hit = cache.find_similar(query)
            # "about Dermatology" and "about Gynecology" are close as text but not as questions
            if hit and _same_intent(analysis, query_analyzer.analyze(hit.question)):
                logger.info(f"Reusing answer to a similar question ({hit.similarity:.2f}) in {session_id}")
                return RecommendationResult(
                    success=True,
                    answer=hit.answer,
                    type=hit.type or analysis.type.value,
                    suggested_actions=hit.suggested_actions,
                    disclaimer=DISCLAIMER,
                    analysis=analysis,
                ), True

    return recommendation_engine.get_recommendations(query), False


def _failure_response(session_id, timestamp, answer=None, suggested_actions=None, debug=None, trace=None):
    payload = AnswerPayload(
        answer=answer or "I apologize, but I encountered an error processing your request. Please try again later.",
        type="error",
        suggested_actions=suggested_actions or ["Please try rephrasing your question or contact support."],
    )
    if settings.DEBUG:
        payload.debug = debug
        payload.trace = trace
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "data": payload.model_dump(exclude_none=True),
            "session_id": session_id,
            "timestamp": timestamp,
        },
    )


def _format_time(value) -> Optional[str]:
    return value.strftime(TIMESTAMP_FORMAT) if value else None


@router.post("/ask")
async def ask(
    payload: AskRequest,
    request: Request,
    current_user: Optional[dict] = Depends(get_optional_user),
):
    timestamp = now_timestamp()
    session_id = payload.session_id
    try:
        session_id = await _resolve_session(request, payload.session_id, current_user)
        result, cached = await _answer(payload.query, session_id)

        # Both sides of the turn are stored, failed answers included
        await chat_session_service.save_message(
            session_id, ChatMessage(content=payload.query, is_user=True)
        )
        await chat_session_service.save_message(
            session_id,
            ChatMessage(
                content=result.answer,
                is_user=False,
                suggested_actions=result.suggested_actions,
                type=result.type,
            ),
        )

        if current_user:
            await chat_session_service.transfer_to_user(session_id, current_user["user_id"])
    except Exception as e:
        logger.exception(f"AI assistant request failed: {str(e)}")
        return _failure_response(
            session_id, timestamp,
            debug=f"{e.__class__.__name__}: {e}", trace=traceback.format_exc(),
        )

    if not result.success:
        return _failure_response(
            session_id, timestamp, result.answer, result.suggested_actions, debug=result.debug
        )

    logger.info(f"AI answer served: session={session_id} user_type={payload.user_type} type={result.type} cached={cached}")
    data = AnswerPayload(
        answer=result.answer,
        type=result.type,
        suggested_actions=result.suggested_actions,
        disclaimer=result.disclaimer,
        data=result.data,
        cached=cached or None,
    )
    return {
        "success": True,
        "data": data.model_dump(exclude_none=True),
        "analysis": result.analysis.model_dump(mode="json") if result.analysis else None,
        "session_id": session_id,
        "timestamp": timestamp,
    }


@router.get("/history", response_model=HistoryResponse)
async def history(
    request: Request,
    session_id: Optional[str] = Query(None, description="Chat session to read"),
    current_user: Optional[dict] = Depends(get_optional_user),
):
    session_id = session_id or request.session.get(SESSION_KEY)
    messages: List[ChatMessage] = []
    stats = SessionStats()

    if session_id:
        session = await chat_session_service.get_session(session_id)
        if session:
            if not _owns_session(current_user, session):
                raise ForbiddenError("This chat session belongs to another user")
            messages.extend(session.messages)
            raw = await chat_session_service.get_session_stats(session_id)
            stats = SessionStats(
                total_messages=raw["total_messages"],
                user_messages=raw["user_messages"],
                bot_messages=raw["bot_messages"],
                session_created=_format_time(raw["session_created"]),
                last_activity=_format_time(raw["last_activity"]),
            )

    if current_user:
        messages.extend(await chat_session_service.get_user_history(current_user["user_id"]))

    return HistoryResponse(
        success=True,
        session_id=session_id,
        messages=merge_messages(messages, settings.HISTORY_LIMIT),
        stats=stats,
    )


@router.delete("/history")
async def clear_history(
    request: Request,
    session_id: Optional[str] = Query(None, description="Chat session to clear"),
    current_user: Optional[dict] = Depends(get_optional_user),
):
    session_id = session_id or request.session.get(SESSION_KEY)
    if not session_id:
        raise BadRequestError("No chat session to clear")

    session = await chat_session_service.get_session(session_id)
    if not session:
        raise NotFoundError(f"Chat session {session_id} not found")
    if not _owns_session(current_user, session):
        raise ForbiddenError("This chat session belongs to another user")

    await chat_session_service.clear_session(session_id)
    if request.session.get(SESSION_KEY) == session_id:
        request.session.pop(SESSION_KEY)
    return {"success": True, "message": "Chat history cleared", "session_id": session_id}


@router.get("/examples", response_model=ExamplesResponse)
async def examples():
    vocabulary = load_vocabulary()
    return ExamplesResponse(
        success=True,
        examples=[
            ExampleQuestion(question=e["question"], description=e.get("description"))
            for e in vocabulary.examples
            if e.get("question")
        ],
        instructions=INSTRUCTIONS,
    )
