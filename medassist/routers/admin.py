# medassist/routers/admin.py

from fastapi import APIRouter, Depends
from medassist.routers.deps import require_admin
from medassist.services.chat_session_service import chat_session_service
from medassist.services.vocabulary import load_vocabulary
from medassist.utils.errors import NotFoundError
from medassist.utils.responses import format_response


router = APIRouter(tags=["admin"])

# -----------------------------
# Assistant maintenance
# -----------------------------

@router.get("/assistant/vocabulary", summary="Inspect the loaded assistant vocabulary")
async def get_vocabulary(current_user: dict = Depends(require_admin)):
    vocabulary = load_vocabulary()
    return format_response(True, data={
        "doctors": list(vocabulary.doctors),
        "specializations": vocabulary.specialization_names(),
        "symptom_keywords": len(vocabulary.symptoms),
        "emergency_keywords": len(vocabulary.emergency_keywords),
        "examples": len(vocabulary.examples),
    })


@router.get("/assistant/sessions/{session_id}", summary="Get a chat session's state and stats")
async def get_session(session_id: str, current_user: dict = Depends(require_admin)):
    session = await chat_session_service.get_session(session_id)
    if not session:
        raise NotFoundError(f"Chat session {session_id} not found")
    stats = await chat_session_service.get_session_stats(session_id)
    return format_response(True, data={
        "session_id": session.session_id,
        "state": session.state,
        "user_id": session.user_id,
        "stats": stats,
    })


@router.delete("/assistant/sessions/{session_id}", summary="Delete a chat session")
async def delete_session(session_id: str, current_user: dict = Depends(require_admin)):
    if not await chat_session_service.clear_session(session_id):
        raise NotFoundError(f"Chat session {session_id} not found")
    return format_response(True, message=f"Chat session {session_id} deleted")
