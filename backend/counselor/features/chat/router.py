"""
Chat feature: API routes for the counselor conversation.
"""

import asyncio
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from counselor.config import get_settings
from counselor.core.dependencies import get_session_tracker
from counselor.features.chat import service
from counselor.features.chat.models import MODEL_INFO, get_model_info
from counselor.features.chat.schemas import ChatRequest, ChatResponse
from counselor.features.chat.sessions import SessionTracker
from counselor.features.chat.thinking import generate_thinking_steps

logger = logging.getLogger(__name__)

router = APIRouter()

APOLOGY_MESSAGE = (
    "I apologize, but I encountered an issue while processing your request. "
    "Please try again in a moment."
)
TIMEOUT_MESSAGE = (
    "I'm sorry, this is taking longer than expected. Your question may be complex "
    "or the service may be busy. Please try again, or ask a shorter question."
)


@router.post("")
async def chat(
    data: ChatRequest,
    tracker: SessionTracker = Depends(get_session_tracker),
):
    """Answer one chat turn.

    Profile queries never trigger web search. The whole turn (including the
    fallback model) is raced against CHAT_TIMEOUT_SECONDS.
    """
    if not data.message or not data.message.strip():
        return JSONResponse(status_code=400, content={"error": "Message is required"})

    settings = get_settings()
    session = tracker.touch(data.session_id)
    thinking = generate_thinking_steps(data.message, data.pdf_content)

    use_web_search = data.is_web_search and not data.is_profile_query
    logger.info(
        f"💬 Chat [{session.session_id[:8]}] #{session.message_count} "
        f"(pdf={'yes' if data.pdf_content else 'no'}, web={use_web_search})"
    )

    try:
        result = await asyncio.wait_for(
            service.get_model_response(
                data.message,
                data.pdf_content,
                data.profile_context,
                use_web_search,
            ),
            timeout=settings.CHAT_TIMEOUT_SECONDS,
        )
    except asyncio.TimeoutError:
        logger.error(f"⏰ Chat timed out after {settings.CHAT_TIMEOUT_SECONDS}s")
        return JSONResponse(
            status_code=504,
            content={
                "message": TIMEOUT_MESSAGE,
                "error": f"Request timed out after {settings.CHAT_TIMEOUT_SECONDS} seconds",
                "thinking": thinking,
                "sessionId": session.session_id,
            },
        )

    if not result.success:
        logger.error(f"❌ Chat failed: {result.error}")
        return JSONResponse(
            status_code=500,
            content={
                "message": APOLOGY_MESSAGE,
                "error": result.error or "Failed to get a response from the AI model",
                "thinking": thinking,
                "sessionId": session.session_id,
            },
        )

    content = result.content or ""
    if result.web_search_results:
        content = service.format_content_with_citations(content, result.web_search_results)

    response = ChatResponse(
        message=content,
        model=get_model_info(result.model),
        thinking=thinking,
        web_search_results=result.web_search_results,
        session_id=session.session_id,
    )
    return response.model_dump(by_alias=True, exclude_none=True)


@router.get("/thinking")
async def preview_thinking(message: str = ""):
    """Thinking steps the UI can show before the answer arrives."""
    return {"thinking": generate_thinking_steps(message)}


@router.get("/models")
async def list_models():
    return {"models": [info.model_dump() for info in MODEL_INFO.values()]}


@router.get("/sessions/stats")
async def session_stats(tracker: SessionTracker = Depends(get_session_tracker)):
    return {"activeSessions": len(tracker)}
