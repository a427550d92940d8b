"""
Chat API endpoints - Send messages and relay streamed replies.
Supports text messages with an optional local image and web-search flag.
"""

import json
import logging
from fastapi import APIRouter, HTTPException, Depends, status
from fastapi.responses import StreamingResponse
from typing import List

from ..core.errors import StorageError, StreamInProgressError, UnknownModelError
from ..llm.catalog import AVAILABLE_MODELS
from ..models import ModelInfo, ModelSelection, SendRequest
from ..services.chat_service import ChatService
from .deps import get_chat_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["chat"])


def _sse(event: dict) -> str:
    return f"data: {json.dumps(event, ensure_ascii=False)}\n\n"


@router.get("/models", response_model=List[ModelInfo])
async def list_models():
    """Static model catalog."""
    return [
        ModelInfo(
            id=m.id,
            name=m.name,
            supports_web_search=m.supports_web_search,
            description=m.description,
        )
        for m in AVAILABLE_MODELS
    ]


@router.get("/chat/state")
async def get_state(service: ChatService = Depends(get_chat_service)):
    """Active session, selected model, web-search toggle and loading flag."""
    state = service.state
    return {
        "active_session_id": state.active_session_id,
        "selected_model": state.selected_model,
        "use_web_search": state.use_web_search,
        "is_loading": state.is_loading,
        "message_count": len(state.messages),
    }


@router.post("/chat/send")
async def send_message(
    request: SendRequest,
    service: ChatService = Depends(get_chat_service),
):
    """
    Send a message and stream the reply as Server-Sent Events.

    Each ``content`` event carries the full reply accumulated so far.
    """
    if service.is_streaming:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A reply is already streaming"
        )

    async def event_generator():
        try:
            async for event in service.send(
                request.text,
                image_path=request.image_path,
                use_web_search=request.use_web_search,
            ):
                yield _sse(event)
        except StreamInProgressError as e:
            yield _sse({"type": "error", "error": str(e)})
        except Exception as e:
            logger.error(f"Send failed: {str(e)}", exc_info=True)
            yield _sse({"type": "error", "error": str(e)})

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",  # Disable nginx buffering
        }
    )


@router.post("/chat/cancel")
async def cancel_reply(service: ChatService = Depends(get_chat_service)):
    """Stop the streaming reply; the text received so far is kept."""
    return {"cancelled": service.cancel()}


@router.post("/chat/model")
async def select_model(
    selection: ModelSelection,
    service: ChatService = Depends(get_chat_service),
):
    """Select a model for the active session."""
    try:
        await service.select_model(selection.model_id)
    except UnknownModelError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except StorageError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    return {
        "selected_model": service.state.selected_model,
        "use_web_search": service.state.use_web_search,
    }


@router.post("/chat/web-search/toggle")
async def toggle_web_search(service: ChatService = Depends(get_chat_service)):
    return {"use_web_search": service.toggle_web_search()}


@router.post("/chat/export")
async def export_chat(service: ChatService = Depends(get_chat_service)):
    """Write the active conversation to a Markdown file."""
    try:
        path = await service.export_markdown()
    except StorageError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    return {"path": str(path)}
