"""
Session API endpoints - List, create, switch and delete conversations.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from typing import List

from ..core.errors import StorageError
from ..models import Message, Session
from ..services.chat_service import ChatService
from .deps import get_chat_service

router = APIRouter(tags=["sessions"])


def _storage_unavailable(e: StorageError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=f"Storage unavailable: {e}"
    )


@router.get("/sessions", response_model=List[Session])
async def list_sessions(service: ChatService = Depends(get_chat_service)):
    """All sessions, most recently active first."""
    return await service.list_sessions()


@router.post("/sessions", status_code=status.HTTP_201_CREATED)
async def create_session(service: ChatService = Depends(get_chat_service)):
    """Start a new session and make it active."""
    try:
        session_id = await service.new_session()
    except StorageError as e:
        raise _storage_unavailable(e)
    return {"session_id": session_id}


@router.post("/sessions/{session_id}/activate", response_model=List[Message])
async def activate_session(session_id: str, service: ChatService = Depends(get_chat_service)):
    """Make a session active and return its history."""
    return await service.load_session(session_id)


@router.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session(session_id: str, service: ChatService = Depends(get_chat_service)):
    """Delete a session and all of its messages."""
    try:
        await service.delete_session(session_id)
    except StorageError as e:
        raise _storage_unavailable(e)


@router.get("/sessions/active/messages", response_model=List[Message])
async def get_active_messages(service: ChatService = Depends(get_chat_service)):
    """In-memory view of the active conversation, including a reply still streaming."""
    return service.state.messages


@router.delete("/sessions/active/messages", status_code=status.HTTP_204_NO_CONTENT)
async def clear_active_messages(service: ChatService = Depends(get_chat_service)):
    """Delete the active session's messages."""
    try:
        await service.clear_history()
    except StorageError as e:
        raise _storage_unavailable(e)


@router.get("/sessions/{session_id}/messages", response_model=List[Message])
async def get_session_messages(session_id: str, service: ChatService = Depends(get_chat_service)):
    """Stored messages of any session."""
    return await service.list_messages(session_id)


@router.delete("/messages", status_code=status.HTTP_204_NO_CONTENT)
async def clear_all_messages(service: ChatService = Depends(get_chat_service)):
    """Delete every message of every session."""
    try:
        await service.clear_all()
    except StorageError as e:
        raise _storage_unavailable(e)
