"""Shared FastAPI dependencies."""

from fastapi import HTTPException, Request, status

from ..services.chat_service import ChatService


def get_chat_service(request: Request) -> ChatService:
    """Return the ChatService created during application startup."""
    service = getattr(request.app.state, "chat_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Chat service is not initialized"
        )
    return service
