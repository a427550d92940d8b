"""
Groq Chat - Main FastAPI Application
"""

import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from .config import settings
from .api import chat_router, sessions_router
from .core.app_state import AppState
from .core.logging_config import setup_logging
from .llm.factory import create_llm_provider
from .services.chat_service import ChatService
from .storage import ConversationStore, Database
from .tools.web_search import WebSearchTool

# Logger will be initialized after setup_logging() is called
logger = logging.getLogger(__name__)


def build_chat_service(db: Database) -> ChatService:
    """Wire the store, provider and state from settings."""
    llm_provider = create_llm_provider(
        provider=settings.llm_provider,
        api_key=settings.llm_api_key or "",
        model=settings.default_model,
        base_url=settings.llm_base_url,
        timeout=settings.llm_timeout,
    )
    if llm_provider is None:
        logger.warning("LLM_API_KEY is not set; sends will fail until it is configured")

    return ChatService(
        store=ConversationStore(db),
        llm_provider=llm_provider,
        state=AppState(selected_model=settings.default_model),
        web_search=WebSearchTool(
            context_size=settings.web_search_context_size,
            window_days=settings.web_search_window_days,
        ),
        export_dir=settings.export_dir,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    # Startup
    setup_logging(settings)

    db = Database(settings.database_path)
    await db.connect()
    logger.info(f"Database opened: {settings.database_path}")

    service = build_chat_service(db)
    await service.initialize()
    app.state.chat_service = service

    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Provider: {settings.llm_provider}, default model: {settings.default_model}")
    yield
    # Shutdown
    service.cancel()
    await db.close()
    logger.info(f"Shutting down {settings.app_name}")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Streaming LLM chat client with locally persisted sessions",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(chat_router)
app.include_router(sessions_router)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "database": settings.database_path,
        "version": settings.app_version
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "groqchat.main:app",
        host="127.0.0.1",
        port=8000,
        reload=settings.debug
    )
