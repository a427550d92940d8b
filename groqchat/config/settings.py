"""
Configuration Settings.
"""

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings."""

    # App info
    app_name: str = "Groq Chat"
    app_version: str = "1.0.0"
    debug: bool = True

    # LLM Provider settings
    llm_provider: str = "groq"  # "groq" or "openai"
    llm_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("llm_api_key", "groq_api_key"),
    )
    llm_base_url: Optional[str] = None  # uses provider default if not set
    llm_timeout: float = 120.0
    default_model: str = "llama-3.3-70b-versatile"

    # Storage
    database_path: str = "./data/groq_chat.db"
    export_dir: str = "./data/exports"

    # Web search augmentation
    web_search_context_size: str = "high"
    web_search_window_days: int = 30

    # CORS
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://localhost:8080",
        "http://127.0.0.1:3000",
    ]

    # Logging configuration
    log_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_file_path: str = "./logs/groqchat.log"
    log_file_enabled: bool = True
    log_console_enabled: bool = True
    log_json_format: bool = True  # JSON format for files, human-readable for console

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


settings = Settings()
