"""
Configuration Settings.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings."""

    # App info
    app_name: str = "Project Genie"
    app_version: str = "0.1.0"
    debug: bool = True

    # Bearer credentials are issued by the OAuth provider and signed with its JWT secret
    jwt_secret: str = "your-jwt-secret-change-this-in-production"
    jwt_algorithm: str = "HS256"
    jwt_audience: Optional[str] = None  # e.g. "authenticated"
    access_token_expire_minutes: int = 60  # only used for locally minted tokens

    # Storage
    local_storage_path: str = "./data"

    # Placeholder assistant
    assistant_default_model: str = "llama3.2"
    assistant_response_delay: float = 1.0  # seconds, simulates inference latency

    # Client defaults
    api_base_url: str = "http://localhost:8000"
    thread_cache_dir: str = "./.genie-cache"
    thread_stale_seconds: float = 5 * 60
    thread_fetch_retries: int = 2
    thread_retry_delay_seconds: float = 1.0  # doubled for each further retry
    thread_cache_max_age_seconds: float = 60 * 60

    # CORS
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # Logging configuration
    log_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_file_path: str = "./logs/genie.log"
    log_file_enabled: bool = True
    log_console_enabled: bool = True
    log_json_format: bool = True  # JSON format for files, human-readable for console
    log_api_requests: bool = True

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
