"""Configuration settings for the EduTrace data service."""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="EDUTRACE_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Application
    app_name: str = "EduTrace Data Service"
    debug: bool = False
    environment: str = "development"
    log_level: str = "INFO"

    # Backend-as-a-service (required, no defaults)
    supabase_url: str
    supabase_anon_key: str

    # Auth
    supabase_jwt_secret: Optional[str] = None
    jwt_audience: str = "authenticated"
    jwt_algorithm: str = "HS256"
    session_cookie_name: str = "sb-access-token"
    refresh_cookie_name: str = "sb-refresh-token"
    code_verifier_cookie_name: str = "sb-auth-token-code-verifier"
    default_redirect_path: str = "/dashboard"
    auth_error_path: str = "/auth/auth-code-error"

    # CORS
    cors_origins: list[str] = [
        "http://localhost:3000",
    ]

    # Rate Limiting
    rate_limit_requests: int = 100
    rate_limit_window: int = 60  # seconds
    quiz_results_rate_limit: int = 50
    redis_url: Optional[str] = None

    # External service calls
    request_timeout: float = 10.0
    retry_attempts: int = 3
    retry_base_delay: float = 0.2  # seconds
    retry_max_delay: float = 2.0  # seconds
    circuit_failure_threshold: int = 5
    circuit_recovery_timeout: float = 30.0  # seconds

    # Dashboard
    dashboard_recent_progress_limit: int = 10


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
