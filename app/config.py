# app/config.py

from typing import Optional
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App
    app_name: str = "Lookup Validation API"
    app_env: str = "development"
    debug: bool = True
    frontend_url: str = "http://localhost:3000"
    log_level: str = "INFO"

    # Supabase
    supabase_url: str
    supabase_service_role_key: str

    # Anthropic (signature comparison)
    anthropic_api_key: str = ""
    signature_model: str = "claude-sonnet-4-20250514"
    signature_auth_max_tokens: int = 600

    # Feature flags
    enable_signature_authentication: bool = True

    # Signature authentication
    signature_auth_concurrency: int = 4
    signature_auth_timeout_seconds: float = 60.0
    signature_auth_max_attempts: int = 3

    # Reference data
    global_registry_customer_id: Optional[str] = None
    registry_page_size: int = 1000
    file_fetch_timeout_seconds: float = 30.0
    signed_url_expiry_seconds: int = 300  # 5 minutes

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache()
def get_settings() -> Settings:
    """Cached settings instance."""
    return Settings()
