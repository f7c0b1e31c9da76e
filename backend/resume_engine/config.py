from pydantic_settings import BaseSettings
from functools import lru_cache
import os


class Settings(BaseSettings):
    app_name: str = "Resume Intelligence API"
    debug: bool = os.getenv("DEBUG", "false").lower() == "true"
    log_level: str = "INFO"

    # Database - supports both SQLite (local) and PostgreSQL (production)
    database_url: str = "sqlite+aiosqlite:///./resume_engine.db"

    # CORS - comma-separated list of allowed origins
    cors_origins: str = "http://localhost:3000"

    # AI/LLM Configuration
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.0-flash"
    gemini_temperature: float = 0.1
    gemini_max_output_tokens: int = 8192

    # Pipeline tuning
    structuring_max_attempts: int = 3
    structuring_retry_base_delay: float = 1.0  # seconds, multiplied by attempt number
    structuring_timeout_seconds: float = 45.0
    min_text_length: int = 50

    # Blob storage: "local" or "supabase"
    storage_backend: str = "local"
    supabase_url: str = ""
    supabase_service_role_key: str = ""
    storage_bucket: str = "resumes"
    local_storage_dir: str = "uploads"
    max_upload_bytes: int = 10 * 1024 * 1024  # 10MB

    class Config:
        env_file = ".env"
        extra = "ignore"
        # Make field names case-insensitive for environment variables
        case_sensitive = False

    def get_cors_origins(self) -> list:
        """Parse CORS origins from comma-separated string"""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache()
def get_settings() -> Settings:
    return Settings()
