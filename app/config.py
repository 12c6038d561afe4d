"""
Configuration settings for the Bookgen backend.
Loads environment variables and provides application-wide settings.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Completion API (any OpenAI-compatible /chat/completions endpoint)
    COMPLETION_API_KEY: str = ""
    COMPLETION_BASE_URL: str = "https://api.together.xyz/v1"
    COMPLETION_MODEL: str = "deepseek-ai/DeepSeek-R1-Distill-Llama-70B-free"
    COMPLETION_TIMEOUT: int = 300  # 5 minutes for long chapter replies

    # Metadata store; leave unset to run without document records
    DATABASE_URL: Optional[str] = None

    # Object storage (Supabase Storage REST API)
    SUPABASE_URL: Optional[str] = None
    SUPABASE_SERVICE_ROLE_KEY: Optional[str] = None
    STORAGE_BUCKET: str = "documents"

    # Working directories
    WORK_DIR: str = "./work"  # section artifacts, combined text, history
    OUTPUT_DIR: str = "./pdfs"  # rendered files, deleted after download

    # Headless browser; None lets Playwright use its bundled Chromium
    BROWSER_EXECUTABLE: Optional[str] = None

    # Server Configuration
    HOST: str = "0.0.0.0"
    PORT: int = 5000
    ALLOWED_ORIGINS: str = "http://localhost:3000"
    SHARE_BASE_URL: Optional[str] = None
    LOG_LEVEL: str = "INFO"

    # Job queue
    MAX_TRACKED_JOBS: int = 200

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    def get_allowed_origins(self) -> List[str]:
        """Parse ALLOWED_ORIGINS string into a list."""
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",")]

    @property
    def storage_configured(self) -> bool:
        return bool(self.SUPABASE_URL and self.SUPABASE_SERVICE_ROLE_KEY)


# Global settings instance
settings = Settings()
