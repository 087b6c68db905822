"""Application configuration via environment variables."""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """App settings loaded from .env or environment."""

    DATABASE_URL: str = "sqlite:///./studygroup.db"
    JWT_SECRET: str = "change-me-in-production-please-32-bytes-min"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24
    EMAIL_WHITELIST: str = ""  # comma-separated, seeded at startup
    JOIN_REQUEST_TTL_DAYS: int = 7
    CORS_ORIGINS: str = "http://localhost:3000"
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"

    @property
    def whitelisted_emails(self) -> list[str]:
        return [e.strip().lower() for e in self.EMAIL_WHITELIST.split(",") if e.strip()]


settings = Settings()
