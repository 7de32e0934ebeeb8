# settings.py
import os
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    # Project
    PROJECT_NAME: str = "StyleGallery Backend"
    API_PREFIX: str = "/api"
    LOG_LEVEL: str = "INFO"

    # Security
    JWT_SECRET: str = os.getenv("JWT_SECRET", "super-secret-key")
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRY_MINUTES: int = 60 * 24 * 7  # 7 days

    # Database
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL",
        "sqlite+aiosqlite:///./dev.db"  # default local SQLite
    )

    # Social rules
    COMMENT_MAX_LENGTH: int = 500
    DESIGNS_PAGE_MAX: int = 100

    # Twilio (optional SMS on likes)
    TWILIO_ACCOUNT_SID: str = ""
    TWILIO_AUTH_TOKEN: str = ""
    TWILIO_FROM_NUMBER: str = ""
    SMS_HTTP_TIMEOUT: float = 10.0

    # Frontend origins (CORS), comma separated
    CORS_ORIGINS: str = os.getenv("CORS_ORIGINS", "http://localhost:5173")

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


# ✅ Instantiate settings globally
settings = Settings()
