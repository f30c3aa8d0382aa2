"""
Configuration settings for the application
"""

from typing import List, Optional
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    """Application settings"""

    # Database
    DATABASE_URL: Optional[str] = None
    USE_FIREBASE: bool = False
    FIREBASE_CREDENTIALS_JSON: Optional[str] = None
    FIREBASE_CREDENTIALS_FILE: Optional[str] = None
    FIREBASE_CREDENTIALS_B64: Optional[str] = None

    # Asset hosting
    FIREBASE_STORAGE_BUCKET: Optional[str] = None
    UPLOAD_DIR: str = "uploads"

    # Application
    BASE_URL: str = "http://localhost:8000"
    LOG_LEVEL: str = "INFO"

    # CORS
    ALLOW_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:8000",
    ]

    # File limits
    MAX_UPLOAD_SIZE: int = 10 * 1024 * 1024  # 10MB
    REQUIRE_EVENT_IMAGE: bool = True

    # Slugs
    SLUG_MAX_ATTEMPTS: int = 5
    SLUG_SUFFIX_LENGTH: int = 6

    class Config:
        env_file = ".env"

settings = Settings()
