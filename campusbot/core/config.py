"""
Campus Chatbot Configuration - settings for the knowledge-base chatbot service
"""
from pydantic_settings import BaseSettings
from pathlib import Path
from typing import Optional


class Settings(BaseSettings):
    """
    Central configuration for the chatbot service.
    All paths are relative to the data directory for portability.
    """

    # Application
    APP_NAME: str = "Campus Chatbot"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Paths
    BASE_DIR: Path = Path(__file__).parent.parent.parent
    DATA_DIR: Path = BASE_DIR / "data"

    # Database (any SQLAlchemy URL; SQLite only by default)
    DATABASE_URL: str = f"sqlite:///{DATA_DIR}/campusbot.db"

    # Optional JSON knowledge pack loaded into an empty database on startup
    SEED_FILE: Optional[Path] = None

    # Knowledge base cache
    KB_CACHE_TTL_SECONDS: float = 60.0

    # Analytics
    ANALYTICS_ENABLED: bool = True
    ANALYTICS_ASYNC: bool = True
    ANALYTICS_MAX_WORKERS: int = 2
    ANALYTICS_STATS_WINDOW_DAYS: int = 30

    # Request limits
    MAX_MESSAGE_LENGTH: int = 1000

    class Config:
        env_file = ".env"
        case_sensitive = True

    def setup_directories(self):
        """Create necessary directories on startup"""
        self.DATA_DIR.mkdir(parents=True, exist_ok=True)


settings = Settings()
settings.setup_directories()
