from pydantic_settings import BaseSettings
from pathlib import Path
from typing import Set

class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./events.db"
    API_KEYS: Set[str] = set()

    # Upper bound for the whole summary, all eight aggregations included.
    SUMMARY_TIMEOUT_SECONDS: float = 10.0
    EVENTS_OVER_TIME_DAYS: int = 7
    SUMMARY_SNAPSHOT: bool = False
    UNKNOWN_BUCKET: str = "unknown"

    class Config:
        env_file = Path(__file__).parent.parent / ".env"
        case_sensitive = True

settings = Settings()
