"""
Application settings and configuration
"""

import os
from pathlib import Path
from dotenv import load_dotenv
from typing import List, Optional

# Load environment variables from .env file
env_path = Path(__file__).parent.parent.parent / ".env"
load_dotenv(dotenv_path=env_path)


def _optional_path(value: Optional[str]) -> Optional[str]:
    """Treat empty strings as 'not configured'"""
    if value is None or not value.strip():
        return None
    return value.strip()


class Settings:
    """Application settings loaded from environment variables"""

    # Storage (empty -> in-memory only)
    TASKS_FILE: Optional[str] = _optional_path(os.getenv("TASKS_FILE"))
    USERS_FILE: Optional[str] = _optional_path(os.getenv("USERS_FILE"))
    ACTIONS_FILE: Optional[str] = _optional_path(os.getenv("ACTIONS_FILE"))

    # Realtime
    REALTIME_REQUIRE_AUTH: bool = os.getenv("REALTIME_REQUIRE_AUTH", "false").lower() == "true"

    # Web
    WEB_HOST: str = os.getenv("WEB_HOST", "0.0.0.0")
    WEB_PORT: int = int(os.getenv("WEB_PORT", "5000"))
    CORS_ORIGINS: List[str] = [
        origin.strip()
        for origin in os.getenv("CORS_ORIGINS", "http://localhost:5173").split(",")
        if origin.strip()
    ]

    # Application
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_DIR: str = os.getenv("LOG_DIR", "logs")  # relative paths resolve against the working directory
    ACTIONS_DEFAULT_LIMIT: int = int(os.getenv("ACTIONS_DEFAULT_LIMIT", "50"))

    @classmethod
    def validate(cls) -> bool:
        """Validate settings values"""
        if not 0 < cls.WEB_PORT < 65536:
            raise ValueError(f"WEB_PORT out of range: {cls.WEB_PORT}")

        if cls.ACTIONS_DEFAULT_LIMIT <= 0:
            raise ValueError(
                f"ACTIONS_DEFAULT_LIMIT must be positive, got {cls.ACTIONS_DEFAULT_LIMIT}"
            )

        return True


# Global settings instance
settings = Settings()
