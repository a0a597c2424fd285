"""
config.py

Centralized configuration management using pydantic-settings.
All modules must import settings from this file.
Direct os.getenv() calls are prohibited elsewhere.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application-wide settings loaded from .env file."""

    # Database
    mysql_host: str = "127.0.0.1"
    mysql_port: int = 3306
    mysql_user: str = "sentinel"
    mysql_password: str = ""
    mysql_db: str = "glucose_sentinel"

    # AI forecasting service
    ai_service_url: str = "http://127.0.0.1:8000"
    ai_timeout_seconds: float = 5.0

    # Alert thresholds (mg/dL), overridable per session
    low_threshold: float = 70.0
    high_threshold: float = 180.0
    trend_margin: float = 10.0

    # Alert queue
    alert_queue_cap: int = 5
    alert_debounce_seconds: int = 0
    alert_window_label: str = "15 min"

    # Push notifications
    fcm_server_key: str = ""

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }

    @property
    def database_url(self) -> str:
        """SQLAlchemy async URL for the MySQL backend."""
        return (
            f"mysql+aiomysql://{self.mysql_user}:{self.mysql_password}"
            f"@{self.mysql_host}:{self.mysql_port}/{self.mysql_db}"
        )


settings = Settings()
