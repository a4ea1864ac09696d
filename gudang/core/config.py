"""
Gudang Configuration
Core settings for the warehouse line storage application
"""
from decimal import Decimal
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings"""

    # Application Info
    APP_NAME: str = "Gudang Lini API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # Database Configuration
    DATABASE_URL: str = "sqlite:///./gudang.db"
    DATABASE_POOL_SIZE: int = 10
    DATABASE_MAX_OVERFLOW: int = 20

    # CORS
    CORS_ORIGINS: List[str] = [
        "http://localhost:5173",  # Vite frontend
        "http://localhost:3000",
    ]

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: Path = Path("logs")
    LOG_TO_FILE: bool = True
    LOG_FILE: str = "app.log"
    ERROR_LOG_FILE: str = "error.log"

    # Storage tariffs (IDR)
    LINE_TARIFF_PER_KG: Dict[str, Decimal] = {
        "Lini 1": Decimal("1500"),
        "Lini 2": Decimal("2500"),
    }
    VOLUME_RATE_PER_M3: Decimal = Decimal("5000")
    DAILY_COST_ALERT_THRESHOLD: Decimal = Decimal("10000000")
    STRICT_LINE_TARIFF: bool = False
    DEFAULT_INTAKE_LINE: str = "Lini 1"
    TRANSFER_SOURCE_LINE: str = "Lini 1"
    TRANSFER_TARGET_LINE: str = "Lini 2"

    # Financial Precision
    CURRENCY_DECIMAL_PLACES: int = 2

    # Acting principals written to the activity log
    DEFAULT_ACTOR: str = "system"
    DAILY_JOB_ACTOR: str = "system_cron"
    ALERT_ACTOR: str = "system_alert"

    # CEISA customs adapter
    CEISA_API_ENDPOINT: str = "https://api-ceisa40.customs.go.id/v1/documents"
    CEISA_API_TOKEN: Optional[str] = None
    CEISA_TIMEOUT_SECONDS: float = 10.0

    # API Configuration
    API_V1_STR: str = "/api/v1"
    DOCS_URL: str = "/docs"
    OPENAPI_URL: str = "/openapi.json"

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True)

    @field_validator("LOG_LEVEL")
    @classmethod
    def normalise_log_level(cls, v: str) -> str:
        """Accept lower-case level names from the environment"""
        return v.upper()

    @field_validator("CEISA_TIMEOUT_SECONDS")
    @classmethod
    def positive_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("CEISA_TIMEOUT_SECONDS must be positive")
        return v


# Global settings instance
settings = Settings()
