from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file explicitly
load_dotenv()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(case_sensitive=True, extra="ignore")

    # API Configuration
    API_V1_STR: str = "/api"
    PROJECT_NAME: str = "Weather-way"
    CORS_ORIGINS: List[str] = ["*"]
    LOG_LEVEL: str = "INFO"

    # NASA POWER
    NASA_BEARER_TOKEN: Optional[str] = None
    POWER_API_URL: str = "https://power.larc.nasa.gov/api/temporal/daily/point"
    POWER_COMMUNITY: str = "AG"
    REQUEST_TIMEOUT_SECONDS: float = Field(60.0, gt=0)
    MAX_RETRIES: int = Field(2, ge=0, le=10)
    RETRY_BACKOFF_SECONDS: float = Field(1.0, ge=0)
    MAX_CONCURRENT_REQUESTS: int = Field(16, ge=1)

    # Data Processing
    HISTORY_START_YEAR: int = Field(1981, ge=1981)
    HISTORY_END_YEAR: int = 2024
    GRID_STEPS: int = Field(4, ge=2, le=10)
    REGION_OFFSET_DEGREES: float = Field(0.5, gt=0)
    DEFAULT_WIND_SPEED: float = Field(5.0, ge=0)

    @model_validator(mode="after")
    def _check_history_window(self) -> "Settings":
        if self.HISTORY_START_YEAR > self.HISTORY_END_YEAR:
            raise ValueError(
                f"HISTORY_START_YEAR ({self.HISTORY_START_YEAR}) must not be after "
                f"HISTORY_END_YEAR ({self.HISTORY_END_YEAR})"
            )
        return self

    @property
    def years_analyzed(self) -> str:
        return f"{self.HISTORY_START_YEAR}-{self.HISTORY_END_YEAR}"


@lru_cache
def get_settings() -> Settings:
    """Dependency for FastAPI"""
    return Settings()
