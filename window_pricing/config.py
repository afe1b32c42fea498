from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./window_pricing.db"

    # Labor: hourly rate when the window covering has none of its own
    LABOR_RATE_DEFAULT: float = 25.00

    # Fabric defaults used when a making cost is missing or bundles nothing
    DEFAULT_FULLNESS_RATIO: float = 2.5
    DEFAULT_WASTE_FACTOR: float = 0.10
    HEM_ALLOWANCE_CM: float = 25.0
    HIGH_WASTE_WARNING_THRESHOLD: float = 0.15

    # Calculation cache: bump the version to invalidate every stored result
    CALCULATION_CACHE_VERSION: int = 1
    CALCULATION_CACHE_TTL_HOURS: Optional[int] = None  # None = entries never expire

    class Config:
        env_file = ".env"


settings = Settings()
