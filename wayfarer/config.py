# wayfarer/config.py
from typing import Literal, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    # App
    APP_ENV: Literal["dev", "prod", "staging"] = "dev"
    TZ: str = "Asia/Kolkata"
    DEFAULT_CURRENCY: str = "INR"

    # RapidAPI (all live providers share one key; unset means adapters return nothing)
    RAPIDAPI_KEY: Optional[str] = None
    FLIGHT_API_HOST: str = "booking-com15.p.rapidapi.com"
    RAIL_API_HOST: str = "irctc1.p.rapidapi.com"
    STATION_API_HOST: str = "indian-railway-api.p.rapidapi.com"

    # Outbound calls
    PROVIDER_CONNECT_TIMEOUT: float = 3.0
    PROVIDER_READ_TIMEOUT: float = 8.0
    PROVIDER_MAX_RESULTS: int = 4
    PROVIDER_RATE_LIMIT_PER_MINUTE: int = 60
    CIRCUIT_FAILURE_THRESHOLD: int = 5
    CIRCUIT_RECOVERY_SECONDS: int = 60
    PROVIDER_SEARCH_TIMEOUT_SECONDS: float = 10.0  # one adapter search, all its calls included
    RESOLUTION_TIMEOUT_SECONDS: float = 25.0

    # Location code cache
    LOCATION_CACHE_MAX_SIZE: int = 2048
    LOCATION_CACHE_TTL_SECONDS: Optional[int] = 7 * 24 * 3600

    # Redis (optional, shared location cache across workers)
    REDIS_URL: Optional[str] = None

    # read .env and ignore any extra keys so this doesn't break again
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

settings = Settings()
