from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator
from typing import List, Optional


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Search .env in CWD first, then parent dir.
        env_file=(".env", "../.env"),
        env_file_encoding="utf-8",
        case_sensitive=True,
        # Ignore env vars (e.g. POSTGRES_USER) not declared as Settings fields
        extra="ignore",
    )

    # --- Database (required — no default prevents accidental misconfiguration) ---
    DATABASE_URL: str

    # --- Fixed-window rate limiting for AI endpoints ---
    RATE_LIMIT_MAX_REQUESTS: int = 10
    RATE_LIMIT_WINDOW_HOURS: float = 20
    RATE_LIMIT_CLEANUP: bool = True

    # Burst throttle (slowapi syntax) for read endpoints
    BURST_RATE_LIMIT: str = "30/minute"

    # --- AI gateway (OpenAI-compatible chat completions) ---
    AI_GATEWAY_URL: str = "https://ai.gateway.lovable.dev/v1/chat/completions"
    AI_GATEWAY_API_KEY: Optional[str] = None
    AI_MODEL: str = "google/gemini-2.5-flash"
    AI_TIMEOUT_SECONDS: float = 60.0

    # --- Benchmarks ---
    DEFAULT_CITY: str = "Iași"
    MARKET_SAMPLE_LIMIT: int = 100

    # --- Observability ---
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"  # development | staging | production

    # --- CORS (comma-separated string parsed into a list) ---
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    @field_validator("LOG_LEVEL")
    @classmethod
    def log_level_must_be_valid(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"LOG_LEVEL must be one of {valid}")
        return v.upper()

    @field_validator("RATE_LIMIT_MAX_REQUESTS")
    @classmethod
    def max_requests_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("RATE_LIMIT_MAX_REQUESTS must be at least 1")
        return v

    @field_validator("RATE_LIMIT_WINDOW_HOURS")
    @classmethod
    def window_must_be_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("RATE_LIMIT_WINDOW_HOURS must be greater than 0")
        return v

    def get_cors_origins(self) -> List[str]:
        """Parse comma-separated CORS_ORIGINS into a list."""
        return [
            origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()
        ]


settings = Settings()
