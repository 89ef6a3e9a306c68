# ==================================================================================
# core/config.py: Earth Care Network settings (Pydantic v2, loaded from .env)
# ==================================================================================
from typing import Annotated, Any, List
import json
import sys

from pydantic import ValidationError, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    # Database: Postgres in production, SQLite file for local dev
    DATABASE_URL: str = "sqlite:///./earthcare.db"

    # JWT
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # Web app origins
    FRONTEND_URL: str = "http://localhost:5173"
    BACKEND_URL: str = "http://localhost:8000"
    CORS_ORIGINS: Annotated[List[str], NoDecode] = ["http://localhost:5173", "http://127.0.0.1:5173"]

    # Stripe billing (webhooks and cancellation only)
    STRIPE_SECRET_KEY: str | None = None
    STRIPE_WEBHOOK_SECRET: str | None = None

    # AI usage metering and directory seeding
    FREE_TOKEN_QUOTA: int = 10000
    SEED_BATCH_SIZE: int = 50

    ENVIRONMENT: str = "development"  # 'development' | 'production'
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def split_origins(cls, value: Any) -> Any:
        """Accept a comma-separated string as well as a JSON list."""
        if not isinstance(value, str):
            return value
        if value.lstrip().startswith("["):
            return json.loads(value)
        return [origin.strip() for origin in value.split(",") if origin.strip()]

    @property
    def STRIPE_ENABLED(self) -> bool:
        return bool(self.STRIPE_SECRET_KEY)

    @property
    def IS_PRODUCTION(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"


try:
    settings = Settings()
except ValidationError as e:
    print("❌ Earth Care Network configuration error: missing or invalid settings!")
    print(e)
    sys.exit(1)
