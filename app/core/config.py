from typing import Annotated, Any, List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    APP_NAME: str = "Freelancer Billing"

    DATABASE_URL: str = Field(default="sqlite:///./freelancer.db")
    CREATE_TABLES_ON_STARTUP: bool = True

    SECRET_KEY: str = Field(default="change-me-in-production-please-32-chars")
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7

    ALLOWED_ORIGINS: Annotated[List[str], NoDecode] = Field(default=["http://localhost:5173"])
    LOG_LEVEL: str = "INFO"

    # Invoice defaults
    DEFAULT_DUE_DAYS: int = 30
    DEFAULT_CURRENCY: str = "INR"

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True)

    @field_validator("ALLOWED_ORIGINS", mode="before")
    @classmethod
    def split_origins(cls, v: Any) -> list[str]:
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return v.upper()


settings = Settings()
