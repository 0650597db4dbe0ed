import logging
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Database defaults per environment
SQLITE_DEV_DB = "sqlite:///./dev.db"
SQLITE_TEST_DB = "sqlite:///./test.db"
SQLITE_PROD_DB = "sqlite:///./prod.db"


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_env: str = Field(default="development")
    database_url: str | None = Field(default=None)

    jwt_secret: str = Field(default="your-secret-key")  # don't use this in production
    jwt_algorithm: str = Field(default="HS256")
    access_token_expire_minutes: int = Field(default=60 * 24 * 7, ge=1)

    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3000, ge=1, le=65535)
    log_level: str = Field(default="INFO")
    cors_origins: str = Field(default="*")

    api_prefix: str = Field(default="/api/v1")
    api_version: str = "1.0.0"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        upper = v.upper()
        if upper not in logging.getLevelNamesMapping():
            raise ValueError(f"Invalid log_level '{v}'")
        return upper

    @property
    def sqlalchemy_url(self) -> str:
        """Explicit DATABASE_URL wins, otherwise pick the SQLite file for APP_ENV."""
        if self.database_url:
            return self.database_url
        if self.app_env == "test":
            return SQLITE_TEST_DB
        if self.app_env == "production":
            return SQLITE_PROD_DB
        return SQLITE_DEV_DB

    @property
    def cors_origins_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache()
def get_settings() -> Settings:
    """获取配置"""
    return Settings()
