"""
Settings for the marketplace API, read from environment variables and an optional .env file.
"""

from pydantic import Field, field_validator, ValidationInfo
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List
from functools import lru_cache

ENVIRONMENTS = ("development", "testing", "staging", "production")

ASYNC_DRIVER_PREFIXES = (
    ("postgresql://", "postgresql+asyncpg://"),
    ("postgres://", "postgresql+asyncpg://"),
    ("sqlite://", "sqlite+aiosqlite://"),
)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore")

    app_name: str = "Housing Marketplace API"
    app_version: str = "1.0.0"
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    # Individual database components, used when DATABASE_URL is not set
    postgres_db: str = "marketplace"
    postgres_user: str = "postgres"
    postgres_password: str = "postgres"
    postgres_host: str = "db"
    postgres_port: int = 5432

    # Empty means build from the POSTGRES_* parts
    database_url: str = Field(default="", validate_default=True)

    # Session configuration
    jwt_secret_key: str = "dev-secret-change-me"
    jwt_algorithm: str = "HS256"
    access_token_expire_days: int = 7
    session_cookie_name: str = "auth_token"

    # Guest accounts created when booking a visit by e-mail
    guest_placeholder_password: str = "Temp1234!"

    # File upload configuration
    upload_dir: str = "./uploads"
    max_file_size: int = 5 * 1024 * 1024  # 5MB
    allowed_file_types: List[str] = ["image/jpeg", "image/png", "image/webp"]
    public_base_url: str = "http://localhost:4000"

    # API configuration
    api_v1_prefix: str = "/api/v1"
    cors_origins: List[str] = ["http://localhost:5173", "http://localhost:3000"]
    max_request_size: int = 10 * 1024 * 1024

    # Pagination defaults
    default_page_size: int = 20
    max_page_size: int = 100
    default_visit_page_size: int = 50
    max_map_points: int = 300

    # Server configuration
    host: str = "0.0.0.0"
    port: int = 4000

    @field_validator("database_url", mode="before")
    @classmethod
    def validate_database_url(cls, v, info: ValidationInfo):
        """Assemble the URL from POSTGRES_* when unset, and force an async driver."""
        if not v:
            data = info.data
            return (
                f"postgresql+asyncpg://{data.get('postgres_user')}:{data.get('postgres_password')}"
                f"@{data.get('postgres_host')}:{data.get('postgres_port')}/{data.get('postgres_db')}"
            )
        for sync_prefix, async_prefix in ASYNC_DRIVER_PREFIXES:
            if v.startswith(sync_prefix):
                return async_prefix + v[len(sync_prefix):]
        return v

    @field_validator("jwt_secret_key")
    @classmethod
    def validate_jwt_secret_key(cls, v):
        if not v:
            raise ValueError("JWT_SECRET_KEY is required")
        return v

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v):
        if v not in ENVIRONMENTS:
            raise ValueError(f"Environment must be one of: {', '.join(ENVIRONMENTS)}")
        return v

    @field_validator("public_base_url")
    @classmethod
    def strip_trailing_slash(cls, v):
        return v.rstrip("/")

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def access_token_max_age(self) -> int:
        """Session lifetime in seconds, shared by the JWT and its cookie."""
        return self.access_token_expire_days * 24 * 60 * 60


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
