from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_DB_NAME = "bloodbank"
DEFAULT_JWT_SECRET = "bloodbank-dev-secret"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    mongo_uri: str | None = Field(default=None, alias="MONGO_URI")
    mongo_db_name: str | None = Field(default=None, alias="MONGO_DB_NAME")
    mongo_timeout_ms: int = Field(default=5000, alias="MONGO_TIMEOUT_MS")

    frontend_url: str = Field(default="http://localhost:5173", alias="FRONTEND_URL")

    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=5000, alias="PORT")
    vercel: str | None = Field(default=None, alias="VERCEL")

    jwt_secret: str = Field(default=DEFAULT_JWT_SECRET, alias="JWT_SECRET")
    jwt_expires_minutes: int = Field(default=24 * 60, alias="JWT_EXPIRES_MINUTES")

    admin_email: str | None = Field(default=None, alias="ADMIN_EMAIL")
    admin_password: str | None = Field(default=None, alias="ADMIN_PASSWORD")

    unit_shelf_life_days: int = Field(default=42, alias="UNIT_SHELF_LIFE_DAYS")
    expiry_warning_days: int = Field(default=7, alias="EXPIRY_WARNING_DAYS")
    donation_interval_days: int = Field(default=56, alias="DONATION_INTERVAL_DAYS")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    @property
    def is_serverless(self) -> bool:
        return self.vercel == "1"

    @property
    def uses_default_jwt_secret(self) -> bool:
        return self.jwt_secret == DEFAULT_JWT_SECRET

    @property
    def allowed_origins_list(self) -> list[str]:
        origins: list[str] = []
        for origin in self.frontend_url.split(","):
            normalized_origin = origin.strip().rstrip("/")
            if normalized_origin:
                origins.append(normalized_origin)
        return origins

    @property
    def masked_mongo_uri(self) -> str:
        if not self.mongo_uri:
            return "NOT SET"
        scheme, sep, rest = self.mongo_uri.partition("//")
        if not sep or "@" not in rest:
            return self.mongo_uri
        return f"{scheme}//***:***@{rest.rsplit('@', 1)[1]}"


@lru_cache
def get_settings() -> Settings:
    return Settings()
