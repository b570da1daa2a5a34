from __future__ import annotations
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "EBES Tracker"
    env: str = "dev"
    api_prefix: str = "/api/v1"
    log_level: str = "INFO"

    database_url: str = "sqlite+pysqlite:///./ebes.db"

    jwt_secret: str = "change-me-secret"
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 60 * 24

    bootstrap_admin_email: str = "admin@ebes.local"
    bootstrap_admin_password: str = "change-me"
    bootstrap_admin_name: str = "Administrator"

    max_active_roles_per_am: int = 30


settings = Settings()
