"""Application configuration loaded from the environment."""

from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "Feedline API"
    app_env: str = "local"
    log_level: str = "INFO"

    database_url: str = "sqlite+aiosqlite:///./feedline.db"

    secret_key: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24 * 7
    allow_insecure_http_cookies: bool = False

    redis_url: str = "redis://localhost:6379/0"
    rate_limit_backend: Literal["memory", "redis"] = "memory"
    rate_limit_sweep_interval_seconds: int = 60
    rate_limit_window_seconds: int = 60
    rate_limit_trusted_proxies: list[str] = []
    post_create_rate_limit: int = 10
    comment_create_rate_limit: int = 30
    reply_create_rate_limit: int = 30
    like_toggle_rate_limit: int = 60
    comment_list_rate_limit: int = 200

    feed_default_page_size: int = 20
    feed_max_page_size: int = 100
    like_preview_limit: int = 10

    minio_endpoint: str = "localhost:9000"
    minio_access_key: str = "minioadmin"
    minio_secret_key: str = "minioadmin"
    minio_bucket: str = "feedline-media"
    minio_secure: bool = False
    media_base_url: str = "http://localhost:9000/feedline-media"
    upload_max_bytes: int = 5 * 1024 * 1024


settings = Settings()
