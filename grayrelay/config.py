from __future__ import annotations

from functools import lru_cache
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from a .env file if present (local dev only)
load_dotenv()


class Settings(BaseSettings):
    """Application configuration loaded from environment variables or .env file."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # LINE Messaging API
    line_channel_secret: str = Field(..., description="Channel secret used to sign webhook bodies.")
    line_channel_token: str = Field(..., description="Long-lived channel access token.")
    line_api_base: str = Field("https://api.line.me")
    line_data_api_base: str = Field("https://api-data.line.me")
    http_timeout: float = Field(10.0, description="Timeout for outbound HTTP calls (seconds).")

    # Cloud Storage
    bucket_name: str = Field(..., description="Bucket receiving grayscale images and thumbnails.")
    storage_base_url: str = Field("https://storage.googleapis.com")

    # Image processing
    thumbnail_max_dim: int = Field(300, ge=1, description="Bounding box for thumbnails (pixels).")

    # Task fan-out between the webhook receiver and the worker
    task_queue_backend: Literal["http", "inline"] = Field("http")
    task_endpoint_url: str = Field("http://localhost:8080/task")
    task_token: str = Field(..., description="Shared secret the task endpoint expects from the queue.")

    # Fixed replies
    failure_text: str = Field("失敗しました。。。")
    unsupported_text: str = Field("未対応です。。。")

    log_level: str = Field("INFO")


@lru_cache()
def get_settings() -> Settings:  # pragma: no cover
    """Return a cached Settings instance so it is only parsed once."""

    return Settings()
