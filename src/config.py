"""Configuration settings using pydantic-settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict

from src.constants import (
    DEFAULT_CATEGORY_SELECT_TIMEOUT,
    DEFAULT_CLOSE_EMBED_COLOR,
    DEFAULT_DATABASE_URL,
    DEFAULT_TICKET_LIMIT,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    discord_token: str
    database_url: str = DEFAULT_DATABASE_URL
    log_level: str = "INFO"

    # ギルドに ticket_settings レコードがない場合の上限
    default_ticket_limit: int = DEFAULT_TICKET_LIMIT
    # カテゴリ選択メニューの待機秒数
    category_select_timeout: float = DEFAULT_CATEGORY_SELECT_TIMEOUT
    close_embed_color: int = DEFAULT_CLOSE_EMBED_COLOR


settings = Settings()
