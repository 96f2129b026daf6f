from functools import lru_cache
from typing import Any, List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_DEFAULT_CORS = ["http://localhost:5173"]


def _parse_cors_origins(v: Any) -> List[str]:
    try:
        if v is None or v == "":
            return _DEFAULT_CORS.copy()
        if isinstance(v, list):
            return [x for x in v if isinstance(x, str) and x.strip()]
        s = str(v).strip()
        if not s:
            return _DEFAULT_CORS.copy()
        if s.startswith("["):
            import json
            out = json.loads(s)
            return [x for x in out if isinstance(x, str) and x.strip()] or _DEFAULT_CORS.copy()
        return [x.strip() for x in s.split(",") if x.strip()] or _DEFAULT_CORS.copy()
    except ValueError:
        return _DEFAULT_CORS.copy()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # App
    env: str = Field(default="development", description="ENV")
    debug: bool = Field(default=False, description="DEBUG")
    secret_key: str = Field(default="change-me-in-production-min-32-chars")
    token_max_age_seconds: int = Field(default=7 * 24 * 3600, alias="TOKEN_MAX_AGE_SECONDS")

    # MongoDB
    mongodb_uri: str = Field(default="mongodb://localhost:27017", alias="MONGODB_URI")
    mongodb_db_name: str = Field(default="yoldash", alias="MONGODB_DB_NAME")

    # Gemini
    gemini_api_key: str = Field(default="", alias="GEMINI_API_KEY")
    gemini_model: str = Field(default="gemini-2.5-flash", alias="GEMINI_MODEL")
    file_search_store_name: str | None = Field(default=None, alias="FILE_SEARCH_STORE_NAME")
    file_search_store_display_name: str = Field(
        default="Yoldaş Knowledge Base", alias="FILE_SEARCH_STORE_DISPLAY_NAME"
    )
    upstream_timeout_seconds: float = Field(default=60.0, alias="UPSTREAM_TIMEOUT_SECONDS")

    # Document indexing (bounded wait)
    indexing_poll_interval_seconds: float = Field(default=2.0, alias="INDEXING_POLL_INTERVAL_SECONDS")
    indexing_max_polls: int = Field(default=150, alias="INDEXING_MAX_POLLS")
    max_upload_files: int = 10

    # Telegram (new account alerts)
    telegram_bot_token: str = Field(default="", alias="TELEGRAM_BOT_TOKEN")
    telegram_chat_id: str = Field(default="", alias="TELEGRAM_CHAT_ID")

    # Sentry
    sentry_dsn: str | None = Field(default=None, alias="SENTRY_DSN")

    # CORS: env as string, exposed as list
    cors_origins_raw: str = Field(
        default="http://localhost:5173",
        alias="CORS_ORIGINS",
        description="Comma-separated or JSON list",
    )

    @property
    def cors_origins(self) -> List[str]:
        return _parse_cors_origins(getattr(self, "cors_origins_raw", None))

    # Tokens (chat balance)
    initial_balance: int = Field(default=20, alias="INITIAL_BALANCE")
    chat_cost: int = Field(default=1, alias="CHAT_COST")
    support_email: str = Field(default="support@yoldash.live", alias="SUPPORT_EMAIL")
    ledger_max_retries: int = Field(default=64, alias="LEDGER_MAX_RETRIES")


@lru_cache
def get_settings() -> Settings:
    return Settings()
