from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv


DEFAULT_NEWS_API_BASE_URL = "https://newsapi.org/v2"
DEFAULT_GUARDIAN_BASE_URL = "https://content.guardianapis.com"
NEWS_SOURCES = ("newsapi", "guardian")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@dataclass(frozen=True)
class Settings:
    db_url: str
    news_api_key: str | None
    news_api_base_url: str
    guardian_api_key: str | None
    guardian_base_url: str
    http_timeout_seconds: int
    news_page_size: int
    payout_page_size: int
    news_country: str
    default_payout_rate: int
    rates_path: Path
    current_uid: str | None
    news_source: str
    payout_source: str
    log_level: str

    def api_key_for(self, source: str) -> str | None:
        if source == "guardian":
            return self.guardian_api_key
        return self.news_api_key


def _to_int(raw: str | None, default: int) -> int:
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    if value <= 0:
        return default
    return value


def _to_source(raw: str | None, default: str) -> str:
    normalized = (raw or "").strip().lower()
    if normalized in NEWS_SOURCES:
        return normalized
    return default


def _config_root() -> Path:
    xdg_root = os.getenv("XDG_CONFIG_HOME", "").strip()
    if xdg_root:
        return Path(xdg_root).expanduser() / "newsdesk"
    return Path.home() / ".config" / "newsdesk"


def get_default_env_file() -> Path:
    custom_path = os.getenv("NEWSDESK_ENV_FILE", "").strip()
    if custom_path:
        return Path(custom_path).expanduser()
    return _config_root() / ".env"


def get_default_rates_path() -> Path:
    return _config_root() / "local_storage.json"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Prefer a local .env for development; fill missing values from global config.
    load_dotenv(override=False)
    load_dotenv(dotenv_path=get_default_env_file(), override=False)

    rates_raw = os.getenv("NEWSDESK_RATES_PATH", "").strip()
    log_level = os.getenv("LOG_LEVEL", "WARNING").strip().upper()
    if log_level not in LOG_LEVELS:
        log_level = "WARNING"

    # A rate of 0 is a legitimate default, so this one bypasses _to_int's positivity check.
    try:
        default_rate = max(0, int(os.getenv("DEFAULT_PAYOUT_RATE", "20")))
    except ValueError:
        default_rate = 20

    return Settings(
        db_url=os.getenv("NEWSDESK_DB_URL", "sqlite:///data/newsdesk.db"),
        news_api_key=os.getenv("NEWS_API_KEY") or None,
        news_api_base_url=os.getenv("NEWS_API_BASE_URL", DEFAULT_NEWS_API_BASE_URL),
        guardian_api_key=os.getenv("GUARDIAN_API_KEY") or None,
        guardian_base_url=os.getenv("GUARDIAN_BASE_URL", DEFAULT_GUARDIAN_BASE_URL),
        http_timeout_seconds=_to_int(os.getenv("HTTP_TIMEOUT_SECONDS"), 15),
        news_page_size=_to_int(os.getenv("NEWS_PAGE_SIZE"), 20),
        payout_page_size=_to_int(os.getenv("PAYOUT_PAGE_SIZE"), 10),
        news_country=os.getenv("NEWS_COUNTRY", "us").strip().lower() or "us",
        default_payout_rate=default_rate,
        rates_path=Path(rates_raw).expanduser() if rates_raw else get_default_rates_path(),
        current_uid=os.getenv("NEWSDESK_UID", "").strip() or None,
        news_source=_to_source(os.getenv("NEWS_SOURCE"), "newsapi"),
        payout_source=_to_source(os.getenv("PAYOUT_SOURCE"), "guardian"),
        log_level=log_level,
    )
