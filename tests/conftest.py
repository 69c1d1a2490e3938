from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest

from newsdesk.config import get_settings
from newsdesk.schemas import Article


@pytest.fixture
def isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    db_path = tmp_path / "newsdesk_test.db"
    monkeypatch.setenv("NEWSDESK_DB_URL", f"sqlite:///{db_path}")
    monkeypatch.setenv("NEWSDESK_RATES_PATH", str(tmp_path / "local_storage.json"))
    monkeypatch.setenv("NEWSDESK_ENV_FILE", str(tmp_path / ".env"))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("NEWS_API_KEY", "test-news-key")
    monkeypatch.setenv("GUARDIAN_API_KEY", "test-guardian-key")
    monkeypatch.delenv("NEWSDESK_UID", raising=False)
    monkeypatch.delenv("NEWS_SOURCE", raising=False)
    monkeypatch.delenv("PAYOUT_SOURCE", raising=False)
    monkeypatch.delenv("DEFAULT_PAYOUT_RATE", raising=False)
    monkeypatch.delenv("NEWS_PAGE_SIZE", raising=False)
    monkeypatch.delenv("PAYOUT_PAGE_SIZE", raising=False)
    get_settings.cache_clear()
    yield tmp_path
    get_settings.cache_clear()


def _make_article(author: str = "Unknown", title: str = "Title", **overrides) -> Article:
    values = {
        "title": title,
        "description": "",
        "url": "https://example.com/article",
        "image_url": None,
        "published_at": datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
        "author": author,
        "source_name": "Example",
        "content": "",
    }
    values.update(overrides)
    return Article(**values)


@pytest.fixture
def make_article():
    return _make_article
