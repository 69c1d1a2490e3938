from __future__ import annotations

from datetime import datetime, timezone
import re
from typing import Any

from ..errors import MalformedResponseError, UpstreamUnavailableError
from ..schemas import UNKNOWN_AUTHOR, Article, FetchResult

GUARDIAN_SOURCE_NAME = "The Guardian"
GUARDIAN_DESCRIPTION_LIMIT = 200


def _to_utc_datetime(value: Any) -> datetime | None:
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = f"{text[:-1]}+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _text(value: Any) -> str:
    if isinstance(value, str):
        return value
    return ""


def _author(value: Any) -> str:
    text = re.sub(r"\s+", " ", _text(value)).strip()
    return text or UNKNOWN_AUTHOR


def _optional_url(value: Any) -> str | None:
    text = _text(value).strip()
    return text or None


def normalize_newsapi_article(raw: dict[str, Any]) -> Article:
    source = raw.get("source") or {}
    source_name = _text(source.get("name")) if isinstance(source, dict) else ""
    return Article(
        title=_text(raw.get("title")),
        description=_text(raw.get("description")),
        url=_text(raw.get("url")),
        image_url=_optional_url(raw.get("urlToImage")),
        published_at=_to_utc_datetime(raw.get("publishedAt")),
        author=_author(raw.get("author")),
        source_name=source_name,
        content=_text(raw.get("content")),
    )


def normalize_guardian_article(raw: dict[str, Any]) -> Article:
    fields = raw.get("fields") or {}
    if not isinstance(fields, dict):
        fields = {}
    return Article(
        title=_text(raw.get("webTitle")),
        description=_text(fields.get("bodyText"))[:GUARDIAN_DESCRIPTION_LIMIT],
        url=_text(raw.get("webUrl")),
        image_url=_optional_url(fields.get("thumbnail")),
        published_at=_to_utc_datetime(raw.get("webPublicationDate")),
        author=_author(fields.get("byline")),
        source_name=GUARDIAN_SOURCE_NAME,
    )


def _total(value: Any, fallback: int) -> int:
    if isinstance(value, bool):
        return fallback
    if isinstance(value, int) and value >= 0:
        return value
    return fallback


def parse_newsapi_response(payload: Any) -> FetchResult:
    if not isinstance(payload, dict):
        raise MalformedResponseError("NewsAPI response is not a JSON object")
    if payload.get("status") == "error":
        raise UpstreamUnavailableError(str(payload.get("message") or "NewsAPI request failed"))

    items = payload.get("articles")
    if not isinstance(items, list):
        raise MalformedResponseError("Invalid response format from NewsAPI")

    articles = [normalize_newsapi_article(item) for item in items if isinstance(item, dict)]
    return FetchResult(articles=articles, total_results=_total(payload.get("totalResults"), len(articles)))


def parse_guardian_response(payload: Any) -> FetchResult:
    body = payload.get("response") if isinstance(payload, dict) else None
    if not isinstance(body, dict) or not isinstance(body.get("results"), list):
        raise MalformedResponseError("Invalid response format from Guardian API")

    articles = [normalize_guardian_article(item) for item in body["results"] if isinstance(item, dict)]
    return FetchResult(articles=articles, total_results=_total(body.get("total"), len(articles)))
