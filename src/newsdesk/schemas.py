from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum

UNKNOWN_AUTHOR = "Unknown"
DEFAULT_CATEGORY = "general"


@dataclass(frozen=True, slots=True)
class Article:
    title: str
    description: str
    url: str
    image_url: str | None
    published_at: datetime | None
    author: str
    source_name: str
    content: str = ""


@dataclass(slots=True)
class FetchResult:
    articles: list[Article]
    total_results: int


@dataclass(frozen=True, slots=True)
class DateRange:
    from_date: date | None = None
    to_date: date | None = None

    def is_empty(self) -> bool:
        return self.from_date is None and self.to_date is None


@dataclass(frozen=True, slots=True)
class FilterState:
    search_query: str = ""
    author: str = ""
    date_range: DateRange = field(default_factory=DateRange)
    category: str = DEFAULT_CATEGORY
    page: int = 1
    page_size: int = 20


@dataclass(frozen=True, slots=True)
class PayoutRow:
    author: str
    article_count: int
    rate: int
    payout: int


@dataclass(frozen=True, slots=True)
class PayoutReport:
    rows: tuple[PayoutRow, ...]
    total_articles: int
    total_payout: int


@dataclass(frozen=True, slots=True)
class Identity:
    uid: str
    email: str | None
    role: str


class AccessDecision(str, Enum):
    PENDING = "pending"
    GRANTED = "granted"
    DENIED = "denied"
