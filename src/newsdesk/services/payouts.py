from __future__ import annotations

from dataclasses import replace
import logging
import math
import re
from typing import Iterable, Mapping

from .rate_store import RateStore
from ..schemas import UNKNOWN_AUTHOR, Article, PayoutReport, PayoutRow

logger = logging.getLogger(__name__)

DEFAULT_RATE = 20

_LEADING_INT_RE = re.compile(r"^\s*([+-]?)(\d+)")


def parse_rate(raw: object) -> int:
    """Coerce user input to a non-negative integer rate.

    Leading digits win (``"12.5"`` and ``"12abc"`` give 12). Empty, invalid or
    negative input gives 0.
    """
    if raw is None or isinstance(raw, bool):
        return 0
    if isinstance(raw, (int, float)):
        if isinstance(raw, float) and not math.isfinite(raw):
            return 0
        return max(0, int(raw))
    match = _LEADING_INT_RE.match(str(raw))
    if match is None or match.group(1) == "-":
        return 0
    return int(match.group(2))


def _author_key(article: Article) -> str:
    return article.author or UNKNOWN_AUTHOR


def _build_report(rows: Iterable[PayoutRow]) -> PayoutReport:
    rows = tuple(rows)
    return PayoutReport(
        rows=rows,
        total_articles=sum(row.article_count for row in rows),
        total_payout=sum(row.payout for row in rows),
    )


def aggregate(
    articles: Iterable[Article],
    rates: Mapping[str, int],
    default_rate: int = DEFAULT_RATE,
) -> PayoutReport:
    counts: dict[str, int] = {}
    for article in articles:
        author = _author_key(article)
        counts[author] = counts.get(author, 0) + 1

    rows = []
    for author, count in counts.items():
        rate = rates[author] if author in rates else default_rate
        rows.append(PayoutRow(author=author, article_count=count, rate=rate, payout=count * rate))
    return _build_report(rows)


def set_rate(report: PayoutReport, author: str, raw_rate: object, store: RateStore | None = None) -> PayoutReport:
    rate = parse_rate(raw_rate)
    if store is not None:
        store.set(author, rate)

    rows = []
    found = False
    for row in report.rows:
        if row.author == author:
            row = replace(row, rate=rate, payout=row.article_count * rate)
            found = True
        rows.append(row)
    if not found:
        logger.info("Rate for %r stored, but the author has no articles in the current report", author)
        return report
    return _build_report(rows)
