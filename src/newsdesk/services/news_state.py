"""Filter and pagination state for the article list.

State is an immutable ``NewsState``; every action is a pure function taking the
current state and returning the next one. ``NewsStore`` is the container the
CLI passes around: it applies reducers and runs fetches with a request
sequence number so that a response to a superseded request is dropped.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
import logging
import math
from typing import Callable

from ..errors import RETRYABLE_ERRORS
from ..providers.base import NewsProvider
from ..schemas import DEFAULT_CATEGORY, Article, DateRange, FetchResult, FilterState

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class NewsState:
    filters: FilterState = field(default_factory=FilterState)
    all_articles: tuple[Article, ...] = ()
    articles: tuple[Article, ...] = ()
    total_results: int = 0
    loading: bool = False
    error: str | None = None
    request_seq: int = 0
    applied_seq: int = 0


def initial_state(page_size: int = 20) -> NewsState:
    if page_size <= 0:
        raise ValueError("page_size must be positive")
    return NewsState(filters=FilterState(page_size=page_size))


def matches_author(article: Article, term: str) -> bool:
    needle = term.lower()
    return any(
        needle in value.lower()
        for value in (article.author, article.title, article.description, article.content)
        if value
    )


def filter_by_author(articles: tuple[Article, ...], term: str) -> tuple[Article, ...]:
    if not term:
        return articles
    return tuple(article for article in articles if matches_author(article, term))


def page_count(total_results: int, page_size: int) -> int:
    if total_results <= 0:
        return 0
    return math.ceil(total_results / page_size)


def _clamp_page(filters: FilterState, total_results: int) -> FilterState:
    last = max(1, page_count(total_results, filters.page_size))
    page = min(max(filters.page, 1), last)
    if page == filters.page:
        return filters
    return replace(filters, page=page)


def has_previous(state: NewsState) -> bool:
    return state.filters.page > 1


def has_next(state: NewsState) -> bool:
    return state.filters.page < page_count(state.total_results, state.filters.page_size)


def set_search_query(state: NewsState, query: str) -> NewsState:
    return replace(state, filters=replace(state.filters, search_query=query))


def set_date_range(state: NewsState, date_range: DateRange | None) -> NewsState:
    return replace(state, filters=replace(state.filters, date_range=date_range or DateRange()))


def set_category(state: NewsState, category: str) -> NewsState:
    return replace(state, filters=replace(state.filters, category=category or DEFAULT_CATEGORY))


def set_author(state: NewsState, author: str) -> NewsState:
    author = author or ""
    visible = filter_by_author(state.all_articles, author)
    filters = _clamp_page(replace(state.filters, author=author), len(visible))
    return replace(state, filters=filters, articles=visible, total_results=len(visible))


def set_page(state: NewsState, page: int) -> NewsState:
    last = page_count(state.total_results, state.filters.page_size)
    if page < 1 or (last and page > last):
        raise ValueError(f"page {page} is out of range 1..{max(last, 1)}")
    return replace(state, filters=replace(state.filters, page=page))


def clear_filters(state: NewsState) -> NewsState:
    filters = FilterState(page_size=state.filters.page_size)
    return replace(
        state,
        filters=filters,
        articles=state.all_articles,
        total_results=len(state.all_articles),
    )


def fetch_started(state: NewsState) -> NewsState:
    return replace(state, loading=True, error=None, request_seq=state.request_seq + 1)


def fetch_succeeded(state: NewsState, seq: int, result: FetchResult) -> NewsState:
    if seq != state.request_seq:
        logger.debug("Dropping stale response seq=%s (latest=%s)", seq, state.request_seq)
        return state
    all_articles = tuple(result.articles)
    if state.filters.author:
        visible = filter_by_author(all_articles, state.filters.author)
        total = len(visible)
    else:
        visible = all_articles
        total = result.total_results
    return replace(
        state,
        filters=_clamp_page(state.filters, total),
        all_articles=all_articles,
        articles=visible,
        total_results=total,
        loading=False,
        error=None,
        applied_seq=seq,
    )


def fetch_failed(state: NewsState, seq: int, message: str) -> NewsState:
    if seq != state.request_seq:
        logger.debug("Dropping stale failure seq=%s (latest=%s)", seq, state.request_seq)
        return state
    return replace(state, loading=False, error=message, applied_seq=seq)


class NewsStore:
    def __init__(self, state: NewsState | None = None) -> None:
        self.state = state or initial_state()

    def dispatch(self, reducer: Callable[..., NewsState], *args) -> NewsState:
        self.state = reducer(self.state, *args)
        return self.state

    def begin_fetch(self) -> int:
        self.state = fetch_started(self.state)
        return self.state.request_seq

    def complete_fetch(self, seq: int, result: FetchResult) -> NewsState:
        return self.dispatch(fetch_succeeded, seq, result)

    def fail_fetch(self, seq: int, message: str) -> NewsState:
        return self.dispatch(fetch_failed, seq, message)

    def refresh(self, provider: NewsProvider) -> NewsState:
        seq = self.begin_fetch()
        try:
            result = provider.fetch(self.state.filters)
        except RETRYABLE_ERRORS as exc:
            return self.fail_fetch(seq, str(exc))
        return self.complete_fetch(seq, result)
