from __future__ import annotations

from typing import Any

from .article_adapter import parse_newsapi_response
from .base import JsonApiProvider
from ..errors import UpstreamUnavailableError
from ..schemas import DEFAULT_CATEGORY, FetchResult, FilterState


def build_newsapi_request(filters: FilterState, api_key: str, country: str = "us") -> tuple[str, dict[str, Any]]:
    """Return ``(endpoint, params)`` for the given filters.

    Without a search query or date range NewsAPI is asked for country top
    headlines, where category is a native parameter. Any search or date
    filter switches to ``/everything``, which has no category or author
    parameter, so both are folded into ``q``.
    """
    params: dict[str, Any] = {
        "apiKey": api_key,
        "language": "en",
        "sortBy": "publishedAt",
        "pageSize": filters.page_size,
        "page": filters.page,
    }
    date_range = filters.date_range
    category = filters.category if filters.category and filters.category != DEFAULT_CATEGORY else ""

    if not filters.search_query and date_range.is_empty():
        params["country"] = country
        if category:
            params["category"] = category
        return "top-headlines", params

    terms: list[str] = []
    if filters.search_query:
        terms.append(filters.search_query)
    if date_range.from_date is not None:
        params["from"] = date_range.from_date.isoformat()
    if date_range.to_date is not None:
        params["to"] = date_range.to_date.isoformat()
    if category:
        terms.append(category)
    if filters.author:
        terms.append(f'author:"{filters.author}"')
    if terms:
        params["q"] = " ".join(terms)
    return "everything", params


class NewsApiProvider(JsonApiProvider):
    name = "newsapi"

    def __init__(self, *args, country: str = "us", **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.country = country

    def fetch(self, filters: FilterState) -> FetchResult:
        if not self.api_key:
            raise UpstreamUnavailableError("NewsAPI key is not configured")
        endpoint, params = build_newsapi_request(filters, api_key=self.api_key, country=self.country)
        return parse_newsapi_response(self._get_json(endpoint, params))
