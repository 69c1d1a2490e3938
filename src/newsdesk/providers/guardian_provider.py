from __future__ import annotations

from typing import Any

from .article_adapter import parse_guardian_response
from .base import JsonApiProvider
from ..errors import UpstreamUnavailableError
from ..schemas import FetchResult, FilterState

GUARDIAN_FIELDS = "thumbnail,bodyText,byline"


def build_guardian_params(filters: FilterState, api_key: str) -> dict[str, Any]:
    params: dict[str, Any] = {
        "api-key": api_key,
        "show-fields": GUARDIAN_FIELDS,
        "page-size": filters.page_size,
        "page": filters.page,
    }
    if filters.search_query:
        params["q"] = filters.search_query
    if filters.author:
        params["byline"] = filters.author
    if filters.date_range.from_date is not None:
        params["from-date"] = filters.date_range.from_date.isoformat()
    if filters.date_range.to_date is not None:
        params["to-date"] = filters.date_range.to_date.isoformat()
    return params


class GuardianProvider(JsonApiProvider):
    name = "guardian"

    def fetch(self, filters: FilterState) -> FetchResult:
        if not self.api_key:
            raise UpstreamUnavailableError("Guardian API key is not configured")
        return parse_guardian_response(self._get_json("search", build_guardian_params(filters, self.api_key)))
