from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx

from ..errors import MalformedResponseError, UpstreamUnavailableError
from ..schemas import FetchResult, FilterState

logger = logging.getLogger(__name__)


class NewsProvider(Protocol):
    name: str

    def fetch(self, filters: FilterState) -> FetchResult: ...

    def close(self) -> None: ...


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return f"HTTP {response.status_code}"
    if isinstance(data, dict):
        nested = data.get("response")
        if isinstance(nested, dict) and nested.get("message"):
            return str(nested["message"])
        if data.get("message"):
            return str(data["message"])
    return f"HTTP {response.status_code}"


class JsonApiProvider:
    name = "json"

    def __init__(self, base_url: str, api_key: str | None, timeout_seconds: int = 15, client: httpx.Client | None = None) -> None:
        self._owns_client = client is None
        self.client = client or httpx.Client(timeout=timeout_seconds, follow_redirects=True)
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key

    def close(self) -> None:
        if self._owns_client:
            self.client.close()

    def _get_json(self, path: str, params: dict[str, Any]) -> Any:
        url = f"{self.base_url}/{path.lstrip('/')}"
        logger.debug("GET %s params=%s", url, {k: v for k, v in params.items() if "key" not in k.lower()})
        try:
            response = self.client.get(url, params=params, headers={"Accept": "application/json"})
        except httpx.HTTPError as exc:
            logger.warning("%s request failed: %s", self.name, exc)
            raise UpstreamUnavailableError(f"{self.name} request failed: {exc}") from exc

        if response.is_error:
            message = _error_message(response)
            logger.warning("%s returned %s: %s", self.name, response.status_code, message)
            raise UpstreamUnavailableError(message or "Failed to fetch news")

        try:
            return response.json()
        except ValueError as exc:
            raise MalformedResponseError(f"{self.name} returned a non-JSON body") from exc
