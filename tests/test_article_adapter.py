from __future__ import annotations

from datetime import datetime, timezone

import pytest

from newsdesk.errors import MalformedResponseError, UpstreamUnavailableError
from newsdesk.providers.article_adapter import (
    normalize_guardian_article,
    normalize_newsapi_article,
    parse_guardian_response,
    parse_newsapi_response,
)


def test_newsapi_article_maps_all_fields():
    article = normalize_newsapi_article(
        {
            "source": {"id": None, "name": "Reuters"},
            "author": "Jane Doe",
            "title": "Markets rally",
            "description": "Stocks rose.",
            "url": "https://example.com/a",
            "urlToImage": "https://example.com/a.jpg",
            "publishedAt": "2024-05-01T12:30:00Z",
            "content": "Full text",
        }
    )
    assert article.author == "Jane Doe"
    assert article.source_name == "Reuters"
    assert article.image_url == "https://example.com/a.jpg"
    assert article.published_at == datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)
    assert article.content == "Full text"


def test_newsapi_article_defaults_missing_optional_fields():
    article = normalize_newsapi_article({"title": "Bare", "url": "https://example.com/b", "author": None})
    assert article.description == ""
    assert article.image_url is None
    assert article.author == "Unknown"
    assert article.published_at is None


def test_blank_author_becomes_unknown():
    article = normalize_newsapi_article({"title": "x", "url": "u", "author": "   "})
    assert article.author == "Unknown"


def test_guardian_article_truncates_body_and_names_source():
    article = normalize_guardian_article(
        {
            "webTitle": "Guardian piece",
            "webUrl": "https://theguardian.com/x",
            "webPublicationDate": "2024-05-02T08:00:00Z",
            "fields": {"bodyText": "b" * 500, "byline": "Sam Smith", "thumbnail": "https://img/x.jpg"},
        }
    )
    assert article.source_name == "The Guardian"
    assert len(article.description) == 200
    assert article.author == "Sam Smith"
    assert article.image_url == "https://img/x.jpg"


def test_guardian_article_without_fields():
    article = normalize_guardian_article({"webTitle": "t", "webUrl": "u"})
    assert article.author == "Unknown"
    assert article.description == ""
    assert article.image_url is None


def test_newsapi_response_total_falls_back_to_list_length():
    result = parse_newsapi_response({"status": "ok", "articles": [{"title": "a"}, {"title": "b"}]})
    assert result.total_results == 2
    assert [a.title for a in result.articles] == ["a", "b"]


def test_newsapi_response_without_articles_is_malformed():
    with pytest.raises(MalformedResponseError):
        parse_newsapi_response({"status": "ok", "totalResults": 3})


def test_newsapi_error_status_is_upstream_error():
    with pytest.raises(UpstreamUnavailableError) as exc_info:
        parse_newsapi_response({"status": "error", "message": "apiKey invalid"})
    assert "apiKey invalid" in str(exc_info.value)


def test_guardian_response_requires_results_container():
    with pytest.raises(MalformedResponseError):
        parse_guardian_response({"response": {"status": "ok", "total": 0}})
    with pytest.raises(MalformedResponseError):
        parse_guardian_response([])


def test_guardian_response_uses_upstream_total():
    result = parse_guardian_response({"response": {"total": 1234, "results": [{"webTitle": "x", "webUrl": "u"}]}})
    assert result.total_results == 1234
    assert len(result.articles) == 1
