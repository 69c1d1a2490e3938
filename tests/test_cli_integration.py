from __future__ import annotations

from contextlib import contextmanager
import csv
import io
import json

from typer.testing import CliRunner

from newsdesk.cli import app
from newsdesk.config import get_settings
from newsdesk.errors import UpstreamUnavailableError
from newsdesk.schemas import Article, FetchResult

runner = CliRunner()


def _article(author: str, title: str) -> Article:
    return Article(
        title=title,
        description=f"{title} description",
        url=f"https://example.com/{title.replace(' ', '-').lower()}",
        image_url=None,
        published_at=None,
        author=author,
        source_name="The Guardian",
    )


def _fake_fetch(self, filters):
    return FetchResult(
        articles=[
            _article("Jane Doe", "Budget talks"),
            _article("Jane Doe", "Rates hold"),
            _article("Doe, John", "Harbour news"),
        ],
        total_results=3,
    )


def _failing_fetch(self, filters):
    raise UpstreamUnavailableError("Failed to fetch news")


def _patch_fetch(monkeypatch, fetch=_fake_fetch):
    monkeypatch.setattr("newsdesk.providers.guardian_provider.GuardianProvider.fetch", fetch)
    monkeypatch.setattr("newsdesk.providers.newsapi_provider.NewsApiProvider.fetch", fetch)


def _register_admin(uid: str = "admin-1") -> None:
    result = runner.invoke(app, ["user", "add", "--uid", uid, "--email", f"{uid}@example.com", "--role", "admin"])
    assert result.exit_code == 0


def test_news_lists_articles_with_author_filter(isolated_env, monkeypatch):
    _patch_fetch(monkeypatch)
    result = runner.invoke(app, ["news", "--author", "jane"])
    assert result.exit_code == 0
    assert "Budget talks" in result.stdout
    assert "Harbour news" not in result.stdout
    assert "(2 results)" in result.stdout


def test_news_reports_retryable_error(isolated_env, monkeypatch):
    _patch_fetch(monkeypatch, _failing_fetch)
    result = runner.invoke(app, ["news"])
    assert result.exit_code == 1
    assert "UPSTREAM_UNAVAILABLE: Failed to fetch news" in result.stdout
    assert "Retry" in result.stdout


def test_news_shows_loading_status_while_fetching(isolated_env, monkeypatch):
    events: list[str] = []

    @contextmanager
    def recording_status():
        events.append("loading")
        yield
        events.append("done")

    def fetch(self, filters):
        events.append("fetch")
        return _fake_fetch(self, filters)

    _patch_fetch(monkeypatch, fetch)
    monkeypatch.setattr("newsdesk.cli._loading_status", recording_status)
    result = runner.invoke(app, ["news"])
    assert result.exit_code == 0
    assert events == ["loading", "fetch", "done"]


def test_payouts_redirects_without_identity(isolated_env, monkeypatch):
    _patch_fetch(monkeypatch)
    result = runner.invoke(app, ["payouts"])
    assert result.exit_code == 0
    assert "Redirecting to /login" in result.stdout


def test_payouts_redirects_non_admin(isolated_env, monkeypatch):
    _patch_fetch(monkeypatch)
    assert runner.invoke(app, ["user", "add", "--uid", "reader"]).exit_code == 0
    result = runner.invoke(app, ["payouts", "--uid", "reader"])
    assert result.exit_code == 0
    assert "Redirecting to /" in result.stdout
    assert "Total Payout" not in result.stdout


def test_payouts_uses_and_persists_rates(isolated_env, monkeypatch):
    _patch_fetch(monkeypatch)
    _register_admin()

    first = runner.invoke(app, ["payouts", "--uid", "admin-1"])
    assert first.exit_code == 0
    assert "Total Articles: 3" in first.stdout
    assert "Total Payout: $60" in first.stdout

    edited = runner.invoke(app, ["payouts", "--uid", "admin-1", "--set-rate", "Jane Doe=5"])
    assert edited.exit_code == 0
    assert "Total Payout: $30" in edited.stdout

    stored = json.loads((isolated_env / "local_storage.json").read_text(encoding="utf-8"))
    assert stored["authorPayoutRates"] == {"Jane Doe": 5}

    again = runner.invoke(app, ["payouts", "--uid", "admin-1"])
    assert "Total Payout: $30" in again.stdout


def test_uid_can_come_from_environment(isolated_env, monkeypatch):
    _patch_fetch(monkeypatch)
    _register_admin("env-admin")
    monkeypatch.setenv("NEWSDESK_UID", "env-admin")
    get_settings.cache_clear()
    result = runner.invoke(app, ["payouts"])
    assert "Total Articles: 3" in result.stdout


def test_export_csv_and_pdf(isolated_env, monkeypatch):
    _patch_fetch(monkeypatch)
    _register_admin()
    out_dir = isolated_env / "exports"

    csv_result = runner.invoke(app, ["export", "csv", "--uid", "admin-1", "--out", str(out_dir)])
    pdf_result = runner.invoke(app, ["export", "pdf", "--uid", "admin-1", "--out", str(out_dir)])
    assert csv_result.exit_code == 0
    assert pdf_result.exit_code == 0

    text = (out_dir / "payouts.csv").read_bytes().decode("utf-8")
    rows = list(csv.reader(io.StringIO(text, newline="")))
    assert rows[5] == ["Jane Doe", "2", "$20", "$40"]
    assert rows[6] == ["Doe, John", "1", "$20", "$20"]
    assert (out_dir / "payouts.pdf").read_bytes().startswith(b"%PDF")


def test_export_fails_when_upstream_is_down(isolated_env, monkeypatch):
    _patch_fetch(monkeypatch, _failing_fetch)
    _register_admin()
    result = runner.invoke(app, ["export", "csv", "--uid", "admin-1", "--out", str(isolated_env)])
    assert result.exit_code == 1
    assert "Error fetching data" in result.stdout
    assert not (isolated_env / "payouts.csv").exists()


def test_admin_grant_and_list(isolated_env):
    _register_admin()
    assert runner.invoke(app, ["user", "add", "--uid", "writer", "--email", "w@example.com"]).exit_code == 0

    granted = runner.invoke(app, ["admin", "grant", "writer", "--uid", "admin-1"])
    assert granted.exit_code == 0
    assert "writer: admin=yes" in granted.stdout

    listed = runner.invoke(app, ["admin", "list", "--uid", "writer"])
    assert listed.exit_code == 0
    assert "w@example.com" in listed.stdout

    revoked = runner.invoke(app, ["admin", "revoke", "writer", "--uid", "admin-1"])
    assert "writer: admin=no" in revoked.stdout
    denied = runner.invoke(app, ["admin", "list", "--uid", "writer"])
    assert "Redirecting to /" in denied.stdout


def test_config_show_masks_keys(isolated_env):
    result = runner.invoke(app, ["config", "show"])
    assert result.exit_code == 0
    assert "NEWS_API_KEY=test...-key" in result.stdout
    assert "test-news-key" not in result.stdout
