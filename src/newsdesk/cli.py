from __future__ import annotations

from datetime import date, datetime
from enum import Enum
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler

from .config import get_default_env_file, get_settings
from .db import init_db
from .errors import AuthRequiredError, NotPrivilegedError
from .models import ROLES
from .providers.base import NewsProvider
from .providers.guardian_provider import GuardianProvider
from .providers.newsapi_provider import NewsApiProvider
from .schemas import DEFAULT_CATEGORY, DateRange, PayoutReport
from .services.access_gate import AccessGate
from .services.news_state import (
    NewsStore,
    initial_state,
    set_author,
    set_category,
    set_date_range,
    set_page,
    set_search_query,
)
from .services.payouts import aggregate, set_rate
from .services.rate_store import RateStore
from .views.export_formatter import CSV_FILENAME, SHEETS_CSV_FILENAME, render_csv, render_sheets_csv
from .views.pdf_layout import PDF_FILENAME, layout_payout_pages, write_pdf
from .views.table_renderer import render_article_list, render_payout_table, render_user_table

app = typer.Typer(help="News aggregation and author payout desk", no_args_is_help=True)
export_app = typer.Typer(help="Export author payouts")
user_app = typer.Typer(help="User registration")
admin_app = typer.Typer(help="Admin management")
config_app = typer.Typer(help="Configuration")
app.add_typer(export_app, name="export")
app.add_typer(user_app, name="user")
app.add_typer(admin_app, name="admin")
app.add_typer(config_app, name="config")

LOGIN_ROUTE = "/login"
HOME_ROUTE = "/"


class NewsSource(str, Enum):
    newsapi = "newsapi"
    guardian = "guardian"


class Category(str, Enum):
    general = "general"
    business = "business"
    entertainment = "entertainment"
    health = "health"
    science = "science"
    sports = "sports"
    technology = "technology"


def _configure_logging(level: str) -> None:
    root = logging.getLogger()
    if any(isinstance(handler, RichHandler) for handler in root.handlers):
        root.setLevel(level)
        return
    handler = RichHandler(console=Console(stderr=True), show_path=False, rich_tracebacks=False)
    handler.setFormatter(logging.Formatter("%(message)s"))
    root.addHandler(handler)
    root.setLevel(level)


@app.callback()
def main_callback() -> None:
    _configure_logging(get_settings().log_level)


def _parse_date(raw: str | None) -> date | None:
    if not raw:
        return None
    try:
        return datetime.strptime(raw, "%Y-%m-%d").date()
    except ValueError as exc:
        raise typer.BadParameter("dates must be YYYY-MM-DD") from exc


def _date_range(from_text: str | None, to_text: str | None) -> DateRange:
    date_range = DateRange(from_date=_parse_date(from_text), to_date=_parse_date(to_text))
    if date_range.from_date and date_range.to_date and date_range.from_date > date_range.to_date:
        raise typer.BadParameter("--from must not be after --to")
    return date_range


def _build_provider(source: str) -> NewsProvider:
    settings = get_settings()
    if source == NewsSource.guardian.value:
        return GuardianProvider(
            base_url=settings.guardian_base_url,
            api_key=settings.api_key_for(source),
            timeout_seconds=settings.http_timeout_seconds,
        )
    return NewsApiProvider(
        base_url=settings.news_api_base_url,
        api_key=settings.api_key_for(source),
        timeout_seconds=settings.http_timeout_seconds,
        country=settings.news_country,
    )


def _loading_status():
    return Console(stderr=True).status("Loading...")


def _fetch(
    source: str,
    page_size: int,
    query: str = "",
    author: str = "",
    date_range: DateRange | None = None,
    category: str = DEFAULT_CATEGORY,
    page: int = 1,
) -> NewsStore:
    store = NewsStore(initial_state(page_size=page_size))
    store.dispatch(set_search_query, query)
    store.dispatch(set_date_range, date_range)
    store.dispatch(set_category, category)
    store.dispatch(set_author, author)
    # Nothing is loaded yet, so any page >= 1 is accepted and sent upstream.
    store.dispatch(set_page, page)

    provider = _build_provider(source)
    try:
        with _loading_status():
            store.refresh(provider)
    finally:
        provider.close()
    return store


def _gate(uid: str | None) -> bool:
    """Return True when ``uid`` may open admin views; otherwise print the redirect."""
    settings = get_settings()
    init_db(settings)
    gate = AccessGate(settings)
    try:
        gate.require_privileged(uid)
    except AuthRequiredError as exc:
        typer.echo(str(exc))
        typer.echo(f"Redirecting to {LOGIN_ROUTE}")
        return False
    except NotPrivilegedError as exc:
        typer.echo(str(exc))
        typer.echo(f"Redirecting to {HOME_ROUTE}")
        return False
    return True


def _rate_store() -> RateStore:
    return RateStore(get_settings().rates_path)


def _load_report(source: str | None, query: str, date_range: DateRange, rates: RateStore) -> PayoutReport:
    settings = get_settings()
    store = _fetch(
        source=source or settings.payout_source,
        page_size=settings.payout_page_size,
        query=query,
        date_range=date_range,
    )
    if store.state.error:
        typer.echo(f"Error fetching data: {store.state.error}")
        typer.echo("Please try again later.")
        raise typer.Exit(code=1)
    return aggregate(store.state.articles, rates.load(), default_rate=settings.default_payout_rate)


def _resolve_uid(uid: str | None) -> str | None:
    return uid or get_settings().current_uid


def _mask_secret(value: str | None) -> str:
    if not value:
        return "(not set)"
    if len(value) <= 8:
        return "********"
    return f"{value[:4]}...{value[-4:]}"


@app.command("news")
def news(
    query: str = typer.Option("", "--q", help="Free-text search"),
    author: str = typer.Option("", "--author", help="Author/keyword filter"),
    from_text: str | None = typer.Option(None, "--from", help="YYYY-MM-DD"),
    to_text: str | None = typer.Option(None, "--to", help="YYYY-MM-DD"),
    category: Category = typer.Option(Category.general, "--category"),
    page: int = typer.Option(1, "--page", min=1),
    source: NewsSource | None = typer.Option(None, "--source", help="newsapi/guardian"),
) -> None:
    """Fetch and list articles."""

    settings = get_settings()
    store = _fetch(
        source=source.value if source else settings.news_source,
        page_size=settings.news_page_size,
        query=query,
        author=author,
        date_range=_date_range(from_text, to_text),
        category=category.value,
        page=page,
    )
    typer.echo(render_article_list(store.state), nl=False)
    if store.state.error:
        raise typer.Exit(code=1)


@app.command("payouts")
def payouts(
    uid: str | None = typer.Option(None, "--uid", help="Current user id"),
    rate_edits: list[str] = typer.Option([], "--set-rate", help="AUTHOR=RATE, repeatable"),
    query: str = typer.Option("", "--q"),
    from_text: str | None = typer.Option(None, "--from"),
    to_text: str | None = typer.Option(None, "--to"),
    source: NewsSource | None = typer.Option(None, "--source"),
) -> None:
    """Show per-author payouts (admin only)."""

    if not _gate(_resolve_uid(uid)):
        return

    edits: list[tuple[str, str]] = []
    for raw in rate_edits:
        author, sep, value = raw.rpartition("=")
        if not sep or not author:
            raise typer.BadParameter(f"expected AUTHOR=RATE, got {raw!r}")
        edits.append((author, value))

    store = _rate_store()
    report = _load_report(source.value if source else None, query, _date_range(from_text, to_text), store)
    for author, value in edits:
        report = set_rate(report, author, value, store)
    if not store.available:
        typer.echo("Warning: rates could not be saved and are kept for this session only.")
    typer.echo(render_payout_table(report, title="Author Payouts"), nl=False)


def _export(uid: str | None, out_dir: Path, source: NewsSource | None, kind: str) -> None:
    if not _gate(_resolve_uid(uid)):
        return
    report = _load_report(source.value if source else None, "", DateRange(), _rate_store())

    if kind == "preview":
        typer.echo(render_payout_table(report, title="Export Preview"), nl=False)
        return

    out_dir.mkdir(parents=True, exist_ok=True)
    if kind == "csv":
        path = out_dir / CSV_FILENAME
        path.write_text(render_csv(report), encoding="utf-8", newline="")
    elif kind == "sheets":
        path = out_dir / SHEETS_CSV_FILENAME
        path.write_text(render_sheets_csv(report), encoding="utf-8", newline="")
        typer.echo("Import this file at https://sheets.google.com/create")
    else:
        path = out_dir / PDF_FILENAME
        path.write_bytes(write_pdf(layout_payout_pages(report)))
    typer.echo(f"Wrote {path}")


@export_app.command("csv")
def export_csv(
    uid: str | None = typer.Option(None, "--uid"),
    out_dir: Path = typer.Option(Path("."), "--out", file_okay=False),
    source: NewsSource | None = typer.Option(None, "--source"),
) -> None:
    """Write payouts.csv."""
    _export(uid, out_dir, source, "csv")


@export_app.command("pdf")
def export_pdf(
    uid: str | None = typer.Option(None, "--uid"),
    out_dir: Path = typer.Option(Path("."), "--out", file_okay=False),
    source: NewsSource | None = typer.Option(None, "--source"),
) -> None:
    """Write payouts.pdf."""
    _export(uid, out_dir, source, "pdf")


@export_app.command("sheets")
def export_sheets(
    uid: str | None = typer.Option(None, "--uid"),
    out_dir: Path = typer.Option(Path("."), "--out", file_okay=False),
    source: NewsSource | None = typer.Option(None, "--source"),
) -> None:
    """Write payouts_for_sheets.csv for spreadsheet import."""
    _export(uid, out_dir, source, "sheets")


@export_app.command("preview")
def export_preview(
    uid: str | None = typer.Option(None, "--uid"),
    source: NewsSource | None = typer.Option(None, "--source"),
) -> None:
    """Show what an export would contain."""
    _export(uid, Path("."), source, "preview")


@user_app.command("add")
def user_add(
    uid: str = typer.Option(..., "--uid"),
    email: str | None = typer.Option(None, "--email"),
    role: str = typer.Option("user", "--role", help="user/admin"),
) -> None:
    """Register a user in the identity store."""

    if role not in ROLES:
        raise typer.BadParameter("role must be user or admin")
    settings = get_settings()
    init_db(settings)
    identity = AccessGate(settings).register(uid=uid, email=email, role=role)
    typer.echo(f"Registered {identity.uid} as {identity.role}")


@admin_app.command("list")
def admin_list(uid: str | None = typer.Option(None, "--uid", help="Current user id")) -> None:
    """List users and their admin flag."""

    if not _gate(_resolve_uid(uid)):
        return
    users = AccessGate(get_settings()).list_users()
    typer.echo(render_user_table(users), nl=False)


def _toggle_admin(uid: str | None, target: str, is_admin: bool) -> None:
    if not _gate(_resolve_uid(uid)):
        return
    if AccessGate(get_settings()).set_privileged(target, is_admin):
        typer.echo(f"{target}: admin={'yes' if is_admin else 'no'}")
        return
    typer.echo(f"Could not update admin status for {target}")
    raise typer.Exit(code=1)


@admin_app.command("grant")
def admin_grant(
    target: str = typer.Argument(..., help="User id to promote"),
    uid: str | None = typer.Option(None, "--uid", help="Current user id"),
) -> None:
    """Give a user admin rights."""
    _toggle_admin(uid, target, True)


@admin_app.command("revoke")
def admin_revoke(
    target: str = typer.Argument(..., help="User id to demote"),
    uid: str | None = typer.Option(None, "--uid", help="Current user id"),
) -> None:
    """Remove a user's admin rights."""
    _toggle_admin(uid, target, False)


@config_app.command("show")
def config_show() -> None:
    """Show effective configuration with secrets masked."""

    get_settings.cache_clear()
    settings = get_settings()
    env_path = get_default_env_file()

    typer.echo(f"Config file: {env_path}{'' if env_path.exists() else ' (missing)'}")
    typer.echo(f"NEWSDESK_DB_URL={settings.db_url}")
    typer.echo(f"NEWS_API_BASE_URL={settings.news_api_base_url}")
    typer.echo(f"NEWS_API_KEY={_mask_secret(settings.news_api_key)}")
    typer.echo(f"GUARDIAN_BASE_URL={settings.guardian_base_url}")
    typer.echo(f"GUARDIAN_API_KEY={_mask_secret(settings.guardian_api_key)}")
    typer.echo(f"NEWS_SOURCE={settings.news_source}")
    typer.echo(f"PAYOUT_SOURCE={settings.payout_source}")
    typer.echo(f"NEWS_PAGE_SIZE={settings.news_page_size}")
    typer.echo(f"PAYOUT_PAGE_SIZE={settings.payout_page_size}")
    typer.echo(f"DEFAULT_PAYOUT_RATE={settings.default_payout_rate}")
    typer.echo(f"NEWSDESK_RATES_PATH={settings.rates_path}")
    typer.echo(f"NEWSDESK_UID={settings.current_uid or '(not set)'}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
