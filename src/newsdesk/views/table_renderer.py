from __future__ import annotations

from datetime import datetime, timezone
import re

from rich import box
from rich.console import Console
from rich.table import Table
from rich.text import Text

from .export_formatter import money
from ..schemas import Identity, PayoutReport
from ..services.news_state import NewsState, has_next, has_previous, page_count


def _format_time(dt: datetime | None) -> str:
    if dt is None:
        return "-"
    value = dt if dt.tzinfo is not None else dt.replace(tzinfo=timezone.utc)
    return value.astimezone().strftime("%Y-%m-%d %H:%M")


def _console() -> Console:
    return Console(
        force_terminal=True,
        color_system="standard",
        markup=False,
        highlight=False,
        width=140,
    )


def _build_table() -> Table:
    return Table(
        show_header=True,
        header_style="bold cyan",
        box=box.SQUARE,
        show_lines=True,
        pad_edge=True,
        expand=True,
    )


def _title_cell(title: str, url: str) -> Text | str:
    if not url:
        return title
    # Keep the exact original URL as click target to avoid parameter loss.
    return Text(title, style=f"link {url}")


def _pager_line(state: NewsState) -> str:
    filters = state.filters
    pages = page_count(state.total_results, filters.page_size)
    prev_label = "< prev" if has_previous(state) else "  ----"
    next_label = "next >" if has_next(state) else "----  "
    return f"{prev_label}  page {filters.page} of {max(pages, 1)}  {next_label}  ({state.total_results} results)"


def render_article_list(state: NewsState) -> str:
    console = _console()
    with console.capture() as capture:
        if state.loading:
            console.print("Loading...")
        elif state.error:
            console.print(f"Error: {state.error}")
            console.print("Retry by running the same command again.")
        elif not state.articles:
            console.print("No articles found.")
        else:
            table = _build_table()
            table.add_column("#", justify="right", width=3, no_wrap=True)
            table.add_column("Published", width=16, no_wrap=True)
            table.add_column("Source", width=14, overflow="fold")
            table.add_column("Author", width=18, overflow="fold")
            table.add_column("Title", ratio=3, overflow="fold")
            table.add_column("Description", ratio=4, overflow="fold")
            for index, article in enumerate(state.articles, start=1):
                table.add_row(
                    str(index),
                    _format_time(article.published_at),
                    article.source_name,
                    article.author,
                    _title_cell(article.title, article.url),
                    re.sub(r"\s+", " ", article.description).strip(),
                )
            console.print(table)
            console.print(_pager_line(state))
    return capture.get()


def render_payout_table(report: PayoutReport, title: str | None = None) -> str:
    console = _console()
    with console.capture() as capture:
        if title:
            console.print(title)
        console.print(f"Total Articles: {report.total_articles}")
        console.print(f"Total Payout: {money(report.total_payout)}")
        if report.rows:
            table = _build_table()
            table.add_column("Author", ratio=3, overflow="fold")
            table.add_column("Articles", justify="right", width=9)
            table.add_column("Rate", justify="right", width=9)
            table.add_column("Payout", justify="right", width=10)
            for row in report.rows:
                table.add_row(row.author, str(row.article_count), money(row.rate), money(row.payout))
            console.print(table)
        else:
            console.print("No articles to pay out.")
    return capture.get()


def render_user_table(users: list[tuple[Identity, bool]]) -> str:
    console = _console()
    with console.capture() as capture:
        if users:
            table = _build_table()
            table.add_column("UID", no_wrap=True)
            table.add_column("Email", overflow="fold")
            table.add_column("Role", width=8)
            table.add_column("Admin", width=6)
            for identity, is_admin in users:
                table.add_row(identity.uid, identity.email or "-", identity.role, "[x]" if is_admin else "[ ]")
            console.print(table)
        else:
            console.print("No users registered.")
    return capture.get()
