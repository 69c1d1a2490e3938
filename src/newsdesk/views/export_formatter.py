from __future__ import annotations

import csv
import io

from ..schemas import PayoutReport

CSV_FILENAME = "payouts.csv"
SHEETS_CSV_FILENAME = "payouts_for_sheets.csv"
REPORT_TITLE = "Author Payouts Report"
CSV_HEADERS = ["Author", "Articles Count", "Payout Rate", "Payout"]
SHEETS_HEADERS = ["Author", "Articles Count", "Payout"]
HEADER_BLOCK_ROWS = 5


def money(value: int) -> str:
    return f"${value}"


def _parse_money(raw: str) -> int:
    return int(raw.strip().removeprefix("$"))


def _summary_rows(report: PayoutReport) -> list[list[str]]:
    return [
        [REPORT_TITLE],
        ["Total Articles:", str(report.total_articles)],
        ["Total Payout:", money(report.total_payout)],
        [],
    ]


def _write(rows: list[list[str]], line_terminator: str) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator=line_terminator)
    writer.writerows(rows)
    # The document ends at the last row, without a trailing terminator.
    return buffer.getvalue().removesuffix(line_terminator)


def _quote(value: str) -> str:
    return '"' + value.replace('"', '""') + '"'


def render_csv(report: PayoutReport, line_terminator: str = "\r\n") -> str:
    lines = [_write([*_summary_rows(report), CSV_HEADERS], line_terminator)]
    # Author cells are always quoted.
    for row in report.rows:
        lines.append(",".join([_quote(row.author), str(row.article_count), money(row.rate), money(row.payout)]))
    return line_terminator.join(lines)


def render_sheets_csv(report: PayoutReport) -> str:
    """Spreadsheet-import variant: no rate column, LF line endings."""
    rows = _summary_rows(report)
    rows.append(SHEETS_HEADERS)
    for row in report.rows:
        rows.append([row.author, str(row.article_count), money(row.payout)])
    return _write(rows, "\n")


def parse_csv_rows(text: str) -> list[tuple[str, int, int, int]]:
    """Read ``(author, article_count, rate, payout)`` back from ``render_csv`` output."""
    reader = csv.reader(io.StringIO(text, newline=""))
    parsed: list[tuple[str, int, int, int]] = []
    for index, row in enumerate(reader):
        if index < HEADER_BLOCK_ROWS or not row:
            continue
        author, count, rate, payout = row
        parsed.append((author, int(count), _parse_money(rate), _parse_money(payout)))
    return parsed
