"""Tabular payout report laid out on A4 pages (millimetre units).

``layout_payout_pages`` is a pure function producing drawing instructions;
``write_pdf`` hands them to fpdf2. Rows that would cross the bottom limit go to
a new page that starts with the column header again.
"""
from __future__ import annotations

from dataclasses import dataclass, field

from fpdf import FPDF

from .export_formatter import money
from ..schemas import PayoutReport

PDF_FILENAME = "payouts.pdf"

PAGE_BOTTOM_LIMIT = 277.0
ROW_HEIGHT = 10.0
LEFT = 14.0
TITLE = "Author Payouts"
HEADER_FILL = (41, 128, 185)
WHITE = (255, 255, 255)
BLACK = (0, 0, 0)

# (label, x, width)
COLUMNS = (
    ("Author", 14.0, 50.0),
    ("Articles", 64.0, 30.0),
    ("Rate", 94.0, 30.0),
    ("Payout", 124.0, 30.0),
)
TEXT_INSET_X = 3.0
TEXT_BASELINE = 7.0

FIRST_PAGE_HEADER_Y = 45.0
CONTINUATION_HEADER_Y = 15.0

AUTHOR_MAX_CHARS = 20
AUTHOR_KEEP_CHARS = 17


@dataclass(frozen=True, slots=True)
class TextItem:
    x: float
    y: float
    text: str
    size: int
    color: tuple[int, int, int] = BLACK


@dataclass(frozen=True, slots=True)
class RectItem:
    x: float
    y: float
    w: float
    h: float
    fill: tuple[int, int, int] | None = None


@dataclass(slots=True)
class PdfPage:
    items: list[TextItem | RectItem] = field(default_factory=list)

    def texts(self) -> list[str]:
        return [item.text for item in self.items if isinstance(item, TextItem)]


def truncate_author(name: str, limit: int = AUTHOR_MAX_CHARS) -> str:
    if len(name) <= limit:
        return name
    return f"{name[:AUTHOR_KEEP_CHARS]}..."


def _header_row(page: PdfPage, y: float) -> float:
    for _, x, width in COLUMNS:
        page.items.append(RectItem(x=x, y=y, w=width, h=ROW_HEIGHT, fill=HEADER_FILL))
    for label, x, _ in COLUMNS:
        page.items.append(TextItem(x=x + TEXT_INSET_X, y=y + TEXT_BASELINE, text=label, size=12, color=WHITE))
    return y + ROW_HEIGHT


def layout_payout_pages(report: PayoutReport, bottom_limit: float = PAGE_BOTTOM_LIMIT) -> list[PdfPage]:
    first = PdfPage()
    first.items.append(TextItem(x=LEFT, y=15.0, text=TITLE, size=16))
    first.items.append(TextItem(x=LEFT, y=25.0, text=f"Total Articles: {report.total_articles}", size=12))
    first.items.append(TextItem(x=LEFT, y=35.0, text=f"Total Payout: {money(report.total_payout)}", size=12))
    pages = [first]
    y = _header_row(first, FIRST_PAGE_HEADER_Y)

    for row in report.rows:
        if y + ROW_HEIGHT > bottom_limit:
            page = PdfPage()
            pages.append(page)
            y = _header_row(page, CONTINUATION_HEADER_Y)
        page = pages[-1]
        values = (
            truncate_author(row.author),
            str(row.article_count),
            money(row.rate),
            money(row.payout),
        )
        for _, x, width in COLUMNS:
            page.items.append(RectItem(x=x, y=y, w=width, h=ROW_HEIGHT))
        for value, (_, x, _) in zip(values, COLUMNS):
            page.items.append(TextItem(x=x + TEXT_INSET_X, y=y + TEXT_BASELINE, text=value, size=10))
        y += ROW_HEIGHT
    return pages


def _latin1(text: str) -> str:
    # Core PDF fonts only cover latin-1.
    return text.encode("latin-1", "replace").decode("latin-1")


def write_pdf(pages: list[PdfPage]) -> bytes:
    pdf = FPDF(unit="mm", format="A4")
    pdf.set_auto_page_break(False)
    for page in pages:
        pdf.add_page()
        for item in page.items:
            if isinstance(item, RectItem):
                if item.fill is not None:
                    pdf.set_fill_color(*item.fill)
                    pdf.rect(item.x, item.y, item.w, item.h, style="F")
                else:
                    pdf.rect(item.x, item.y, item.w, item.h)
                continue
            pdf.set_font("Helvetica", size=item.size)
            pdf.set_text_color(*item.color)
            pdf.text(item.x, item.y, _latin1(item.text))
    return bytes(pdf.output())
