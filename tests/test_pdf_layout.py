from __future__ import annotations

from newsdesk.schemas import PayoutReport, PayoutRow
from newsdesk.views.pdf_layout import (
    CONTINUATION_HEADER_Y,
    HEADER_FILL,
    PAGE_BOTTOM_LIMIT,
    RectItem,
    TextItem,
    layout_payout_pages,
    truncate_author,
    write_pdf,
)


def _report(count: int) -> PayoutReport:
    rows = tuple(PayoutRow(f"Author {i}", 1, 20, 20) for i in range(count))
    return PayoutReport(rows=rows, total_articles=count, total_payout=20 * count)


def test_truncate_author():
    assert truncate_author("Short Name") == "Short Name"
    assert truncate_author("x" * 20) == "x" * 20
    assert truncate_author("Bartholomew Fitzgerald-Smythe") == "Bartholomew Fitzg..."


def test_single_page_layout_matches_report():
    pages = layout_payout_pages(_report(3))
    assert len(pages) == 1
    texts = pages[0].texts()
    assert texts[:3] == ["Author Payouts", "Total Articles: 3", "Total Payout: $60"]
    assert texts[3:7] == ["Author", "Articles", "Rate", "Payout"]
    assert "Author 2" in texts

    fills = [item for item in pages[0].items if isinstance(item, RectItem) and item.fill == HEADER_FILL]
    assert len(fills) == 4
    first_row = [item for item in pages[0].items if isinstance(item, TextItem) and item.text == "Author 0"][0]
    assert first_row.y == 62.0


def test_overflow_starts_new_page_with_header():
    pages = layout_payout_pages(_report(23))
    assert len(pages) == 2
    assert "Author 21" in pages[0].texts()
    assert "Author 22" not in pages[0].texts()

    second = pages[1]
    assert second.texts()[:4] == ["Author", "Articles", "Rate", "Payout"]
    assert "Author 22" in second.texts()
    header_rects = [item for item in second.items if isinstance(item, RectItem) and item.fill == HEADER_FILL]
    assert {item.y for item in header_rects} == {CONTINUATION_HEADER_Y}


def test_no_row_crosses_the_bottom_limit():
    for page in layout_payout_pages(_report(80)):
        for item in page.items:
            if isinstance(item, RectItem):
                assert item.y + item.h <= PAGE_BOTTOM_LIMIT


def test_write_pdf_produces_pdf_bytes():
    report = PayoutReport(rows=(PayoutRow("Zoë Müller", 2, 10, 20), PayoutRow("李雷", 1, 5, 5)), total_articles=3, total_payout=25)
    data = write_pdf(layout_payout_pages(report))
    assert data.startswith(b"%PDF")
