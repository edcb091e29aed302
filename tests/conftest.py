from __future__ import annotations

from typing import Dict, List

import fitz
import pytest

from zone_checker.zones import TextFragment


class FakeSource:
    """In-memory page source: {page_number: [TextFragment, ...]}."""

    def __init__(self, pages: Dict[int, List[TextFragment]], broken_pages=()):
        self.pages = pages
        self.broken_pages = set(broken_pages)

    @property
    def page_count(self) -> int:
        return max(self.pages, default=0)

    def fragments(self, page_number: int) -> List[TextFragment]:
        if page_number in self.broken_pages:
            raise RuntimeError(f"page {page_number} is corrupt")
        return list(self.pages.get(page_number, []))


@pytest.fixture
def fake_source():
    return FakeSource


def _make_pdf(pages: List[List[tuple]]) -> bytes:
    """pages: one list per page of (x, baseline_y, text)."""
    doc = fitz.open()
    for items in pages:
        page = doc.new_page(width=595, height=842)
        for x, y, text in items:
            page.insert_text((x, y), text, fontsize=12)
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def make_pdf():
    return _make_pdf


@pytest.fixture
def two_form_pdf() -> bytes:
    return _make_pdf([
        [(100, 120, "DUPONT"), (300, 120, "Jean"), (100, 200, "45,50"), (100, 300, "TOTAL A PAYER")],
        [(100, 120, "MARTIN"), (300, 120, "Paul"), (100, 200, "12"), (100, 300, "TOTAL A PAYER")],
    ])
