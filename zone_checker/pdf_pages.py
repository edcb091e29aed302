# zone_checker/pdf_pages.py
from __future__ import annotations

from typing import List, Optional, Protocol

import fitz
from PIL import Image, ImageFilter, ImageOps

from zone_checker.zones import REFERENCE_SCALE, TextFragment

Image.MAX_IMAGE_PIXELS = None


class DocumentLoadError(Exception):
    """The PDF could not be opened at all (empty, corrupt, password protected)."""


class PageSource(Protocol):
    """What the extraction core needs from a document: page count + positioned text."""

    @property
    def page_count(self) -> int: ...

    def fragments(self, page_number: int) -> List[TextFragment]: ...


def page_text(source: PageSource, page_number: int) -> str:
    return " ".join(f.text for f in source.fragments(page_number))


class PdfDocument:
    """
    Thin wrapper around a PyMuPDF document.
    Pages are 1-based; fragments are words in reading order, anchored at the
    word's left edge and bottom line, already in reference space (top-left origin,
    PyMuPDF needs no vertical flip).
    """

    def __init__(self, doc: "fitz.Document", source: str = ""):
        self._doc = doc
        self.source = source

    @property
    def page_count(self) -> int:
        return self._doc.page_count

    def _page(self, page_number: int) -> "fitz.Page":
        if not 1 <= page_number <= self.page_count:
            raise IndexError(f"{self.source or 'document'}: page {page_number} out of range 1..{self.page_count}")
        return self._doc.load_page(page_number - 1)

    def fragments(self, page_number: int) -> List[TextFragment]:
        page = self._page(page_number)
        out: List[TextFragment] = []
        # (x0, y0, x1, y1, word, block_no, line_no, word_no)
        for w in page.get_text("words", sort=True):
            word = str(w[4] or "")
            if not word.strip():
                continue
            out.append(TextFragment(text=word, x=w[0] * REFERENCE_SCALE, y=w[3] * REFERENCE_SCALE))
        return out

    def page_text(self, page_number: int) -> str:
        return page_text(self, page_number)

    def render(self, page_number: int, scale: float = 1.5, enhance: bool = False) -> Image.Image:
        page = self._page(page_number)
        pix = page.get_pixmap(matrix=fitz.Matrix(scale, scale), alpha=False)
        img = Image.frombytes("RGB", [pix.width, pix.height], pix.samples)
        if enhance:
            img = ImageOps.autocontrast(img, cutoff=2).filter(ImageFilter.SHARPEN)
        return img

    def close(self) -> None:
        self._doc.close()

    def __enter__(self) -> "PdfDocument":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


def open_pdf(data: bytes, source: Optional[str] = None) -> PdfDocument:
    name = source or "PDF"
    if not data:
        raise DocumentLoadError(f"Could not open {name}: empty file")
    try:
        doc = fitz.open(stream=data, filetype="pdf")
    except Exception as e:
        raise DocumentLoadError(f"Could not open {name}: {e}") from e
    if doc.needs_pass:
        doc.close()
        raise DocumentLoadError(f"Could not open {name}: document is password protected")
    if doc.page_count < 1:
        doc.close()
        raise DocumentLoadError(f"Could not open {name}: document has no pages")
    return PdfDocument(doc, source=name)
