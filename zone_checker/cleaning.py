# zone_checker/cleaning.py
from __future__ import annotations

import re
import unicodedata

from zone_checker.zones import FieldKind

NAME_STRIP_RE = re.compile(r"[^a-zA-ZÀ-ÖØ-öø-ÿ\s\-']")
AMOUNT_STRIP_RE = re.compile(r"[^0-9,.\-€\s]")
AMOUNT_RUN_RE = re.compile(r"[0-9,.\-]+")
AMOUNT_LEAD_RE = re.compile(r"-?(?:\d+(?:\.\d*)?|\.\d+)")
WS_RE = re.compile(r"\s+")


def clean_name(text: str) -> str:
    s = NAME_STRIP_RE.sub("", str(text or ""))
    return WS_RE.sub(" ", s).strip()


def clean_amount(text: str) -> str:
    return AMOUNT_STRIP_RE.sub("", str(text or "")).strip()


def clean_field(text: str, kind: FieldKind) -> str:
    if kind is FieldKind.AMOUNT:
        return clean_amount(text)
    return clean_name(text)


def parse_amount(text: str) -> float:
    """
    "12,50 €" -> 12.5, "-7" -> 7.0, "" / "abc" -> 0.0.
    Only the first number-ish run is read; the first comma is the decimal mark
    and the longest leading number wins ("45.50." -> 45.5, "12-5" -> 12.0).
    Amounts owed are never negative, so the sign is dropped.
    """
    if not text:
        return 0.0
    m = AMOUNT_RUN_RE.search(text)
    if not m:
        return 0.0
    num = m.group(0).replace(",", ".", 1)
    lead = AMOUNT_LEAD_RE.match(num)
    if not lead:
        return 0.0
    return abs(float(lead.group(0)))


def format_euro(value: float) -> str:
    return f"{float(value or 0.0):.2f} €"


def strip_accents(s: str) -> str:
    nfkd = unicodedata.normalize("NFKD", str(s or ""))
    return "".join(ch for ch in nfkd if not unicodedata.combining(ch))
