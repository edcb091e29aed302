# zone_checker/patterns.py
# Page-wide last-resort heuristics, used when nothing sits inside a zone.
from __future__ import annotations

import re

from zone_checker.cleaning import strip_accents
from zone_checker.zones import FieldKind

UPPER = "A-ZÀ-ÖØ-ÞŸ"
LOWER = "a-zß-öø-ÿ"

NAME_RE = re.compile(rf"\b[{UPPER}]{{2,}}\b")
FIRSTNAME_RE = re.compile(rf"\b[{UPPER}][{LOWER}]{{2,}}\b")
AMOUNT_CANDIDATE_RE = re.compile(r"\d+(?:[.,]\d+)?\s*€?")

# form boilerplate printed in capitals on the expense sheets
NAME_STOPWORDS = {
    "VERIFIE", "PAIE", "TOTAL", "PAYER", "REMPLIR",
    "BENEFICIAIRE", "FRAIS", "DEPLACEMENT",
}

AMOUNT_MIN = 1.0
AMOUNT_MAX = 10000.0


def _find_name(text: str) -> str:
    for m in NAME_RE.finditer(text):
        word = m.group(0)
        if strip_accents(word) not in NAME_STOPWORDS:
            return word
    return ""


def _find_firstname(text: str) -> str:
    m = FIRSTNAME_RE.search(text)
    return m.group(0) if m else ""


def _candidate_value(token: str) -> float | None:
    num = re.sub(r"[€\s]", "", token).replace(",", ".")
    try:
        return float(num)
    except ValueError:
        return None


def _find_amount(text: str) -> str:
    for m in AMOUNT_CANDIDATE_RE.finditer(text):
        token = m.group(0).strip()
        value = _candidate_value(token)
        if value is not None and AMOUNT_MIN <= value <= AMOUNT_MAX:
            return token
    return ""


_FINDERS = {
    FieldKind.NAME: _find_name,
    FieldKind.FIRSTNAME: _find_firstname,
    FieldKind.AMOUNT: _find_amount,
}


def extract_by_pattern(page_text: str, kind: FieldKind) -> str:
    """First plausible value of `kind` anywhere in the page text, or ""."""
    if not page_text:
        return ""
    return _FINDERS[kind](page_text)
