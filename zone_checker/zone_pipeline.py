# zone_checker/zone_pipeline.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional, Tuple

from zone_checker.agents import (
    SLOT_FOR_KIND,
    UNREADABLE,
    AgentSummary,
    ExtractionRecord,
    aggregate_records,
    assemble_form_records,
)
from zone_checker.cleaning import clean_field, parse_amount
from zone_checker.pdf_pages import DocumentLoadError, PageSource, open_pdf, page_text
from zone_checker.patterns import extract_by_pattern
from zone_checker.zones import (
    DEFAULT_TOLERANCE,
    FieldKind,
    Rect,
    Zone,
    expand_rect,
    fragment_in_zone,
)

VERBOSE = False

ProgressCallback = Callable[[float, str], None]


@dataclass(frozen=True)
class ExtractionConfig:
    # language/enhancement are carried for an image-based reader; text-layer extraction ignores them
    language: str = "fra"
    enhance_image: bool = True
    tolerance: float = DEFAULT_TOLERANCE


@dataclass
class DocumentResult:
    source: str
    agents: List[AgentSummary]
    records: List[ExtractionRecord]
    processed_pages: int
    total_pages: int


@dataclass
class DocumentFailure:
    source: str
    message: str


@dataclass
class BatchResult:
    documents: List[DocumentResult] = field(default_factory=list)
    failures: List[DocumentFailure] = field(default_factory=list)

    @property
    def agents(self) -> List[AgentSummary]:
        out: List[AgentSummary] = []
        for d in self.documents:
            out.extend(d.agents)
        return out


def _dbg(msg: str) -> None:
    if VERBOSE:
        print(f"[DBG] {msg}")


# =========================
# Zone extraction
# =========================

def text_in_rect(source: PageSource, page: int, rect: Rect, tolerance: float = DEFAULT_TOLERANCE) -> str:
    hits = [f.text for f in source.fragments(page) if f.text.strip() and fragment_in_zone(f, rect, tolerance)]
    return " ".join(hits).strip()


def unreadable_record(zone: Zone) -> ExtractionRecord:
    rec = ExtractionRecord(kind=zone.kind, page=zone.page, variant=zone.variant)
    if zone.kind is FieldKind.NAME:
        rec.name = UNREADABLE
        rec.cleaned_text = UNREADABLE
    elif zone.kind is FieldKind.FIRSTNAME:
        rec.firstname = UNREADABLE
        rec.cleaned_text = UNREADABLE
    rec.coordinates[SLOT_FOR_KIND[zone.kind]] = zone.rect
    return rec


def _build_record(zone: Zone, raw: str) -> ExtractionRecord:
    cleaned = clean_field(raw, zone.kind)
    rec = ExtractionRecord(
        kind=zone.kind,
        page=zone.page,
        variant=zone.variant,
        raw_text=raw,
        cleaned_text=cleaned,
    )
    if zone.kind is FieldKind.NAME:
        rec.name = cleaned
    elif zone.kind is FieldKind.FIRSTNAME:
        rec.firstname = cleaned
    else:
        rec.amount = parse_amount(cleaned)
    rec.coordinates[SLOT_FOR_KIND[zone.kind]] = zone.rect
    return rec


def resolve_zone_text(source: PageSource, zone: Zone, tolerance: float = DEFAULT_TOLERANCE) -> Tuple[str, str]:
    """
    Three one-shot strategies, in order:
      1) fragments inside the zone (with tolerance)
      2) fragments inside the expanded zone
      3) pattern search over the whole page text
    Returns (text, strategy); text is "" when all three came back empty.
    """
    text = text_in_rect(source, zone.page, zone.rect, tolerance)
    if text:
        return text, "direct"

    _dbg(f"{zone.id}: nothing inside zone, trying expanded zone")
    text = text_in_rect(source, zone.page, expand_rect(zone.rect), tolerance)
    if text:
        return text, "expanded"

    _dbg(f"{zone.id}: nothing inside expanded zone, trying page patterns")
    text = extract_by_pattern(page_text(source, zone.page), zone.kind)
    if text:
        return text, "pattern"
    return "", "none"


def extract_zone(source: PageSource, zone: Zone, tolerance: float = DEFAULT_TOLERANCE) -> ExtractionRecord:
    try:
        raw, strategy = resolve_zone_text(source, zone, tolerance)
    except Exception as e:
        print(f"[WARN] Zone {zone.id} ({zone.type_label}, page {zone.page}) failed: {e!r}")
        return unreadable_record(zone)

    if not raw:
        print(f"[WARN] Zone {zone.id} ({zone.type_label}, page {zone.page}): no text found")
        return unreadable_record(zone)

    rec = _build_record(zone, raw)
    _dbg(f"{zone.id}: {strategy} -> {raw!r} -> {rec.cleaned_text!r}")
    return rec


# =========================
# Orchestration
# =========================

def extract_zones(
    source: PageSource,
    zones: List[Zone],
    config: ExtractionConfig,
    on_progress: Optional[ProgressCallback] = None,
    label: str = "",
) -> List[ExtractionRecord]:
    records: List[ExtractionRecord] = []
    n = len(zones)
    for i, zone in enumerate(zones, start=1):
        records.append(extract_zone(source, zone, config.tolerance))
        if on_progress:
            prefix = f"{label}: " if label else ""
            on_progress(i / n * 100.0, f"{prefix}zone {zone.type_label} (page {zone.page})")
    return records


def process_source(
    source: PageSource,
    zones: List[Zone],
    config: Optional[ExtractionConfig] = None,
    on_progress: Optional[ProgressCallback] = None,
    name: str = "",
) -> DocumentResult:
    config = config or ExtractionConfig()
    records = extract_zones(source, list(zones), config, on_progress, label=name)
    unreadable = sum(1 for r in records if r.is_unreadable)
    print(f"[INFO] {name or 'document'}: {len(records) - unreadable}/{len(records)} zone(s) read")
    agents = aggregate_records(assemble_form_records(records))
    if on_progress:
        on_progress(100.0, f"{name + ': ' if name else ''}done, {len(agents)} agent(s)")
    pages = source.page_count
    return DocumentResult(
        source=name,
        agents=agents,
        records=records,
        processed_pages=pages,
        total_pages=pages,
    )


def process_document(
    data: bytes,
    zones: List[Zone],
    config: Optional[ExtractionConfig] = None,
    on_progress: Optional[ProgressCallback] = None,
    source: str = "",
) -> DocumentResult:
    """Open one PDF and run every zone on it. Raises DocumentLoadError if the PDF can't be read."""
    with open_pdf(data, source=source) as doc:
        print(f"[INFO] {doc.source}: {doc.page_count} page(s), {len(zones)} zone(s)")
        return process_source(doc, zones, config, on_progress, name=source)


def process_batch(
    documents: Iterable[Tuple[str, bytes]],
    zones: List[Zone],
    config: Optional[ExtractionConfig] = None,
    on_progress: Optional[ProgressCallback] = None,
) -> BatchResult:
    """
    Documents are processed one after another with the same zones; progress is
    reported on a single 0-100 scale for the whole batch. A PDF that can't be
    opened is recorded as a failure and the batch moves on.
    """
    docs = list(documents)
    total = len(docs)
    result = BatchResult()
    state = {"last": 0.0}

    def _report(pct: float, msg: str) -> None:
        # never let the bar go backwards
        pct = max(state["last"], min(100.0, pct))
        state["last"] = pct
        if on_progress:
            on_progress(pct, msg)

    for i, (name, data) in enumerate(docs):
        _report(i / total * 100.0, f"Processing {name}...")

        def _doc_progress(pct: float, msg: str, i=i) -> None:
            _report((i + pct / 100.0) / total * 100.0, msg)

        try:
            result.documents.append(process_document(data, zones, config, _doc_progress, source=name))
        except DocumentLoadError as e:
            print(f"[ERR] {e}")
            result.failures.append(DocumentFailure(source=name, message=str(e)))

    if total:
        _report(100.0, f"Done - {len(result.agents)} agent(s) found")
    return result
