#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from zone_checker import zone_pipeline
from zone_checker.export import default_export_name, write_excel
from zone_checker.zone_pipeline import ExtractionConfig, process_batch
from zone_checker.zones import DEFAULT_TOLERANCE, Zone


def load_zones(path: str | Path) -> List[Zone]:
    """
    Read zones from a JSON file: either a plain list of zone objects or
    {"zones": [...]}. Coordinates must already be in reference space (PDF points).
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Zones file does not exist: {p}")
    data = json.loads(p.read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = data.get("zones", [])
    if not isinstance(data, list):
        raise ValueError(f"{p}: expected a list of zones")
    return [Zone.from_dict(d) for d in data]


def _print_progress(pct: float, status: str) -> None:
    print(f"[{pct:5.1f}%] {status}")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(prog="zone-checker")
    ap.add_argument("pdfs", nargs="+", help="Expense form PDFs to process")
    ap.add_argument("--zones", required=True, help="JSON file with the extraction zones")
    ap.add_argument("--out", default=None, help="Output workbook (default: frais_deplacement_<date>.xlsx)")
    ap.add_argument("--lang", default="fra", help="Language hint forwarded to image-based readers (default: fra)")
    ap.add_argument("--no-enhance", action="store_true", help="Disable image enhancement of rendered pages")
    ap.add_argument("--tolerance", type=float, default=DEFAULT_TOLERANCE, help="Zone match tolerance in PDF points (default 10)")
    ap.add_argument("--quiet", action="store_true", help="Do not print per-zone progress")
    ap.add_argument("--verbose", action="store_true", help="Print fallback details for every zone")
    return ap.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    zone_pipeline.VERBOSE = args.verbose

    zones = load_zones(args.zones)
    if not zones:
        print("[ERR] No zones defined, nothing to extract.")
        return 2

    documents = []
    for raw in args.pdfs:
        p = Path(raw)
        if p.suffix.lower() != ".pdf":
            print(f"[WARN] Skipping non-PDF file: {p}")
            continue
        try:
            documents.append((p.name, p.read_bytes()))
        except OSError as e:
            print(f"[ERR] Could not read {p}: {e}")

    config = ExtractionConfig(
        language=args.lang,
        enhance_image=not args.no_enhance,
        tolerance=args.tolerance,
    )
    result = process_batch(
        documents,
        zones,
        config=config,
        on_progress=None if args.quiet else _print_progress,
    )

    for f in result.failures:
        print(f"[ERR] {f.source}: {f.message}")

    if not result.documents:
        print("[ERR] No document could be processed.")
        return 1

    out = Path(args.out) if args.out else Path(default_export_name())
    write_excel(result.agents, out)
    print(f"[INFO] {len(result.agents)} agent(s) from {len(result.documents)} document(s)")
    print("Done.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
