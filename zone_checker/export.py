# zone_checker/export.py
from __future__ import annotations

from datetime import date
from io import BytesIO
from pathlib import Path
from typing import List, Optional

import pandas as pd

from zone_checker.agents import AgentSummary
from zone_checker.cleaning import format_euro

EXPORT_COLUMNS = ["NAME", "FIRSTNAME", "TOTAL", "AMOUNTS", "PAGES", "OBSERVATIONS"]
DEFAULT_SHEET = "Frais de Deplacement"


def agents_to_frame(agents: List[AgentSummary]) -> pd.DataFrame:
    rows = [
        {
            "NAME": a.name,
            "FIRSTNAME": a.firstname,
            "TOTAL": format_euro(a.total),
            "AMOUNTS": ", ".join(format_euro(m) for m in a.amounts),
            "PAGES": ", ".join(str(p) for p in a.pages),
            "OBSERVATIONS": a.observations,
        }
        for a in agents
    ]
    return pd.DataFrame(rows, columns=EXPORT_COLUMNS)


def _autosize(ws) -> None:
    for col in ws.columns:
        width = max((len(str(c.value)) for c in col if c.value is not None), default=8)
        ws.column_dimensions[col[0].column_letter].width = min(60, width + 2)


def _write(agents: List[AgentSummary], target, sheet_name: str) -> None:
    df = agents_to_frame(agents)
    with pd.ExcelWriter(target, engine="openpyxl") as xw:
        df.to_excel(xw, sheet_name=sheet_name, index=False)
        _autosize(xw.sheets[sheet_name])


def write_excel(agents: List[AgentSummary], path: str | Path, sheet_name: str = DEFAULT_SHEET) -> Path:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    _write(agents, p, sheet_name)
    print(f"Wrote: {p}")
    return p


def excel_bytes(agents: List[AgentSummary], sheet_name: str = DEFAULT_SHEET) -> bytes:
    bio = BytesIO()
    _write(agents, bio, sheet_name)
    return bio.getvalue()


def default_export_name(today: Optional[date] = None) -> str:
    d = today or date.today()
    return f"frais_deplacement_{d.isoformat()}.xlsx"
