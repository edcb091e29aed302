# zone_checker/zones.py
from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional
import re

DEFAULT_TOLERANCE = 10.0

# expanded-zone fallback: grow left/up, widen/heighten
EXPAND_DX = 20.0
EXPAND_DY = 10.0
EXPAND_DW = 40.0
EXPAND_DH = 20.0

# Reference space = PDF points (scale 1.0), origin top-left, y grows downwards.
REFERENCE_SCALE = 1.0


class FieldKind(str, Enum):
    NAME = "NAME"
    FIRSTNAME = "FIRSTNAME"
    AMOUNT = "AMOUNT"


class FormVariant(str, Enum):
    TYPE1 = "type1"
    TYPE2 = "type2"


# label vocabulary of the paper forms ("NOM-T1", "MONTANT A PAYER-T2", ...)
_KIND_LABELS = {
    FieldKind.NAME: "NOM",
    FieldKind.FIRSTNAME: "PRENOM",
    FieldKind.AMOUNT: "MONTANT A PAYER",
}
_VARIANT_SUFFIX = {FormVariant.TYPE1: "T1", FormVariant.TYPE2: "T2"}
ZONE_TYPE_RE = re.compile(r"^\s*(NOM|PRENOM|MONTANT A PAYER)\s*-\s*T([12])\s*$", re.I)


def zone_type_label(kind: FieldKind, variant: FormVariant = FormVariant.TYPE1) -> str:
    return f"{_KIND_LABELS[kind]}-{_VARIANT_SUFFIX[variant]}"


def parse_zone_type(label: str) -> tuple[FieldKind, FormVariant]:
    """
    "PRENOM-T2" -> (FIRSTNAME, TYPE2). Bare kind names ("AMOUNT") are accepted
    and default to the first form variant.
    """
    s = str(label or "").strip()
    m = ZONE_TYPE_RE.match(s)
    if m:
        word = m.group(1).upper()
        kind = next(k for k, v in _KIND_LABELS.items() if v == word)
        variant = FormVariant.TYPE1 if m.group(2) == "1" else FormVariant.TYPE2
        return kind, variant
    try:
        return FieldKind(s.upper()), FormVariant.TYPE1
    except ValueError:
        raise ValueError(f"Unknown zone type: {label!r}") from None


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def as_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


EMPTY_RECT = Rect(0.0, 0.0, 0.0, 0.0)


@dataclass(frozen=True)
class Zone:
    id: str
    rect: Rect
    kind: FieldKind
    page: int
    variant: FormVariant = FormVariant.TYPE1
    label: str = ""

    def __post_init__(self):
        if self.rect.width <= 0 or self.rect.height <= 0:
            raise ValueError(f"Zone {self.id}: width and height must be positive, got {self.rect}")
        if self.page < 1:
            raise ValueError(f"Zone {self.id}: page numbers start at 1, got {self.page}")

    @property
    def type_label(self) -> str:
        return zone_type_label(self.kind, self.variant)

    @classmethod
    def from_dict(cls, d: dict) -> "Zone":
        """Build a zone from the editor/JSON shape (camelCase page and form keys)."""
        raw_type = d.get("type") or d.get("kind")
        if raw_type is None:
            raise ValueError(f"Zone {d.get('id', '?')}: missing 'type'")
        kind, variant = parse_zone_type(raw_type)
        form = d.get("formType") or d.get("variant")
        if form:
            form = str(form).strip().lower()
            variant = FormVariant.TYPE2 if form in ("type2", "t2", "2") else FormVariant.TYPE1
        try:
            rect = Rect(float(d["x"]), float(d["y"]), float(d["width"]), float(d["height"]))
            page = int(d.get("pageNumber", d.get("page", 1)))
        except (KeyError, TypeError) as e:
            raise ValueError(f"Zone {d.get('id', '?')}: bad geometry ({e!r})") from e
        return cls(
            id=str(d.get("id") or f"zone_{kind.value.lower()}_{page}"),
            rect=rect,
            kind=kind,
            page=page,
            variant=variant,
            label=str(d.get("label") or ""),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            **self.rect.as_dict(),
            "type": self.type_label,
            "pageNumber": self.page,
            "formType": self.variant.value,
            "label": self.label,
        }


@dataclass(frozen=True)
class TextFragment:
    """One unit of page text anchored at its left/baseline point (reference space)."""
    text: str
    x: float
    y: float


def fragment_in_zone(fragment: TextFragment, zone: Zone | Rect, tolerance: float = DEFAULT_TOLERANCE) -> bool:
    rect = zone.rect if isinstance(zone, Zone) else zone
    return (
        rect.x - tolerance <= fragment.x <= rect.right + tolerance
        and rect.y - tolerance <= fragment.y <= rect.bottom + tolerance
    )


def expand_rect(rect: Rect) -> Rect:
    return Rect(
        x=max(0.0, rect.x - EXPAND_DX),
        y=max(0.0, rect.y - EXPAND_DY),
        width=rect.width + EXPAND_DW,
        height=rect.height + EXPAND_DH,
    )


def expand_zone(zone: Zone) -> Zone:
    return replace(zone, rect=expand_rect(zone.rect))


def to_reference_space(rect: Rect, scale: float) -> Rect:
    """Canvas rectangle drawn on a page rendered at `scale` -> reference space."""
    if scale <= 0:
        raise ValueError(f"scale must be positive, got {scale}")
    f = scale / REFERENCE_SCALE
    return Rect(rect.x / f, rect.y / f, rect.width / f, rect.height / f)


def from_reference_space(rect: Rect, scale: float) -> Rect:
    if scale <= 0:
        raise ValueError(f"scale must be positive, got {scale}")
    f = scale / REFERENCE_SCALE
    return Rect(rect.x * f, rect.y * f, rect.width * f, rect.height * f)


def zones_for_page(zones: list[Zone], page: int) -> list[Zone]:
    return [z for z in zones if z.page == page]


def new_zone_id(existing: Optional[list[Zone]] = None) -> str:
    n = len(existing or []) + 1
    taken = {z.id for z in (existing or [])}
    while f"zone_{n}" in taken:
        n += 1
    return f"zone_{n}"
