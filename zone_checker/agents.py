# zone_checker/agents.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from zone_checker.cleaning import strip_accents
from zone_checker.zones import EMPTY_RECT, FieldKind, FormVariant, Rect

UNREADABLE = "UNREADABLE"
LEGACY_UNREADABLE = "NON LISIBLE"
NO_AMOUNT_FOUND = "NO AMOUNT FOUND"

# keys that carry no usable identity
DISCARDED_KEYS = {
    "",
    "_",
    f"{UNREADABLE.lower()}_{UNREADABLE.lower()}",
    f"{LEGACY_UNREADABLE.lower()}_{LEGACY_UNREADABLE.lower()}",
}

SLOT_FOR_KIND = {
    FieldKind.NAME: "name",
    FieldKind.FIRSTNAME: "firstname",
    FieldKind.AMOUNT: "amount",
}


def _empty_coordinates() -> Dict[str, Rect]:
    return {slot: EMPTY_RECT for slot in SLOT_FOR_KIND.values()}


@dataclass
class ExtractionRecord:
    kind: Optional[FieldKind]
    page: int
    variant: FormVariant = FormVariant.TYPE1
    name: str = ""
    firstname: str = ""
    amount: float = 0.0
    raw_text: str = ""
    cleaned_text: str = ""
    coordinates: Dict[str, Rect] = field(default_factory=_empty_coordinates)

    @property
    def is_unreadable(self) -> bool:
        if self.kind is FieldKind.AMOUNT:
            return not self.raw_text and self.amount == 0.0
        return self.cleaned_text == UNREADABLE


@dataclass
class AgentSummary:
    name: str = UNREADABLE
    firstname: str = UNREADABLE
    amounts: List[float] = field(default_factory=list)
    total: float = 0.0
    pages: List[int] = field(default_factory=list)
    observations: str = ""

    @property
    def display_name(self) -> str:
        return f"{self.name} {self.firstname}"


def _canon(value: str) -> str:
    v = str(value or "").strip()
    if v.upper() == LEGACY_UNREADABLE:
        return UNREADABLE
    return v


@dataclass
class _Slot:
    summary: AgentSummary
    kn: str
    kf: str

    def accepts(self, n: str, f: str) -> bool:
        return (not n or not self.kn or self.kn == n) and (not f or not self.kf or self.kf == f)


def _find_slot(slots: List[_Slot], n: str, f: str) -> Optional[_Slot]:
    for s in slots:
        if s.kn == n and s.kf == f:
            return s
    # partial identities fold into the most recent compatible agent
    for s in reversed(slots):
        if s.accepts(n, f):
            return s
    return None


def _finalize(agent: AgentSummary) -> AgentSummary:
    agent.total = sum(agent.amounts)
    agent.pages.sort()
    if UNREADABLE in agent.name or UNREADABLE in agent.firstname:
        agent.observations = UNREADABLE
    elif not agent.amounts:
        agent.observations = NO_AMOUNT_FOUND
    else:
        agent.observations = ""
    return agent


def sort_key(agent: AgentSummary) -> Tuple[str, str]:
    s = agent.display_name
    return strip_accents(s).casefold(), s.casefold()


def aggregate_records(records: List[ExtractionRecord]) -> List[AgentSummary]:
    """
    Fold extraction records into one summary per person.
    The key is "lastname_firstname" (lowercase). A record with only one half of
    the key joins the latest agent whose halves do not contradict it. Once a
    name half holds a real value it is never overwritten.
    """
    slots: List[_Slot] = []

    for rec in records:
        name, firstname = _canon(rec.name), _canon(rec.firstname)
        n, f = name.lower(), firstname.lower()
        if f"{n}_{f}".strip() in DISCARDED_KEYS:
            continue

        slot = _find_slot(slots, n, f)
        if slot is None:
            slot = _Slot(AgentSummary(), kn=n, kf=f)
            slots.append(slot)
        else:
            slot.kn = slot.kn or n
            slot.kf = slot.kf or f

        agent = slot.summary
        if name and UNREADABLE in agent.name:
            agent.name = name
        if firstname and UNREADABLE in agent.firstname:
            agent.firstname = firstname
        if rec.amount > 0:
            agent.amounts.append(rec.amount)
        if rec.page not in agent.pages:
            agent.pages.append(rec.page)

    agents = [_finalize(s.summary) for s in slots]
    agents.sort(key=sort_key)
    return agents


def assemble_form_records(records: List[ExtractionRecord]) -> List[ExtractionRecord]:
    """
    One record per filled-in form: the NAME, FIRSTNAME and AMOUNT zones of a form
    are read separately, this joins them back into a single identity + amount.
    The n-th zone of a kind on a (page, form variant) belongs to the n-th form
    there, so two people on one page stay two people and keep their own amounts.
    """
    forms: Dict[Tuple[int, FormVariant, int], ExtractionRecord] = {}
    seen: Dict[Tuple[int, FormVariant, Optional[FieldKind]], int] = {}

    for rec in records:
        counter = (rec.page, rec.variant, rec.kind)
        nth = seen.get(counter, 0)
        seen[counter] = nth + 1
        if rec.kind is None:
            # already-assembled input: never fold it into another form
            nth = -1 - nth

        k = (rec.page, rec.variant, nth)
        form = forms.get(k)
        if form is None:
            form = ExtractionRecord(kind=None, page=rec.page, variant=rec.variant)
            forms[k] = form

        form.name = form.name or rec.name
        form.firstname = form.firstname or rec.firstname
        if rec.amount > 0:
            form.amount = rec.amount

        texts = [t for t in (form.raw_text, rec.raw_text) if t]
        form.raw_text = " | ".join(texts)
        for slot, rect in rec.coordinates.items():
            if not rect.is_empty() and form.coordinates[slot].is_empty():
                form.coordinates[slot] = rect

    return list(forms.values())
