from __future__ import annotations

from zone_checker.agents import (
    NO_AMOUNT_FOUND,
    UNREADABLE,
    ExtractionRecord,
    aggregate_records,
    assemble_form_records,
)
from zone_checker.zones import FieldKind, FormVariant, Rect


def _rec(name="", firstname="", amount=0.0, page=1, kind=None, variant=FormVariant.TYPE1) -> ExtractionRecord:
    return ExtractionRecord(kind=kind, page=page, variant=variant, name=name, firstname=firstname, amount=amount)


def test_partial_records_merge_into_one_agent() -> None:
    agents = aggregate_records([
        _rec(name="DUPONT", amount=50, page=3, kind=FieldKind.NAME),
        _rec(firstname="Jean", amount=30, page=1, kind=FieldKind.FIRSTNAME),
    ])
    assert len(agents) == 1
    a = agents[0]
    assert (a.name, a.firstname) == ("DUPONT", "Jean")
    assert a.amounts == [50, 30]
    assert a.total == 80
    assert a.pages == [1, 3]
    assert a.observations == ""


def test_agents_sorted_case_and_accent_insensitively() -> None:
    agents = aggregate_records([
        _rec("Zoé", "Martin", 10, page=1),
        _rec("Abel", "Dupont", 20, page=2),
        _rec("émile", "Zola", 5, page=3),
    ])
    assert [a.name for a in agents] == ["Abel", "émile", "Zoé"]


def test_same_key_folds_amounts_and_keeps_first_real_name() -> None:
    agents = aggregate_records([
        _rec("DUPONT", "Jean", 10, page=2),
        _rec("Dupont", "JEAN", 15, page=1),
        _rec("DUPONT", "Jean", 0, page=2),
    ])
    assert len(agents) == 1
    a = agents[0]
    assert (a.name, a.firstname) == ("DUPONT", "Jean")
    assert a.amounts == [10, 15]
    assert a.total == sum(a.amounts)
    assert a.pages == [1, 2]


def test_unresolved_name_marks_agent_unreadable() -> None:
    agents = aggregate_records([_rec(UNREADABLE, "Jean", 42)])
    assert agents[0].observations == UNREADABLE
    assert agents[0].name == UNREADABLE


def test_missing_firstname_stays_unreadable() -> None:
    agents = aggregate_records([_rec(name="DUPONT", amount=12)])
    assert agents[0].firstname == UNREADABLE
    assert agents[0].observations == UNREADABLE


def test_no_amount_observation() -> None:
    agents = aggregate_records([_rec("DUPONT", "Jean", 0)])
    assert agents[0].observations == NO_AMOUNT_FOUND
    assert agents[0].total == 0


def test_records_without_identity_are_dropped() -> None:
    agents = aggregate_records([
        _rec(amount=99),
        _rec(UNREADABLE, UNREADABLE, 5),
        _rec("NON LISIBLE", "NON LISIBLE", 5),
    ])
    assert agents == []


def test_conflicting_names_stay_separate() -> None:
    agents = aggregate_records([
        _rec("DUPONT", "Jean", 1, page=1),
        _rec("MARTIN", "Jean", 2, page=2),
    ])
    assert [(a.name, a.total) for a in agents] == [("DUPONT", 1), ("MARTIN", 2)]


def test_assemble_joins_zones_of_one_form() -> None:
    zone_rect = Rect(10, 10, 50, 10)
    name = _rec(name="DUPONT", page=1, kind=FieldKind.NAME)
    name.coordinates["name"] = zone_rect
    recs = [
        name,
        _rec(firstname="Jean", page=1, kind=FieldKind.FIRSTNAME),
        _rec(amount=45.5, page=1, kind=FieldKind.AMOUNT),
        _rec(name=UNREADABLE, page=2, kind=FieldKind.NAME),
        _rec(firstname="Paul", page=2, kind=FieldKind.FIRSTNAME),
        _rec(amount=12, page=2, kind=FieldKind.AMOUNT),
        _rec(name="MARTIN", page=1, kind=FieldKind.NAME, variant=FormVariant.TYPE2),
    ]
    forms = assemble_form_records(recs)
    assert [(f.page, f.variant, f.name, f.firstname, f.amount) for f in forms] == [
        (1, FormVariant.TYPE1, "DUPONT", "Jean", 45.5),
        (2, FormVariant.TYPE1, UNREADABLE, "Paul", 12),
        (1, FormVariant.TYPE2, "MARTIN", "", 0.0),
    ]
    assert forms[0].coordinates["name"] == zone_rect
    assert forms[0].coordinates["amount"].is_empty()


def test_each_name_zone_on_a_page_starts_its_own_form() -> None:
    forms = assemble_form_records([
        _rec(name=UNREADABLE, kind=FieldKind.NAME),
        _rec(name="DURAND", kind=FieldKind.NAME),
    ])
    assert [f.name for f in forms] == [UNREADABLE, "DURAND"]


def test_two_people_on_one_page_keep_their_own_amounts() -> None:
    forms = assemble_form_records([
        _rec(name="DUPONT", page=1, kind=FieldKind.NAME),
        _rec(amount=50, page=1, kind=FieldKind.AMOUNT),
        _rec(name="MARTIN", page=1, kind=FieldKind.NAME),
        _rec(amount=30, page=1, kind=FieldKind.AMOUNT),
    ])
    assert [(f.name, f.amount) for f in forms] == [("DUPONT", 50), ("MARTIN", 30)]

    agents = aggregate_records(forms)
    assert [(a.name, a.amounts, a.total) for a in agents] == [
        ("DUPONT", [50], 50),
        ("MARTIN", [30], 30),
    ]


def test_assembled_records_are_not_folded_again() -> None:
    forms = assemble_form_records([_rec("DUPONT", "Jean", 10), _rec("MARTIN", "Paul", 20)])
    assert [(f.name, f.firstname, f.amount) for f in forms] == [("DUPONT", "Jean", 10), ("MARTIN", "Paul", 20)]
