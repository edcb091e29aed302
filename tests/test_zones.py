from __future__ import annotations

import pytest

from zone_checker.zones import (
    FieldKind,
    FormVariant,
    Rect,
    TextFragment,
    Zone,
    expand_zone,
    fragment_in_zone,
    from_reference_space,
    parse_zone_type,
    to_reference_space,
)


def _zone(x=100.0, y=100.0, w=50.0, h=20.0, kind=FieldKind.NAME, page=1) -> Zone:
    return Zone(id="z1", rect=Rect(x, y, w, h), kind=kind, page=page)


def test_fragment_inside_zone() -> None:
    assert fragment_in_zone(TextFragment("DUPONT", 120, 110), _zone())


def test_fragment_within_tolerance_on_every_edge() -> None:
    z = _zone()
    assert fragment_in_zone(TextFragment("a", 90, 110), z)
    assert fragment_in_zone(TextFragment("a", 160, 110), z)
    assert fragment_in_zone(TextFragment("a", 120, 90), z)
    assert fragment_in_zone(TextFragment("a", 120, 130), z)


def test_fragment_outside_tolerance() -> None:
    z = _zone()
    assert not fragment_in_zone(TextFragment("a", 89.9, 110), z)
    assert not fragment_in_zone(TextFragment("a", 120, 130.1), z)
    assert not fragment_in_zone(TextFragment("a", 120, 110), Rect(200, 200, 10, 10), tolerance=0)


def test_expand_zone_grows_and_clamps() -> None:
    grown = expand_zone(_zone())
    assert grown.rect == Rect(80, 90, 90, 40)
    assert grown.kind is FieldKind.NAME and grown.page == 1

    clamped = expand_zone(_zone(x=5, y=3))
    assert clamped.rect.x == 0 and clamped.rect.y == 0
    assert clamped.rect.width == 90 and clamped.rect.height == 40


@pytest.mark.parametrize("w,h,page", [(0, 10, 1), (10, -1, 1), (10, 10, 0)])
def test_zone_rejects_bad_geometry(w, h, page) -> None:
    with pytest.raises(ValueError):
        Zone(id="bad", rect=Rect(0, 0, w, h), kind=FieldKind.AMOUNT, page=page)


def test_parse_zone_type_labels() -> None:
    assert parse_zone_type("NOM-T1") == (FieldKind.NAME, FormVariant.TYPE1)
    assert parse_zone_type("PRENOM-T2") == (FieldKind.FIRSTNAME, FormVariant.TYPE2)
    assert parse_zone_type("MONTANT A PAYER-T1") == (FieldKind.AMOUNT, FormVariant.TYPE1)
    assert parse_zone_type("amount") == (FieldKind.AMOUNT, FormVariant.TYPE1)
    with pytest.raises(ValueError):
        parse_zone_type("SIGNATURE-T1")


def test_zone_from_dict_editor_shape() -> None:
    z = Zone.from_dict({
        "id": "zone_1", "x": 10, "y": 20, "width": 30, "height": 40,
        "type": "MONTANT A PAYER-T2", "pageNumber": 3, "formType": "type2",
    })
    assert z.kind is FieldKind.AMOUNT
    assert z.variant is FormVariant.TYPE2
    assert z.page == 3
    assert z.rect == Rect(10, 20, 30, 40)
    assert Zone.from_dict(z.to_dict()) == z


def test_zone_from_dict_missing_geometry() -> None:
    with pytest.raises(ValueError):
        Zone.from_dict({"type": "NOM-T1", "x": 1, "y": 2})


def test_reference_space_transform() -> None:
    drawn = Rect(150, 300, 75, 30)
    ref = to_reference_space(drawn, 1.5)
    assert ref == Rect(100, 200, 50, 20)
    assert from_reference_space(ref, 1.5) == drawn
    with pytest.raises(ValueError):
        to_reference_space(drawn, 0)
