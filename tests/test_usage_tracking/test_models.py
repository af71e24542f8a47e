from __future__ import annotations

import pytest

from usage_tracking.models import (
    Aspect,
    AspectKeyFormatError,
    EntityId,
    EntityUsage,
    make_aspect_key,
    split_aspect_key,
    strip_modifier,
)

Q42 = EntityId("Q42")


@pytest.mark.parametrize(
    "aspect, modifier, key",
    [
        (Aspect.LABEL, "en", "L.en"),
        (Aspect.LABEL, None, "L"),
        (Aspect.DESCRIPTION, "de", "D.de"),
        (Aspect.STATEMENT, "P31", "C.P31"),
        (Aspect.TITLE, None, "T"),
        (Aspect.SITELINK, None, "S"),
        (Aspect.OTHER, None, "O"),
        (Aspect.ALL, None, "X"),
    ],
)
def test_aspect_key_round_trip(aspect: Aspect, modifier: str | None, key: str) -> None:
    assert make_aspect_key(aspect, modifier) == key
    assert split_aspect_key(key) == (aspect, modifier)


def test_modifier_may_contain_separator() -> None:
    assert split_aspect_key(make_aspect_key(Aspect.LABEL, "zh.hant")) == (Aspect.LABEL, "zh.hant")


@pytest.mark.parametrize("key", ["", "Z", "Z.en", "L.", "X.en", "O.en", "T.en", "S.enwiki"])
def test_split_rejects_malformed_keys(key: str) -> None:
    with pytest.raises(AspectKeyFormatError):
        split_aspect_key(key)


def test_make_rejects_modifier_on_all_and_other() -> None:
    with pytest.raises(AspectKeyFormatError):
        make_aspect_key(Aspect.ALL, "en")
    with pytest.raises(AspectKeyFormatError):
        make_aspect_key(Aspect.OTHER, "en")


def test_format_error_is_value_error() -> None:
    assert issubclass(AspectKeyFormatError, ValueError)


def test_strip_modifier() -> None:
    assert strip_modifier("L.en") == "L"
    assert strip_modifier("T") == "T"


def test_entity_usage_equality_and_identity() -> None:
    a = EntityUsage(Q42, Aspect.LABEL, "en")
    b = EntityUsage.from_aspect_key(EntityId("Q42"), "L.en")
    c = EntityUsage(Q42, Aspect.LABEL, "de")

    assert a == b
    assert hash(a) == hash(b)
    assert a != c
    assert a.aspect_key == "L.en"
    assert a.identity_string == "Q42#L.en"
    assert a.as_dict() == {"entity_id": "Q42", "aspect": "L", "modifier": "en"}


def test_entity_usage_is_immutable() -> None:
    usage = EntityUsage(Q42, Aspect.TITLE)
    with pytest.raises(AttributeError):
        usage.aspect = Aspect.ALL  # type: ignore[misc]


def test_entity_usage_rejects_modifier_on_all() -> None:
    with pytest.raises(AspectKeyFormatError):
        EntityUsage(Q42, Aspect.ALL, "en")


def test_entity_id_parse_and_type() -> None:
    assert EntityId.parse(" q42 ") == Q42
    assert Q42.entity_type == "item"
    assert EntityId("P31").entity_type == "property"
    with pytest.raises(ValueError):
        EntityId.parse("Q0")
    with pytest.raises(ValueError):
        EntityId("")
