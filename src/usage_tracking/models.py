from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any


class AspectKeyFormatError(ValueError):
    """Raised when an aspect key cannot be decoded or an aspect/modifier pair is invalid."""


class Aspect(Enum):
    LABEL = "L"
    DESCRIPTION = "D"
    TITLE = "T"
    SITELINK = "S"
    STATEMENT = "C"
    OTHER = "O"
    ALL = "X"

    @property
    def accepts_modifier(self) -> bool:
        return self in MODIFIABLE_ASPECTS


MODIFIABLE_ASPECTS = frozenset({Aspect.LABEL, Aspect.DESCRIPTION, Aspect.STATEMENT})

ASPECT_SEPARATOR = "."

ENTITY_TYPES_BY_PREFIX = {
    "Q": "item",
    "P": "property",
    "L": "lexeme",
    "M": "mediainfo",
}

ENTITY_ID_RE = re.compile(r"^[A-Z][1-9][0-9]*$")


@dataclass(frozen=True, slots=True)
class EntityId:
    serialization: str

    def __post_init__(self) -> None:
        if not isinstance(self.serialization, str) or not self.serialization.strip():
            raise ValueError("entity id serialization must be a non-empty string")

    @classmethod
    def parse(cls, value: str) -> "EntityId":
        normalized = value.strip().upper()
        if not ENTITY_ID_RE.match(normalized):
            raise ValueError(f"invalid entity id: {value!r}")
        return cls(normalized)

    @property
    def entity_type(self) -> str:
        return ENTITY_TYPES_BY_PREFIX.get(self.serialization[:1].upper(), "unknown")

    def __str__(self) -> str:
        return self.serialization


def make_aspect_key(aspect: Aspect, modifier: str | None = None) -> str:
    if modifier is None:
        return aspect.value
    if not aspect.accepts_modifier:
        raise AspectKeyFormatError(f"aspect {aspect.name} does not take a modifier")
    if not modifier:
        raise AspectKeyFormatError("modifier must be a non-empty string")
    return f"{aspect.value}{ASPECT_SEPARATOR}{modifier}"


def split_aspect_key(key: str) -> tuple[Aspect, str | None]:
    if not isinstance(key, str) or not key:
        raise AspectKeyFormatError(f"malformed aspect key: {key!r}")

    token, sep, modifier = key.partition(ASPECT_SEPARATOR)
    try:
        aspect = Aspect(token)
    except ValueError:
        raise AspectKeyFormatError(f"unknown aspect in key: {key!r}") from None

    if not sep:
        return aspect, None
    if not modifier:
        raise AspectKeyFormatError(f"empty modifier in key: {key!r}")
    if not aspect.accepts_modifier:
        raise AspectKeyFormatError(f"aspect {aspect.name} does not take a modifier: {key!r}")
    return aspect, modifier


def strip_modifier(key: str) -> str:
    aspect, _ = split_aspect_key(key)
    return aspect.value


@dataclass(frozen=True, slots=True)
class EntityUsage:
    entity_id: EntityId
    aspect: Aspect
    modifier: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.entity_id, EntityId):
            raise TypeError("entity_id must be an EntityId")
        if not isinstance(self.aspect, Aspect):
            raise TypeError("aspect must be an Aspect")
        if self.modifier is not None:
            # validates the combination
            make_aspect_key(self.aspect, self.modifier)

    @classmethod
    def from_aspect_key(cls, entity_id: EntityId, key: str) -> "EntityUsage":
        aspect, modifier = split_aspect_key(key)
        return cls(entity_id, aspect, modifier)

    @property
    def aspect_key(self) -> str:
        return make_aspect_key(self.aspect, self.modifier)

    @property
    def identity_string(self) -> str:
        return f"{self.entity_id}#{self.aspect_key}"

    def as_dict(self) -> dict[str, Any]:
        return {
            "entity_id": str(self.entity_id),
            "aspect": self.aspect.value,
            "modifier": self.modifier,
        }

    def __str__(self) -> str:
        return self.identity_string
