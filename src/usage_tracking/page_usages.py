from __future__ import annotations

from typing import Any, Iterable, Iterator

from .models import EntityId, EntityUsage


class PageEntityUsages:
    """All usages of entities recorded for a single page.

    Usages are keyed by their identity string, so adding the same usage twice
    is a no-op and the order in which usage sets are added does not matter.
    """

    __slots__ = ("_page_id", "_usages")

    def __init__(self, page_id: int, usages: Iterable[EntityUsage] = ()) -> None:
        if isinstance(page_id, bool) or not isinstance(page_id, int) or page_id < 0:
            raise ValueError(f"page_id must be a non-negative integer, got {page_id!r}")
        self._page_id = page_id
        self._usages: dict[str, EntityUsage] = {}
        self.add_usages(usages)

    @property
    def page_id(self) -> int:
        return self._page_id

    def add_usages(self, usages: Iterable[EntityUsage]) -> None:
        for usage in usages:
            if not isinstance(usage, EntityUsage):
                raise TypeError(f"expected EntityUsage, got {type(usage).__name__}")
            self._usages.setdefault(usage.identity_string, usage)

    def is_empty(self) -> bool:
        return not self._usages

    def get_usages(self) -> list[EntityUsage]:
        return list(self._usages.values())

    def get_entity_ids(self) -> list[EntityId]:
        seen: dict[EntityId, None] = {}
        for usage in self._usages.values():
            seen.setdefault(usage.entity_id, None)
        return list(seen)

    def get_usages_for_entity(self, entity_id: EntityId) -> list[EntityUsage]:
        return [usage for usage in self._usages.values() if usage.entity_id == entity_id]

    def get_aspect_keys(self, entity_id: EntityId | None = None) -> list[str]:
        keys: dict[str, None] = {}
        for usage in self._usages.values():
            if entity_id is not None and usage.entity_id != entity_id:
                continue
            keys.setdefault(usage.aspect_key, None)
        return list(keys)

    def as_dict(self) -> dict[str, Any]:
        return {
            "page_id": self._page_id,
            "usages": [usage.as_dict() for usage in self._usages.values()],
        }

    def __iter__(self) -> Iterator[EntityUsage]:
        return iter(list(self._usages.values()))

    def __len__(self) -> int:
        return len(self._usages)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PageEntityUsages):
            return NotImplemented
        return self._page_id == other._page_id and self._usages.keys() == other._usages.keys()

    def __repr__(self) -> str:
        keys = ", ".join(sorted(self._usages))
        return f"PageEntityUsages(page_id={self._page_id}, usages=[{keys}])"
