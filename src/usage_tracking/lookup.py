from __future__ import annotations

import threading
from typing import Iterable, Iterator, Protocol

from .models import EntityId, EntityUsage, split_aspect_key
from .page_usages import PageEntityUsages


class UsageLookup(Protocol):
    def get_pages_using(
        self,
        entity_ids: Iterable[EntityId],
        aspects: Iterable[str] = (),
    ) -> Iterable[PageEntityUsages]:
        """Pages with any usage of the given entities whose aspect matches ``aspects``.

        Each returned record carries the page's full usage set for the given
        entities, not only the usages that matched. An empty ``aspects`` filter
        matches every aspect.
        """
        ...

    def get_usages_for_page(self, page_id: int) -> list[EntityUsage]:
        ...

    def get_unused_entities(self, entity_ids: Iterable[EntityId]) -> list[EntityId]:
        ...


def expand_aspect_filter(aspects: Iterable[str]) -> tuple[set[str], set[str]]:
    """Returns (exact keys, aspects matching any modifier) for an aspect filter.

    A modified key such as "L.en" also matches a modifier-less "L" usage, and a
    modifier-less "L" in the filter matches every "L.<modifier>" usage.
    """
    exact: set[str] = set()
    any_modifier: set[str] = set()
    for key in aspects:
        aspect, modifier = split_aspect_key(key)
        exact.add(key)
        if modifier is None:
            if aspect.accepts_modifier:
                any_modifier.add(aspect.value)
        else:
            exact.add(aspect.value)
    return exact, any_modifier


def aspect_matches(key: str, exact: set[str], any_modifier: set[str]) -> bool:
    if key in exact:
        return True
    aspect, modifier = split_aspect_key(key)
    return modifier is not None and aspect.value in any_modifier


class InMemoryUsageStore:
    """Dict-backed usage tracker implementing :class:`UsageLookup`."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._pages: dict[int, dict[str, EntityUsage]] = {}

    def add_usages(self, page_id: int, usages: Iterable[EntityUsage]) -> None:
        with self._lock:
            page = self._pages.setdefault(page_id, {})
            for usage in usages:
                page.setdefault(usage.identity_string, usage)

    def replace_usages(self, page_id: int, usages: Iterable[EntityUsage]) -> list[EntityUsage]:
        """Replaces the page's usages and returns the ones no longer recorded."""
        fresh = {usage.identity_string: usage for usage in usages}
        with self._lock:
            previous = self._pages.get(page_id, {})
            dropped = [usage for key, usage in previous.items() if key not in fresh]
            if fresh:
                self._pages[page_id] = fresh
            else:
                self._pages.pop(page_id, None)
        return dropped

    def prune_usages(self, page_id: int) -> list[EntityUsage]:
        with self._lock:
            return list(self._pages.pop(page_id, {}).values())

    def get_usages_for_page(self, page_id: int) -> list[EntityUsage]:
        with self._lock:
            return list(self._pages.get(page_id, {}).values())

    def get_pages_using(
        self,
        entity_ids: Iterable[EntityId],
        aspects: Iterable[str] = (),
    ) -> Iterator[PageEntityUsages]:
        wanted = set(entity_ids)
        aspects = list(aspects)
        exact, any_modifier = expand_aspect_filter(aspects)

        with self._lock:
            snapshot = {page_id: list(usages.values()) for page_id, usages in self._pages.items()}

        for page_id in sorted(snapshot):
            usages = [usage for usage in snapshot[page_id] if usage.entity_id in wanted]
            if not usages:
                continue
            if aspects and not any(aspect_matches(usage.aspect_key, exact, any_modifier) for usage in usages):
                continue
            yield PageEntityUsages(page_id, usages)

    def get_unused_entities(self, entity_ids: Iterable[EntityId]) -> list[EntityId]:
        with self._lock:
            used = {usage.entity_id for usages in self._pages.values() for usage in usages.values()}
        return [entity_id for entity_id in entity_ids if entity_id not in used]
