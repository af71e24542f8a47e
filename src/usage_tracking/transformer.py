from __future__ import annotations

from typing import Iterable

from .models import Aspect, EntityId, EntityUsage, split_aspect_key
from .page_usages import PageEntityUsages


class UsageAspectTransformer:
    """Narrows recorded usages to the aspects relevant for one change.

    A page that uses ALL aspects of an entity is reported as using exactly the
    relevant aspects, so consumers can tell which aspects actually changed.
    """

    def __init__(self) -> None:
        self._relevant: dict[EntityId, list[str]] = {}

    def set_relevant_aspects(self, entity_id: EntityId, aspect_keys: Iterable[str]) -> None:
        keys: list[str] = []
        for key in aspect_keys:
            split_aspect_key(key)
            if key not in keys:
                keys.append(key)
        self._relevant[entity_id] = keys

    def get_relevant_aspects(self, entity_id: EntityId) -> list[str]:
        return list(self._relevant.get(entity_id, []))

    def transform_page_entity_usages(self, page_usages: PageEntityUsages) -> PageEntityUsages:
        transformed = PageEntityUsages(page_usages.page_id)
        for entity_id in page_usages.get_entity_ids():
            aspect_keys = page_usages.get_aspect_keys(entity_id)
            transformed.add_usages(self._filtered_usages(entity_id, aspect_keys))
        return transformed

    def _filtered_usages(self, entity_id: EntityId, aspect_keys: list[str]) -> list[EntityUsage]:
        relevant = self._relevant.get(entity_id)
        if not relevant:
            return []

        effective = self._filtered_aspects(aspect_keys, relevant)
        return [EntityUsage.from_aspect_key(entity_id, key) for key in effective]

    @staticmethod
    def _filtered_aspects(aspect_keys: list[str], relevant: list[str]) -> list[str]:
        if not aspect_keys:
            return []

        # Page ALL wins over relevant ALL: the page is reported with the relevant keys.
        if Aspect.ALL.value in aspect_keys:
            return list(relevant)

        if Aspect.ALL.value in relevant:
            return list(aspect_keys)

        used = set(aspect_keys)
        matched: list[str] = [key for key in relevant if key in used]

        # "L" on the page covers "L.en" in the change, and vice versa.
        for key in relevant:
            aspect, modifier = split_aspect_key(key)
            if modifier is not None and aspect.value in used:
                matched.append(key)

        relevant_set = set(relevant)
        for key in aspect_keys:
            aspect, modifier = split_aspect_key(key)
            if modifier is not None and aspect.value in relevant_set:
                matched.append(key)

        return list(dict.fromkeys(matched))
