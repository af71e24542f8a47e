from __future__ import annotations

from .models import Aspect, EntityId, EntityUsage
from .page_usages import PageEntityUsages


class UsageAccumulator:
    """Collects the entity usages of one page while it is being rendered."""

    def __init__(self) -> None:
        self._usages: dict[str, EntityUsage] = {}

    def add_usage(self, usage: EntityUsage) -> None:
        self._usages.setdefault(usage.identity_string, usage)

    def add_label_usage(self, entity_id: EntityId, language: str | None = None) -> None:
        self.add_usage(EntityUsage(entity_id, Aspect.LABEL, language))

    def add_description_usage(self, entity_id: EntityId, language: str | None = None) -> None:
        self.add_usage(EntityUsage(entity_id, Aspect.DESCRIPTION, language))

    def add_title_usage(self, entity_id: EntityId) -> None:
        self.add_usage(EntityUsage(entity_id, Aspect.TITLE))

    def add_sitelinks_usage(self, entity_id: EntityId) -> None:
        self.add_usage(EntityUsage(entity_id, Aspect.SITELINK))

    def add_statement_usage(self, entity_id: EntityId, property_id: str | None = None) -> None:
        self.add_usage(EntityUsage(entity_id, Aspect.STATEMENT, property_id))

    def add_other_usage(self, entity_id: EntityId) -> None:
        self.add_usage(EntityUsage(entity_id, Aspect.OTHER))

    def add_all_usage(self, entity_id: EntityId) -> None:
        self.add_usage(EntityUsage(entity_id, Aspect.ALL))

    def get_usages(self) -> list[EntityUsage]:
        return list(self._usages.values())

    def to_page_usages(self, page_id: int) -> PageEntityUsages:
        return PageEntityUsages(page_id, self._usages.values())
