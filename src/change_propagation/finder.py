from __future__ import annotations

import logging
from typing import Iterable, Iterator

from usage_tracking.lookup import UsageLookup
from usage_tracking.models import Aspect, EntityId
from usage_tracking.page_usages import PageEntityUsages
from usage_tracking.transformer import UsageAspectTransformer

from .changes import Change, EntityChange, ItemChange
from .classifier import ChangedAspectsClassifier
from .config import ChangePropagationConfig
from .titles import PageNotFoundError, TitleResolver
from .virtual_usages import VirtualUsageSynthesizer

logger = logging.getLogger(__name__)


class AffectedPagesFinder:
    """Finds the pages to re-render for an incoming entity change.

    Pipeline per change: classify the changed aspects, look up pages using
    them (or ALL), narrow each page's usages to those aspects, add virtual
    usages for pages named by a changed site link title, then drop pages that
    cannot be resolved or, if configured, do not exist.
    """

    def __init__(
        self,
        usage_lookup: UsageLookup,
        title_resolver: TitleResolver,
        site_id: str,
        content_language_code: str,
        check_page_existence: bool = True,
    ) -> None:
        if not isinstance(site_id, str):
            raise TypeError("site_id must be a string")
        if not isinstance(content_language_code, str):
            raise TypeError("content_language_code must be a string")
        if not isinstance(check_page_existence, bool):
            raise TypeError("check_page_existence must be a boolean")

        self._usage_lookup = usage_lookup
        self._title_resolver = title_resolver
        self.site_id = site_id
        self.content_language_code = content_language_code
        self.check_page_existence = check_page_existence

        self._classifier = ChangedAspectsClassifier(site_id)
        self._synthesizer = VirtualUsageSynthesizer(title_resolver, site_id)

    @classmethod
    def from_config(
        cls,
        config: ChangePropagationConfig,
        usage_lookup: UsageLookup,
        title_resolver: TitleResolver,
    ) -> "AffectedPagesFinder":
        return cls(
            usage_lookup,
            title_resolver,
            config.site_id,
            config.content_language_code,
            config.check_page_existence,
        )

    def get_changed_aspects(self, change: EntityChange) -> list[str]:
        return self._classifier.get_changed_aspects(change)

    def get_affected_usages_by_page(self, change: Change) -> Iterator[PageEntityUsages]:
        if not isinstance(change, EntityChange):
            return iter(())

        usages = self._get_affected_pages(change)
        return iter(self._filter_updates(usages))

    def _get_affected_pages(self, change: EntityChange) -> list[PageEntityUsages]:
        entity_id = change.entity_id
        changed_aspects = self.get_changed_aspects(change)

        lookup_aspects = list(dict.fromkeys(changed_aspects + [Aspect.ALL.value]))
        usages = self._usage_lookup.get_pages_using([entity_id], lookup_aspects)
        transformed = self._transform_all_page_entity_usages(usages, entity_id, changed_aspects)

        if isinstance(change, ItemChange) and Aspect.TITLE.value in changed_aspects:
            virtual = self._synthesizer.synthesize(change, [Aspect.SITELINK.value])

            merged: dict[int, PageEntityUsages] = {}
            self._merge_usages_into(transformed, merged)
            self._merge_usages_into(virtual.values(), merged)
            return list(merged.values())

        return transformed

    @staticmethod
    def _merge_usages_into(source: Iterable[PageEntityUsages], into: dict[int, PageEntityUsages]) -> None:
        for page_usages in source:
            existing = into.get(page_usages.page_id)
            if existing is None:
                into[page_usages.page_id] = PageEntityUsages(page_usages.page_id, page_usages.get_usages())
            else:
                existing.add_usages(page_usages.get_usages())

    @staticmethod
    def _transform_all_page_entity_usages(
        usages: Iterable[PageEntityUsages],
        entity_id: EntityId,
        changed_aspects: list[str],
    ) -> list[PageEntityUsages]:
        transformer = UsageAspectTransformer()
        transformer.set_relevant_aspects(entity_id, changed_aspects)

        transformed: list[PageEntityUsages] = []
        for page_usages in usages:
            narrowed = transformer.transform_page_entity_usages(page_usages)
            if not narrowed.is_empty():
                transformed.append(narrowed)
        return transformed

    def _filter_updates(self, usages: Iterable[PageEntityUsages]) -> list[PageEntityUsages]:
        to_update: dict[int, PageEntityUsages] = {}

        for page_usages in usages:
            page_id = page_usages.page_id
            try:
                title = self._title_resolver.resolve_by_page_id(page_id)
            except PageNotFoundError:
                logger.debug("page not found page_id=%d; skipping", page_id)
                continue

            if self.check_page_existence and not title.exists():
                logger.debug("page does not exist page_id=%d title=%s; skipping", page_id, title.full_text())
                continue

            to_update[page_id] = page_usages

        return list(to_update.values())
