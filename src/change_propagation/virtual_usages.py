from __future__ import annotations

import logging
from typing import Iterable

from usage_tracking.models import Aspect, EntityId, EntityUsage
from usage_tracking.page_usages import PageEntityUsages

from .changes import ItemChange
from .classifier import SITE_LINK_NAME_KEY
from .diff import Diff, DiffOp, DiffOpAdd, DiffOpChange, DiffOpRemove, UnknownDiffOpError
from .titles import InvalidTitleError, PageRef, TitleResolver

logger = logging.getLogger(__name__)


class VirtualUsageSynthesizer:
    """Derives usages for pages a site link pointed to before or after a change.

    Such pages depend on the entity through their title alone, so no usage
    may have been recorded for them.
    """

    def __init__(self, title_resolver: TitleResolver, site_id: str) -> None:
        self._title_resolver = title_resolver
        self._site_id = site_id

    @staticmethod
    def normalize_site_link_diff_op(op: DiffOp) -> DiffOp:
        # Site link diffs used to hold atomic ops and now hold map diffs with
        # "name" and "badges" entries.
        if isinstance(op, Diff) and SITE_LINK_NAME_KEY in op:
            return op[SITE_LINK_NAME_KEY]
        return op

    def get_pages_referenced_in_diff(self, site_link_diff: Diff) -> list[str]:
        op = site_link_diff.get(self._site_id)
        if op is None:
            return []
        op = self.normalize_site_link_diff_op(op)

        if isinstance(op, DiffOpAdd):
            return [op.new_value]
        if isinstance(op, DiffOpRemove):
            return [op.old_value]
        if isinstance(op, DiffOpChange):
            return [op.new_value, op.old_value]
        raise UnknownDiffOpError(f"unknown change operation: {type(op).__name__}")

    def get_titles_from_texts(self, names: Iterable[str]) -> list[PageRef]:
        titles: list[PageRef] = []
        for name in names:
            try:
                titles.append(self._title_resolver.resolve_by_text(name))
            except InvalidTitleError as exc:
                logger.debug("skipping invalid title from site link diff title=%r error=%s", name, exc)
        return titles

    @staticmethod
    def make_virtual_usages(
        titles: Iterable[PageRef],
        entity_id: EntityId,
        aspect_keys: Iterable[str],
    ) -> dict[int, PageEntityUsages]:
        usages = [EntityUsage.from_aspect_key(entity_id, key) for key in aspect_keys]

        usages_per_page: dict[int, PageEntityUsages] = {}
        for title in titles:
            page_id = title.article_id()
            if page_id == 0:
                logger.debug("article id for %s is 0; no virtual usage", title.full_text())
                continue

            usages_per_page[page_id] = PageEntityUsages(page_id, usages)
        return usages_per_page

    def synthesize(
        self,
        change: ItemChange,
        aspect_keys: Iterable[str] = (Aspect.SITELINK.value,),
    ) -> dict[int, PageEntityUsages]:
        names = self.get_pages_referenced_in_diff(change.site_link_diff)
        titles = self.get_titles_from_texts(names)
        return self.make_virtual_usages(titles, change.entity_id, aspect_keys)
