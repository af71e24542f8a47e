from __future__ import annotations

import logging
from datetime import datetime, timezone

from change_propagation.changes import EntityChange
from change_propagation.finder import AffectedPagesFinder

from .wire_models import AffectedPagesEventValue, EntityChangeValue, PageEntityUsagesValue, datetime_to_epoch_millis


class ChangeHandler:
    def __init__(self, finder: AffectedPagesFinder) -> None:
        self._finder = finder
        self._logger = logging.getLogger("change-dispatch-handler")

    def handle(self, value: EntityChangeValue, processed_at: datetime | None = None) -> AffectedPagesEventValue | None:
        change: EntityChange = value.to_domain()
        pages = list(self._finder.get_affected_usages_by_page(change))
        if not pages:
            self._logger.debug("no affected pages change_id=%d entity=%s", value.id, value.entity_id)
            return None

        changed_aspects = self._finder.get_changed_aspects(change)
        self._logger.debug(
            "change_id=%d entity=%s aspects=%s pages=%d",
            value.id,
            value.entity_id,
            ",".join(changed_aspects),
            len(pages),
        )
        return AffectedPagesEventValue(
            change_id=value.id,
            change_type=change.get_type(),
            entity_id=str(change.entity_id),
            revision_id=change.revision_id,
            changed_aspects=changed_aspects,
            processed_at=datetime_to_epoch_millis(processed_at or datetime.now(tz=timezone.utc)),
            pages=[PageEntityUsagesValue.from_domain(page) for page in pages],
        )
