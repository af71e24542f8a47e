from __future__ import annotations

from datetime import datetime, timezone

from change_dispatch.handler import ChangeHandler
from change_dispatch.wire_models import EntityChangeValue
from change_propagation.finder import AffectedPagesFinder
from change_propagation.titles import InMemoryTitleResolver
from usage_tracking.lookup import InMemoryUsageStore
from usage_tracking.models import Aspect, EntityId, EntityUsage


def _handler() -> ChangeHandler:
    store = InMemoryUsageStore()
    store.add_usages(1, [EntityUsage(EntityId("Q64"), Aspect.ALL)])
    resolver = InMemoryTitleResolver()
    resolver.add_page(1, "Berlin")
    resolver.add_page(2, "Berlin (city)")
    return ChangeHandler(AffectedPagesFinder(store, resolver, "enwiki", "en"))


def test_handle_builds_event() -> None:
    value = EntityChangeValue.model_validate(
        {
            "id": 77,
            "entity_id": "Q64",
            "revision_id": 12,
            "diff": {
                "operations": {
                    "sitelinks": {
                        "type": "diff",
                        "operations": {"enwiki": {"type": "change", "oldvalue": "Berlin", "newvalue": "Berlin (city)"}},
                    }
                }
            },
        }
    )
    processed_at = datetime(2026, 1, 1, tzinfo=timezone.utc)

    event = _handler().handle(value, processed_at=processed_at)

    assert event is not None
    assert event.change_id == 77
    assert event.change_type == "wikibase-item~update"
    assert event.entity_id == "Q64"
    assert event.revision_id == 12
    assert event.changed_aspects == ["S", "T"]
    assert event.processed_at == int(processed_at.timestamp() * 1000)

    pages = {page.page_id: {usage.aspect for usage in page.usages} for page in event.pages}
    assert pages == {1: {"S", "T"}, 2: {"S"}}


def test_handle_returns_none_without_affected_pages() -> None:
    value = EntityChangeValue.model_validate({"id": 1, "entity_id": "Q1"})
    assert _handler().handle(value) is None
