from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from change_propagation.changes import Change, EntityChange, ItemChange
from change_propagation.config import ChangePropagationConfig
from change_propagation.diff import Diff, DiffOpAdd, DiffOpChange, EntityDiff, ItemDiff, UnknownDiffOpError
from change_propagation.finder import AffectedPagesFinder
from change_propagation.titles import InMemoryTitleResolver
from usage_tracking.lookup import InMemoryUsageStore
from usage_tracking.models import Aspect, EntityId, EntityUsage

Q1 = EntityId("Q1")
Q2 = EntityId("Q2")


def _resolver() -> InMemoryTitleResolver:
    resolver = InMemoryTitleResolver()
    resolver.add_page(1, "Uses everything")
    resolver.add_page(2, "Uses English label")
    resolver.add_page(3, "Uses other")
    resolver.add_page(4, "Uses German label")
    resolver.add_page(5, "Deleted page", exists=False)
    resolver.add_page(10, "Old Title")
    resolver.add_page(20, "New Title")
    return resolver


def _store() -> InMemoryUsageStore:
    store = InMemoryUsageStore()
    store.add_usages(1, [EntityUsage(Q1, Aspect.ALL)])
    store.add_usages(2, [EntityUsage(Q1, Aspect.LABEL, "en"), EntityUsage(Q2, Aspect.ALL)])
    store.add_usages(3, [EntityUsage(Q1, Aspect.OTHER)])
    store.add_usages(4, [EntityUsage(Q1, Aspect.LABEL, "de")])
    store.add_usages(5, [EntityUsage(Q1, Aspect.ALL)])
    # page 6 is not known to the title resolver
    store.add_usages(6, [EntityUsage(Q1, Aspect.ALL)])
    return store


def _finder(store=None, resolver=None, check_page_existence: bool = True) -> AffectedPagesFinder:
    return AffectedPagesFinder(
        store or _store(),
        resolver or _resolver(),
        "enwiki",
        "en",
        check_page_existence,
    )


def _by_page(finder: AffectedPagesFinder, change: Change) -> dict[int, list[str]]:
    return {page.page_id: page.get_aspect_keys() for page in finder.get_affected_usages_by_page(change)}


def test_unknown_change_kind_yields_nothing() -> None:
    assert list(_finder().get_affected_usages_by_page(Change())) == []


def test_label_change_narrows_all_usage() -> None:
    change = ItemChange(Q1, ItemDiff({"labels": Diff({"en": DiffOpChange("Cat", "Kitty")})}))

    assert _by_page(_finder(), change) == {1: ["L.en"], 2: ["L.en"]}


def test_empty_diff_is_other_for_all_and_other_users() -> None:
    store = MagicMock(wraps=_store())
    finder = _finder(store=store)

    result = _by_page(finder, ItemChange(Q1, ItemDiff()))

    store.get_pages_using.assert_called_once_with([Q1], ["O", "X"])
    assert result == {1: ["O"], 3: ["O"]}


def test_title_change_adds_virtual_usages() -> None:
    change = ItemChange(Q1, ItemDiff({"sitelinks": Diff({"enwiki": DiffOpChange("Old Title", "New Title")})}))
    finder = _finder(store=InMemoryUsageStore())

    assert finder.get_changed_aspects(change) == ["S", "T"]
    assert _by_page(finder, change) == {20: ["S"], 10: ["S"]}


def test_virtual_usages_merge_with_recorded_usages() -> None:
    store = _store()
    store.add_usages(10, [EntityUsage(Q1, Aspect.TITLE)])
    change = ItemChange(Q1, ItemDiff({"sitelinks": Diff({"enwiki": DiffOpAdd("Old Title")})}))

    result = _by_page(_finder(store=store), change)

    assert set(result[10]) == {"T", "S"}
    assert set(result[1]) == {"S", "T"}


def test_title_for_missing_page_is_skipped() -> None:
    change = ItemChange(Q1, ItemDiff({"sitelinks": Diff({"enwiki": DiffOpAdd("Red Link")})}))
    assert _by_page(_finder(store=InMemoryUsageStore()), change) == {}


def test_badges_only_change_has_no_virtual_usages() -> None:
    site_op = Diff({"badges": Diff({0: DiffOpAdd("Q17437796")})})
    change = ItemChange(Q1, ItemDiff({"sitelinks": Diff({"enwiki": site_op})}))

    assert _by_page(_finder(store=InMemoryUsageStore()), change) == {}


def test_non_existent_pages_are_filtered_when_checking() -> None:
    change = EntityChange(EntityId("Q1"), EntityDiff({"claims": Diff({"P31": DiffOpAdd("Q5")})}))

    assert sorted(_by_page(_finder(check_page_existence=True), change)) == [1, 3]
    assert sorted(_by_page(_finder(check_page_existence=False), change)) == [1, 3, 5]


def test_unknown_site_link_op_is_fatal() -> None:
    store = InMemoryUsageStore()
    finder = _finder(store=store)
    site_op = Diff({"name": Diff({"title": DiffOpAdd("Cat")})})
    change = ItemChange(Q1, ItemDiff({"sitelinks": Diff({"enwiki": site_op})}))

    with pytest.raises(UnknownDiffOpError):
        list(finder.get_affected_usages_by_page(change))


@pytest.mark.parametrize(
    "args",
    [
        (1, "en", True),
        ("enwiki", None, True),
        ("enwiki", "en", "yes"),
    ],
)
def test_constructor_validates_arguments(args) -> None:
    with pytest.raises(TypeError):
        AffectedPagesFinder(InMemoryUsageStore(), InMemoryTitleResolver(), *args)


def test_from_config() -> None:
    cfg = ChangePropagationConfig(site_id="dewiki", content_language_code="de", check_page_existence=False)
    finder = AffectedPagesFinder.from_config(cfg, InMemoryUsageStore(), InMemoryTitleResolver())

    assert finder.site_id == "dewiki"
    assert finder.content_language_code == "de"
    assert finder.check_page_existence is False
