from __future__ import annotations

import logging

import pytest

from change_propagation.changes import ItemChange
from change_propagation.diff import Diff, DiffOpAdd, DiffOpChange, DiffOpRemove, ItemDiff, UnknownDiffOpError
from change_propagation.titles import InMemoryTitleResolver, PageRef
from change_propagation.virtual_usages import VirtualUsageSynthesizer
from usage_tracking.models import EntityId

Q1 = EntityId("Q1")


def _synthesizer() -> VirtualUsageSynthesizer:
    resolver = InMemoryTitleResolver()
    resolver.add_page(10, "Old Title")
    resolver.add_page(20, "New Title")
    return VirtualUsageSynthesizer(resolver, "enwiki")


def _site_links(op) -> Diff:
    return Diff({"enwiki": op})


def test_pages_referenced_by_each_op_kind() -> None:
    synth = _synthesizer()

    assert synth.get_pages_referenced_in_diff(_site_links(DiffOpAdd("New Title"))) == ["New Title"]
    assert synth.get_pages_referenced_in_diff(_site_links(DiffOpRemove("Old Title"))) == ["Old Title"]
    assert synth.get_pages_referenced_in_diff(_site_links(DiffOpChange("Old Title", "New Title"))) == [
        "New Title",
        "Old Title",
    ]


def test_nested_name_diff_is_normalized() -> None:
    site_op = Diff({"name": DiffOpChange("Old Title", "New Title"), "badges": Diff()})
    assert _synthesizer().get_pages_referenced_in_diff(_site_links(site_op)) == ["New Title", "Old Title"]


def test_nested_diff_without_name_is_unknown_op() -> None:
    with pytest.raises(UnknownDiffOpError):
        _synthesizer().get_pages_referenced_in_diff(_site_links(Diff({"badges": Diff()})))


def test_missing_site_yields_no_pages() -> None:
    assert _synthesizer().get_pages_referenced_in_diff(Diff({"dewiki": DiffOpAdd("Katze")})) == []


def test_invalid_titles_are_skipped() -> None:
    titles = _synthesizer().get_titles_from_texts(["Bad|Title", "Old Title"])
    assert [title.page_id for title in titles] == [10]


def test_make_virtual_usages_skips_article_id_zero(caplog: pytest.LogCaptureFixture) -> None:
    titles = [PageRef(10, 0, "Old Title"), PageRef(0, 0, "Red Link", exists_flag=False)]

    with caplog.at_level(logging.DEBUG, logger="change_propagation.virtual_usages"):
        usages = VirtualUsageSynthesizer.make_virtual_usages(titles, Q1, ["S"])

    assert list(usages) == [10]
    assert usages[10].get_aspect_keys() == ["S"]
    assert "Red Link" in caplog.text


def test_synthesize_for_title_change() -> None:
    change = ItemChange(Q1, ItemDiff({"sitelinks": _site_links(DiffOpChange("Old Title", "New Title"))}))

    usages = _synthesizer().synthesize(change)

    assert sorted(usages) == [10, 20]
    for page_id, page in usages.items():
        assert page.page_id == page_id
        assert [usage.identity_string for usage in page.get_usages()] == ["Q1#S"]
