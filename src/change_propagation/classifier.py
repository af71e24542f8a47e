from __future__ import annotations

from usage_tracking.models import Aspect, make_aspect_key

from .changes import EntityChange
from .diff import Diff, DiffOp, ItemDiff

SITE_LINK_NAME_KEY = "name"


class ChangedAspectsClassifier:
    """Reduces an entity diff to the ordered aspect keys it touches.

    Only site links, titles and labels are told apart. Descriptions, aliases,
    statements and any other field fall into OTHER, which over-invalidates
    pages that track those aspects at a finer grain.
    """

    def __init__(self, site_id: str) -> None:
        self.site_id = site_id

    def get_changed_aspects(self, change: EntityChange) -> list[str]:
        aspects: list[str] = []
        diff = change.diff
        remaining = len(diff)

        # Empty diffs stand for suppressed statement, description and alias diffs.
        if remaining == 0:
            return [Aspect.OTHER.value]

        if isinstance(diff, ItemDiff) and not diff.site_link_diff.is_empty():
            site_link_diff = diff.site_link_diff
            aspects.append(Aspect.SITELINK.value)
            remaining -= len(site_link_diff)

            site_op = site_link_diff.get(self.site_id)
            if site_op is not None and not self.is_badges_only_change(site_op):
                aspects.append(Aspect.TITLE.value)

        labels_diff = diff.labels_diff
        if not labels_diff.is_empty():
            label_aspects = [make_aspect_key(Aspect.LABEL, language) for language in labels_diff]
            aspects.extend(label_aspects)
            remaining -= len(label_aspects)

        if remaining > 0:
            aspects.append(Aspect.OTHER.value)

        return list(dict.fromkeys(aspects))

    @staticmethod
    def is_badges_only_change(site_link_op: DiffOp) -> bool:
        return isinstance(site_link_op, Diff) and SITE_LINK_NAME_KEY not in site_link_op
