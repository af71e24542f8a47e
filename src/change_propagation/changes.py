from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from usage_tracking.models import EntityId

from .diff import Diff, EntityDiff, ItemDiff

CHANGE_ACTIONS = ("add", "update", "remove", "restore")


class Change:
    """Any change record arriving from the repository."""


@dataclass(eq=False)
class EntityChange(Change):
    entity_id: EntityId
    diff: EntityDiff = field(default_factory=EntityDiff)
    action: str = "update"
    revision_id: int = 0
    time: datetime | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.action not in CHANGE_ACTIONS:
            raise ValueError(f"unknown change action: {self.action!r}")
        if not isinstance(self.diff, EntityDiff):
            raise TypeError("diff must be an EntityDiff")

    def get_type(self) -> str:
        return f"wikibase-{self.entity_id.entity_type}~{self.action}"


@dataclass(eq=False)
class ItemChange(EntityChange):
    diff: EntityDiff = field(default_factory=ItemDiff)

    @property
    def site_link_diff(self) -> Diff:
        if isinstance(self.diff, ItemDiff):
            return self.diff.site_link_diff
        return Diff()
