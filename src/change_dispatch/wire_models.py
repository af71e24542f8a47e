from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from change_propagation.changes import EntityChange, ItemChange
from change_propagation.diff import (
    Diff,
    DiffOp,
    DiffOpAdd,
    DiffOpChange,
    DiffOpRemove,
    EntityDiff,
    ItemDiff,
    UnknownDiffOpError,
)
from usage_tracking.models import EntityId, EntityUsage
from usage_tracking.page_usages import PageEntityUsages

ChangeAction = Literal["add", "update", "remove", "restore"]


def datetime_to_epoch_millis(value: datetime) -> int:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp() * 1000)


def epoch_millis_to_datetime(value: int) -> datetime:
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc)


class WireModel(BaseModel):
    model_config = ConfigDict(extra="forbid")


class AddOpValue(WireModel):
    type: Literal["add"] = "add"
    newvalue: Any

    def to_domain(self) -> DiffOpAdd:
        return DiffOpAdd(self.newvalue)


class RemoveOpValue(WireModel):
    type: Literal["remove"] = "remove"
    oldvalue: Any

    def to_domain(self) -> DiffOpRemove:
        return DiffOpRemove(self.oldvalue)


class ChangeOpValue(WireModel):
    type: Literal["change"] = "change"
    oldvalue: Any
    newvalue: Any

    def to_domain(self) -> DiffOpChange:
        return DiffOpChange(self.oldvalue, self.newvalue)


class DiffValue(WireModel):
    type: Literal["diff"] = "diff"
    isassoc: bool = True
    operations: dict[str, DiffOpValue] = Field(default_factory=dict)

    def to_domain(self, diff_class: type[Diff] = Diff) -> Diff:
        return diff_class(
            {self._domain_key(key): op.to_domain() for key, op in self.operations.items()},
            is_associative=self.isassoc,
        )

    def _domain_key(self, key: str) -> str | int:
        # JSON object keys are strings; list diffs are indexed by position.
        if not self.isassoc and key.isdigit():
            return int(key)
        return key


DiffOpValue = Annotated[
    Union[AddOpValue, RemoveOpValue, ChangeOpValue, DiffValue],
    Field(discriminator="type"),
]

DiffValue.model_rebuild()


def diff_op_to_value(op: DiffOp) -> AddOpValue | RemoveOpValue | ChangeOpValue | DiffValue:
    if isinstance(op, Diff):
        return DiffValue(
            isassoc=op.is_associative,
            operations={str(key): diff_op_to_value(child) for key, child in op.items()},
        )
    if isinstance(op, DiffOpAdd):
        return AddOpValue(newvalue=op.new_value)
    if isinstance(op, DiffOpRemove):
        return RemoveOpValue(oldvalue=op.old_value)
    if isinstance(op, DiffOpChange):
        return ChangeOpValue(oldvalue=op.old_value, newvalue=op.new_value)
    raise UnknownDiffOpError(f"cannot serialize diff operation: {type(op).__name__}")


class EntityChangeValue(WireModel):
    id: int = 0
    entity_id: str
    action: ChangeAction = "update"
    revision_id: int = 0
    time: int | None = Field(default=None, description="timestamp-millis")
    diff: DiffValue = Field(default_factory=DiffValue)
    metadata: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_domain(cls, change: EntityChange, change_id: int = 0) -> "EntityChangeValue":
        return cls(
            id=change_id,
            entity_id=str(change.entity_id),
            action=change.action,
            revision_id=change.revision_id,
            time=datetime_to_epoch_millis(change.time) if change.time else None,
            diff=diff_op_to_value(change.diff),
            metadata=change.metadata,
        )

    def to_domain(self) -> EntityChange:
        entity_id = EntityId.parse(self.entity_id)
        time = epoch_millis_to_datetime(self.time) if self.time is not None else None

        if entity_id.entity_type == "item":
            return ItemChange(
                entity_id=entity_id,
                diff=self.diff.to_domain(ItemDiff),
                action=self.action,
                revision_id=self.revision_id,
                time=time,
                metadata=self.metadata,
            )
        return EntityChange(
            entity_id=entity_id,
            diff=self.diff.to_domain(EntityDiff),
            action=self.action,
            revision_id=self.revision_id,
            time=time,
            metadata=self.metadata,
        )


class EntityUsageValue(WireModel):
    entity_id: str
    aspect: str
    modifier: str | None = None

    @classmethod
    def from_domain(cls, usage: EntityUsage) -> "EntityUsageValue":
        return cls(entity_id=str(usage.entity_id), aspect=usage.aspect.value, modifier=usage.modifier)

    def to_domain(self) -> EntityUsage:
        key = self.aspect if self.modifier is None else f"{self.aspect}.{self.modifier}"
        return EntityUsage.from_aspect_key(EntityId(self.entity_id), key)


class PageEntityUsagesValue(WireModel):
    page_id: int
    usages: list[EntityUsageValue] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, page_usages: PageEntityUsages) -> "PageEntityUsagesValue":
        return cls(
            page_id=page_usages.page_id,
            usages=[EntityUsageValue.from_domain(usage) for usage in page_usages.get_usages()],
        )

    def to_domain(self) -> PageEntityUsages:
        return PageEntityUsages(self.page_id, [usage.to_domain() for usage in self.usages])


class AffectedPagesEventValue(WireModel):
    change_id: int
    change_type: str
    entity_id: str
    revision_id: int
    changed_aspects: list[str]
    processed_at: int = Field(description="timestamp-millis")
    pages: list[PageEntityUsagesValue] = Field(default_factory=list)
