from __future__ import annotations

from typing import Any, Iterator, Mapping


class UnknownDiffOpError(RuntimeError):
    """A diff operation of an unexpected kind was found where a leaf op is required."""


class DiffOp:
    """Base of the diff operation variants: add, remove, change and nested diff."""

    type: str = ""
    is_atomic: bool = True

    def count(self) -> int:
        return 1


class DiffOpAdd(DiffOp):
    type = "add"

    __slots__ = ("new_value",)

    def __init__(self, new_value: Any) -> None:
        self.new_value = new_value

    def __eq__(self, other: object) -> bool:
        return isinstance(other, DiffOpAdd) and other.new_value == self.new_value

    def __repr__(self) -> str:
        return f"DiffOpAdd({self.new_value!r})"


class DiffOpRemove(DiffOp):
    type = "remove"

    __slots__ = ("old_value",)

    def __init__(self, old_value: Any) -> None:
        self.old_value = old_value

    def __eq__(self, other: object) -> bool:
        return isinstance(other, DiffOpRemove) and other.old_value == self.old_value

    def __repr__(self) -> str:
        return f"DiffOpRemove({self.old_value!r})"


class DiffOpChange(DiffOp):
    type = "change"

    __slots__ = ("old_value", "new_value")

    def __init__(self, old_value: Any, new_value: Any) -> None:
        self.old_value = old_value
        self.new_value = new_value

    def __eq__(self, other: object) -> bool:
        return (
            isinstance(other, DiffOpChange)
            and other.old_value == self.old_value
            and other.new_value == self.new_value
        )

    def __repr__(self) -> str:
        return f"DiffOpChange({self.old_value!r}, {self.new_value!r})"


class Diff(DiffOp):
    """A nested diff: an ordered, read-only mapping of keys to diff operations.

    ``len()`` is a deep count of the leaf operations, so a diff holding one
    nested diff with three leaves has length 3.
    """

    type = "diff"
    is_atomic = False

    __slots__ = ("_operations", "is_associative")

    def __init__(self, operations: Mapping[Any, DiffOp] | None = None, is_associative: bool = True) -> None:
        self._operations: dict[Any, DiffOp] = {}
        for key, op in (operations or {}).items():
            if not isinstance(op, DiffOp):
                raise TypeError(f"diff operation for {key!r} must be a DiffOp, got {type(op).__name__}")
            self._operations[key] = op
        self.is_associative = is_associative

    def get_operations(self) -> dict[Any, DiffOp]:
        return dict(self._operations)

    def get(self, key: Any, default: DiffOp | None = None) -> DiffOp | None:
        return self._operations.get(key, default)

    def keys(self) -> list[Any]:
        return list(self._operations)

    def items(self) -> list[tuple[Any, DiffOp]]:
        return list(self._operations.items())

    def is_empty(self) -> bool:
        return not self._operations

    def count(self) -> int:
        return sum(op.count() for op in self._operations.values())

    def __len__(self) -> int:
        return self.count()

    def __bool__(self) -> bool:
        return not self.is_empty()

    def __getitem__(self, key: Any) -> DiffOp:
        return self._operations[key]

    def __contains__(self, key: object) -> bool:
        return key in self._operations

    def __iter__(self) -> Iterator[Any]:
        return iter(list(self._operations))

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Diff) and type(other) is type(self) and other._operations == self._operations

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._operations!r})"


class EntityDiff(Diff):
    LABELS = "labels"
    DESCRIPTIONS = "descriptions"
    ALIASES = "aliases"
    CLAIMS = "claims"

    def _sub_diff(self, key: str) -> Diff:
        op = self.get(key)
        if op is None:
            return Diff()
        if not isinstance(op, Diff):
            raise UnknownDiffOpError(f"field {key!r} must hold a nested diff, got {type(op).__name__}")
        return op

    @property
    def labels_diff(self) -> Diff:
        return self._sub_diff(self.LABELS)

    @property
    def descriptions_diff(self) -> Diff:
        return self._sub_diff(self.DESCRIPTIONS)

    @property
    def aliases_diff(self) -> Diff:
        return self._sub_diff(self.ALIASES)

    @property
    def claims_diff(self) -> Diff:
        return self._sub_diff(self.CLAIMS)


class ItemDiff(EntityDiff):
    SITELINKS = "sitelinks"

    @property
    def site_link_diff(self) -> Diff:
        return self._sub_diff(self.SITELINKS)
