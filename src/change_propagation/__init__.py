from .changes import CHANGE_ACTIONS, Change, EntityChange, ItemChange
from .classifier import ChangedAspectsClassifier
from .config import ChangePropagationConfig, load_config
from .diff import (
    Diff,
    DiffOp,
    DiffOpAdd,
    DiffOpChange,
    DiffOpRemove,
    EntityDiff,
    ItemDiff,
    UnknownDiffOpError,
)
from .finder import AffectedPagesFinder
from .titles import (
    InMemoryTitleResolver,
    InvalidTitleError,
    PageNotFoundError,
    PageRef,
    TitleResolver,
    normalize_title_text,
)
from .virtual_usages import VirtualUsageSynthesizer

__all__ = [
    "AffectedPagesFinder",
    "CHANGE_ACTIONS",
    "Change",
    "ChangePropagationConfig",
    "ChangedAspectsClassifier",
    "Diff",
    "DiffOp",
    "DiffOpAdd",
    "DiffOpChange",
    "DiffOpRemove",
    "EntityChange",
    "EntityDiff",
    "InMemoryTitleResolver",
    "InvalidTitleError",
    "ItemChange",
    "ItemDiff",
    "PageNotFoundError",
    "PageRef",
    "TitleResolver",
    "UnknownDiffOpError",
    "VirtualUsageSynthesizer",
    "load_config",
    "normalize_title_text",
]
