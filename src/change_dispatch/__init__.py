from .handler import ChangeHandler
from .wire_models import (
    AffectedPagesEventValue,
    DiffValue,
    EntityChangeValue,
    EntityUsageValue,
    PageEntityUsagesValue,
)

__all__ = [
    "AffectedPagesEventValue",
    "ChangeHandler",
    "DiffValue",
    "EntityChangeValue",
    "EntityUsageValue",
    "PageEntityUsagesValue",
]
