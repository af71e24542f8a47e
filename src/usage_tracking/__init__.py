from .accumulator import UsageAccumulator
from .lookup import InMemoryUsageStore, UsageLookup
from .models import (
    Aspect,
    AspectKeyFormatError,
    EntityId,
    EntityUsage,
    make_aspect_key,
    split_aspect_key,
    strip_modifier,
)
from .page_usages import PageEntityUsages
from .transformer import UsageAspectTransformer

__all__ = [
    "Aspect",
    "AspectKeyFormatError",
    "EntityId",
    "EntityUsage",
    "InMemoryUsageStore",
    "PageEntityUsages",
    "UsageAccumulator",
    "UsageAspectTransformer",
    "UsageLookup",
    "make_aspect_key",
    "split_aspect_key",
    "strip_modifier",
]
