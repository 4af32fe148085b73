"""Memory module: fact translation, persistent fact storage and answer cache."""

from .cache import ResponseCache
from .models import (
    CERTAINTY_HIGH,
    GENERAL_ENTITY,
    MAX_VALUE_LENGTH,
    PROPERTY_OF,
    CachedResponse,
    Entity,
    Fact,
    FactContext,
    FactKind,
    Relationship,
    UpsertResult,
)
from .store import FactStore
from .translator import FactTranslator, normalize_value, truncate_value

__all__ = [
    "CERTAINTY_HIGH",
    "GENERAL_ENTITY",
    "MAX_VALUE_LENGTH",
    "PROPERTY_OF",
    "CachedResponse",
    "Entity",
    "Fact",
    "FactContext",
    "FactKind",
    "FactStore",
    "FactTranslator",
    "Relationship",
    "ResponseCache",
    "UpsertResult",
    "normalize_value",
    "truncate_value",
]
