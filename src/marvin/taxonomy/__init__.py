"""Taxonomic classification of incoming messages."""

from .classifier import ClassifierConfig, TaxonomyClassifier
from .fallback import extract_fallback_entry, extract_fallback_knowledge
from .models import (
    ClassificationError,
    ClassificationResult,
    EntryKind,
    Knowledge,
    SenderInfo,
    SubjectType,
    TaxonomicAnalysis,
    TaxonomyResult,
)
from .prompt import (
    LEARNING_PREFIX,
    build_system_prompt,
    is_learning_command,
    strip_learning_prefix,
)

__all__ = [
    "LEARNING_PREFIX",
    "ClassificationError",
    "ClassificationResult",
    "ClassifierConfig",
    "EntryKind",
    "Knowledge",
    "SenderInfo",
    "SubjectType",
    "TaxonomicAnalysis",
    "TaxonomyClassifier",
    "TaxonomyResult",
    "build_system_prompt",
    "extract_fallback_entry",
    "extract_fallback_knowledge",
    "is_learning_command",
    "strip_learning_prefix",
]
