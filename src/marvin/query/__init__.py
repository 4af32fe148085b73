"""Question analysis and answer synthesis."""

from .analyzer import QueryDescriptor, QueryKind, QueryTarget, analyze_query
from .answer import QueryResult, synthesize_answer

__all__ = [
    "QueryDescriptor",
    "QueryKind",
    "QueryResult",
    "QueryTarget",
    "analyze_query",
    "synthesize_answer",
]
