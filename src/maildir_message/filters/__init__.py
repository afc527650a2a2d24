"""External filter commands and message filter expressions."""

from .pipeline import ExternalFilterPipeline
from .predicate import FilterPredicate, PredicateKind, matches_filter

__all__ = ["ExternalFilterPipeline", "FilterPredicate", "PredicateKind", "matches_filter"]
