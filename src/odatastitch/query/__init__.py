from odatastitch.query.predicates import (
    and_predicates,
    build_in_predicate,
    distinct_keys,
    eq_predicate,
    format_literal,
    in_predicate,
)
from odatastitch.query.request import CollectionRequest, Expand

__all__ = [
    "CollectionRequest",
    "Expand",
    "and_predicates",
    "build_in_predicate",
    "distinct_keys",
    "eq_predicate",
    "format_literal",
    "in_predicate",
]
