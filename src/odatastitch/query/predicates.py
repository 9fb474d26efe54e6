"""
Set-membership predicates derived from fetched records
======================================================

The stitched strategy filters each follow-up request by the keys observed in
an earlier result set, e.g. ``planCommunities`` by every distinct
``Job.planId``. Keys are de-duplicated with an insertion-ordered dict so the
emitted list keeps first-seen order and never repeats a value.

    >>> build_in_predicate("id", jobs, lambda job: job.plan_id)
    'id in (100,101)'
"""

from __future__ import annotations

from typing import Any, Callable, Iterable

Extractor = Callable[[Any], Any]


def format_literal(value) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return "'" + value.replace("'", "''") + "'"
    return str(value)


def _unique(values: Iterable) -> list:
    # Keyed on the type too: 1, 1.0 and True are distinct literals.
    seen: dict = {}
    for value in values:
        if value is None:
            continue
        seen.setdefault((type(value), value), value)
    return list(seen.values())


def distinct_keys(records: Iterable[Any], extract: Extractor) -> list:
    return _unique(extract(record) for record in records)


def in_predicate(field: str, values: Iterable) -> str:
    rendered = ",".join(format_literal(value) for value in _unique(values))
    return f"{field} in ({rendered})"


def build_in_predicate(field: str, records: Iterable[Any], extract: Extractor) -> str:
    """Return ``field in (...)`` over the distinct non-null keys of ``records``.

    No keys yields ``field in ()``, which is still a well-formed expression.
    """
    return in_predicate(field, distinct_keys(records, extract))


def eq_predicate(field: str, value) -> str:
    return f"{field} eq {format_literal(value)}"


def _is_compound(predicate: str) -> bool:
    if predicate.startswith("(") and predicate.endswith(")"):
        return False
    return " and " in predicate or " or " in predicate


def and_predicates(*predicates: str | None) -> str | None:
    parts = [p.strip() for p in predicates if p is not None and p.strip()]
    if not parts:
        return None
    if len(parts) == 1:
        return parts[0]
    return " and ".join(f"({p})" if _is_compound(p) else p for p in parts)


__all__ = [
    "and_predicates",
    "build_in_predicate",
    "distinct_keys",
    "eq_predicate",
    "format_literal",
    "in_predicate",
]
