from types import SimpleNamespace

from odatastitch.query.predicates import (
    and_predicates,
    build_in_predicate,
    distinct_keys,
    eq_predicate,
    format_literal,
    in_predicate,
)


def _jobs(*plan_ids):
    return [SimpleNamespace(id=index, plan_id=plan_id) for index, plan_id in enumerate(plan_ids, start=1)]


def test_build_in_predicate_deduplicates_in_first_seen_order():
    assert build_in_predicate("id", _jobs(101, 100, 101, 102, 100), lambda job: job.plan_id) == "id in (101,100,102)"


def test_build_in_predicate_skips_missing_keys():
    assert build_in_predicate("id", _jobs(None, 100, None), lambda job: job.plan_id) == "id in (100)"


def test_build_in_predicate_with_no_records_is_still_well_formed():
    assert build_in_predicate("jobId", [], lambda job: job.id) == "jobId in ()"
    assert build_in_predicate("id", _jobs(None), lambda job: job.plan_id) == "id in ()"


def test_build_in_predicate_accepts_a_generator():
    jobs = (job for job in _jobs(5, 6))
    assert build_in_predicate("id", jobs, lambda job: job.plan_id) == "id in (5,6)"


def test_distinct_keys_returns_a_list():
    assert distinct_keys(_jobs(3, 3, 4), lambda job: job.plan_id) == [3, 4]


def test_in_predicate_quotes_and_escapes_strings():
    assert in_predicate("name", ["a", "O'Brien", "a"]) == "name in ('a','O''Brien')"


def test_format_literal():
    assert format_literal(None) == "null"
    assert format_literal(True) == "true"
    assert format_literal(False) == "false"
    assert format_literal(42) == "42"
    assert format_literal("x") == "'x'"


def test_eq_predicate_renders_null():
    assert eq_predicate("enteredCompletionDate", None) == "enteredCompletionDate eq null"


def test_and_predicates_drops_empty_members():
    assert and_predicates(None, "", "a eq 1") == "a eq 1"
    assert and_predicates(None, "  ") is None
    assert and_predicates() is None


def test_and_predicates_groups_compound_members():
    combined = and_predicates("a eq 1 or b eq 2", "c in (1,2)", "(d eq 3 and e eq 4)")
    assert combined == "(a eq 1 or b eq 2) and c in (1,2) and (d eq 3 and e eq 4)"


def test_mixed_literal_types_are_not_merged():
    assert in_predicate("flag", [1, True, 1.0, 1]) == "flag in (1,true,1.0)"
    assert distinct_keys([SimpleNamespace(key=0), SimpleNamespace(key=False)], lambda r: r.key) == [0, False]
