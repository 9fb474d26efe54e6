from odatastitch.compare.comparator import ComparisonResult, RepeatedComparison, run_comparison, run_repeated
from odatastitch.compare.equivalence import EquivalenceReport, compare_task_graphs, task_signature

__all__ = [
    "ComparisonResult",
    "EquivalenceReport",
    "RepeatedComparison",
    "compare_task_graphs",
    "run_comparison",
    "run_repeated",
    "task_signature",
]
