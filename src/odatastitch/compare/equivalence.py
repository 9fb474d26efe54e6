from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from odatastitch.assemble.graph import index_by_id

SIGNATURE_FIELDS = (
    "task",
    "job",
    "lot",
    "financial_community",
    "plan_community",
    "acct_category",
)


def _id_of(record):
    return None if record is None else record.id


def task_signature(task) -> tuple:
    """Ids of every record reachable from ``task``, None where a reference is unset."""
    job = task.job
    lot = job.lot if job is not None else None
    return (
        task.id,
        _id_of(job),
        _id_of(lot),
        _id_of(lot.financial_community if lot is not None else None),
        _id_of(job.plan_community if job is not None else None),
        _id_of(task.master_task.acct_category if task.master_task is not None else None),
    )


@dataclass
class EquivalenceReport:
    compared: int = 0
    only_original: list = field(default_factory=list)
    only_stitched: list = field(default_factory=list)
    mismatched: list = field(default_factory=list)

    @property
    def equivalent(self) -> bool:
        return not (self.only_original or self.only_stitched or self.mismatched)

    def to_dict(self) -> dict[str, object]:
        return {
            "equivalent": self.equivalent,
            "compared": self.compared,
            "only_original": list(self.only_original),
            "only_stitched": list(self.only_stitched),
            "mismatched": [
                {
                    "task": task_id,
                    "original": dict(zip(SIGNATURE_FIELDS, original)),
                    "stitched": dict(zip(SIGNATURE_FIELDS, stitched)),
                }
                for task_id, original, stitched in self.mismatched
            ],
        }


def compare_task_graphs(original: Iterable, stitched: Iterable) -> EquivalenceReport:
    original_by_id = index_by_id(original)
    stitched_by_id = index_by_id(stitched)
    report = EquivalenceReport()
    report.only_original = [task_id for task_id in original_by_id if task_id not in stitched_by_id]
    report.only_stitched = [task_id for task_id in stitched_by_id if task_id not in original_by_id]
    for task_id, task in original_by_id.items():
        other = stitched_by_id.get(task_id)
        if other is None:
            continue
        report.compared += 1
        expected = task_signature(task)
        actual = task_signature(other)
        if expected != actual:
            report.mismatched.append((task_id, expected, actual))
    return report
