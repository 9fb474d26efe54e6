from __future__ import annotations

import logging
from dataclasses import dataclass, field

from odatastitch.assemble.graph import AssemblyReport
from odatastitch.compare.equivalence import EquivalenceReport, compare_task_graphs
from odatastitch.fetch.strategies import fetch_original, fetch_stitched
from odatastitch.util.logging import log_structured_event, new_job_id
from odatastitch.util.timing import stat_summary, timed

LOG = logging.getLogger("odatastitch.compare.comparator")


@dataclass
class ComparisonResult:
    job_id: str
    original_ms: float
    stitched_ms: float
    original_task_count: int
    stitched_task_count: int
    assembly: AssemblyReport
    equivalence: EquivalenceReport | None = None
    original_tasks: list = field(default_factory=list, repr=False)
    stitched_tasks: list = field(default_factory=list, repr=False)

    @property
    def speedup(self) -> float | None:
        if self.stitched_ms <= 0:
            return None
        return self.original_ms / self.stitched_ms

    def to_dict(self) -> dict[str, object]:
        return {
            "job_id": self.job_id,
            "original_ms": self.original_ms,
            "stitched_ms": self.stitched_ms,
            "speedup": self.speedup,
            "original_task_count": self.original_task_count,
            "stitched_task_count": self.stitched_task_count,
            "assembly": self.assembly.to_dict(),
            "equivalence": None if self.equivalence is None else self.equivalence.to_dict(),
        }


def run_comparison(
    client,
    sample,
    *,
    verify_equivalence: bool = False,
    max_workers: int | None = None,
    thread_name_prefix: str | None = None,
    job_id: str | None = None,
) -> ComparisonResult:
    """
    Time the original deep query against the stitched strategy
    ===========================================================

    The strategies run one after the other, never concurrently. The stitched
    timing covers all fetch stages and the assembly step. The optional
    equivalence check runs after both timings have been taken.
    """
    job_id = job_id or new_job_id("compare")

    with timed() as original_timing:
        original_tasks = fetch_original(client, sample)
    log_structured_event(
        LOG,
        logging.DEBUG,
        "strategy_complete",
        job_id=job_id,
        strategy="original",
        tasks=len(original_tasks),
        elapsed_ms=round(original_timing["milliseconds"], 3),
    )

    with timed() as stitched_timing:
        stitched_tasks, assembly = fetch_stitched(
            client,
            sample,
            max_workers=max_workers,
            thread_name_prefix=thread_name_prefix,
            job_id=job_id,
        )
    log_structured_event(
        LOG,
        logging.DEBUG,
        "strategy_complete",
        job_id=job_id,
        strategy="stitched",
        tasks=len(stitched_tasks),
        elapsed_ms=round(stitched_timing["milliseconds"], 3),
    )

    equivalence = compare_task_graphs(original_tasks, stitched_tasks) if verify_equivalence else None
    result = ComparisonResult(
        job_id=job_id,
        original_ms=original_timing["milliseconds"],
        stitched_ms=stitched_timing["milliseconds"],
        original_task_count=len(original_tasks),
        stitched_task_count=len(stitched_tasks),
        assembly=assembly,
        equivalence=equivalence,
        original_tasks=original_tasks,
        stitched_tasks=stitched_tasks,
    )
    log_structured_event(
        LOG,
        logging.INFO,
        "comparison_complete",
        job_id=job_id,
        original_ms=round(result.original_ms, 3),
        stitched_ms=round(result.stitched_ms, 3),
        equivalent=None if equivalence is None else equivalence.equivalent,
    )
    return result


@dataclass
class RepeatedComparison:
    runs: list[ComparisonResult] = field(default_factory=list)

    def summary(self) -> dict[str, dict[str, float]]:
        return {
            "original_ms": stat_summary([run.original_ms for run in self.runs]),
            "stitched_ms": stat_summary([run.stitched_ms for run in self.runs]),
        }

    def to_dict(self) -> dict[str, object]:
        return {"summary": self.summary(), "runs": [run.to_dict() for run in self.runs]}


def run_repeated(client, sample, *, repetitions: int = 1, **kwargs) -> RepeatedComparison:
    if int(repetitions) <= 0:
        raise ValueError("repetitions must be > 0")
    job_prefix = kwargs.pop("job_id", None) or new_job_id("compare")
    repeated = RepeatedComparison()
    for repetition in range(1, int(repetitions) + 1):
        result = run_comparison(client, sample, job_id=f"{job_prefix}_r{repetition}", **kwargs)
        # Only the timings outlive a pass.
        result.original_tasks = []
        result.stitched_tasks = []
        repeated.runs.append(result)
    return repeated
