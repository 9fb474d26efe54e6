from __future__ import annotations

import logging
from typing import Any, Callable, Sequence

from odatastitch.fetch.fanout import fan_out
from odatastitch.util.logging import log_structured_event

LOG = logging.getLogger("odatastitch.fetch.pipeline")

StageBuilder = Callable[[tuple], Sequence[Callable[[], Any]]]


class DependentPipeline:
    """
    Stages of fan-out batches where later batches depend on earlier results
    =======================================================================

    Each stage is a callable receiving the tuple of results of every earlier
    stage (one result list per stage) and returning the operations to fan out
    for this stage. A stage is built only once the previous stage completed,
    so a failure in one stage means no later stage is built or started.

        >>> pipeline = DependentPipeline(max_workers=4)
        >>> pipeline.stage("jobs", lambda done: [jobs_op])
        >>> pipeline.stage("tasks", lambda done: [tasks_op_for(done[0][0])])
        >>> jobs_results, tasks_results = pipeline.run()
    """

    def __init__(self, *, max_workers=None, thread_name_prefix=None, job_id=None):
        self.max_workers = max_workers
        self.thread_name_prefix = thread_name_prefix
        self.job_id = job_id
        self._stages: list[tuple[str, StageBuilder]] = []

    def __len__(self):
        return len(self._stages)

    def stage(self, name: str, builder: StageBuilder) -> "DependentPipeline":
        self._stages.append((str(name), builder))
        return self

    def run(self) -> list[list]:
        completed: list[list] = []
        for position, (name, builder) in enumerate(self._stages, start=1):
            operations = list(builder(tuple(completed)))
            log_structured_event(
                LOG,
                logging.DEBUG,
                "pipeline_stage_start",
                job_id=self.job_id,
                stage=name,
                position=position,
                operations=len(operations),
            )
            results = fan_out(
                operations,
                max_workers=self.max_workers,
                thread_name_prefix=self.thread_name_prefix,
                job_id=self.job_id,
            )
            log_structured_event(
                LOG,
                logging.DEBUG,
                "pipeline_stage_complete",
                job_id=self.job_id,
                stage=name,
                position=position,
            )
            completed.append(results)
        return completed


__all__ = ["DependentPipeline"]
