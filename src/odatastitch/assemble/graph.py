"""
Client-side re-assembly of the schedule-task graph
==================================================

Given flat collections of every entity type, attach to each ScheduleTask
the same nested shape the deep ``$expand`` query returns::

    task.master_task.acct_category    <- masterTask.acctCategoryId
    task.job                          <- jobId
    task.job.lot                      <- job.lotId
    task.job.lot.financial_community  <- lot.financialCommunityId
    task.job.plan_community           <- job.planId

Assembly mutates the ScheduleTask, MasterTask, Job and Lot records in place
and attaches the indexed instances themselves, so every task referencing job
1 holds the one Job 1 object. Keys that do not resolve leave the reference as
None; that is counted in the report but is not an error.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable

from odatastitch.model.records import (
    AccountCategory,
    FinancialCommunity,
    Job,
    Lot,
    PlanCommunity,
    ScheduleTask,
)
from odatastitch.util.logging import log_structured_event

LOG = logging.getLogger("odatastitch.assemble.graph")


@dataclass
class FlatDataset:
    lots: list[Lot] = field(default_factory=list)
    jobs: list[Job] = field(default_factory=list)
    financial_communities: list[FinancialCommunity] = field(default_factory=list)
    plan_communities: list[PlanCommunity] = field(default_factory=list)
    schedule_tasks: list[ScheduleTask] = field(default_factory=list)
    account_categories: list[AccountCategory] = field(default_factory=list)

    def counts(self) -> dict[str, int]:
        return {
            "lots": len(self.lots),
            "jobs": len(self.jobs),
            "financial_communities": len(self.financial_communities),
            "plan_communities": len(self.plan_communities),
            "schedule_tasks": len(self.schedule_tasks),
            "account_categories": len(self.account_categories),
        }


@dataclass
class AssemblyReport:
    tasks: int = 0
    fully_resolved: int = 0
    missing_job: int = 0
    missing_lot: int = 0
    missing_financial_community: int = 0
    missing_plan_community: int = 0
    missing_acct_category: int = 0

    @property
    def gaps(self) -> int:
        return (
            self.missing_job
            + self.missing_lot
            + self.missing_financial_community
            + self.missing_plan_community
            + self.missing_acct_category
        )

    def to_dict(self) -> dict[str, int]:
        return {
            "tasks": self.tasks,
            "fully_resolved": self.fully_resolved,
            "missing_job": self.missing_job,
            "missing_lot": self.missing_lot,
            "missing_financial_community": self.missing_financial_community,
            "missing_plan_community": self.missing_plan_community,
            "missing_acct_category": self.missing_acct_category,
        }


def index_by_id(records: Iterable) -> dict:
    """Map ``record.id`` to record; the first record wins on duplicate ids."""
    index: dict = {}
    for record in records:
        index.setdefault(record.id, record)
    return index


def _lookup(index: dict, key):
    if key is None:
        return None
    return index.get(key)


def assemble_schedule_tasks(dataset: FlatDataset, *, job_id: str | None = None) -> AssemblyReport:
    categories = index_by_id(dataset.account_categories)
    lots = index_by_id(dataset.lots)
    jobs = index_by_id(dataset.jobs)
    plan_communities = index_by_id(dataset.plan_communities)
    financial_communities = index_by_id(dataset.financial_communities)

    report = AssemblyReport(tasks=len(dataset.schedule_tasks))
    for task in dataset.schedule_tasks:
        resolved = True

        if task.master_task is not None:
            task.master_task.acct_category = _lookup(categories, task.master_task.acct_category_id)
        if task.master_task is None or task.master_task.acct_category is None:
            report.missing_acct_category += 1
            resolved = False

        task.job = _lookup(jobs, task.job_id)
        job = task.job
        if job is None:
            report.missing_job += 1
            continue

        job.lot = _lookup(lots, job.lot_id)
        if job.lot is None:
            report.missing_lot += 1
            resolved = False
        else:
            job.lot.financial_community = _lookup(financial_communities, job.lot.financial_community_id)
            if job.lot.financial_community is None:
                report.missing_financial_community += 1
                resolved = False

        job.plan_community = _lookup(plan_communities, job.plan_id)
        if job.plan_community is None:
            report.missing_plan_community += 1
            resolved = False

        if resolved:
            report.fully_resolved += 1

    log_structured_event(LOG, logging.DEBUG, "assembly_complete", job_id=job_id, **report.to_dict())
    return report


__all__ = ["AssemblyReport", "FlatDataset", "assemble_schedule_tasks", "index_by_id"]
