"""
The two retrieval strategies under comparison
=============================================

original
    one deep ``scheduleTasks`` query with every related entity expanded
    server side.

stitched
    three dependent fan-out stages of flat queries::

        [lots, jobs]
            -> [financialCommunities, planCommunities(planId), scheduleTasks(jobId)]
            -> [accountCategories(acctCategoryId)]

    followed by client-side assembly of the nested graph.
"""

from __future__ import annotations

from odatastitch.assemble.graph import AssemblyReport, FlatDataset, assemble_schedule_tasks
from odatastitch.fetch.fanout import fetch_operation
from odatastitch.fetch.pipeline import DependentPipeline
from odatastitch.model.records import (
    AccountCategory,
    FinancialCommunity,
    Job,
    Lot,
    PlanCommunity,
    ScheduleTask,
    parse_records,
)
from odatastitch.query import catalog
from odatastitch.query.predicates import build_in_predicate


def _parser(cls):
    return lambda payloads: parse_records(cls, payloads)


def fetch_original(client, sample) -> list[ScheduleTask]:
    return fetch_operation(client, catalog.nested_schedule_tasks_request(sample), _parser(ScheduleTask))()


def _first_stage(client, sample):
    def build(_completed):
        return [
            fetch_operation(client, catalog.lots_request(sample), _parser(Lot)),
            fetch_operation(client, catalog.jobs_request(sample), _parser(Job)),
        ]

    return build


def _second_stage(client, sample):
    def build(completed):
        _lots, jobs = completed[0]
        plan_filter = build_in_predicate("id", jobs, lambda job: job.plan_id)
        job_filter = build_in_predicate("jobId", jobs, lambda job: job.id)
        return [
            fetch_operation(client, catalog.financial_communities_request(sample), _parser(FinancialCommunity)),
            fetch_operation(client, catalog.plan_communities_request(plan_filter), _parser(PlanCommunity)),
            fetch_operation(client, catalog.schedule_tasks_request(job_filter, sample), _parser(ScheduleTask)),
        ]

    return build


def _third_stage(client, sample):
    def build(completed):
        _lots, jobs = completed[0]
        _communities, _plans, tasks = completed[1]
        category_filter = build_in_predicate("id", tasks, lambda task: task.acct_category_id)
        assoc_job_filter = build_in_predicate("job/id", jobs, lambda job: job.id)
        return [
            fetch_operation(
                client,
                catalog.account_categories_request(category_filter, assoc_job_filter, sample),
                _parser(AccountCategory),
            ),
        ]

    return build


def fetch_stitched_dataset(
    client,
    sample,
    *,
    max_workers: int | None = None,
    thread_name_prefix: str | None = None,
    job_id: str | None = None,
) -> FlatDataset:
    pipeline = DependentPipeline(max_workers=max_workers, thread_name_prefix=thread_name_prefix, job_id=job_id)
    pipeline.stage("lots_jobs", _first_stage(client, sample))
    pipeline.stage("communities_tasks", _second_stage(client, sample))
    pipeline.stage("account_categories", _third_stage(client, sample))
    (lots, jobs), (communities, plans, tasks), (categories,) = pipeline.run()
    return FlatDataset(
        lots=lots,
        jobs=jobs,
        financial_communities=communities,
        plan_communities=plans,
        schedule_tasks=tasks,
        account_categories=categories,
    )


def fetch_stitched(
    client,
    sample,
    *,
    max_workers: int | None = None,
    thread_name_prefix: str | None = None,
    job_id: str | None = None,
) -> tuple[list[ScheduleTask], AssemblyReport]:
    dataset = fetch_stitched_dataset(
        client,
        sample,
        max_workers=max_workers,
        thread_name_prefix=thread_name_prefix,
        job_id=job_id,
    )
    report = assemble_schedule_tasks(dataset, job_id=job_id)
    return dataset.schedule_tasks, report
