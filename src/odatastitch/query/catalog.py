"""
Requests issued by both retrieval strategies
============================================

The deep query embeds every related entity through ``$expand``. The flat
requests fetch one entity type each; the ones whose filter depends on an
earlier result take that predicate as an argument.
"""

from __future__ import annotations

from odatastitch.query.predicates import and_predicates, eq_predicate, in_predicate
from odatastitch.query.request import CollectionRequest, Expand

SCHEDULE_TASK_FIELDS = (
    "id",
    "jobId",
    "startDay",
    "duration",
    "floatDays",
    "locked",
    "masterTaskId",
    "paymentTrigger",
    "baselineDate",
    "scheduledStartDate",
    "scheduledCompletionDate",
    "actualCompletionUTCDate",
    "enteredCompletionDate",
    "enteredMultiDayStartDate",
    "enteredMultiDayPaymentTriggerDate",
    "containsCheckList",
    "checklistApproved",
)
JOB_FIELDS = ("id", "lotId", "planId", "constructionStageName", "projectedFinalDate", "permitNumber")
LOT_FIELDS = ("id", "financialCommunityId", "lotBlock", "streetAddress1")
FINANCIAL_COMMUNITY_FIELDS = ("id", "name", "number")
PLAN_COMMUNITY_FIELDS = ("id", "planSalesName")
MASTER_TASK_FIELDS = ("id", "name", "acctCategoryId", "scheduleTypeDescription")
ACCOUNT_CATEGORY_FIELDS = ("id", "name", "number", "scarStage")
VENDOR_ASSOC_FIELDS = ("jobId", "vendorId")

PENDING_STAGES = Expand(
    "pendingConstructionStages",
    select=("jobId", "constructionStageName", "constructionStageStartDate"),
)
OPEN_TASKS_PREDICATE = eq_predicate("enteredCompletionDate", None)


def _open_tasks(sample) -> str | None:
    return OPEN_TASKS_PREDICATE if sample.open_tasks_only else None


def _vendor_predicate(field: str, sample) -> str | None:
    if sample.vendor_id is None:
        return None
    return eq_predicate(field, sample.vendor_id)


def nested_schedule_tasks_request(sample) -> CollectionRequest:
    """The single deep query the stitched strategy is measured against."""
    vendor_assocs = Expand(
        "scheduleVendorAcctCategoryAssocs",
        select=VENDOR_ASSOC_FIELDS,
        filter=and_predicates(
            in_predicate("job/lot/id", sample.lot_ids),
            _vendor_predicate("vendor/id", sample),
        ),
    )
    master_task = Expand(
        "masterTask",
        select=tuple(f for f in MASTER_TASK_FIELDS if f != "acctCategoryId"),
        expand=(Expand("acctCategory", select=ACCOUNT_CATEGORY_FIELDS, expand=(vendor_assocs,)),),
    )
    lot = Expand(
        "lot",
        select=tuple(f for f in LOT_FIELDS if f != "financialCommunityId"),
        expand=(Expand("financialCommunity", select=FINANCIAL_COMMUNITY_FIELDS),),
    )
    job = Expand(
        "job",
        select=tuple(f for f in JOB_FIELDS if f != "lotId"),
        expand=(lot, PENDING_STAGES, Expand("planCommunity", select=PLAN_COMMUNITY_FIELDS)),
    )
    return CollectionRequest(
        "scheduleTasks",
        select=SCHEDULE_TASK_FIELDS,
        expand=(master_task, job),
        filter=and_predicates(
            _open_tasks(sample),
            in_predicate("job/lot/financialCommunity/id", sample.financial_community_ids),
            in_predicate("job/lot/id", sample.lot_ids),
        ),
    )


def lots_request(sample) -> CollectionRequest:
    return CollectionRequest("lots", select=LOT_FIELDS, filter=in_predicate("id", sample.lot_ids))


def jobs_request(sample) -> CollectionRequest:
    return CollectionRequest(
        "jobs",
        select=JOB_FIELDS,
        expand=(PENDING_STAGES,),
        filter=in_predicate("lotId", sample.lot_ids),
    )


def financial_communities_request(sample) -> CollectionRequest:
    return CollectionRequest(
        "financialCommunities",
        select=FINANCIAL_COMMUNITY_FIELDS,
        filter=in_predicate("id", sample.financial_community_ids),
    )


def plan_communities_request(plan_filter: str) -> CollectionRequest:
    return CollectionRequest("planCommunities", select=PLAN_COMMUNITY_FIELDS, filter=plan_filter)


def schedule_tasks_request(job_filter: str, sample) -> CollectionRequest:
    return CollectionRequest(
        "scheduleTasks",
        select=SCHEDULE_TASK_FIELDS,
        expand=(Expand("masterTask", select=MASTER_TASK_FIELDS),),
        filter=and_predicates(_open_tasks(sample), job_filter),
    )


def account_categories_request(category_filter: str, assoc_job_filter: str, sample) -> CollectionRequest:
    vendor_assocs = Expand(
        "scheduleVendorAcctCategoryAssocs",
        select=VENDOR_ASSOC_FIELDS,
        filter=and_predicates(assoc_job_filter, _vendor_predicate("vendorId", sample)),
    )
    return CollectionRequest(
        "accountCategories",
        select=ACCOUNT_CATEGORY_FIELDS,
        expand=(vendor_assocs,),
        filter=category_filter,
    )
