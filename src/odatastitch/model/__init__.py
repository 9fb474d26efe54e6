from odatastitch.model.records import (
    AccountCategory,
    FinancialCommunity,
    Job,
    Lot,
    MasterTask,
    PlanCommunity,
    ScheduleTask,
    parse_records,
)

__all__ = [
    "AccountCategory",
    "FinancialCommunity",
    "Job",
    "Lot",
    "MasterTask",
    "PlanCommunity",
    "ScheduleTask",
    "parse_records",
]
