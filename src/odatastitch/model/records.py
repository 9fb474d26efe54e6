"""
Typed records for the schedule-task object graph
================================================

Every record keeps its primary key, its foreign keys and its nested
references as explicit attributes. All other projected columns are kept
verbatim in ``fields`` and can also be read as attributes:

    >>> lot = Lot.from_payload({"id": 10, "financialCommunityId": 900, "lotBlock": "A"})
    >>> lot.financial_community_id, lot.lotBlock
    (900, 'A')

Records compare by identity. Two tasks that reference the same job after
assembly hold the very same ``Job`` object.

``from_payload`` accepts flat payloads as well as payloads with embedded
(``$expand``-ed) related entities. When an embedded entity is present and the
foreign key column was not projected, the key is taken from the embedded
entity's ``id``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping


class _Record:
    __slots__ = ()

    def __getattr__(self, name):
        try:
            fields = object.__getattribute__(self, "fields")
        except AttributeError:
            raise AttributeError(name) from None
        if name in fields:
            return fields[name]
        raise AttributeError(f"{type(self).__name__} has no field {name!r}")


def _require_id(cls, data: dict):
    if data.get("id") is None:
        raise ValueError(f"{cls.__name__} payload has no 'id': {sorted(data)}")
    return data.pop("id")


def _embedded(data: dict, key: str, cls):
    value = data.pop(key, None)
    if isinstance(value, Mapping):
        return cls.from_payload(value)
    return None


def _resolve_key(explicit, embedded):
    if explicit is None and embedded is not None:
        return embedded.id
    return explicit


@dataclass(slots=True, eq=False)
class FinancialCommunity(_Record):
    id: Any
    fields: dict = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "FinancialCommunity":
        data = dict(payload)
        return cls(id=_require_id(cls, data), fields=data)

    def to_payload(self) -> dict:
        return {"id": self.id, **self.fields}


@dataclass(slots=True, eq=False)
class PlanCommunity(_Record):
    id: Any
    fields: dict = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "PlanCommunity":
        data = dict(payload)
        return cls(id=_require_id(cls, data), fields=data)

    def to_payload(self) -> dict:
        return {"id": self.id, **self.fields}


@dataclass(slots=True, eq=False)
class AccountCategory(_Record):
    id: Any
    fields: dict = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "AccountCategory":
        data = dict(payload)
        return cls(id=_require_id(cls, data), fields=data)

    def to_payload(self) -> dict:
        return {"id": self.id, **self.fields}


@dataclass(slots=True, eq=False)
class Lot(_Record):
    id: Any
    financial_community_id: Any = None
    financial_community: FinancialCommunity | None = None
    fields: dict = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Lot":
        data = dict(payload)
        record_id = _require_id(cls, data)
        community = _embedded(data, "financialCommunity", FinancialCommunity)
        return cls(
            id=record_id,
            financial_community_id=_resolve_key(data.pop("financialCommunityId", None), community),
            financial_community=community,
            fields=data,
        )

    def to_payload(self) -> dict:
        payload = {"id": self.id, "financialCommunityId": self.financial_community_id, **self.fields}
        if self.financial_community is not None:
            payload["financialCommunity"] = self.financial_community.to_payload()
        return payload


@dataclass(slots=True, eq=False)
class Job(_Record):
    id: Any
    lot_id: Any = None
    plan_id: Any = None
    lot: Lot | None = None
    plan_community: PlanCommunity | None = None
    fields: dict = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Job":
        data = dict(payload)
        record_id = _require_id(cls, data)
        lot = _embedded(data, "lot", Lot)
        plan_community = _embedded(data, "planCommunity", PlanCommunity)
        return cls(
            id=record_id,
            lot_id=_resolve_key(data.pop("lotId", None), lot),
            plan_id=_resolve_key(data.pop("planId", None), plan_community),
            lot=lot,
            plan_community=plan_community,
            fields=data,
        )

    def to_payload(self) -> dict:
        payload = {"id": self.id, "lotId": self.lot_id, "planId": self.plan_id, **self.fields}
        if self.lot is not None:
            payload["lot"] = self.lot.to_payload()
        if self.plan_community is not None:
            payload["planCommunity"] = self.plan_community.to_payload()
        return payload


@dataclass(slots=True, eq=False)
class MasterTask(_Record):
    id: Any = None
    acct_category_id: Any = None
    acct_category: AccountCategory | None = None
    fields: dict = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "MasterTask":
        data = dict(payload)
        category = _embedded(data, "acctCategory", AccountCategory)
        return cls(
            id=data.pop("id", None),
            acct_category_id=_resolve_key(data.pop("acctCategoryId", None), category),
            acct_category=category,
            fields=data,
        )

    def to_payload(self) -> dict:
        payload = {"id": self.id, "acctCategoryId": self.acct_category_id, **self.fields}
        if self.acct_category is not None:
            payload["acctCategory"] = self.acct_category.to_payload()
        return payload


@dataclass(slots=True, eq=False)
class ScheduleTask(_Record):
    id: Any
    job_id: Any = None
    master_task: MasterTask | None = None
    job: Job | None = None
    fields: dict = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ScheduleTask":
        data = dict(payload)
        record_id = _require_id(cls, data)
        job = _embedded(data, "job", Job)
        return cls(
            id=record_id,
            job_id=_resolve_key(data.pop("jobId", None), job),
            master_task=_embedded(data, "masterTask", MasterTask),
            job=job,
            fields=data,
        )

    @property
    def acct_category_id(self):
        if self.master_task is None:
            return None
        return self.master_task.acct_category_id

    def to_payload(self) -> dict:
        payload = {"id": self.id, "jobId": self.job_id, **self.fields}
        if self.master_task is not None:
            payload["masterTask"] = self.master_task.to_payload()
        if self.job is not None:
            payload["job"] = self.job.to_payload()
        return payload


def parse_records(cls, payloads) -> list:
    records = []
    for payload in payloads:
        if not isinstance(payload, Mapping):
            raise TypeError(f"{cls.__name__} payload is not an object: {type(payload).__name__}")
        records.append(cls.from_payload(payload))
    return records


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
