from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from time import perf_counter
from typing import Any, Callable, Sequence

from odatastitch.config.runtime_defaults import get_runtime_defaults
from odatastitch.service.errors import TransportFailureError
from odatastitch.util.logging import log_structured_event

LOG = logging.getLogger("odatastitch.fetch.fanout")


@dataclass(frozen=True)
class Operation:
    """A labelled zero-argument retrieval step."""

    label: str
    call: Callable[[], Any]

    def __call__(self):
        return self.call()


def fetch_operation(client, request, parse: Callable[[list], Any] | None = None) -> Operation:
    """Wrap one collection request; records that fail to parse count as a malformed response."""

    def run():
        payloads = client.get_collection(request)
        if parse is None:
            return payloads
        try:
            return parse(payloads)
        except (TypeError, ValueError) as exc:
            raise TransportFailureError(
                f"Malformed response: unreadable {request.resource} record",
                cause=exc,
            ) from exc

    return Operation(label=request.resource, call=run)


def _label(operation, index: int) -> str:
    return str(getattr(operation, "label", None) or f"operation_{index}")


def fan_out(
    operations: Sequence[Callable[[], Any]],
    *,
    max_workers: int | None = None,
    thread_name_prefix: str | None = None,
    job_id: str | None = None,
) -> list:
    """
    Run independent operations concurrently and return their results in order
    ==========================================================================

    All-or-nothing: the first failing operation cancels every operation that
    has not started yet and its exception propagates unchanged. No partial
    result list is ever returned.
    """
    operations = list(operations)
    if not operations:
        return []
    fetch_defaults = get_runtime_defaults().fetch_defaults
    workers = max(1, min(len(operations), int(max_workers or fetch_defaults.default_max_workers)))
    labels = [_label(op, index) for index, op in enumerate(operations)]
    log_structured_event(LOG, logging.DEBUG, "fanout_start", job_id=job_id, operations=labels, workers=workers)

    started = perf_counter()
    results: list = [None] * len(operations)
    failed = False
    executor = ThreadPoolExecutor(
        max_workers=workers,
        thread_name_prefix=thread_name_prefix or fetch_defaults.default_thread_name_prefix,
    )
    try:
        future_to_index = {executor.submit(op): index for index, op in enumerate(operations)}
        for future in as_completed(future_to_index):
            index = future_to_index[future]
            try:
                results[index] = future.result()
            except Exception as exc:
                failed = True
                for pending in future_to_index:
                    pending.cancel()
                log_structured_event(
                    LOG,
                    logging.ERROR,
                    "fanout_failed",
                    job_id=job_id,
                    operation=labels[index],
                    err_type=type(exc).__name__,
                    error=str(exc),
                )
                raise
    finally:
        # In-flight requests of a failed batch are abandoned, not awaited.
        executor.shutdown(wait=not failed, cancel_futures=True)

    log_structured_event(
        LOG,
        logging.DEBUG,
        "fanout_complete",
        job_id=job_id,
        operations=labels,
        elapsed_ms=round((perf_counter() - started) * 1000.0, 3),
    )
    return results


__all__ = ["Operation", "fan_out", "fetch_operation"]
