from __future__ import annotations

import statistics
from contextlib import contextmanager
from time import perf_counter


def elapsed_ms(seconds: float) -> float:
    return seconds * 1000.0


@contextmanager
def timed():
    """Measure the wall-clock time of the managed block.

    The yielded dict is filled in on exit (also when the block raises) with
    ``seconds`` and ``milliseconds``.
    """
    start = perf_counter()
    payload = {"seconds": 0.0, "milliseconds": 0.0}
    try:
        yield payload
    finally:
        seconds = perf_counter() - start
        payload["seconds"] = seconds
        payload["milliseconds"] = elapsed_ms(seconds)


def stat_summary(values: list[float]) -> dict[str, float]:
    if not values:
        return {}
    result = {
        "n": float(len(values)),
        "mean": statistics.fmean(values),
        "min": min(values),
        "max": max(values),
        "median": statistics.median(values),
    }
    if len(values) > 1:
        result["stddev"] = statistics.stdev(values)
    else:
        result["stddev"] = 0.0
    return result
