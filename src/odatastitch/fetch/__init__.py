from odatastitch.fetch.fanout import Operation, fan_out, fetch_operation
from odatastitch.fetch.pipeline import DependentPipeline

__all__ = ["DependentPipeline", "Operation", "fan_out", "fetch_operation"]
