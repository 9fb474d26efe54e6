from odatastitch.util.json import json_dumps, json_loads
from odatastitch.util.logging import log_structured_event, new_job_id
from odatastitch.util.timing import stat_summary, timed

__all__ = [
    "json_dumps",
    "json_loads",
    "log_structured_event",
    "new_job_id",
    "stat_summary",
    "timed",
]
