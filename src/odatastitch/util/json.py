from __future__ import annotations

import orjson


def json_loads(payload):
    if isinstance(payload, str):
        payload = payload.encode("utf-8")
    return orjson.loads(payload)


def json_dumps(payload, *, indent: bool = False) -> str:
    option = orjson.OPT_INDENT_2 if indent else 0
    return orjson.dumps(payload, default=str, option=option).decode("utf-8")
