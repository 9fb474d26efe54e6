from __future__ import annotations

import logging
from uuid import uuid4

import orjson

_SENSITIVE_FIELD_TOKENS = (
    "authorization",
    "token",
    "secret",
    "password",
    "api_key",
    "apikey",
)
_TRUNCATED_SUFFIX = "...<truncated>"
_MAX_LOG_STRING_CHARS = 2048
JOB_ID_LEN = 12


def _is_sensitive_key(key: str) -> bool:
    lowered = str(key).strip().lower()
    return any(token in lowered for token in _SENSITIVE_FIELD_TOKENS)


def _sanitize_log_value(key: str, value):
    if _is_sensitive_key(key):
        return "<redacted>"
    if isinstance(value, str) and len(value) > _MAX_LOG_STRING_CHARS:
        return value[:_MAX_LOG_STRING_CHARS] + _TRUNCATED_SUFFIX
    return value


def _serialize_structured_payload(payload: dict[str, object]) -> str:
    return orjson.dumps(payload, default=str).decode("utf-8")


def new_job_id(prefix: str | None = None) -> str:
    token = uuid4().hex[:JOB_ID_LEN]
    cleaned = str(prefix or "").strip()
    if cleaned:
        return f"{cleaned}_{token}"
    return token


def log_structured_event(
    logger: logging.Logger,
    level: int,
    event: str,
    **fields,
) -> dict[str, object]:
    """
    Emit one JSON-encoded event line and return the payload that was logged.

    Fields whose value is None are dropped, credentials are redacted by key name
    and long strings (filters, response bodies) are truncated.
    """
    payload: dict[str, object] = {"event": str(event)}
    payload.update({k: _sanitize_log_value(k, v) for k, v in fields.items() if v is not None})
    if logger.isEnabledFor(level):
        logger.log(level, _serialize_structured_payload(payload))
    return payload
