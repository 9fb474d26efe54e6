from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Mapping

from odatastitch.config.loader import (
    load_packaged_runtime_defaults_detailed,
    load_runtime_defaults_override_detailed,
)
from odatastitch.util.logging import log_structured_event

_MAX_CONFIG_STRING_LENGTH = 128
_MAX_CONFIG_INT = 10_000_000
_MAX_CONFIG_FLOAT_SECONDS = 86_400.0
_MAX_CONFIG_LIST_ITEMS = 10_000
_VALID_AUTH_SCHEMES = frozenset({"basic", "bearer", "token"})
RUNTIME_DEFAULTS_SCHEMA_VERSION = 1
_RUNTIME_DEFAULTS_LOG = logging.getLogger("odatastitch.config.runtime_defaults")
_RUNTIME_DEFAULTS_LOAD_TELEMETRY = {
    "source": "unknown",
    "fallback_activations": 0,
    "error_kind": None,
    "schema_status": "unknown",
}


@dataclass(frozen=True)
class ServiceDefaults:
    default_request_timeout_seconds: float = 0.0
    default_connect_timeout_seconds: float = 10.0
    default_verify_tls: bool = True
    default_auth_scheme: str = "basic"

    def request_timeout(self):
        """Return a requests ``timeout`` value, or None when timeouts are disabled."""
        if self.default_request_timeout_seconds <= 0:
            return None
        read_timeout = float(self.default_request_timeout_seconds)
        return (min(float(self.default_connect_timeout_seconds), read_timeout), read_timeout)


@dataclass(frozen=True)
class FetchDefaults:
    default_max_workers: int = 8
    default_thread_name_prefix: str = "odatastitch-fetch"


@dataclass(frozen=True)
class SampleDefaults:
    lot_ids: tuple[int, ...] = ()
    financial_community_ids: tuple[int, ...] = ()
    vendor_id: int | None = None
    open_tasks_only: bool = True


@dataclass(frozen=True)
class RuntimeDefaults:
    service_defaults: ServiceDefaults
    fetch_defaults: FetchDefaults
    sample_defaults: SampleDefaults


_BUILTIN_RUNTIME_DEFAULTS = RuntimeDefaults(
    service_defaults=ServiceDefaults(),
    fetch_defaults=FetchDefaults(),
    sample_defaults=SampleDefaults(),
)


def runtime_defaults_load_telemetry() -> dict[str, object]:
    return dict(_RUNTIME_DEFAULTS_LOAD_TELEMETRY)


def reset_runtime_defaults_load_telemetry() -> None:
    _RUNTIME_DEFAULTS_LOAD_TELEMETRY["source"] = "unknown"
    _RUNTIME_DEFAULTS_LOAD_TELEMETRY["fallback_activations"] = 0
    _RUNTIME_DEFAULTS_LOAD_TELEMETRY["error_kind"] = None
    _RUNTIME_DEFAULTS_LOAD_TELEMETRY["schema_status"] = "unknown"


def _record_source(source: str, *, error_kind: str | None, schema_status: str, used_fallback: bool) -> None:
    if used_fallback:
        _RUNTIME_DEFAULTS_LOAD_TELEMETRY["fallback_activations"] = (
            int(_RUNTIME_DEFAULTS_LOAD_TELEMETRY["fallback_activations"]) + 1
        )
    _RUNTIME_DEFAULTS_LOAD_TELEMETRY["source"] = source
    _RUNTIME_DEFAULTS_LOAD_TELEMETRY["error_kind"] = error_kind
    _RUNTIME_DEFAULTS_LOAD_TELEMETRY["schema_status"] = schema_status
    log_structured_event(
        _RUNTIME_DEFAULTS_LOG,
        logging.WARNING if used_fallback else logging.DEBUG,
        "runtime_defaults_source",
        source=source,
        schema_status=schema_status,
        error_kind=error_kind,
        used_fallback=bool(used_fallback),
    )


def _to_mapping(value: Any) -> Mapping[str, Any]:
    if isinstance(value, Mapping):
        return value
    return {}


def _schema_status(payload: Mapping[str, Any], *, require_schema: bool) -> tuple[bool, str]:
    raw = _to_mapping(payload.get("meta")).get("schema_version")
    if raw is None:
        if require_schema:
            return False, "missing"
        return True, "absent"
    try:
        version = int(raw)
    except (TypeError, ValueError):
        return False, "mismatch"
    if version != RUNTIME_DEFAULTS_SCHEMA_VERSION:
        return False, "mismatch"
    return True, "ok"


def _parse_positive_int(raw: Any, default: int) -> int:
    if isinstance(raw, bool):
        return int(default)
    try:
        parsed = int(raw)
    except (TypeError, ValueError):
        return int(default)
    if parsed <= 0:
        return int(default)
    return min(parsed, _MAX_CONFIG_INT)


def _parse_optional_positive_int(raw: Any, default: int | None) -> int | None:
    if raw is None:
        return default
    if isinstance(raw, str) and raw.strip().lower() in {"", "none", "null"}:
        return None
    if isinstance(raw, bool):
        return default
    try:
        parsed = int(raw)
    except (TypeError, ValueError):
        return default
    if parsed <= 0:
        return default
    return min(parsed, _MAX_CONFIG_INT)


def _parse_non_negative_seconds(raw: Any, default: float) -> float:
    if isinstance(raw, bool):
        return float(default)
    try:
        parsed = float(raw)
    except (TypeError, ValueError):
        return float(default)
    if parsed < 0 or parsed != parsed:
        return float(default)
    return min(parsed, _MAX_CONFIG_FLOAT_SECONDS)


def _parse_bool(raw: Any, default: bool) -> bool:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, str):
        value = raw.strip().lower()
        if value in {"1", "true", "yes", "on"}:
            return True
        if value in {"0", "false", "no", "off"}:
            return False
    return bool(default)


def _parse_choice(raw: Any, default: str, valid_values: frozenset[str]) -> str:
    if raw is None:
        return str(default)
    value = str(raw).strip().lower()
    return value if value in valid_values else str(default)


def _parse_small_string(raw: Any, default: str) -> str:
    if raw is None:
        return str(default)
    value = str(raw).strip()
    if not value or len(value) > _MAX_CONFIG_STRING_LENGTH:
        return str(default)
    return value


def _parse_int_list(raw: Any, default: tuple[int, ...]) -> tuple[int, ...]:
    if not isinstance(raw, (list, tuple)):
        return tuple(default)
    result: list[int] = []
    seen: set[int] = set()
    for value in raw:
        if len(result) >= _MAX_CONFIG_LIST_ITEMS:
            break
        if isinstance(value, bool):
            continue
        try:
            item = int(value)
        except (TypeError, ValueError):
            continue
        if item in seen:
            continue
        seen.add(item)
        result.append(item)
    return tuple(result)


def parse_sample_defaults(raw: Mapping[str, Any] | None, base: SampleDefaults | None = None) -> SampleDefaults:
    sample_raw = _to_mapping(raw)
    builtin = SampleDefaults() if base is None else base
    return SampleDefaults(
        lot_ids=_parse_int_list(sample_raw.get("lot_ids"), builtin.lot_ids),
        financial_community_ids=_parse_int_list(
            sample_raw.get("financial_community_ids"),
            builtin.financial_community_ids,
        ),
        vendor_id=_parse_optional_positive_int(sample_raw.get("vendor_id"), builtin.vendor_id),
        open_tasks_only=_parse_bool(sample_raw.get("open_tasks_only"), builtin.open_tasks_only),
    )


def parse_runtime_defaults(payload: Mapping[str, Any] | None, *, base: RuntimeDefaults | None = None) -> RuntimeDefaults:
    root = _to_mapping(payload)
    runtime_base = _BUILTIN_RUNTIME_DEFAULTS if base is None else base

    service_raw = _to_mapping(root.get("service_defaults"))
    service_builtin = runtime_base.service_defaults
    service_defaults = ServiceDefaults(
        default_request_timeout_seconds=_parse_non_negative_seconds(
            service_raw.get("default_request_timeout_seconds"),
            service_builtin.default_request_timeout_seconds,
        ),
        default_connect_timeout_seconds=_parse_non_negative_seconds(
            service_raw.get("default_connect_timeout_seconds"),
            service_builtin.default_connect_timeout_seconds,
        ),
        default_verify_tls=_parse_bool(
            service_raw.get("default_verify_tls"),
            service_builtin.default_verify_tls,
        ),
        default_auth_scheme=_parse_choice(
            service_raw.get("default_auth_scheme"),
            service_builtin.default_auth_scheme,
            _VALID_AUTH_SCHEMES,
        ),
    )

    fetch_raw = _to_mapping(root.get("fetch_defaults"))
    fetch_builtin = runtime_base.fetch_defaults
    fetch_defaults = FetchDefaults(
        default_max_workers=_parse_positive_int(
            fetch_raw.get("default_max_workers"),
            fetch_builtin.default_max_workers,
        ),
        default_thread_name_prefix=_parse_small_string(
            fetch_raw.get("default_thread_name_prefix"),
            fetch_builtin.default_thread_name_prefix,
        ),
    )

    return RuntimeDefaults(
        service_defaults=service_defaults,
        fetch_defaults=fetch_defaults,
        sample_defaults=parse_sample_defaults(root.get("sample"), runtime_base.sample_defaults),
    )


@lru_cache(maxsize=1)
def get_runtime_defaults() -> RuntimeDefaults:
    packaged = load_packaged_runtime_defaults_detailed()
    packaged_payload = packaged.get("payload")
    if not packaged.get("ok", True) or not isinstance(packaged_payload, Mapping):
        error_kind = packaged.get("error_kind")
        reason = f"packaged_{error_kind}" if isinstance(error_kind, str) else "packaged_load_error"
        _record_source("builtin_fallback", error_kind=reason, schema_status="missing", used_fallback=True)
        return _BUILTIN_RUNTIME_DEFAULTS

    schema_ok, schema_state = _schema_status(packaged_payload, require_schema=True)
    if not schema_ok:
        reason = "missing_packaged_schema" if schema_state == "missing" else "packaged_schema_mismatch"
        _record_source("builtin_fallback", error_kind=reason, schema_status=schema_state, used_fallback=True)
        return _BUILTIN_RUNTIME_DEFAULTS

    parsed = parse_runtime_defaults(packaged_payload, base=_BUILTIN_RUNTIME_DEFAULTS)
    source = "packaged_toml"
    error_kind = None

    override = load_runtime_defaults_override_detailed()
    if override is not None:
        override_payload = override.get("payload")
        override_error = override.get("error_kind")
        if override.get("ok", True) and isinstance(override_payload, Mapping):
            override_ok, override_state = _schema_status(override_payload, require_schema=False)
            if override_ok:
                parsed = parse_runtime_defaults(override_payload, base=parsed)
                source = "override_toml"
                schema_state = override_state
            else:
                error_kind = "override_schema_mismatch"
                schema_state = override_state
        else:
            error_kind = f"override_{override_error}" if isinstance(override_error, str) else "override_invalid_shape"

    _record_source(source, error_kind=error_kind, schema_status=schema_state, used_fallback=False)
    return parsed


def clear_runtime_defaults_cache() -> None:
    get_runtime_defaults.cache_clear()
