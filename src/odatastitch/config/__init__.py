from odatastitch.config.loader import (
    RUNTIME_DEFAULTS_PATH_ENV_VAR,
    load_toml_detailed,
)
from odatastitch.config.runtime_defaults import (
    RUNTIME_DEFAULTS_SCHEMA_VERSION,
    FetchDefaults,
    RuntimeDefaults,
    SampleDefaults,
    ServiceDefaults,
    clear_runtime_defaults_cache,
    get_runtime_defaults,
    parse_runtime_defaults,
    reset_runtime_defaults_load_telemetry,
    runtime_defaults_load_telemetry,
)
from odatastitch.config.settings import (
    ApiSettings,
    SampleParameters,
    load_sample_file,
    parse_id_csv,
    resolve_api_settings,
)

__all__ = [
    "ApiSettings",
    "RUNTIME_DEFAULTS_PATH_ENV_VAR",
    "FetchDefaults",
    "RUNTIME_DEFAULTS_SCHEMA_VERSION",
    "RuntimeDefaults",
    "SampleDefaults",
    "SampleParameters",
    "ServiceDefaults",
    "clear_runtime_defaults_cache",
    "get_runtime_defaults",
    "load_sample_file",
    "load_toml_detailed",
    "parse_id_csv",
    "parse_runtime_defaults",
    "reset_runtime_defaults_load_telemetry",
    "resolve_api_settings",
    "runtime_defaults_load_telemetry",
]
