from __future__ import annotations

import os
import tomllib
from functools import lru_cache
from importlib import resources as importlib_resources
from pathlib import Path

_RESOURCE_PACKAGE = "odatastitch.config"
_RUNTIME_DEFAULTS_FILE = "defaults.toml"
RUNTIME_DEFAULTS_PATH_ENV_VAR = "ODATASTITCH_RUNTIME_DEFAULTS_PATH"
_MAX_CONFIG_FILE_BYTES = 1_048_576


def _pkg_config_path(filename: str) -> Path:
    return Path(str(importlib_resources.files(_RESOURCE_PACKAGE).joinpath(filename)))


def _path_cache_key(path: Path):
    resolved = path.expanduser().resolve()
    stat = resolved.stat()
    return str(resolved), int(stat.st_mtime_ns), int(stat.st_size)


@lru_cache(maxsize=16)
def _load_toml_cached(path_str: str, mtime_ns: int, size_bytes: int):
    _ = (mtime_ns, size_bytes)
    with Path(path_str).open("rb") as handle:
        return tomllib.load(handle)


def _failure(path: str, error_kind: str, **extra) -> dict:
    return {"ok": False, "payload": {}, "path": path, "error_kind": error_kind, **extra}


def load_toml_detailed(path: Path) -> dict:
    """
    Load a TOML file and describe the outcome instead of raising.

    ``error_kind`` is one of missing, unreadable, oversized, invalid_toml or
    invalid_shape; it is None when ``ok`` is true.
    """
    path_str = str(path)
    try:
        cache_key = _path_cache_key(Path(path))
    except FileNotFoundError:
        return _failure(path_str, "missing")
    except OSError:
        return _failure(path_str, "unreadable")
    if cache_key[2] > _MAX_CONFIG_FILE_BYTES:
        return _failure(cache_key[0], "oversized", size_bytes=int(cache_key[2]))
    try:
        loaded = _load_toml_cached(*cache_key)
    except tomllib.TOMLDecodeError:
        return _failure(cache_key[0], "invalid_toml")
    except (OSError, UnicodeDecodeError):
        return _failure(cache_key[0], "unreadable")
    if not isinstance(loaded, dict):
        return _failure(cache_key[0], "invalid_shape")
    return {
        "ok": True,
        "payload": loaded,
        "path": cache_key[0],
        "error_kind": None,
        "size_bytes": int(cache_key[2]),
    }


def load_packaged_runtime_defaults_detailed() -> dict:
    result = load_toml_detailed(_pkg_config_path(_RUNTIME_DEFAULTS_FILE))
    result["source"] = "packaged_toml"
    return result


def load_runtime_defaults_override_detailed() -> dict | None:
    override = os.getenv(RUNTIME_DEFAULTS_PATH_ENV_VAR, "").strip()
    if not override:
        return None
    result = load_toml_detailed(Path(override))
    result["source"] = "override_toml"
    return result
