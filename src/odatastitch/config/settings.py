from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Mapping

from odatastitch.config.loader import load_toml_detailed
from odatastitch.config.runtime_defaults import SampleDefaults, get_runtime_defaults, parse_sample_defaults
from odatastitch.service.errors import ConfigurationMissingError

# The first name of each pair is the one the original command line tool read.
API_KEY_ENV_VARS = ("apiKey", "ODATASTITCH_API_KEY")
API_BASE_URL_ENV_VARS = ("apiBaseUrl", "ODATASTITCH_API_BASE_URL")


@dataclass(frozen=True)
class ApiSettings:
    api_key: str
    api_base_url: str

    def __repr__(self):
        return f"ApiSettings(api_key='<redacted>', api_base_url={self.api_base_url!r})"


@dataclass(frozen=True)
class SampleParameters:
    """Demonstration filter values shared by both retrieval strategies."""

    lot_ids: tuple[int, ...]
    financial_community_ids: tuple[int, ...]
    vendor_id: int | None = None
    open_tasks_only: bool = True

    @classmethod
    def from_defaults(cls, defaults: SampleDefaults | None = None) -> "SampleParameters":
        if defaults is None:
            defaults = get_runtime_defaults().sample_defaults
        return cls(
            lot_ids=tuple(defaults.lot_ids),
            financial_community_ids=tuple(defaults.financial_community_ids),
            vendor_id=defaults.vendor_id,
            open_tasks_only=defaults.open_tasks_only,
        )

    def override(self, **changes) -> "SampleParameters":
        return replace(self, **{k: v for k, v in changes.items() if v is not None})


def _first_present(explicit, env_names, environ: Mapping[str, str]) -> str | None:
    if explicit is not None and str(explicit).strip():
        return str(explicit).strip()
    for name in env_names:
        value = environ.get(name, "")
        if value and value.strip():
            return value.strip()
    return None


def resolve_api_settings(
    api_key: str | None = None,
    api_base_url: str | None = None,
    environ: Mapping[str, str] | None = None,
) -> ApiSettings:
    """
    Resolve the mandatory credential and endpoint.

    Explicit values win over the environment. Blank values count as missing.

    @raise ConfigurationMissingError: if either value cannot be found
    """
    env = os.environ if environ is None else environ
    key = _first_present(api_key, API_KEY_ENV_VARS, env)
    base_url = _first_present(api_base_url, API_BASE_URL_ENV_VARS, env)
    missing = []
    if key is None:
        missing.append("apiKey")
    if base_url is None:
        missing.append("apiBaseUrl")
    if missing:
        raise ConfigurationMissingError(missing)
    return ApiSettings(api_key=key, api_base_url=base_url.rstrip("/"))


def parse_id_csv(text: str, arg_name: str) -> tuple[int, ...]:
    values: list[int] = []
    for token in str(text).split(","):
        token = token.strip()
        if not token:
            continue
        try:
            values.append(int(token))
        except ValueError:
            raise ValueError(f"{arg_name} values must be integers, got {token!r}") from None
    if not values:
        raise ValueError(f"{arg_name} resolved to an empty list")
    return tuple(dict.fromkeys(values))


def load_sample_file(path: str | Path, base: SampleParameters | None = None) -> SampleParameters:
    """Read a ``[sample]`` table from a TOML file on top of ``base``."""
    result = load_toml_detailed(Path(path))
    if not result["ok"]:
        raise ValueError(f"Cannot load sample file {path}: {result['error_kind']}")
    if base is None:
        base = SampleParameters.from_defaults()
    parsed = parse_sample_defaults(
        result["payload"].get("sample"),
        SampleDefaults(
            lot_ids=base.lot_ids,
            financial_community_ids=base.financial_community_ids,
            vendor_id=base.vendor_id,
            open_tasks_only=base.open_tasks_only,
        ),
    )
    return SampleParameters.from_defaults(parsed)
