from __future__ import annotations

from importlib import import_module
from typing import Any

__all__ = [
    "ODataClient",
    "OdataStitchError",
    "ConfigurationMissingError",
    "TransportFailureError",
    "PROXY_URL_ENV_VAR",
    "build_session",
    "resolve_proxy_url",
]

_SYMBOL_TO_MODULE = {
    "ODataClient": "odatastitch.service.client",
    "OdataStitchError": "odatastitch.service.errors",
    "ConfigurationMissingError": "odatastitch.service.errors",
    "TransportFailureError": "odatastitch.service.errors",
    "PROXY_URL_ENV_VAR": "odatastitch.service.transport",
    "build_session": "odatastitch.service.transport",
    "resolve_proxy_url": "odatastitch.service.transport",
}


def __getattr__(name: str) -> Any:
    module_name = _SYMBOL_TO_MODULE.get(name)
    if module_name is None:
        raise AttributeError(name)
    module = import_module(module_name)
    return getattr(module, name)
