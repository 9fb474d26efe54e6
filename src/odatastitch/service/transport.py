from __future__ import annotations

import os

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

PROXY_URL_ENV_VAR = "ODATASTITCH_PROXY_URL"
DEFAULT_POOL_SIZE = 32


def resolve_proxy_url(proxy_url: str | None = None) -> str | None:
    if proxy_url is not None:
        value = str(proxy_url).strip()
        return value or None
    env_value = os.getenv(PROXY_URL_ENV_VAR, "").strip()
    return env_value or None


def no_retry_policy() -> Retry:
    # A failed request must fail the whole timing run, so nothing is retried.
    return Retry(total=0, read=False, raise_on_status=False)


def build_session(
    *,
    proxy_url: str | None = None,
    user_agent: str | None = None,
    pool_size: int = DEFAULT_POOL_SIZE,
) -> requests.Session:
    proxy_url = resolve_proxy_url(proxy_url)
    session = requests.Session()
    if proxy_url:
        session.proxies = {"http": proxy_url, "https": proxy_url}
        session.trust_env = False

    adapter = HTTPAdapter(
        max_retries=no_retry_policy(),
        pool_connections=pool_size,
        pool_maxsize=pool_size,
    )
    session.mount("http://", adapter)
    session.mount("https://", adapter)

    if user_agent:
        session.headers.update({"User-Agent": user_agent})
    return session
