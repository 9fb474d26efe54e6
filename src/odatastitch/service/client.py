from __future__ import annotations

import logging
import sys
from time import perf_counter

import orjson
import requests

from odatastitch._version import VERSION
from odatastitch.service.errors import TransportFailureError
from odatastitch.service.transport import build_session
from odatastitch.util.logging import log_structured_event

LOG = logging.getLogger("odatastitch.service.client")


class ODataClient:
    """
    Minimal client for the OData-style retrieval service
    ====================================================

    Every request is a GET of one resource collection. The response is
    expected to be a JSON object whose ``value`` member holds the records.

        >>> client = ODataClient(resolve_api_settings())
        >>> lots = client.get_collection(lots_request(sample))

    Requests are never retried; any failure raises TransportFailureError.
    The client is safe to share between fan-out worker threads.
    """

    USER_AGENT = "odatastitch/{0} python/{1}.{2}".format(VERSION, sys.version_info.major, sys.version_info.minor)
    JSON = "application/json"

    def __init__(
        self,
        settings,
        *,
        session=None,
        timeout=None,
        verify_tls=True,
        auth_scheme="basic",
        proxy_url=None,
    ):
        self.base_url = settings.api_base_url.rstrip("/")
        self._auth_header = "{0} {1}".format(auth_scheme, settings.api_key)
        self._timeout = timeout
        self._verify_tls = verify_tls
        if session is None:
            session = build_session(proxy_url=proxy_url, user_agent=self.USER_AGENT)
        self._session = session

    def headers(self):
        return {
            "User-Agent": self.USER_AGENT,
            "Accept": self.JSON,
            "Authorization": self._auth_header,
        }

    def close(self):
        self._session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def get_collection(self, request) -> list[dict]:
        """
        Fetch one resource collection
        =============================

        @param request: a CollectionRequest
        @return: the list of (possibly server-nested) record payloads
        @raise TransportFailureError: on connection errors, HTTP error statuses
            and undecodable bodies
        """
        url = request.url(self.base_url)
        started = perf_counter()
        try:
            resp = self._session.request(
                "GET",
                url,
                headers=self.headers(),
                timeout=self._timeout,
                verify=self._verify_tls,
            )
        except requests.RequestException as exc:
            self._log_failure(request, url, started, 0, exc)
            raise TransportFailureError("Request failed", url=url, cause=exc) from exc

        try:
            if resp.status_code >= 400:
                error = self._http_error(resp, url)
                self._log_failure(request, url, started, resp.status_code, error)
                raise error
            records = self._decode(resp.content, url)
        finally:
            resp.close()

        log_structured_event(
            LOG,
            logging.DEBUG,
            "request_complete",
            resource=request.resource,
            records=len(records),
            elapsed_ms=round((perf_counter() - started) * 1000.0, 3),
        )
        return records

    def _log_failure(self, request, url, started, status_code, error):
        log_structured_event(
            LOG,
            logging.ERROR,
            "request_failed",
            url=url,
            status_code=status_code or None,
            error=str(error),
            elapsed_ms=round((perf_counter() - started) * 1000.0, 3),
            **request.describe(),
        )

    @staticmethod
    def _decode(content, url) -> list[dict]:
        try:
            payload = orjson.loads(content)
        except orjson.JSONDecodeError as exc:
            raise TransportFailureError("Malformed response: body is not JSON", body=content, url=url, cause=exc) from exc
        if not isinstance(payload, dict) or not isinstance(payload.get("value"), list):
            raise TransportFailureError("Malformed response: expected an object with a 'value' list", body=content, url=url)
        return payload["value"]

    def _http_error(self, resp, url) -> TransportFailureError:
        handler = {
            400: self.http_error_400,
            401: self.http_error_401,
            403: self.http_error_403,
            404: self.http_error_404,
            500: self.http_error_500,
        }.get(resp.status_code, self.http_error_default)
        return handler(url, resp.status_code, resp.reason, resp.content)

    @staticmethod
    def _error_message(content):
        """Pull ``error.message`` out of an OData error body, if there is one."""
        try:
            payload = orjson.loads(content)
        except orjson.JSONDecodeError:
            return None
        error = payload.get("error") if isinstance(payload, dict) else None
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        return None

    def http_error_default(self, url, errcode, errmsg, content):
        return TransportFailureError("HTTP error", errcode, errmsg, content, url)

    def http_error_400(self, url, errcode, errmsg, content):
        message = self._error_message(content) or "There was a problem with our request"
        return TransportFailureError(message, errcode, errmsg, content, url)

    def http_error_401(self, url, errcode, errmsg, content):
        return TransportFailureError("Not authenticated - check apiKey", errcode, errmsg, content, url)

    def http_error_403(self, url, errcode, errmsg, content):
        return TransportFailureError("Insufficient permissions", errcode, errmsg, content, url)

    def http_error_404(self, url, errcode, errmsg, content):
        return TransportFailureError("Missing resource", errcode, errmsg, content, url)

    def http_error_500(self, url, errcode, errmsg, content):
        message = self._error_message(content) or "Internal server error"
        return TransportFailureError(message, errcode, errmsg, content, url)
