import json
import logging

import pytest
import requests

from odatastitch.config.settings import ApiSettings
from odatastitch.query.request import CollectionRequest
from odatastitch.service.client import ODataClient
from odatastitch.service.errors import TransportFailureError

SETTINGS = ApiSettings(api_key="secret-key", api_base_url="https://api.example.test/odata")


class _FakeResponse:
    def __init__(self, status_code=200, content=b'{"value": []}', reason="OK"):
        self.status_code = status_code
        self.content = content
        self.reason = reason
        self.closed = False

    def close(self):
        self.closed = True


class _FakeSession:
    def __init__(self, response=None, exc=None):
        self.response = response or _FakeResponse()
        self.exc = exc
        self.calls = []
        self.closed = False

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        if self.exc is not None:
            raise self.exc
        return self.response

    def close(self):
        self.closed = True


def _client(session, **kwargs):
    return ODataClient(SETTINGS, session=session, **kwargs)


def test_get_collection_returns_value_list():
    session = _FakeSession(_FakeResponse(content=b'{"@odata.context": "x", "value": [{"id": 1}, {"id": 2}]}'))
    records = _client(session).get_collection(CollectionRequest("lots", filter="id in (1,2)"))

    assert records == [{"id": 1}, {"id": 2}]
    assert session.response.closed is True
    method, url, kwargs = session.calls[0]
    assert method == "GET"
    assert url == "https://api.example.test/odata/lots?$filter=id%20in%20(1,2)"
    assert kwargs["timeout"] is None
    assert kwargs["verify"] is True


def test_request_headers_carry_credentials_and_accept_json():
    session = _FakeSession()
    _client(session, auth_scheme="bearer", timeout=(5.0, 30.0), verify_tls=False).get_collection(
        CollectionRequest("jobs")
    )
    _method, _url, kwargs = session.calls[0]
    assert kwargs["headers"]["Authorization"] == "bearer secret-key"
    assert kwargs["headers"]["Accept"] == "application/json"
    assert kwargs["headers"]["User-Agent"].startswith("odatastitch/")
    assert kwargs["timeout"] == (5.0, 30.0)
    assert kwargs["verify"] is False


def test_unauthorized_response_raises_transport_failure():
    session = _FakeSession(_FakeResponse(401, b"", "Unauthorized"))
    with pytest.raises(TransportFailureError, match="Not authenticated") as excinfo:
        _client(session).get_collection(CollectionRequest("jobs"))
    assert excinfo.value.status_code == 401
    assert excinfo.value.reason == "Unauthorized"
    assert session.response.closed is True


def test_server_error_uses_odata_error_message():
    body = b'{"error": {"code": "500", "message": "Query too complex"}}'
    session = _FakeSession(_FakeResponse(500, body, "Internal Server Error"))
    with pytest.raises(TransportFailureError) as excinfo:
        _client(session).get_collection(CollectionRequest("scheduleTasks"))
    assert excinfo.value.message == "Query too complex"
    assert "Query too complex" in excinfo.value.body


def test_unmapped_status_uses_default_handler():
    session = _FakeSession(_FakeResponse(429, b"slow down", "Too Many Requests"))
    with pytest.raises(TransportFailureError, match="HTTP error") as excinfo:
        _client(session).get_collection(CollectionRequest("jobs"))
    assert excinfo.value.status_code == 429


def test_connection_error_is_wrapped():
    cause = requests.ConnectionError("refused")
    session = _FakeSession(exc=cause)
    with pytest.raises(TransportFailureError) as excinfo:
        _client(session).get_collection(CollectionRequest("lots"))
    assert excinfo.value.cause is cause
    assert excinfo.value.__cause__ is cause
    assert excinfo.value.url.endswith("/lots")


@pytest.mark.parametrize("content", [b"<html>oops</html>", b'{"items": []}', b"[1, 2]"])
def test_malformed_body_raises_transport_failure(content):
    session = _FakeSession(_FakeResponse(content=content))
    with pytest.raises(TransportFailureError, match="Malformed response"):
        _client(session).get_collection(CollectionRequest("lots"))


def test_failure_is_logged_without_the_api_key(caplog):
    caplog.set_level(logging.ERROR, logger="odatastitch.service.client")
    session = _FakeSession(_FakeResponse(403, b"", "Forbidden"))
    with pytest.raises(TransportFailureError, match="Insufficient permissions"):
        _client(session).get_collection(CollectionRequest("lots", select=("id",), filter="id in (10)"))

    messages = [record.getMessage() for record in caplog.records]
    failed = [json.loads(message) for message in messages if '"event":"request_failed"' in message]
    assert failed[0]["resource"] == "lots"
    assert failed[0]["filter"] == "id in (10)"
    assert failed[0]["select_count"] == 1
    assert failed[0]["status_code"] == 403
    assert all("secret-key" not in message for message in messages)


def test_client_context_manager_closes_session():
    session = _FakeSession()
    with _client(session) as client:
        assert client.base_url == "https://api.example.test/odata"
    assert session.closed is True
