import time
from datetime import date

import pytest

from odatastitch.service.errors import ConfigurationMissingError, OdataStitchError, TransportFailureError
from odatastitch.util.json import json_dumps, json_loads
from odatastitch.util.timing import stat_summary, timed


def test_timed_measures_block():
    with timed() as timing:
        time.sleep(0.01)
    assert timing["seconds"] > 0
    assert timing["milliseconds"] == pytest.approx(timing["seconds"] * 1000.0)


def test_timed_fills_payload_when_block_raises():
    with pytest.raises(RuntimeError):
        with timed() as timing:
            raise RuntimeError("x")
    assert timing["milliseconds"] >= 0


def test_stat_summary():
    assert stat_summary([]) == {}
    single = stat_summary([4.0])
    assert single["stddev"] == 0.0
    summary = stat_summary([1.0, 2.0, 6.0])
    assert summary["n"] == 3.0
    assert summary["mean"] == 3.0
    assert summary["median"] == 2.0
    assert summary["min"] == 1.0
    assert summary["max"] == 6.0


def test_json_helpers():
    assert json_loads('{"a": [1, 2]}') == {"a": [1, 2]}
    assert json_loads(b"[]") == []
    assert json_dumps({"a": 1}) == '{"a":1}'
    assert json_dumps({"d": date(2024, 1, 2)}) == '{"d":"2024-01-02"}'
    assert json_dumps({"a": 1}, indent=True) == '{\n  "a": 1\n}'


def test_transport_failure_string_lists_details():
    error = TransportFailureError("Missing resource", 404, "Not Found", b"nothing here", "https://x/lots")
    text = str(error)
    assert text.startswith("Missing resource")
    assert "status=404" in text
    assert "url=https://x/lots" in text
    assert "body=nothing here" in text
    assert isinstance(error, OdataStitchError)


def test_transport_failure_truncates_body():
    error = TransportFailureError("boom", 500, body="y" * 5000)
    assert error.body.endswith("...<truncated>")


def test_configuration_missing_error_names_options():
    error = ConfigurationMissingError(["apiKey"])
    assert str(error) == "Required configuration missing: apiKey"
    assert error.missing == ("apiKey",)
