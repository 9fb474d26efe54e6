import json
from unittest.mock import patch

import pytest

from odatastitch import cli

from tests.fakes import NESTED_SCHEDULE_TASKS, FakeClient

BASE_ARGS = [
    "--apiKey",
    "test-key",
    "--apiBaseUrl",
    "https://api.example.test/odata",
    "--lot-ids",
    "10,11",
    "--financial-community-ids",
    "900",
    "--vendor-id",
    "2964",
]


@pytest.fixture(autouse=True)
def _no_credentials_in_env(monkeypatch):
    for name in ("apiKey", "apiBaseUrl", "ODATASTITCH_API_KEY", "ODATASTITCH_API_BASE_URL"):
        monkeypatch.delenv(name, raising=False)


class _ClientFactory:
    def __init__(self, client):
        self.client = client
        self.calls = []

    def __call__(self, settings, **kwargs):
        self.calls.append((settings, kwargs))
        return self.client


def _run(argv, client=None):
    factory = _ClientFactory(client or FakeClient())
    with patch.object(cli, "ODataClient", factory):
        code = cli.run(argv)
    return code, factory


def test_missing_configuration_fails_before_any_request(caplog):
    with patch.object(cli, "ODataClient") as client_cls:
        code = cli.run(["--lot-ids", "10"])
    assert code == cli.FAIL_EXIT_CODE
    client_cls.assert_not_called()
    assert "apiKey" in caplog.text


def test_credentials_may_come_from_environment(monkeypatch):
    monkeypatch.setenv("apiKey", "env-key")
    monkeypatch.setenv("apiBaseUrl", "https://env.example.test/")
    code, factory = _run(BASE_ARGS[4:])
    assert code == cli.SUCCESS_EXIT_CODE
    settings, _kwargs = factory.calls[0]
    assert settings.api_key == "env-key"
    assert settings.api_base_url == "https://env.example.test"


def test_success_prints_both_timings(capsys):
    client = FakeClient()
    code, factory = _run(BASE_ARGS, client)

    assert code == cli.SUCCESS_EXIT_CODE
    lines = capsys.readouterr().out.splitlines()
    assert lines[0].startswith("Original query elapsed time = ")
    assert lines[0].endswith(" ms")
    assert lines[1].startswith("New query elapsed time = ")
    assert client.closed is True
    _settings, kwargs = factory.calls[0]
    assert kwargs == {"timeout": None, "verify_tls": True, "auth_scheme": "basic"}


def test_client_options_from_arguments():
    _code, factory = _run(BASE_ARGS + ["--timeout", "12.5", "--insecure", "--auth-scheme", "bearer"])
    _settings, kwargs = factory.calls[0]
    assert kwargs == {"timeout": 12.5, "verify_tls": False, "auth_scheme": "bearer"}


def test_transport_failure_exits_with_failure(capsys, caplog):
    code, _factory = _run(BASE_ARGS, FakeClient(fail_on={"nested"}))
    assert code == cli.FAIL_EXIT_CODE
    assert capsys.readouterr().out == ""
    assert "Comparison aborted" in caplog.text


def test_json_output_with_equivalence(capsys):
    code, _factory = _run(BASE_ARGS + ["--json", "--verify-equivalence"])
    assert code == cli.SUCCESS_EXIT_CODE
    payload = json.loads(capsys.readouterr().out)
    assert payload["original_task_count"] == 3
    assert payload["equivalence"]["equivalent"] is True
    assert payload["assembly"]["tasks"] == 3


def test_mismatch_sets_exit_code(capsys):
    nested = [dict(task) for task in NESTED_SCHEDULE_TASKS[:2]]
    code, _factory = _run(BASE_ARGS + ["--verify-equivalence"], FakeClient(nested=nested))
    assert code == cli.MISMATCH_EXIT_CODE
    assert "DIFFERENT" in capsys.readouterr().out


def test_repeated_runs_print_summary(capsys):
    client = FakeClient()
    code, _factory = _run(BASE_ARGS + ["--repetitions", "2"], client)
    assert code == cli.SUCCESS_EXIT_CODE
    out = capsys.readouterr().out
    assert "Original query elapsed time =" in out
    assert "n=2" in out
    assert len(client.requests) == 14


def test_include_completed_drops_open_tasks_filter():
    client = FakeClient()
    _run(BASE_ARGS + ["--include-completed"], client)
    assert client.request_for("scheduleTasks").filter == "jobId in (1,2)"


def test_show_tasks_prints_assembled_graph(capsys):
    _run(BASE_ARGS + ["--show-tasks"])
    out = capsys.readouterr().out
    tasks = json.loads(out[: out.index("Original query elapsed time")])
    assert tasks[0]["job"]["lot"]["financialCommunity"]["id"] == 900


def test_invalid_ids_are_a_usage_error():
    with pytest.raises(SystemExit) as excinfo:
        _run(BASE_ARGS[:4] + ["--lot-ids", "10,abc"])
    assert excinfo.value.code == 2


def test_non_positive_repetitions_are_a_usage_error():
    with pytest.raises(SystemExit):
        _run(BASE_ARGS + ["--repetitions", "0"])


def test_record_without_id_exits_with_failure(capsys, caplog):
    collections = {"lots": [{"financialCommunityId": 900}], "jobs": []}
    code, _factory = _run(BASE_ARGS, FakeClient(collections=collections))
    assert code == cli.FAIL_EXIT_CODE
    assert capsys.readouterr().out == ""
    assert "Comparison aborted" in caplog.text
