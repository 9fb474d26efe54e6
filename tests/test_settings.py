import pytest

from odatastitch.config.runtime_defaults import SampleDefaults
from odatastitch.config.settings import (
    SampleParameters,
    load_sample_file,
    parse_id_csv,
    resolve_api_settings,
)
from odatastitch.service.errors import ConfigurationMissingError


def test_explicit_values_win_over_environment():
    settings = resolve_api_settings(
        "cli-key",
        "https://cli.example.test/",
        environ={"apiKey": "env-key", "apiBaseUrl": "https://env.example.test"},
    )
    assert settings.api_key == "cli-key"
    assert settings.api_base_url == "https://cli.example.test"


def test_original_environment_names_take_precedence():
    environ = {
        "apiKey": "k1",
        "ODATASTITCH_API_KEY": "k2",
        "ODATASTITCH_API_BASE_URL": "https://fallback.example.test",
    }
    settings = resolve_api_settings(environ=environ)
    assert settings.api_key == "k1"
    assert settings.api_base_url == "https://fallback.example.test"


def test_missing_values_are_all_reported():
    with pytest.raises(ConfigurationMissingError) as excinfo:
        resolve_api_settings(environ={"apiKey": "   "})
    assert excinfo.value.missing == ("apiKey", "apiBaseUrl")
    assert "apiKey, apiBaseUrl" in str(excinfo.value)


def test_missing_endpoint_only():
    with pytest.raises(ConfigurationMissingError) as excinfo:
        resolve_api_settings(api_key="k", environ={})
    assert excinfo.value.missing == ("apiBaseUrl",)


def test_api_settings_repr_hides_the_key():
    settings = resolve_api_settings("super-secret", "https://x.example.test", environ={})
    assert "super-secret" not in repr(settings)


def test_sample_parameters_from_packaged_defaults():
    sample = SampleParameters.from_defaults()
    assert len(sample.lot_ids) == 89
    assert sample.lot_ids[0] == 332996
    assert sample.financial_community_ids == (6772, 6773, 6774)
    assert sample.vendor_id == 2964
    assert sample.open_tasks_only is True


def test_sample_override_ignores_none():
    sample = SampleParameters(lot_ids=(1,), financial_community_ids=(2,), vendor_id=3)
    changed = sample.override(lot_ids=(4, 5), vendor_id=None, open_tasks_only=False)
    assert changed.lot_ids == (4, 5)
    assert changed.vendor_id == 3
    assert changed.open_tasks_only is False


def test_parse_id_csv():
    assert parse_id_csv(" 3, 1,,3 ", "--lot-ids") == (3, 1)
    with pytest.raises(ValueError, match="--lot-ids"):
        parse_id_csv("1,x", "--lot-ids")
    with pytest.raises(ValueError, match="empty"):
        parse_id_csv(" , ", "--lot-ids")


def test_load_sample_file_overlays_base(tmp_path):
    path = tmp_path / "sample.toml"
    path.write_text("[sample]\nlot_ids = [7, 8]\nopen_tasks_only = false\n", encoding="utf-8")
    base = SampleParameters.from_defaults(SampleDefaults(lot_ids=(1,), financial_community_ids=(2,), vendor_id=9))

    sample = load_sample_file(path, base=base)
    assert sample.lot_ids == (7, 8)
    assert sample.financial_community_ids == (2,)
    assert sample.vendor_id == 9
    assert sample.open_tasks_only is False


def test_load_sample_file_reports_missing_file(tmp_path):
    with pytest.raises(ValueError, match="missing"):
        load_sample_file(tmp_path / "nope.toml")
