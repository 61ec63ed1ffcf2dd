import pytest

from config import parse_setting, lookup_setting, resolve_distribution_config
from models import DistributionConfig


def test_missing_settings_use_defaults() -> None:
    assert resolve_distribution_config(lambda key: None) == DistributionConfig(
        fixed_share=0.5, rcp_share=0.25, project_share=0.25, manager_weight=1.5)


def test_unparsable_settings_use_defaults() -> None:
    stored = {"fixed_revenue_share": "abc", "aci_manager_weight": "n/a", "rcp_share": "nan"}
    config = resolve_distribution_config(stored.get)
    assert config.fixed_share == 0.5
    assert config.manager_weight == 1.5
    assert config.rcp_share == 0.25


def test_legacy_aliases_are_read() -> None:
    stored = {
        "rcp_attendance_weight": "0.2",
        "project_contribution_weight": "0.3",
        "manager_weight": "2",
    }
    config = resolve_distribution_config(stored.get)
    assert config.rcp_share == pytest.approx(0.2)
    assert config.project_share == pytest.approx(0.3)
    assert config.manager_weight == pytest.approx(2.0)


def test_primary_key_wins_over_alias() -> None:
    stored = {"rcp_share": "0.1", "rcp_attendance_weight": "0.9"}
    assert lookup_setting(stored.get, "rcp_share") == "0.1"


def test_blank_value_falls_through_to_alias() -> None:
    stored = {"aci_manager_weight": "  ", "manager_weight": "1.8"}
    assert lookup_setting(stored.get, "manager_weight") == "1.8"


def test_share_entered_as_percentage_is_normalised() -> None:
    assert parse_setting("50", 0.5, as_share=True) == pytest.approx(0.5)
    assert parse_setting("0,25", 0.5, as_share=True) == pytest.approx(0.25)


def test_manager_weight_is_not_treated_as_percentage() -> None:
    assert parse_setting("1.5", 1.0) == pytest.approx(1.5)


def test_share_between_one_and_two_kept_with_warning(caplog) -> None:
    with caplog.at_level("WARNING", logger="config"):
        assert parse_setting("1.5", 0.5, as_share=True) == pytest.approx(1.5)
    assert "above 1 but below 2" in caplog.text
    assert parse_setting("2", 0.5, as_share=True) == pytest.approx(0.02)
    assert parse_setting("1", 0.5, as_share=True) == pytest.approx(1.0)
