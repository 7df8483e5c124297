from __future__ import annotations

from pathlib import Path

import pytest

from sre_dashboard.core import ConfigurationException
from sre_dashboard.reliability.infrastructure import HealthConfigManager


def test_missing_file_means_defaults(tmp_path: Path) -> None:
    manager = HealthConfigManager()
    config = manager.load(tmp_path / "absent.yaml")

    assert config.weights.down_services == 40
    assert config.thresholds.degraded_below == 80
    assert config.validation.max_error_logs == 50


def test_unloaded_manager_serves_defaults() -> None:
    assert HealthConfigManager().get_config().weights.critical_alert == 10


def test_partial_file_overrides_only_given_values(tmp_path: Path) -> None:
    path = tmp_path / "health_config.yaml"
    path.write_text("weights:\n  critical_alert: 20\nvalidation:\n  max_error_logs: 10\n")

    manager = HealthConfigManager()
    config = manager.load(path)

    assert config.weights.critical_alert == 20
    assert config.weights.warning_alert == 3
    assert config.validation.max_error_logs == 10
    assert config.validation.max_error_rate_percent == 5


def test_empty_file_means_defaults(tmp_path: Path) -> None:
    path = tmp_path / "health_config.yaml"
    path.write_text("")
    assert HealthConfigManager().load(path).thresholds.unhealthy_below == 50


def test_invalid_file_fails_at_startup(tmp_path: Path) -> None:
    path = tmp_path / "health_config.yaml"
    path.write_text("thresholds:\n  unhealthy_below: 90\n  degraded_below: 10\n")

    with pytest.raises(ConfigurationException):
        HealthConfigManager().load(path)


def test_reload_picks_up_changes_and_keeps_last_good(tmp_path: Path) -> None:
    path = tmp_path / "health_config.yaml"
    path.write_text("weights:\n  breaching_slo: 8\n")
    manager = HealthConfigManager()
    manager.load(path)

    path.write_text("weights:\n  breaching_slo: 25\n")
    assert manager.reload() is True
    assert manager.get_config().weights.breaching_slo == 25

    path.write_text("weights: [not, a, mapping\n")
    assert manager.reload() is False
    assert manager.get_config().weights.breaching_slo == 25


def test_reload_before_load_does_nothing() -> None:
    assert HealthConfigManager().reload() is False


def test_watching_is_skipped_for_missing_file(tmp_path: Path) -> None:
    manager = HealthConfigManager()
    manager.load(tmp_path / "absent.yaml")
    manager.start_watching()
    assert manager.is_watching is False
    manager.stop_watching()


def test_watching_requires_load() -> None:
    with pytest.raises(RuntimeError):
        HealthConfigManager().start_watching()
