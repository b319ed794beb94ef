"""
Tests for scan settings
"""

import pytest

from fleet_diagnostics.config import ScanSettings, get_scan_settings
from shared.exceptions import ConfigurationError
from shared.security.auth import auth_metadata


def test_missing_registry_is_configuration_error(scan_env):
    with pytest.raises(ConfigurationError, match="No registry address"):
        get_scan_settings()


def test_defaults(scan_env):
    settings = get_scan_settings(registry_address="registry:50051")

    assert settings == ScanSettings(registry_address="registry:50051")
    assert settings.probe_timeout == 3.0
    assert settings.max_tolerated_lag == 10
    assert settings.max_in_flight is None
    assert settings.report_path == "_site/nodes.json"
    assert settings.status_page_path == "src/index.md"


def test_environment_overrides(scan_env):
    scan_env.setenv("REGISTRY_ADDRESS", "snapshot.json")
    scan_env.setenv("PROBE_TIMEOUT", "1.5")
    scan_env.setenv("MAX_TOLERATED_LAG", "3")
    scan_env.setenv("MAX_IN_FLIGHT", "16")
    scan_env.setenv("REPORT_PATH", "out/nodes.json")

    settings = get_scan_settings()

    assert settings.registry_address == "snapshot.json"
    assert settings.probe_timeout == 1.5
    assert settings.max_tolerated_lag == 3
    assert settings.max_in_flight == 16
    assert settings.report_path == "out/nodes.json"


def test_arguments_take_precedence(scan_env):
    scan_env.setenv("REGISTRY_ADDRESS", "from-env:1")
    scan_env.setenv("REPORT_PATH", "env.json")

    settings = get_scan_settings(registry_address="from-arg:1", report_path="arg.json")

    assert settings.registry_address == "from-arg:1"
    assert settings.report_path == "arg.json"


@pytest.mark.parametrize(
    "name, value",
    [
        ("PROBE_TIMEOUT", "soon"),
        ("PROBE_TIMEOUT", "0"),
        ("MAX_TOLERATED_LAG", "-1"),
        ("MAX_IN_FLIGHT", "0"),
        ("REGISTRY_TIMEOUT", "1.5x"),
    ],
)
def test_invalid_values(scan_env, name, value):
    scan_env.setenv(name, value)

    with pytest.raises(ConfigurationError):
        get_scan_settings(registry_address="registry:50051")


def test_auth_metadata(scan_env):
    assert auth_metadata() == ()

    scan_env.setenv("REGISTRY_AUTH_TOKEN", "secret")

    assert auth_metadata() == (("authorization", "Bearer secret"),)
