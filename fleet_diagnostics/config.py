import os
from dataclasses import dataclass

from shared.exceptions import ConfigurationError


DEFAULT_PROBE_TIMEOUT = 3.0
DEFAULT_MAX_TOLERATED_LAG = 10
DEFAULT_REGISTRY_TIMEOUT = 30.0
DEFAULT_REPORT_PATH = "_site/nodes.json"
DEFAULT_STATUS_PAGE_PATH = "src/index.md"


@dataclass(frozen=True)
class ScanSettings:
    """Values fixed for the duration of one scan"""

    registry_address: str
    probe_timeout: float = DEFAULT_PROBE_TIMEOUT
    max_tolerated_lag: int = DEFAULT_MAX_TOLERATED_LAG
    registry_timeout: float = DEFAULT_REGISTRY_TIMEOUT
    max_in_flight: int | None = None
    report_path: str = DEFAULT_REPORT_PATH
    status_page_path: str = DEFAULT_STATUS_PAGE_PATH

    def __post_init__(self):
        if not self.registry_address:
            raise ConfigurationError("No registry address specified")
        if self.probe_timeout <= 0:
            raise ConfigurationError("PROBE_TIMEOUT must be positive")
        if self.registry_timeout <= 0:
            raise ConfigurationError("REGISTRY_TIMEOUT must be positive")
        if self.max_tolerated_lag < 0:
            raise ConfigurationError("MAX_TOLERATED_LAG must not be negative")
        if self.max_in_flight is not None and self.max_in_flight < 1:
            raise ConfigurationError("MAX_IN_FLIGHT must be a positive integer")


def _env_number(name: str, default, cast):
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return cast(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from None


def get_scan_settings(
    registry_address: str | None = None,
    report_path: str | None = None,
    status_page_path: str | None = None,
) -> ScanSettings:
    """Build scan settings from environment config, explicit arguments take precedence"""
    return ScanSettings(
        registry_address=registry_address or os.getenv("REGISTRY_ADDRESS", ""),
        probe_timeout=_env_number("PROBE_TIMEOUT", DEFAULT_PROBE_TIMEOUT, float),
        max_tolerated_lag=_env_number(
            "MAX_TOLERATED_LAG", DEFAULT_MAX_TOLERATED_LAG, int
        ),
        registry_timeout=_env_number(
            "REGISTRY_TIMEOUT", DEFAULT_REGISTRY_TIMEOUT, float
        ),
        max_in_flight=_env_number("MAX_IN_FLIGHT", None, int),
        report_path=report_path or os.getenv("REPORT_PATH", DEFAULT_REPORT_PATH),
        status_page_path=status_page_path
        or os.getenv("STATUS_PAGE_PATH", DEFAULT_STATUS_PAGE_PATH),
    )
