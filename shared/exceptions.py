class ConfigurationError(Exception):
    """Raised when the scan cannot be configured (no registry, invalid settings)."""


class RegistryUnavailableError(Exception):
    """Raised when the registry snapshot cannot be fetched or parsed."""


class ProbeError(Exception):
    """Raised when an endpoint answers with a malformed info response."""
