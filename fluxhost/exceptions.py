"""Shared exception types for fluxhost."""


class FluxhostError(Exception):
    """Base exception for all fluxhost errors."""


class ConfigError(FluxhostError):
    """Configuration is invalid or missing."""


class PluginError(FluxhostError):
    """Plugin lifecycle error."""


class HostNotReadyError(FluxhostError):
    """The host runtime handle is missing or has been disposed."""


class DiscoveryError(FluxhostError):
    """Community plugin discovery failed."""
