from __future__ import annotations


class TSMError(Exception):
    """Base class for every error the poller reports to its caller."""


class ConfigurationError(TSMError, ValueError):
    """Bad sample interval, empty OID list, or an unusable device table."""


class DeviceError(TSMError):
    """The device could not be reached or did not answer a query."""


class SessionNotConnected(DeviceError):
    pass


class ModelNotFound(DeviceError):
    """None of the model-group OIDs identified a known controller model."""
