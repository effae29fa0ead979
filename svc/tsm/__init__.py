"""Time-aligned SNMP telemetry poller."""

__version__ = "0.3.0"
