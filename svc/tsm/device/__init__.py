from __future__ import annotations

from .interface import DeviceSession, Snapshot
from .simulator import SimulatedSession

__all__ = ["DeviceSession", "Snapshot", "SimulatedSession", "make_session"]


def make_session(mode: str, host: str, port: int, community: str, cfg=None) -> DeviceSession:
    """Build the session for the configured backend ("snmp" or "sim")."""
    if mode == "sim":
        return SimulatedSession(cfg, host=host)
    # pysnmp is only imported when a real device is polled
    from .snmp_session import SnmpSession

    return SnmpSession(host=host, port=port, community=community)
