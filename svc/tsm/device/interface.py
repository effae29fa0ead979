# tsm/device/interface.py
from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Protocol, Tuple


@dataclass(frozen=True)
class Snapshot:
    timestamp: datetime             # aware UTC time the device answered
    values: Dict[str, str] = field(default_factory=dict)   # oid -> raw value


class DeviceSession(Protocol):
    """
    Minimal interface every device transport must implement.
    One instance is one connection to one device; it is never queried by two
    threads at the same time.
    """

    host: str

    @property
    def connected(self) -> bool:
        ...

    def connect(self) -> None:
        """Open the transport. Raises DeviceError when the device cannot be reached."""
        ...

    def query(self, oids: List[str]) -> Tuple[datetime, Dict[str, str]]:
        """
        Fetch the current value of every OID in one request.

        Returns the UTC time of the answer and an oid -> raw string map.
        Raises DeviceError on timeout or protocol failure.
        """
        ...

    def close(self) -> None:
        ...
