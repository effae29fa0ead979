"""Shared fixtures: a small device table, its profile and scripted device sessions."""
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

import pytest

from tsm.device.interface import Snapshot
from tsm.errors import DeviceError, SessionNotConnected
from tsm.models import DeviceGroup, OidInfo, StationConfig, TSMConfig

GROUP_OID = "1.3.6.1.4.1.850.1.1.1.1.0"
OTHER_GROUP_OID = "1.3.6.1.4.1.850.1.2.1.1.0"


@pytest.fixture
def tsm_config() -> TSMConfig:
    return TSMConfig(
        general=StationConfig(net="BK", sta="TSM1", loc="00"),
        emc_oids=[OidInfo(oid="sys.name", label="System Name")],
        device_groups=[
            DeviceGroup(
                group_oid=GROUP_OID,
                model_group="PDU",
                model_list=["PDU-1", "PDU-2"],
                static=[OidInfo(oid="fw", label="Firmware Version")],
                measurements=[
                    OidInfo(oid="A", chancode="A", label="Channel A", type="number"),
                    OidInfo(oid="B", chancode="B", label="Channel B", type="number"),
                ],
            ),
            DeviceGroup(
                group_oid=OTHER_GROUP_OID,
                model_group="UPS",
                model_list=["UPS-1"],
                measurements=[OidInfo(oid="V", chancode="VEB", label="Battery", type="number")],
            ),
        ],
    )


@pytest.fixture
def profile(tsm_config):
    return tsm_config.profile_for("PDU-1", "PDU")


def at(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def snap(ts: datetime, values: Optional[Dict[str, str]] = None) -> Snapshot:
    return Snapshot(timestamp=ts, values=values if values is not None else {"A": "10", "B": "20"})


class ScriptedSession:
    """Device session that fails the first `failures` queries and counts every call."""

    def __init__(self, host: str = "scripted", failures: int = 0, values: Optional[Dict[str, str]] = None):
        self.host = host
        self.failures = failures
        self.values = values or {"A": "10", "B": "20"}
        self.query_count = 0
        self.closed = False
        self._connected = False

    @property
    def connected(self) -> bool:
        return self._connected

    def connect(self) -> None:
        self._connected = True

    def close(self) -> None:
        self._connected = False
        self.closed = True

    def query(self, oids: List[str]):
        if not self._connected:
            raise SessionNotConnected(self.host)
        self.query_count += 1
        if self.query_count <= self.failures:
            raise DeviceError(f"{self.host}: request timed out")
        return datetime.now(timezone.utc), {oid: self.values.get(oid, "0") for oid in oids}


class FakeClock:
    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now


class ScriptedStop:
    """
    Stands in for the shutdown signal in cadence loop runs.

    Each wait jumps the fake clock to the requested target, lets `feed`
    publish whatever the device would have produced by then, and reports a
    stop once `cycles` waits have elapsed.
    """

    def __init__(self, clock: FakeClock, cache, feed, cycles: int):
        self.clock = clock
        self.cache = cache
        self.feed = feed
        self.cycles = cycles
        self.waits: List[float] = []

    def wait(self, timeout: Optional[float] = None) -> bool:
        if len(self.waits) >= self.cycles:
            return True
        self.waits.append(timeout)
        self.clock.now += timedelta(seconds=timeout)
        scan = self.feed(self.clock.now)
        if scan is not None:
            self.cache.publish(scan)
        return False
