# tsm/device/snmp_session.py
from __future__ import annotations
import asyncio
import logging
from datetime import datetime, timezone
from typing import Dict, List, Tuple

from pysnmp.hlapi.v3arch.asyncio import (
    CommunityData,
    ContextData,
    ObjectIdentity,
    ObjectType,
    SnmpEngine,
    UdpTransportTarget,
    get_cmd,
)
from pysnmp.proto.rfc1902 import IpAddress, OctetString

from ..config import SNMP_COMMUNITY, SNMP_PORT, SNMP_RETRIES, SNMP_TIMEOUT_S
from ..errors import DeviceError, SessionNotConnected

logger = logging.getLogger(__name__)


class SnmpSession:
    """
    SNMP v2c GET session for a single device.

    pysnmp is asyncio based; the session owns a private event loop and runs
    each request to completion on it, so callers see a plain blocking query.
    The loop is only ever driven by one thread at a time (identification,
    then the sampler).
    """

    def __init__(
        self,
        host: str,
        port: int = SNMP_PORT,
        community: str = SNMP_COMMUNITY,
        timeout_s: float = SNMP_TIMEOUT_S,
        retries: int = SNMP_RETRIES,
    ) -> None:
        self.host = host
        self.port = port
        self.community = community
        self.timeout_s = timeout_s
        self.retries = retries

        self._loop: asyncio.AbstractEventLoop | None = None
        self._engine: SnmpEngine | None = None
        self._target: UdpTransportTarget | None = None

    @property
    def connected(self) -> bool:
        return self._target is not None

    def connect(self) -> None:
        if self.connected:
            raise DeviceError(f"already connected to {self.host}:{self.port}")

        loop = asyncio.new_event_loop()
        try:
            target = loop.run_until_complete(
                UdpTransportTarget.create(
                    (self.host, self.port), timeout=self.timeout_s, retries=self.retries
                )
            )
        except Exception as e:
            loop.close()
            logger.critical(f"could not connect to {self.host}:{self.port}: {e}")
            raise DeviceError(f"could not connect to {self.host}:{self.port}: {e}") from e

        self._loop = loop
        self._engine = SnmpEngine()
        self._target = target
        logger.debug(f"SnmpSession connected to {self.host}:{self.port} (timeout {self.timeout_s}s)")

    def query(self, oids: List[str]) -> Tuple[datetime, Dict[str, str]]:
        if not self.connected:
            raise SessionNotConnected(f"device {self.host}:{self.port} is not connected")

        request = get_cmd(
            self._engine,
            CommunityData(self.community, mpModel=1),
            self._target,
            ContextData(),
            *[ObjectType(ObjectIdentity(oid)) for oid in oids],
        )
        error_indication, error_status, error_index, var_binds = self._loop.run_until_complete(request)

        if error_indication:
            raise DeviceError(f"{self.host}: {error_indication}")
        if error_status:
            culprit = oids[int(error_index) - 1] if error_index else "?"
            raise DeviceError(f"{self.host}: {error_status.prettyPrint()} at {culprit}")

        results: Dict[str, str] = {}
        for oid, (_, value) in zip(oids, var_binds):
            results[oid] = _value_text(value)

        return datetime.now(timezone.utc), results

    def close(self) -> None:
        if self._engine is not None:
            self._engine.close_dispatcher()
        if self._loop is not None:
            self._loop.close()
        self._loop = None
        self._engine = None
        self._target = None


def _value_text(value) -> str:
    """OctetStrings are text; everything else is rendered as an integer when it is one."""
    if isinstance(value, IpAddress):
        return value.prettyPrint()
    if isinstance(value, OctetString):
        return str(value)
    try:
        return str(int(value))
    except (TypeError, ValueError):
        return value.prettyPrint()
