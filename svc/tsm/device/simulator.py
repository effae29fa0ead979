from __future__ import annotations
import time
import logging
import threading
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from ..config import SIM_MODEL
from ..errors import SessionNotConnected
from ..models import OidInfo, TSMConfig

logger = logging.getLogger(__name__)


class SimulatedSession:
    """
    In-process stand-in for a device, used in sim mode and for demos.

    Model-group OIDs answer with the simulated model name (or "0" for the
    families it does not belong to, as a real controller does). Every other
    OID answers with a fixed value derived from its table entry unless
    `values` overrides it.
    """

    def __init__(
        self,
        cfg: Optional[TSMConfig] = None,
        host: str = "sim",
        model: str = "",
        values: Optional[Dict[str, str]] = None,
        latency_s: float = 0.0,
    ) -> None:
        self.host = host
        self.cfg = cfg or TSMConfig()
        self.model = model or SIM_MODEL or self._default_model()
        self.latency_s = latency_s
        self.query_count = 0
        self._overrides: Dict[str, str] = dict(values or {})
        self._connected = False
        self._lock = threading.Lock()

        self._group_oids: Dict[str, List[str]] = {
            g.group_oid: g.model_list for g in self.cfg.device_groups
        }
        self._table: Dict[str, OidInfo] = {}
        for info in self.cfg.emc_oids:
            self._table[info.oid] = info
        for g in self.cfg.device_groups:
            for info in g.static + g.status + g.measurements + g.alarms + g.faults:
                self._table[info.oid] = info

    def _default_model(self) -> str:
        for g in self.cfg.device_groups:
            if g.model_list:
                return g.model_list[0]
        return "SIM"

    @property
    def connected(self) -> bool:
        return self._connected

    def connect(self) -> None:
        self._connected = True
        logger.info(f"SimulatedSession[{self.host}] connected as model {self.model}")

    def close(self) -> None:
        self._connected = False

    def set_value(self, oid: str, value: str) -> None:
        with self._lock:
            self._overrides[oid] = value

    def _value_for(self, oid: str) -> str:
        if oid in self._overrides:
            return self._overrides[oid]
        if oid in self._group_oids:
            return self.model if self.model in self._group_oids[oid] else "0"
        info = self._table.get(oid)
        if info is None:
            return "0"
        if info.type == "number":
            return str(100 + list(self._table).index(oid))
        if info.type == "string":
            return info.label or "sim"
        return "0"

    def query(self, oids: List[str]) -> Tuple[datetime, Dict[str, str]]:
        if not self._connected:
            raise SessionNotConnected(f"simulated device {self.host} is not connected")
        if self.latency_s > 0:
            time.sleep(self.latency_s)
        with self._lock:
            self.query_count += 1
            results = {oid: self._value_for(oid) for oid in oids}
        return datetime.now(timezone.utc), results
