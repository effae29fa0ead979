from __future__ import annotations
import threading
import time
import logging
from datetime import timedelta
from typing import Callable, List, Optional

from .config import SAMPLER_DIVISOR
from .device.interface import DeviceSession, Snapshot
from .errors import ConfigurationError, SessionNotConnected

logger = logging.getLogger(__name__)


class ScanCache:
    """
    Holds at most one Snapshot: the freshest one the sampler has fetched.

    Taking a snapshot clears the slot, so a second take before the next
    publish sees None instead of a stale duplicate.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._scan: Optional[Snapshot] = None

    def publish(self, snapshot: Snapshot) -> None:
        with self._lock:
            self._scan = snapshot

    def take_and_clear(self) -> Optional[Snapshot]:
        with self._lock:
            scan, self._scan = self._scan, None
        return scan


class Sampler:
    """
    Background fetch loop feeding a ScanCache.

    Ticks are scheduled from a fixed anchor (anchor + n * period), so a slow
    query only delays its own publish and never shifts later ticks. A failed
    query is logged and retried on the next tick.
    """

    def __init__(
        self,
        session: DeviceSession,
        oids: List[str],
        interval: timedelta,
        cache: ScanCache,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if not oids:
            raise ConfigurationError("no OIDs to sample")
        self.session = session
        self.oids = list(oids)
        self.cache = cache
        self.period: timedelta = interval / SAMPLER_DIVISOR
        self._clock = clock
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if not self.session.connected:
            logger.warning(f"device is not connected to host: {self.session.host}")
            raise SessionNotConnected(f"device is not connected to host: {self.session.host}")
        if self._thread is not None:
            raise RuntimeError("sampler already started")

        self._stop.clear()
        self._thread = threading.Thread(
            target=self._run,
            name=f"sampler-{self.session.host}",
            daemon=True,
        )
        self._thread.start()
        logger.info(f"Sampler started for {self.session.host} with period {self.period.total_seconds():.3f}s")

    def stop(self, timeout: Optional[float] = None) -> None:
        """Signal the loop and wait for it to return; no query is in flight afterwards."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def _run(self) -> None:
        period_s = self.period.total_seconds()
        anchor = self._clock()
        tick = 0
        while True:
            tick += 1
            delay = anchor + tick * period_s - self._clock()
            if self._stop.wait(max(delay, 0.0)):
                break
            self.fetch_once()
        logger.debug("stop requested, shutting down internal polling loop")

    def fetch_once(self) -> bool:
        try:
            ts, values = self.session.query(self.oids)
        except Exception as e:
            logger.error(f"query to {self.session.host} failed: {e}")
            return False
        self.cache.publish(Snapshot(timestamp=ts, values=values))
        return True
