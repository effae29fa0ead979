"""
Outer poll cadence.

The loop wakes at target times spaced one sample interval apart, takes the
freshest snapshot from the ScanCache and decides, from how far the snapshot's
timestamp sits from the target, whether to emit it, bridge a gap by repeating
the previous snapshot once, or skip the cycle.
"""
from __future__ import annotations
import sys
import math
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, Optional, Protocol

from .config import MAX_SAMPLE_INTERVAL, MIN_SAMPLE_INTERVAL
from .device.interface import Snapshot
from .errors import ConfigurationError
from .formatting import format_record
from .models import DeviceProfile, StationConfig
from .sampler import ScanCache

logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class ScanClass(str, Enum):
    ON_TIME = "on_time"
    TOO_EARLY = "too_early"      # belongs to an earlier cycle than the target
    FAR_FUTURE = "far_future"    # the loop itself fell behind
    MISSING = "missing"


class StopSignal(Protocol):
    def wait(self, timeout: Optional[float] = None) -> bool:
        ...


@dataclass
class LoopState:
    previous_snapshot: Optional[Snapshot] = None
    first_sample_pending: bool = True
    last_scan_missing: bool = False
    last_scan_repeated: bool = False


@dataclass(frozen=True)
class CycleOutcome:
    target: datetime
    next_target: datetime
    kind: ScanClass
    record: Optional[str] = None
    repeated: bool = False


def validate_interval(interval: timedelta) -> timedelta:
    if interval < MIN_SAMPLE_INTERVAL or interval > MAX_SAMPLE_INTERVAL:
        raise ConfigurationError(
            f"invalid sample interval {interval.total_seconds():g} must be between "
            f"{MIN_SAMPLE_INTERVAL.total_seconds():.0f} and {MAX_SAMPLE_INTERVAL.total_seconds():.0f} seconds"
        )
    return interval


def parse_sample_interval(text: str) -> timedelta:
    """Parse a CLI interval in seconds; fractions are truncated to whole seconds."""
    try:
        seconds = float(text)
    except ValueError:
        raise ConfigurationError(f"invalid sample interval {text!r}: not a number") from None
    if not math.isfinite(seconds):
        raise ConfigurationError(f"invalid sample interval {text!r}: not a finite number")
    try:
        interval = timedelta(seconds=seconds)
    except OverflowError:
        raise ConfigurationError(f"invalid sample interval {text!r}: out of range") from None
    validate_interval(interval)
    return timedelta(seconds=int(seconds))


def round_time(ts: datetime, interval: timedelta) -> datetime:
    """Round to the nearest multiple of `interval` since the Unix epoch, halves up."""
    steps, rem = divmod(ts - _EPOCH, interval)
    if rem * 2 >= interval:
        steps += 1
    return _EPOCH + steps * interval


def classify_offset(offset: timedelta, interval: timedelta) -> ScanClass:
    """
    Positive offset: the snapshot was taken after its target time.

    The +-interval/2 boundaries themselves count as on time.
    """
    half = interval / 2
    if offset > half:
        return ScanClass.FAR_FUTURE
    if offset < -half:
        return ScanClass.TOO_EARLY
    return ScanClass.ON_TIME


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def stdout_sink(line: str) -> None:
    sys.stdout.write(line + "\n")
    sys.stdout.flush()


class CadenceLoop:
    def __init__(
        self,
        interval: timedelta,
        cache: ScanCache,
        profile: DeviceProfile,
        station: StationConfig,
        stop: StopSignal,
        sink: Callable[[str], None] = stdout_sink,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.interval = validate_interval(interval)
        self.cache = cache
        self.profile = profile
        self.station = station
        self.state = LoopState()
        self._stop = stop
        self._sink = sink
        self._clock = clock

    def first_target(self) -> datetime:
        return round_time(self._clock(), self.interval) + self.interval

    def run(self) -> int:
        """Drive cycles until the stop signal fires; returns the number of records emitted."""
        emitted = 0
        target = self.first_target()
        while True:
            logger.debug(f"next target time: {target.isoformat()}")
            timeout = (target - self._clock()).total_seconds()
            if self._stop.wait(max(timeout, 0.0)):
                logger.debug("got done signal")
                break

            outcome = self.step(target, self.cache.take_and_clear())
            if outcome.record is not None:
                self._sink(outcome.record)
                emitted += 1
            target = outcome.next_target
        return emitted

    def step(self, target: datetime, scan: Optional[Snapshot]) -> CycleOutcome:
        """Apply the drift policy to one cycle."""
        st = self.state
        next_target = target + self.interval

        if scan is None:
            if not st.last_scan_missing:
                logger.error("no scan available")
            st.last_scan_missing = True
            st.first_sample_pending = True
            st.previous_snapshot = None
            return CycleOutcome(target, next_target, ScanClass.MISSING)

        st.last_scan_missing = False
        logger.debug(f"scan time: {scan.timestamp.isoformat()}")

        kind = classify_offset(scan.timestamp - target, self.interval)

        if kind is ScanClass.FAR_FUTURE:
            logger.warning(
                f"scan at {scan.timestamp.isoformat()} is more than 1/2 interval past target {target.isoformat()}"
            )
            logger.warning("re-anchoring target time to catch up, creating a gap")
            st.first_sample_pending = True
            return CycleOutcome(target, round_time(scan.timestamp, self.interval), kind)

        if kind is ScanClass.TOO_EARLY:
            logger.error(
                f"missing scan: scan time ({scan.timestamp.isoformat()}) not within 1/2 interval "
                f"of target ({target.isoformat()})"
            )
            if st.previous_snapshot is not None and not st.last_scan_repeated:
                logger.warning("repeating previous scan value")
                st.last_scan_repeated = True
                record = self._format(target, st.previous_snapshot)
                return CycleOutcome(target, next_target, kind, record=record, repeated=True)
            st.first_sample_pending = True
            return CycleOutcome(target, next_target, kind)

        st.last_scan_repeated = False
        if st.first_sample_pending:
            logger.info("initial scan received")
            self._log_device_info(scan)
            st.first_sample_pending = False
        st.previous_snapshot = scan
        return CycleOutcome(target, next_target, kind, record=self._format(target, scan))

    def _format(self, target: datetime, scan: Snapshot) -> str:
        return format_record(self.interval, self.station, target, scan.values, self.profile.data_oids)

    def _log_device_info(self, scan: Snapshot) -> None:
        for info in self.profile.static_oids:
            logger.info(f"{info.label}: {scan.values.get(info.oid, '')}")
