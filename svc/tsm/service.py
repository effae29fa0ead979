from __future__ import annotations
import logging
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional, Tuple

from .cadence import CadenceLoop, StopSignal, validate_interval, stdout_sink
from .config import MODE, SNMP_COMMUNITY, SNMP_PORT
from .device import DeviceSession, make_session
from .errors import ConfigurationError, ModelNotFound
from .formatting import status_sections
from .models import DeviceProfile, DeviceStatus, TSMConfig
from .sampler import Sampler, ScanCache

logger = logging.getLogger(__name__)


class PollService:
    """
    Session lifecycle around the sampler and cadence loop.

    Every operation opens its own session: identification connects, asks the
    model-group OIDs which controller this is, and closes again before the
    poll session is opened.
    """

    def __init__(
        self,
        host: str,
        cfg: TSMConfig,
        port: int = SNMP_PORT,
        community: str = SNMP_COMMUNITY,
        mode: str = MODE,
        session_factory: Optional[Callable[[], DeviceSession]] = None,
        sink: Callable[[str], None] = stdout_sink,
    ) -> None:
        self.host = host
        self.port = port
        self.cfg = cfg
        self.mode = mode
        self.sink = sink
        self.session_factory = session_factory or (
            lambda: make_session(mode, host, port, community, cfg)
        )

    def _connect(self) -> DeviceSession:
        session = self.session_factory()
        session.connect()
        return session

    def identify(self) -> DeviceProfile:
        group_oids, model_map = self.cfg.model_info()
        if not group_oids:
            raise ConfigurationError("device table has no device groups")

        session = self._connect()
        try:
            _, results = session.query(group_oids)
        finally:
            session.close()

        model = ""
        for oid in group_oids:
            value = results.get(oid, "0")
            if value not in ("0", ""):
                model = value
        if not model:
            raise ModelNotFound(f"model not found in model group OID list {group_oids}")
        if model not in model_map:
            raise ModelNotFound(f"model {model!r} is not listed in any device group")

        profile = self.cfg.profile_for(model, model_map[model])
        logger.info(f"Controller identified as model: {model} ({profile.model_group})")
        return profile

    def poll(self, interval: timedelta, stop: StopSignal) -> int:
        """
        Emit one record per interval until `stop` fires.

        The sampler is always stopped and joined before the session is closed.
        Returns the number of records emitted.
        """
        validate_interval(interval)
        # checked before any session is opened
        empty = [g.model_group for g in self.cfg.device_groups if not g.has_data_oids]
        if empty:
            raise ConfigurationError(f"no data OIDs configured for model group(s): {', '.join(empty)}")
        logger.info(f"running poll command on host: {self.host}:{self.port}")

        profile = self.identify()
        logger.info(f"polling interval: {interval.total_seconds():.0f} sec(s)")

        loop = CadenceLoop(interval, ScanCache(), profile, self.cfg.general, stop, sink=self.sink)

        session = self._connect()
        sampler = Sampler(session, profile.all_oids, interval, loop.cache)
        try:
            try:
                sampler.start()
            except Exception:
                logger.error("could not start internal polling loop... quitting")
                raise
            logger.info("internal polling loop spawned")
            emitted = loop.run()
        finally:
            sampler.stop()
            session.close()

        logger.info(f"poll exiting after {emitted} record(s)")
        return emitted

    def query_all(self) -> Tuple[datetime, Dict[str, str], DeviceProfile]:
        profile = self.identify()
        session = self._connect()
        try:
            ts, values = session.query(profile.all_oids)
        finally:
            session.close()
        return ts, values, profile

    def device_status(self) -> DeviceStatus:
        ts, values, profile = self.query_all()
        return DeviceStatus(
            ts=ts.timestamp(),
            host=self.host,
            model=profile.model,
            model_group=profile.model_group,
            sections=status_sections(profile, values),
        )
