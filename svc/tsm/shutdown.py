from __future__ import annotations
import signal
import logging
import threading
from typing import Dict, Optional, Tuple

logger = logging.getLogger(__name__)

STOP_SIGNALS: Tuple[signal.Signals, ...] = tuple(
    getattr(signal, name) for name in ("SIGINT", "SIGQUIT", "SIGTERM") if hasattr(signal, name)
)


class ShutdownCoordinator:
    """
    Turns termination signals into a one-shot stop Event.

    The cadence loop blocks in `wait(timeout)`, which returns True as soon as
    a stop is requested, so nothing has to poll a flag. Signal handlers can
    only be installed from the main thread; `request_stop()` works anywhere.
    """

    def __init__(self, signals: Tuple[signal.Signals, ...] = STOP_SIGNALS) -> None:
        self.signals = signals
        self.received: Optional[signal.Signals] = None
        self._event = threading.Event()
        self._previous: Dict[signal.Signals, object] = {}

    def install(self) -> "ShutdownCoordinator":
        for sig in self.signals:
            self._previous[sig] = signal.signal(sig, self._handle)
        return self

    def restore(self) -> None:
        for sig, handler in self._previous.items():
            signal.signal(sig, handler)
        self._previous.clear()

    def __enter__(self) -> "ShutdownCoordinator":
        return self.install()

    def __exit__(self, *exc) -> None:
        self.restore()

    def _handle(self, signum, frame) -> None:
        if self._event.is_set():
            logger.debug(f"ignoring repeated signal {signal.Signals(signum).name}")
            return
        self.received = signal.Signals(signum)
        logger.info(f"received {self.received.name}, shutting down")
        self._event.set()

    def request_stop(self) -> None:
        self._event.set()

    @property
    def stopped(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self._event.wait(timeout)
