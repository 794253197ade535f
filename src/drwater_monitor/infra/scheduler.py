import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class PeriodicTask:
    """
    Run a callable once immediately and then every `interval_s` seconds
    on a daemon thread until stopped.

    A tick that raises is logged and the loop keeps going. Each start gets its
    own stop event, so a loop that outlives a timed-out stop exits after its
    current tick instead of running alongside the next one.
    """

    def __init__(self, func: Callable[[], object], interval_s: float, name: str = "periodic-task") -> None:
        if interval_s <= 0:
            raise ValueError("interval_s must be > 0")
        self.func = func
        self.interval_s = float(interval_s)
        self.name = name
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._stop_event.is_set()

    def start(self) -> None:
        if self.running:
            return
        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._loop, args=(self._stop_event,), name=self.name, daemon=True
        )
        self._thread.start()

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        self._stop_event.set()
        thread = self._thread
        if thread is None:
            return
        if thread.is_alive() and thread is not threading.current_thread():
            thread.join(timeout)
        if not thread.is_alive():
            self._thread = None
        else:
            logger.warning("%s still finishing its last tick after stop", self.name)

    def _loop(self, stop_event: threading.Event) -> None:
        while not stop_event.is_set():
            try:
                self.func()
            except Exception:
                # Do not kill the loop; the next tick is the retry.
                logger.exception("%s tick failed", self.name)
            if stop_event.wait(self.interval_s):
                break
