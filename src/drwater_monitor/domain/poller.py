import logging
from typing import Callable

from drwater_monitor.domain.models import Snapshot
from drwater_monitor.hardware.device_link import DeviceLink, DeviceLinkError
from drwater_monitor.infra.scheduler import PeriodicTask

logger = logging.getLogger(__name__)


class Poller:
    """
    Periodic read of the unit's snapshot.

    Failures only flip the connection indicator; there is no backoff and the
    next scheduled tick is the retry.
    """

    def __init__(
        self,
        link: DeviceLink,
        on_snapshot: Callable[[Snapshot], None],
        on_connection: Callable[[bool], None],
        interval_s: float = 2.0,
    ) -> None:
        self.link = link
        self._on_snapshot = on_snapshot
        self._on_connection = on_connection
        self._task = PeriodicTask(self.poll_once, interval_s, name="drwater-poller")

    @property
    def running(self) -> bool:
        return self._task.running

    def start(self) -> None:
        self._task.start()

    def stop(self) -> None:
        self._task.stop()

    def poll_once(self) -> bool:
        try:
            snapshot = self.link.fetch_snapshot()
        except DeviceLinkError as exc:
            logger.warning("Failed to fetch data: %s", exc)
            self._on_connection(False)
            return False
        self._on_connection(True)
        self._on_snapshot(snapshot)
        return True
