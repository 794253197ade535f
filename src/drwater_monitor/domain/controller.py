import asyncio
import json
import logging
import threading
from typing import Optional

from drwater_monitor.domain.commands import CommandResult, CommandSender
from drwater_monitor.domain.models import Snapshot
from drwater_monitor.domain.poller import Poller
from drwater_monitor.domain.render import Renderer
from drwater_monitor.domain.session import AuthGate, Session, SessionStore
from drwater_monitor.hardware.device_link import DeviceLink
from drwater_monitor.infra.config import MonitorConfig

logger = logging.getLogger(__name__)

LOG_BUFFER_SIZE = 100


class MonitorController:
    def __init__(self, config: MonitorConfig, link: Optional[DeviceLink] = None) -> None:
        self.config = config
        self.link = link or DeviceLink(config.device)
        self.renderer = Renderer(config.cartridges.count)
        self.sessions = SessionStore(config.auth.max_sessions)
        self.auth = AuthGate(config.auth)
        self.poller = Poller(
            self.link,
            on_snapshot=self._apply_snapshot,
            on_connection=self._set_connected,
            interval_s=config.poller.interval_s,
        )
        self.commands = CommandSender(self.link, refresh=self.refresh, cartridge_count=config.cartridges.count)

        self._state_lock = threading.Lock()
        self._log_lock = threading.Lock()
        self._log_buffer: list[str] = []
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._sse_subscribers: list[asyncio.Queue] = []

    # ---------------------------------------------------
    # LIFECYCLE
    # ---------------------------------------------------
    def start(self) -> None:
        self._log(f"[Poller] polling {self.config.device.base_url} every {self.config.poller.interval_s:g}s")
        self.poller.start()

    def stop(self) -> None:
        self.poller.stop()
        self.link.close()

    def refresh(self) -> bool:
        return self.poller.poll_once()

    # ---------------------------------------------------
    # STATUS
    # ---------------------------------------------------
    def get_view(self) -> dict:
        with self._state_lock:
            return self.renderer.to_dict()

    def get_status(self) -> dict:
        with self._log_lock:
            logs = list(self._log_buffer)
        return {"device_id": self.config.device_id, "view": self.get_view(), "logs": logs}

    # ---------------------------------------------------
    # SESSIONS
    # ---------------------------------------------------
    def open_session(self) -> Session:
        return self.sessions.open()

    def session_state(self, session_id: Optional[str]) -> dict:
        session = self.sessions.get(session_id)
        return {
            "known": session is not None,
            "is_admin": bool(session and session.is_admin),
            "login_error": bool(session and session.login_error),
        }

    def login(self, session_id: str, user_id: str, password: str) -> bool:
        session = self.sessions.get(session_id)
        if session is None:
            raise KeyError(session_id)
        ok = self.auth.submit(session, user_id, password)
        self._log(f"[Auth] login {'accepted' if ok else 'rejected'} for '{user_id}'")
        return ok

    # ---------------------------------------------------
    # COMMANDS
    # ---------------------------------------------------
    def hard_reset(self, session_id: Optional[str]) -> CommandResult:
        self._log("[Command] hard reset requested")
        result = self.commands.hard_reset(self.sessions.get(session_id))
        self._log(f"[Command] {result.message}")
        return result

    def reset_cartridge(self, session_id: Optional[str], raw_number: Optional[str]) -> CommandResult:
        self._log(f"[Command] cartridge reset requested ({raw_number!r})")
        result = self.commands.reset_cartridge(self.sessions.get(session_id), raw_number)
        self._log(f"[Command] {result.message}")
        return result

    # ---------------------------------------------------
    # SSE
    # ---------------------------------------------------
    def attach_event_loop(self, loop: asyncio.AbstractEventLoop) -> None:
        self._loop = loop

    def subscribe(self) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue()
        self._sse_subscribers.append(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        try:
            self._sse_subscribers.remove(queue)
        except ValueError:
            pass

    # ---------------------------------------------------
    # Internals
    # ---------------------------------------------------
    def _apply_snapshot(self, snapshot: Snapshot) -> None:
        with self._state_lock:
            self.renderer.paint(snapshot)
        self._broadcast_view()

    def _set_connected(self, connected: bool) -> None:
        with self._state_lock:
            changed = self.renderer.set_connected(connected)
        if changed:
            self._log(f"[Link] {'connected' if connected else 'disconnected'}")
            self._broadcast_view()

    def _log(self, message: str) -> None:
        logger.info(message)
        with self._log_lock:
            self._log_buffer.append(message)
            if len(self._log_buffer) > LOG_BUFFER_SIZE:
                self._log_buffer = self._log_buffer[-LOG_BUFFER_SIZE:]

    def _broadcast_view(self) -> None:
        if not self._loop or not self._sse_subscribers:
            return
        payload = json.dumps(self.get_view())
        for queue in list(self._sse_subscribers):
            try:
                self._loop.call_soon_threadsafe(queue.put_nowait, payload)
            except RuntimeError:
                # Loop already closed during shutdown.
                continue
