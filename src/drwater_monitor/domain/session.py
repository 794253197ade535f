import logging
import threading
import uuid
from collections import OrderedDict
from dataclasses import dataclass
from typing import Optional

from drwater_monitor.infra.config import AuthConfig

logger = logging.getLogger(__name__)

LOGIN_ERROR_TEXT = "Authentication Failed."


@dataclass
class Session:
    """
    Per-page UI state. A page load opens a fresh one, so reloading logs out.

    There is no LoggedIn -> LoggedOut transition; only a new session starts over.
    """

    id: str
    is_admin: bool = False
    user_id: str = ""
    password: str = ""
    login_error: bool = False


class AuthGate:
    """
    Local credential check that only toggles admin UI.

    This is not a security boundary: the unit still receives the credentials
    with every reset command and decides for itself.
    """

    def __init__(self, config: AuthConfig) -> None:
        self.config = config

    def matches(self, user_id: str, password: str) -> bool:
        return user_id == self.config.user_id and password == self.config.password

    def submit(self, session: Session, user_id: str, password: str) -> bool:
        if self.matches(user_id, password):
            session.is_admin = True
            session.user_id = user_id
            session.password = password
            session.login_error = False
            logger.info("Session %s switched to admin mode", session.id[:8])
            return True
        session.login_error = True
        logger.info("Rejected admin login for session %s", session.id[:8])
        return False


class SessionStore:
    def __init__(self, max_sessions: int = 64) -> None:
        self.max_sessions = max(1, int(max_sessions))
        self._sessions: "OrderedDict[str, Session]" = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    def open(self) -> Session:
        session = Session(id=uuid.uuid4().hex)
        with self._lock:
            self._sessions[session.id] = session
            while len(self._sessions) > self.max_sessions:
                self._sessions.popitem(last=False)
        return session

    def get(self, session_id: Optional[str]) -> Optional[Session]:
        if not session_id:
            return None
        with self._lock:
            return self._sessions.get(session_id)
