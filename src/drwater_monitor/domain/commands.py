import logging
from dataclasses import dataclass
from typing import Callable, Optional

from drwater_monitor.domain.session import Session
from drwater_monitor.hardware.device_link import BadStatus, DeviceLink, NetworkFailure

logger = logging.getLogger(__name__)

HARD_RESET_TOKEN = "h"


class LocalValidationFailure(ValueError):
    """Rejected before any request reaches the unit."""


class InvalidCartridge(LocalValidationFailure):
    pass


class AdminRequired(LocalValidationFailure):
    pass


@dataclass(frozen=True)
class CommandResult:
    ok: bool
    message: str


def cartridge_reset_token(number: int) -> str:
    return f"c={number}"


def parse_cartridge_number(raw: Optional[str], cartridge_count: int = 7) -> int:
    text = (raw or "").strip()
    message = f"Please enter a valid cartridge number (1-{cartridge_count})."
    if not (text.isascii() and text.isdigit()):
        raise InvalidCartridge(message)
    number = int(text)
    if not 1 <= number <= cartridge_count:
        raise InvalidCartridge(message)
    return number


class CommandSender:
    def __init__(
        self,
        link: DeviceLink,
        refresh: Callable[[], object],
        cartridge_count: int = 7,
    ) -> None:
        self.link = link
        self._refresh = refresh
        self.cartridge_count = cartridge_count

    def send(self, session: Optional[Session], token: str) -> CommandResult:
        if session is None or not session.is_admin:
            raise AdminRequired("Admin login required.")
        try:
            reply = self.link.send_reset(token, session.user_id, session.password)
        except BadStatus as exc:
            logger.error("Command %s rejected by unit (%s): %s", token, exc.status_code, exc.body)
            return CommandResult(ok=False, message=f"Command failed: {exc.body}")
        except NetworkFailure as exc:
            logger.error("Error sending command %s: %s", token, exc)
            return CommandResult(ok=False, message=f"Failed to send command ({exc}). Check connection.")

        logger.info("Command %s accepted: %s", token, reply)
        self._refresh()
        return CommandResult(ok=True, message=f"Command successful: {reply}")

    def hard_reset(self, session: Optional[Session]) -> CommandResult:
        return self.send(session, HARD_RESET_TOKEN)

    def reset_cartridge(self, session: Optional[Session], raw: Optional[str]) -> CommandResult:
        number = parse_cartridge_number(raw, self.cartridge_count)
        return self.send(session, cartridge_reset_token(number))
