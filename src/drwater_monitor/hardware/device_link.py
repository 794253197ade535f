"""
HTTP link to the Dr. Water unit.

The firmware exposes two endpoints:
- GET  /data  -> JSON snapshot of flow, volume and cartridge wear
- POST /reset -> form-encoded `cmd=<token>&user=<id>&pass=<pw>`, plain-text reply
"""

import logging
from typing import Optional
from urllib.parse import urlencode

import httpx
from pydantic import ValidationError

from drwater_monitor.domain.models import Snapshot
from drwater_monitor.infra.config import DeviceLinkConfig

logger = logging.getLogger(__name__)

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


class DeviceLinkError(Exception):
    """Base class for failures talking to the unit."""


class NetworkFailure(DeviceLinkError):
    pass


class BadStatus(DeviceLinkError):
    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(f"HTTP {status_code}: {body}")
        self.status_code = status_code
        self.body = body


class ParseFailure(DeviceLinkError):
    pass


def encode_reset_body(token: str, user_id: str, password: str) -> str:
    # "=" stays literal so cartridge tokens go out as `cmd=c=3`.
    return urlencode({"cmd": token, "user": user_id, "pass": password}, safe="=")


class DeviceLink:
    def __init__(self, config: DeviceLinkConfig, transport: Optional[httpx.BaseTransport] = None) -> None:
        self.config = config
        self._client = httpx.Client(
            base_url=config.base_url,
            timeout=config.timeout_s,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            return self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            raise NetworkFailure(f"{method} {path} failed: {exc}") from exc

    def fetch_snapshot(self) -> Snapshot:
        response = self._request("GET", self.config.data_path)
        if not response.is_success:
            raise BadStatus(response.status_code, response.text)
        try:
            payload = response.json()
        except ValueError as exc:
            raise ParseFailure(f"Body is not JSON: {exc}") from exc
        if not isinstance(payload, dict):
            raise ParseFailure("Snapshot must be a JSON object")
        try:
            return Snapshot.model_validate(payload)
        except ValidationError as exc:
            raise ParseFailure(f"Unexpected snapshot shape: {exc.error_count()} error(s)") from exc

    def send_reset(self, token: str, user_id: str, password: str) -> str:
        """POST a reset command; returns the unit's plain-text reply on 2xx."""
        logger.debug("POST %s cmd=%s user=%s", self.config.reset_path, token, user_id)
        response = self._request(
            "POST",
            self.config.reset_path,
            content=encode_reset_body(token, user_id, password),
            headers={"Content-Type": FORM_CONTENT_TYPE},
        )
        if not response.is_success:
            raise BadStatus(response.status_code, response.text)
        return response.text
