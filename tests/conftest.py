"""Pytest configuration: make ``src/`` importable and provide a fake unit.

The fake unit is an ``httpx.MockTransport`` that records every request so
tests can assert on what (and whether anything) went over the wire.
"""

import json
import os
import sys
from typing import Optional

import httpx
import pytest

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
SRC_DIR = os.path.join(PROJECT_ROOT, "src")

if SRC_DIR not in sys.path:
    sys.path.insert(0, SRC_DIR)

from drwater_monitor.hardware.device_link import DeviceLink  # noqa: E402
from drwater_monitor.infra.config import DeviceLinkConfig, MonitorConfig  # noqa: E402


def make_payload(status="OK", used=1.0, remaining=4.0, count=7, **overrides):
    payload = {
        "totalVolume": 12.3,
        "currentSpeed": 0.5,
        "highestSpeed": 1.2,
        "cartridges": [{"status": status, "used": used, "remaining": remaining} for _ in range(count)],
    }
    payload.update(overrides)
    return payload


class FakeDevice:
    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.data_status = 200
        self.data_body = json.dumps(make_payload())
        self.reset_status = 200
        self.reset_body = "Reset OK"
        self.fail_with: Optional[Exception] = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_with is not None:
            raise self.fail_with
        if request.method == "GET" and request.url.path == "/data":
            return httpx.Response(self.data_status, text=self.data_body)
        if request.method == "POST" and request.url.path == "/reset":
            return httpx.Response(self.reset_status, text=self.reset_body)
        return httpx.Response(404, text="Not found")

    def set_payload(self, payload) -> None:
        self.data_status = 200
        self.data_body = json.dumps(payload)

    @property
    def paths(self) -> list[str]:
        return [f"{r.method} {r.url.path}" for r in self.requests]

    def posts(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == "POST"]


@pytest.fixture
def fake_device() -> FakeDevice:
    return FakeDevice()


@pytest.fixture
def link(fake_device: FakeDevice):
    device_link = DeviceLink(
        DeviceLinkConfig(base_url="http://unit.test"),
        transport=httpx.MockTransport(fake_device.handler),
    )
    yield device_link
    device_link.close()


@pytest.fixture
def config() -> MonitorConfig:
    cfg = MonitorConfig()
    cfg.device.base_url = "http://unit.test"
    cfg.poller.autostart = False
    return cfg
