from urllib.parse import parse_qs

import httpx
import pytest

from conftest import make_payload

from drwater_monitor.hardware.device_link import (
    BadStatus,
    NetworkFailure,
    ParseFailure,
    encode_reset_body,
)


def test_fetch_snapshot_parses_payload(link, fake_device):
    snapshot = link.fetch_snapshot()

    assert snapshot.total_volume == pytest.approx(12.3)
    assert snapshot.current_speed == pytest.approx(0.5)
    assert snapshot.highest_speed == pytest.approx(1.2)
    assert len(snapshot.cartridges) == 7
    assert fake_device.paths == ["GET /data"]


def test_fetch_snapshot_non_2xx_is_bad_status(link, fake_device):
    fake_device.data_status = 503
    fake_device.data_body = "busy"

    with pytest.raises(BadStatus) as excinfo:
        link.fetch_snapshot()
    assert excinfo.value.status_code == 503
    assert excinfo.value.body == "busy"


def test_fetch_snapshot_invalid_json_is_parse_failure(link, fake_device):
    fake_device.data_body = "<html>not json</html>"

    with pytest.raises(ParseFailure):
        link.fetch_snapshot()


@pytest.mark.parametrize(
    "payload",
    [
        [1, 2, 3],
        {"currentSpeed": 0.5, "highestSpeed": 1.2, "cartridges": []},
        {"totalVolume": "lots", "currentSpeed": 0.5, "highestSpeed": 1.2, "cartridges": []},
        {"totalVolume": 1, "currentSpeed": 0.5, "highestSpeed": 1.2},
        make_payload(totalVolume="12.3"),
        make_payload(currentSpeed=True),
        make_payload(highestSpeed=None),
    ],
)
def test_fetch_snapshot_wrong_shape_is_parse_failure(link, fake_device, payload):
    fake_device.set_payload(payload)

    with pytest.raises(ParseFailure):
        link.fetch_snapshot()


@pytest.mark.parametrize("literal", ["1e400", "-1e400", "Infinity", "NaN"])
def test_fetch_snapshot_non_finite_metric_is_parse_failure(link, fake_device, literal):
    fake_device.data_body = (
        '{"totalVolume": %s, "currentSpeed": 0.5, "highestSpeed": 1.2, "cartridges": []}' % literal
    )

    with pytest.raises(ParseFailure):
        link.fetch_snapshot()


def test_fetch_snapshot_accepts_integer_metrics(link, fake_device):
    fake_device.set_payload(make_payload(totalVolume=12, currentSpeed=0, highestSpeed=3))

    snapshot = link.fetch_snapshot()

    assert snapshot.total_volume == 12.0
    assert snapshot.current_speed == 0.0


def test_transport_error_is_network_failure(link, fake_device):
    fake_device.fail_with = httpx.ConnectError("unreachable")

    with pytest.raises(NetworkFailure):
        link.fetch_snapshot()
    with pytest.raises(NetworkFailure):
        link.send_reset("h", "drwtr01", "1234")


def test_send_reset_posts_form_body(link, fake_device):
    reply = link.send_reset("h", "drwtr01", "1234")

    assert reply == "Reset OK"
    request = fake_device.posts()[0]
    assert request.url.path == "/reset"
    assert request.headers["content-type"] == "application/x-www-form-urlencoded"
    assert request.content == b"cmd=h&user=drwtr01&pass=1234"


def test_send_reset_non_2xx_carries_body(link, fake_device):
    fake_device.reset_status = 401
    fake_device.reset_body = "Unauthorized"

    with pytest.raises(BadStatus) as excinfo:
        link.send_reset("h", "drwtr01", "wrong")
    assert excinfo.value.body == "Unauthorized"


def test_reset_body_keeps_cartridge_token_literal():
    assert encode_reset_body("c=3", "drwtr01", "1234") == "cmd=c=3&user=drwtr01&pass=1234"


def test_reset_body_escapes_separators_in_credentials():
    body = encode_reset_body("h", "a&b", "p w")

    assert parse_qs(body) == {"cmd": ["h"], "user": ["a&b"], "pass": ["p w"]}
