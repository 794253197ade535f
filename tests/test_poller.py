import threading

import httpx
import pytest

from drwater_monitor.domain.poller import Poller
from drwater_monitor.infra.scheduler import PeriodicTask


class Recorder:
    def __init__(self) -> None:
        self.snapshots = []
        self.connection = []

    def on_snapshot(self, snapshot) -> None:
        self.snapshots.append(snapshot)

    def on_connection(self, connected: bool) -> None:
        self.connection.append(connected)


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def poller(link, recorder):
    p = Poller(link, recorder.on_snapshot, recorder.on_connection, interval_s=2.0)
    yield p
    p.stop()


def test_successful_poll_marks_connected_and_hands_over_snapshot(poller, recorder):
    assert poller.poll_once() is True

    assert recorder.connection == [True]
    assert len(recorder.snapshots) == 1
    assert recorder.snapshots[0].total_volume == pytest.approx(12.3)


def test_network_error_marks_disconnected_without_raising(poller, recorder, fake_device):
    fake_device.fail_with = httpx.ConnectError("no route to host")

    assert poller.poll_once() is False

    assert recorder.connection == [False]
    assert recorder.snapshots == []


@pytest.mark.parametrize("status, body", [(500, "oops"), (200, "not json"), (200, '{"cartridges": []}')])
def test_bad_responses_mark_disconnected(poller, recorder, fake_device, status, body):
    fake_device.data_status = status
    fake_device.data_body = body

    assert poller.poll_once() is False
    assert recorder.connection == [False]


def test_start_polls_immediately(poller, recorder, fake_device):
    poller.start()
    try:
        for _ in range(100):
            if fake_device.requests:
                break
            threading.Event().wait(0.01)
    finally:
        poller.stop()

    assert fake_device.paths[0] == "GET /data"
    assert poller.running is False


def test_periodic_task_repeats_and_stops():
    ticks = []
    done = threading.Event()

    def tick():
        ticks.append(1)
        if len(ticks) >= 3:
            done.set()

    task = PeriodicTask(tick, interval_s=0.01)
    task.start()
    assert done.wait(2.0)
    task.stop()
    count = len(ticks)

    threading.Event().wait(0.05)
    assert len(ticks) == count
    assert task.running is False


def test_periodic_task_survives_failing_tick():
    calls = []
    done = threading.Event()

    def tick():
        calls.append(1)
        if len(calls) == 1:
            raise RuntimeError("boom")
        done.set()

    task = PeriodicTask(tick, interval_s=0.01)
    task.start()
    try:
        assert done.wait(2.0)
    finally:
        task.stop()


def test_periodic_task_start_twice_is_noop():
    started = threading.Event()
    task = PeriodicTask(started.set, interval_s=10)
    task.start()
    first = task._thread
    task.start()

    assert task._thread is first
    task.stop()


def test_periodic_task_rejects_bad_interval():
    with pytest.raises(ValueError):
        PeriodicTask(lambda: None, interval_s=0)


def test_restart_after_timed_out_stop_leaves_one_active_loop():
    release = threading.Event()
    ticks = []

    def slow_tick():
        ticks.append(threading.current_thread())
        release.wait(2.0)

    task = PeriodicTask(slow_tick, interval_s=0.01)
    task.start()
    for _ in range(100):
        if ticks:
            break
        threading.Event().wait(0.01)
    old_thread = task._thread

    task.stop(timeout=0.05)
    assert old_thread.is_alive()
    assert task._thread is old_thread
    assert task.running is False

    task.start()
    new_thread = task._thread
    assert new_thread is not old_thread

    release.set()
    old_thread.join(2.0)
    assert not old_thread.is_alive()
    task.stop()
    assert not new_thread.is_alive()
    assert task._thread is None
    # The old loop never ticked again after its stop.
    assert ticks.count(old_thread) == 1
