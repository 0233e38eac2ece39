import threading
import time
from datetime import datetime, timedelta

import pytest

from nurdaily.core.day_clock import TASK_NAME, DayClock
from nurdaily.core.task_manager import TaskManager


@pytest.fixture
def task_manager():
    manager = TaskManager()
    yield manager
    manager.stop()


class FakeNow:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


def test_tick_reports_new_day_once(task_manager):
    now = FakeNow(datetime(2024, 3, 11, 23, 59, 59))
    changes = []
    clock = DayClock(task_manager, changes.append, now_provider=now)

    clock.tick()
    now.now += timedelta(seconds=1)
    clock.tick()
    now.now += timedelta(seconds=1)
    clock.tick()

    assert changes == [datetime(2024, 3, 12).date()]
    assert clock.live_time == datetime(2024, 3, 12, 0, 0, 1)
    assert clock.current_day == datetime(2024, 3, 12).date()


def test_missed_midnight_tick_still_counts(task_manager):
    now = FakeNow(datetime(2024, 3, 11, 23, 59, 58))
    changes = []
    clock = DayClock(task_manager, changes.append, now_provider=now)

    # the process slept straight through 00:00:00
    now.now = datetime(2024, 3, 12, 0, 0, 3)
    clock.tick()

    assert changes == [datetime(2024, 3, 12).date()]


def test_start_and_stop_own_the_timer(task_manager):
    ticked = threading.Event()
    clock = DayClock(task_manager, lambda day: None, interval=0.05)
    original_tick = clock.tick

    def tick():
        original_tick()
        ticked.set()

    clock.tick = tick
    clock.start()
    clock.start()

    assert ticked.wait(timeout=5)
    assert [t["name"] for t in task_manager.get_active_timers()] == [TASK_NAME]

    clock.stop()

    assert clock.running is False
    assert task_manager.get_active_timers() == []


def test_one_time_task_removes_itself(task_manager):
    done = threading.Event()

    task_manager.schedule_task("once", done.set, 0.01)

    assert done.wait(timeout=5)
    for _ in range(50):
        if not task_manager.get_active_timers():
            break
        time.sleep(0.02)
    assert task_manager.get_active_timers() == []
    assert task_manager.cancel_task("once") is False


def test_submit_queues_tagged_results(task_manager):
    ok = task_manager.submit("double", "a", lambda x: x * 2, 21)
    assert ok.result(timeout=5) == 42

    def boom():
        raise RuntimeError("nope")

    failed = task_manager.submit("boom", "b", boom)
    assert failed.result(timeout=5) is None

    first = task_manager.result_queue.get(timeout=5)
    second = task_manager.result_queue.get(timeout=5)
    assert (first.name, first.key, first.result, first.error) == ("double", "a", 42, None)
    assert second.key == "b" and isinstance(second.error, RuntimeError)


def test_stopped_manager_refuses_work(task_manager):
    task_manager.stop()

    assert task_manager.submit("late", "k", lambda: 1) is None
    task_manager.schedule_task("late", lambda: None, 0.01)
    assert task_manager.get_active_timers() == []
