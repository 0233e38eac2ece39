"""
Single place for background work: in-memory timers and resolver jobs run off
the caller's thread. Job results land on result_queue for the owner to drain.
"""
import asyncio
import logging
import threading
from collections import namedtuple
from concurrent.futures import Future
from datetime import datetime, timezone
from queue import Queue
from threading import Timer
from typing import Any, Callable, Dict, List, Optional

TaskResult = namedtuple(
    "TaskResult",
    [
        "name",    # job name, e.g. "hijri"
        "key",     # what the job was requested for (a date)
        "result",  # return value, None on error
        "error",   # exception raised by the job, or None
    ],
    defaults=(None, None),
)


class TaskManager:
    def __init__(self):
        self.tasks: Dict[str, Timer] = {}
        self.result_queue: "Queue[TaskResult]" = Queue()
        self.logger = logging.getLogger("TaskManager")
        self._lock = threading.Lock()
        self._stopped = False
        self._setup_async_loop()

    def _setup_async_loop(self) -> None:
        """Setup async event loop in background thread."""
        self.async_loop = asyncio.new_event_loop()

        def run_async_loop():
            asyncio.set_event_loop(self.async_loop)
            self.async_loop.run_forever()

        self.async_thread = threading.Thread(target=run_async_loop, daemon=True)
        self.async_thread.start()

    def schedule_task(self, name: str, callback: Callable, delay: float, one_time: bool = True) -> None:
        """Schedule a task to run after delay seconds."""
        if self._stopped:
            self.logger.warning(f"Not scheduling {name}: task manager stopped")
            return
        with self._lock:
            existing = self.tasks.get(name)
            if existing is not None:
                existing.cancel()
            scheduled_time = self._start_timer(name, callback, delay, one_time)
        if one_time:
            self.logger.info(f"Timer started for {name}, scheduled for {datetime.fromtimestamp(scheduled_time)}")
        else:
            self.logger.debug(f"Repeating timer {name} rescheduled in {delay}s")

    def _start_timer(self, name: str, callback: Callable, delay: float, one_time: bool) -> float:
        """Create and start the timer for name. Caller holds _lock."""
        scheduled_time = datetime.now().timestamp() + delay
        timer = Timer(delay, self._run_task, args=(name, callback, delay, one_time))
        timer.daemon = True
        timer.scheduled_time = scheduled_time
        self.tasks[name] = timer
        timer.start()
        return scheduled_time

    def _run_task(self, name: str, callback: Callable, delay: float, one_time: bool) -> None:
        """Run the task and reschedule if needed."""
        try:
            callback()
            if name in self.tasks:
                self.tasks[name].last_run = datetime.now().timestamp()
        except Exception as e:
            self.logger.error(f"Error running task {name}: {e}")
        finally:
            if one_time:
                with self._lock:
                    if self.tasks.get(name) is threading.current_thread():
                        self.tasks.pop(name, None)
            else:
                with self._lock:
                    # cancelled or replaced while running: do not come back
                    if not self._stopped and self.tasks.get(name) is threading.current_thread():
                        self._start_timer(name, callback, delay, one_time)

    def cancel_task(self, name: str) -> bool:
        with self._lock:
            timer = self.tasks.pop(name, None)
        if timer is None:
            return False
        timer.cancel()
        self.logger.info(f"Cancelled task {name}")
        return True

    def submit(self, name: str, key: Any, func: Callable, *args) -> Optional[Future]:
        """Run func(*args) on the worker pool and queue a TaskResult tagged with key."""
        if self._stopped:
            self.logger.warning(f"Not submitting {name}: task manager stopped")
            return None

        async def run():
            try:
                result = await self.async_loop.run_in_executor(None, func, *args)
            except Exception as e:
                self.logger.exception(f"Background job {name} for {key} failed: {e}")
                self.result_queue.put(TaskResult(name, key, None, e))
                return None
            self.result_queue.put(TaskResult(name, key, result))
            return result

        self.logger.debug(f"Submitting {name} for {key}")
        return asyncio.run_coroutine_threadsafe(run(), self.async_loop)

    def get_active_timers(self) -> List[Dict[str, Any]]:
        """Return list of active timer names and their next run time (for API)."""
        result = []
        with self._lock:
            timers = list(self.tasks.items())
        for name, timer in timers:
            if getattr(timer, "scheduled_time", None) is not None:
                next_run = datetime.fromtimestamp(timer.scheduled_time, tz=timezone.utc)
                result.append({"name": name, "next_run_at": next_run})
        return result

    def stop(self) -> None:
        """Stop all scheduled tasks."""
        self._stopped = True
        with self._lock:
            timers = list(self.tasks.values())
            self.tasks.clear()
        for task in timers:
            task.cancel()
        if hasattr(self, "async_loop"):
            self.async_loop.call_soon_threadsafe(self.async_loop.stop)
