"""
Repeating clock tick. Keeps the live time and reports when the calendar day
changes. One owner starts it and the same owner stops it.
"""
import logging
from datetime import date, datetime
from typing import Callable, Optional

from nurdaily.core.task_manager import TaskManager

TASK_NAME = "day_clock"


class DayClock:
    def __init__(
        self,
        task_manager: TaskManager,
        on_day_change: Callable[[date], None],
        interval: float = 1,
        now_provider: Optional[Callable[[], datetime]] = None,
    ):
        self.task_manager = task_manager
        self.on_day_change = on_day_change
        self.interval = interval
        self.now_provider = now_provider or datetime.now
        self.logger = logging.getLogger(self.__class__.__name__)
        self.live_time: datetime = self.now_provider()
        self.current_day: date = self.live_time.date()
        self.running = False

    def start(self) -> None:
        if self.running:
            return
        self.running = True
        self.task_manager.schedule_task(TASK_NAME, self.tick, self.interval, one_time=False)
        self.logger.info(f"Clock started, tick every {self.interval}s")

    def stop(self) -> None:
        if not self.running:
            return
        self.running = False
        self.task_manager.cancel_task(TASK_NAME)
        self.logger.info("Clock stopped")

    def tick(self) -> None:
        """Update the live time; fires on_day_change once per new calendar day."""
        self.live_time = self.now_provider()
        today = self.live_time.date()
        # compare days rather than look for 00:00:00, so a late tick still counts
        if today != self.current_day:
            previous, self.current_day = self.current_day, today
            self.logger.info(f"Day changed: {previous} -> {today}")
            self.on_day_change(today)
