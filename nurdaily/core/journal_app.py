import logging
import sys
import threading
from datetime import date, datetime
from pathlib import Path
from queue import Empty
from typing import Any, Callable, Dict, Optional

from .config import Config
from .dates import DateLike, to_date
from .day_clock import DayClock
from .db import init_db
from .kv_store import KeyValueStore
from .task_manager import TaskManager, TaskResult

from nurdaily.plugins.hijri.cache import HijriDateCache
from nurdaily.plugins.hijri.hijri_base import create_backends
from nurdaily.plugins.hijri.service import HijriResolver
from nurdaily.plugins.inspiration.cache import InspirationCache
from nurdaily.plugins.inspiration.inspiration_base import create_sources
from nurdaily.plugins.inspiration.models import DailyInspiration
from nurdaily.plugins.inspiration.service import InspirationResolver
from nurdaily.plugins.journal.models import DailyEntry
from nurdaily.plugins.journal.service import EntryStore
from nurdaily.plugins.settings.service import SettingsStore
from nurdaily.plugins.tasbeeh.service import TasbeehCounter, TasbeehLog

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s'


def build_hijri_resolver(config_data: Dict[str, Any], cache: HijriDateCache) -> HijriResolver:
    return HijriResolver(cache, create_backends(config_data))


def build_inspiration_resolver(
    config_data: Dict[str, Any],
    cache: InspirationCache,
    today_provider: Optional[Callable[[], date]] = None,
) -> InspirationResolver:
    gemini, ayah_sources, hadith_sources = create_sources(config_data)
    return InspirationResolver(cache, gemini, ayah_sources, hadith_sources, today_provider)


class JournalApp:
    """Owns the stores, resolvers and clock, and the currently selected day.

    Background results are tagged with the key they were requested for and
    dropped when that key is no longer current.
    """

    def __init__(
        self,
        config_path: Optional[str] = None,
        config: Optional[Config] = None,
        setup_logging: bool = True,
        now_provider: Optional[Callable[[], datetime]] = None,
    ):
        self.logger = logging.getLogger(self.__class__.__name__)
        self.now_provider = now_provider or datetime.now

        self.config = config or Config(config_path=config_path)
        self.config.register_change_callback(self.handle_config_change)

        if setup_logging:
            self._setup_logging()

        # Initialize database (before stores so the table exists)
        init_db(self.config.data)

        self.store = KeyValueStore()
        self.entries = EntryStore(self.store)
        self.settings = SettingsStore(self.store)
        self.tasbeeh_log = TasbeehLog(self.store)
        self.tasbeeh = TasbeehCounter(self.tasbeeh_log)
        self.hijri_cache = HijriDateCache(self.store)
        self.inspiration_cache = InspirationCache(self.store)
        self.hijri = build_hijri_resolver(self.config.data, self.hijri_cache)
        self.inspiration = build_inspiration_resolver(self.config.data, self.inspiration_cache, self.today)

        self.task_manager = TaskManager()
        interval = self.config.get_section("clock").get("interval_seconds", 1)
        self.clock = DayClock(self.task_manager, self.handle_day_change, interval, self.now_provider)

        self._state_lock = threading.RLock()
        self._stop_event = threading.Event()
        self.selected_day: date = self.today()
        self.current_entry: DailyEntry = self.entry_for(self.selected_day)
        self.hijri_date: str = self.hijri.cached(self.selected_day)
        self.daily_inspiration: Optional[DailyInspiration] = None

        self.entries.register_replace_listener(self._on_entries_replaced)

    def _setup_logging(self) -> None:
        """Configure logging to write to both file and stdout"""
        logging_config = self.config.get_section("logging")
        root_logger = logging.getLogger()
        for handler in list(root_logger.handlers):
            root_logger.removeHandler(handler)
        root_logger.setLevel(getattr(logging, str(logging_config.get("level", "INFO")).upper(), logging.INFO))

        formatter = logging.Formatter(LOG_FORMAT)

        log_file = logging_config.get("file")
        if log_file:
            Path(log_file).parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file, encoding="utf-8")
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

        logging.info("Nur Daily starting...")

    def today(self) -> date:
        return self.now_provider().date()

    # Selection and entries

    def entry_for(self, day: DateLike) -> DailyEntry:
        """Saved entry for the day, else a blank one carrying any cached Hijri date."""
        return self.entries.get_or_blank(day, self.hijri.cached(day))

    def select_date(self, day: DateLike) -> DailyEntry:
        """Make day the current selection and start resolving its Hijri date."""
        day = to_date(day)
        with self._state_lock:
            self.selected_day = day
            self.current_entry = self.entry_for(day)
            self.hijri_date = self.hijri.cached(day) or self.current_entry.hijri_date
            entry = self.current_entry
        self.logger.debug(f"Selected {day}")
        self.task_manager.submit("hijri", day, self.hijri.lookup, day)
        return entry

    def save_entry(self, entry: DailyEntry) -> DailyEntry:
        """Upsert an entry; a missing Hijri snapshot is filled from the cache."""
        if not entry.hijri_date:
            cached = self.hijri.cached(entry.day_key)
            if cached:
                entry = entry.model_copy(update={"hijri_date": cached})
        saved = self.entries.upsert(entry)
        with self._state_lock:
            if saved.day_key == self.selected_day.isoformat():
                self.current_entry = saved
        return saved

    def _on_entries_replaced(self, entries) -> None:
        with self._state_lock:
            self.current_entry = self.entry_for(self.selected_day)
        self.logger.info(f"Entry collection replaced ({len(entries)} entries)")

    # Inspiration and day rollover

    def refresh_inspiration(self) -> None:
        today = self.today()
        self.task_manager.submit("inspiration", today, self.inspiration.lookup, today)

    def refresh_to_today(self) -> DailyEntry:
        """Select today and make sure today's inspiration is current."""
        entry = self.select_date(self.today())
        self.refresh_inspiration()
        return entry

    def handle_day_change(self, new_day: date) -> None:
        self.logger.info(f"New day {new_day}: reselecting today and refreshing inspiration")
        self.refresh_to_today()

    # Background results

    def handle_background_result(self, result: TaskResult) -> bool:
        """Apply a finished job to the current state. Returns False when dropped."""
        if result.error is not None or result.result is None:
            self.logger.warning(f"Dropping failed {result.name} result for {result.key}")
            return False

        with self._state_lock:
            if result.name == "hijri":
                if result.key != self.selected_day:
                    self.logger.debug(f"Dropping stale Hijri result for {result.key}, selected {self.selected_day}")
                    return False
                outcome = result.result
                self.hijri_date = outcome.value
                # unsaved blank entry: its snapshot follows the resolved date
                unsaved = self.entries.query(result.key) is None
                if unsaved and outcome.source != "static":
                    self.current_entry = self.current_entry.model_copy(update={"hijri_date": outcome.value})
                return True

            if result.name == "inspiration":
                if result.key != self.today():
                    self.logger.debug(f"Dropping inspiration for {result.key}, today is {self.today()}")
                    return False
                self.daily_inspiration = result.result.value
                return True

        self.logger.warning(f"Unknown background result: {result.name}")
        return False

    def drain_results(self) -> int:
        """Apply every queued background result. Returns how many were applied."""
        applied = 0
        while True:
            try:
                result = self.task_manager.result_queue.get_nowait()
            except Empty:
                break
            try:
                if self.handle_background_result(result):
                    applied += 1
            except Exception as e:
                self.logger.error(f"Error handling {result.name} result: {e}", exc_info=True)
        return applied

    # Maintenance

    def factory_reset(self) -> Dict[str, Any]:
        """Remove entries, settings, both caches and tasbeeh history."""
        entry_count = len(self.entries.list_entries())
        self.entries.clear()
        self.settings.reset()
        hijri_removed = self.hijri_cache.clear()
        self.inspiration_cache.clear()
        session_count = len(self.tasbeeh_log.history())
        self.tasbeeh_log.clear_history()
        self.tasbeeh = TasbeehCounter(self.tasbeeh_log)
        with self._state_lock:
            self.current_entry = self.entry_for(self.selected_day)
            self.hijri_date = ""
            self.daily_inspiration = None
        self.logger.warning("Factory reset: all local data removed")
        return {
            "entries": entry_count,
            "hijri_cache": hijri_removed,
            "tasbeeh_sessions": session_count,
        }

    def status(self) -> Dict[str, Any]:
        with self._state_lock:
            return {
                "today": self.today().isoformat(),
                "selected_date": self.selected_day.isoformat(),
                "hijri_date": self.hijri_date,
                "live_time": self.clock.live_time.isoformat(timespec="seconds"),
                "clock_running": self.clock.running,
                "entries": len(self.entries.list_entries()),
                "hijri_stages": self.hijri.chain.stage_names,
                "inspiration_stages": self.inspiration.chain.stage_names,
                "timers": self.task_manager.get_active_timers(),
            }

    def handle_config_change(self, new_config: Dict[str, Any]) -> None:
        """Rebuild resolvers and clock from the reloaded config"""
        self.logger.info("Handling config change")
        try:
            self.hijri = build_hijri_resolver(new_config, self.hijri_cache)
            self.inspiration = build_inspiration_resolver(new_config, self.inspiration_cache, self.today)

            interval = (new_config.get("clock") or {}).get("interval_seconds", 1)
            if interval != self.clock.interval:
                was_running = self.clock.running
                self.clock.stop()
                self.clock.interval = interval
                if was_running:
                    self.clock.start()

            level = (new_config.get("logging") or {}).get("level")
            if level:
                logging.getLogger().setLevel(getattr(logging, str(level).upper(), logging.INFO))
        except Exception as e:
            self.logger.error(f"Error handling config change: {e}", exc_info=True)

    def run(self, drain_interval: float = 0.5) -> None:
        """Start the clock and API server, then apply results until stopped."""
        from nurdaily.api.server import run_api_server

        try:
            self.clock.start()
            run_api_server(self)
            self.refresh_to_today()
            while not self._stop_event.wait(drain_interval):
                self.drain_results()
        except KeyboardInterrupt:
            self.logger.info("Interrupted, shutting down")
        finally:
            self.stop()

    def stop(self) -> None:
        self._stop_event.set()
        self.clock.stop()
        self.task_manager.stop()
        self.config.cleanup()
