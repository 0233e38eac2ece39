import yaml
from pathlib import Path
import copy
import os
from typing import Any, Dict, Optional, List, Callable
import logging
from watchdog.observers import Observer
from watchdog.events import FileSystemEventHandler, FileModifiedEvent
import time
import re

logger = logging.getLogger(__name__)

DEFAULT_CONFIG: Dict[str, Any] = {
    "database": {
        "path": "~/.nur_daily/journal.db",
    },
    "logging": {
        "level": "INFO",
        "file": "~/.nur_daily/nur_daily.log",
    },
    "api": {
        "enabled": True,
        "host": "127.0.0.1",
        "port": 8765,
    },
    "clock": {
        "interval_seconds": 1,
    },
    "hijri": {
        "backends": ["aladhan"],  # tried in order before the local calculator
        "timeout": 8,
    },
    "inspiration": {
        "backend": "providers",  # gemini | providers | offline
        "timeout": 10,
    },
    "gemini": {
        "api_key": "${GEMINI_API_KEY}",
        "model": "gemini-2.0-flash",
    },
    "hadith_api": {
        "api_key": "${HADITH_API_KEY}",
        "base_url": "https://hadithapi.com/api",
        "book": "sahih-bukhari",
    },
    "quran_api": {
        "base_url": "https://api.alquran.cloud/v1",
    },
}


class ConfigChangeHandler(FileSystemEventHandler):
    def __init__(self, config):
        self.config = config
        self.last_modified = 0
        self.cooldown = 1.0  # seconds

    def on_modified(self, event):
        if not isinstance(event, FileModifiedEvent):
            return

        current_time = time.time()
        if current_time - self.last_modified < self.cooldown:
            return

        if event.src_path == str(self.config.config_file):
            try:
                self.last_modified = current_time
                self.config.reload()
            except Exception as e:
                logger.error(f"Error handling config change: {e}")


class Config:
    def __init__(self, config_path: Optional[str] = None, watch: bool = True):
        logger.debug("Initializing Config class")

        self.change_callbacks: List[Callable] = []
        self._loading = False  # Lock to prevent recursive reloading
        self.observer = None

        if config_path:
            self.config_file = Path(config_path).expanduser().resolve()
            self.config_dir = self.config_file.parent
        else:
            self.config_dir = Path.home() / ".nur_daily"
            self.config_file = self.config_dir / "config.yaml"

        logger.debug(f"Using config file: {self.config_file}")

        # Load environment variables from .env file
        self._load_env_file()

        self._ensure_config_exists()
        self._load_config()

        if watch:
            self.observer = Observer()
            handler = ConfigChangeHandler(self)
            logger.info(f"Path monitored for reloading: {self.config_dir}")
            self.observer.schedule(handler, str(self.config_dir), recursive=False)
            self.observer.start()

    def register_change_callback(self, callback: Callable) -> None:
        """Register a callback to be called when config changes"""
        self.change_callbacks.append(callback)

    def reload(self) -> None:
        """Reload config and notify listeners"""
        if self._loading:
            return

        self._loading = True
        try:
            logger.info("Config file change detected - reloading configuration")

            # Wait briefly for file to be fully written
            time.sleep(0.1)

            old_config = copy.deepcopy(self.data) if hasattr(self, "data") else {}
            self._load_config()

            self._log_config_changes(old_config, self.data)

            for callback in self.change_callbacks:
                try:
                    callback(self.data)
                except Exception as e:
                    logger.error(f"Error in config change callback: {e}")

        except Exception as e:
            logger.error(f"Error reloading config: {e}")
            logger.exception(e)
        finally:
            self._loading = False

    def _log_config_changes(self, old_config: Dict, new_config: Dict) -> None:
        """Log the differences between old and new configs"""
        def compare_dict(path: str, dict1: Dict, dict2: Dict) -> None:
            all_keys = set(dict1.keys()) | set(dict2.keys())
            for key in all_keys:
                current_path = f"{path}.{key}" if path else key

                if key in dict1 and key in dict2:
                    if isinstance(dict1[key], dict) and isinstance(dict2[key], dict):
                        compare_dict(current_path, dict1[key], dict2[key])
                    elif dict1[key] != dict2[key]:
                        logger.info(f"Config changed: {current_path}: {_mask(key, dict1[key])} -> {_mask(key, dict2[key])}")

                elif key in dict1:
                    logger.info(f"Config removed: {current_path}")

                else:
                    logger.info(f"Config added: {current_path}: {_mask(key, dict2[key])}")

        logger.info("=== Configuration Changes Detected ===")
        compare_dict("", old_config, new_config)
        logger.info("=== End of Configuration Changes ===")

    def cleanup(self) -> None:
        """Stop the file observer"""
        if self.observer is not None:
            self.observer.stop()
            self.observer.join()
            self.observer = None

    def _ensure_config_exists(self) -> None:
        """Create default config if it doesn't exist"""
        if not self.config_dir.exists():
            logger.info(f"Creating config directory: {self.config_dir}")
            self.config_dir.mkdir(parents=True)

        if not self.config_file.exists():
            logger.info(f"Creating default config file: {self.config_file}")
            self.config_file.write_text(yaml.safe_dump(DEFAULT_CONFIG, sort_keys=False))

    def _load_env_file(self) -> None:
        """Load environment variables from .env file"""
        env_files = [
            self.config_dir / ".env",
            Path.cwd() / ".env",
        ]

        env_file = None
        for path in env_files:
            if path.exists():
                env_file = path
                break

        if not env_file:
            logger.debug("No .env file found, skipping environment variable loading")
            return

        logger.info(f"Loading environment variables from: {env_file}")
        try:
            with open(env_file, "r") as f:
                for line in f:
                    line = line.strip()
                    if not line or line.startswith("#"):
                        continue

                    # KEY=VALUE
                    match = re.match(r"^([A-Za-z_][A-Za-z0-9_]*)\s*=\s*(.*)$", line)
                    if match:
                        key, value = match.groups()
                        value = value.strip('"').strip("'")
                        # existing environment wins
                        if key not in os.environ:
                            os.environ[key] = value
                            logger.debug(f"Loaded env var: {key}")
        except OSError as e:
            logger.warning(f"Error loading .env file: {e}")

    def _substitute_env_vars(self, data: Any) -> Any:
        """Recursively substitute environment variables in config data"""
        if isinstance(data, dict):
            return {key: self._substitute_env_vars(value) for key, value in data.items()}
        elif isinstance(data, list):
            return [self._substitute_env_vars(item) for item in data]
        elif isinstance(data, str):
            # ${VAR_NAME} or $VAR_NAME; unresolved references are left as-is
            if data.startswith("${") and data.endswith("}"):
                return os.environ.get(data[2:-1], data)
            elif data.startswith("$") and len(data) > 1:
                return os.environ.get(data[1:], data)
            return data
        else:
            return data

    def _load_config(self) -> None:
        """Load configuration from file, section by section over the defaults"""
        try:
            logger.debug(f"Loading config from: {self.config_file}")
            with open(self.config_file) as f:
                new_data = yaml.safe_load(f)

            if new_data is None:
                new_data = {}
            if not isinstance(new_data, dict):
                raise ValueError("Invalid config format: root must be a dictionary")

            new_data = self._substitute_env_vars(_merge_sections(DEFAULT_CONFIG, new_data))

            for section in ("database", "logging"):
                for key in ("path", "file"):
                    value = new_data.get(section, {}).get(key)
                    if isinstance(value, str):
                        new_data[section][key] = os.path.expanduser(value)

            self.data = new_data

        except (OSError, ValueError, yaml.YAMLError) as e:
            logger.error(f"Error loading config: {e}")
            if hasattr(self, "data"):
                logger.info("Keeping previous configuration")
            else:
                logger.info("Using default configuration")
                self.data = self._get_default_config()

    def _get_default_config(self) -> Dict[str, Any]:
        return self._substitute_env_vars(copy.deepcopy(DEFAULT_CONFIG))

    def get_section(self, name: str) -> Dict[str, Any]:
        """Config section as a dict, empty when missing"""
        section = self.data.get(name)
        return section if isinstance(section, dict) else {}


def _merge_sections(defaults: Dict[str, Any], loaded: Dict[str, Any]) -> Dict[str, Any]:
    """Loaded sections override default sections key by key"""
    merged = copy.deepcopy(defaults)
    for key, value in loaded.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key].update(value)
        else:
            merged[key] = value
    return merged


def _mask(key: str, value: Any) -> Any:
    return "***" if "key" in str(key).lower() else value
