from datetime import datetime

import pytest
import yaml

from nurdaily.core import db
from nurdaily.core.config import Config
from nurdaily.core.journal_app import JournalApp
from nurdaily.core.kv_store import KeyValueStore


NOW = datetime(2024, 3, 11, 10, 30)


@pytest.fixture
def kv_store(tmp_path):
    db.init_db(db_url=f"sqlite:///{tmp_path / 'journal.db'}")
    yield KeyValueStore()
    db.dispose_db()


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump({
        "database": {"path": str(tmp_path / "app.db")},
        "logging": {"level": "DEBUG", "file": str(tmp_path / "nur_daily.log")},
        "api": {"enabled": False},
        "hijri": {"backends": []},
        "inspiration": {"backend": "offline"},
    }))
    return path


@pytest.fixture
def clock():
    """Mutable 'now' shared by the app under test"""
    class Clock:
        now = NOW

        def __call__(self):
            return self.now

    return Clock()


@pytest.fixture
def journal_app(config_file, clock):
    config = Config(config_path=str(config_file), watch=False)
    app = JournalApp(config=config, setup_logging=False, now_provider=clock)
    yield app
    app.stop()
    db.dispose_db()
