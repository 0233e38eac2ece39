import os

import yaml

from nurdaily.core.config import DEFAULT_CONFIG, Config


def _unset(monkeypatch, name):
    # recorded so a value loaded from .env is removed again afterwards
    monkeypatch.setenv(name, "")
    monkeypatch.delenv(name)


def test_default_file_is_created(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    path = tmp_path / "conf" / "config.yaml"

    config = Config(str(path), watch=False)

    assert path.exists()
    assert yaml.safe_load(path.read_text())["api"]["port"] == DEFAULT_CONFIG["api"]["port"]
    assert config.get_section("hijri")["backends"] == ["aladhan"]


def test_sections_merge_over_defaults(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump({"api": {"port": 9000}, "database": {"path": "~/journal.db"}}))

    config = Config(str(path), watch=False)

    assert config.get_section("api") == {"enabled": True, "host": "127.0.0.1", "port": 9000}
    assert config.get_section("database")["path"] == os.path.expanduser("~/journal.db")
    assert config.get_section("missing") == {}


def test_env_references_are_substituted(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("GEMINI_API_KEY", "from-env")
    _unset(monkeypatch, "HADITH_API_KEY")
    path = tmp_path / "config.yaml"
    path.write_text("inspiration:\n  backend: gemini\n")

    config = Config(str(path), watch=False)

    assert config.get_section("gemini")["api_key"] == "from-env"
    # unresolved references stay as written
    assert config.get_section("hadith_api")["api_key"] == "${HADITH_API_KEY}"


def test_dotenv_beside_config_does_not_override_environment(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("GEMINI_API_KEY", "already-set")
    _unset(monkeypatch, "HADITH_API_KEY")
    (tmp_path / ".env").write_text("# keys\nHADITH_API_KEY='from-dotenv'\nGEMINI_API_KEY=ignored\n")
    path = tmp_path / "config.yaml"
    path.write_text("{}\n")

    config = Config(str(path), watch=False)

    assert config.get_section("hadith_api")["api_key"] == "from-dotenv"
    assert config.get_section("gemini")["api_key"] == "already-set"


def test_invalid_yaml_falls_back_to_defaults(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    path = tmp_path / "config.yaml"
    path.write_text("- just\n- a list\n")

    config = Config(str(path), watch=False)

    assert config.get_section("clock") == {"interval_seconds": 1}


def test_reload_keeps_previous_config_on_error_and_notifies(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump({"api": {"port": 9000}}))
    config = Config(str(path), watch=False)
    seen = []
    config.register_change_callback(seen.append)

    path.write_text("api: [unclosed\n")
    config.reload()
    assert config.get_section("api")["port"] == 9000

    path.write_text(yaml.safe_dump({"api": {"port": 9001}}))
    config.reload()
    assert config.get_section("api")["port"] == 9001
    assert seen[-1]["api"]["port"] == 9001
