import pytest

from nurdaily.plugins.settings.models import ThemeMode
from nurdaily.plugins.settings.service import SETTINGS_KEY, SettingsStore


def test_defaults_when_nothing_stored(kv_store):
    settings = SettingsStore(kv_store).settings

    assert settings.theme is ThemeMode.LIGHT
    assert settings.notifications_enabled is True
    assert settings.auto_prayer_times is False
    assert settings.daily_reminder_time == "21:30"
    assert settings.alarms.fajr.time == "05:15"
    assert settings.alarms.esha.time == "20:00"


def test_partial_alarm_update_keeps_other_prayers(kv_store):
    store = SettingsStore(kv_store)
    before = store.settings.alarms.model_dump()

    store.update({"alarms": {"fajr": {"enabled": False}}})

    after = store.settings.alarms.model_dump()
    assert after["fajr"] == {"enabled": False, "time": "05:15"}
    for prayer in ("zuhr", "asar", "maghrib", "esha"):
        assert after[prayer] == before[prayer]
    assert kv_store.get_json(SETTINGS_KEY)["alarms"]["zuhr"] == {"enabled": True, "time": "13:15"}


def test_top_level_update_is_shallow_merge(kv_store):
    store = SettingsStore(kv_store)
    store.update({"theme": "royal", "autoPrayerTimes": True, "location": {"lat": 24.86, "lng": 67.0}})
    store.update({"notificationsEnabled": False})

    settings = SettingsStore(kv_store).settings
    assert settings.theme is ThemeMode.ROYAL
    assert settings.location.lat == 24.86
    assert settings.notifications_enabled is False


def test_field_names_accepted_as_keys(kv_store):
    store = SettingsStore(kv_store)
    store.update({"daily_reminder_time": "22:00"})

    assert kv_store.get_json(SETTINGS_KEY)["dailyReminderTime"] == "22:00"


def test_invalid_update_leaves_settings_unchanged(kv_store):
    store = SettingsStore(kv_store)

    with pytest.raises(ValueError):
        store.update({"alarms": {"tahajjud": {"time": "03:00"}}})
    with pytest.raises(ValueError):
        store.update({"alarms": {"fajr": {"time": "25:00"}}})
    with pytest.raises(ValueError):
        store.update({"theme": "neon"})

    assert store.settings.alarms.fajr.time == "05:15"
    assert store.settings.theme is ThemeMode.LIGHT
    assert kv_store.get(SETTINGS_KEY) is None


def test_load_merges_persisted_over_defaults(kv_store):
    kv_store.set_json(SETTINGS_KEY, {
        "theme": "dark",
        "alarms": {"maghrib": {"time": "18:40"}, "unknown": {"time": "01:00"}},
    })

    settings = SettingsStore(kv_store).settings
    assert settings.theme is ThemeMode.DARK
    assert settings.alarms.maghrib.time == "18:40"
    assert settings.alarms.maghrib.enabled is True
    assert settings.alarms.fajr.time == "05:15"
    assert settings.daily_reminder_time == "21:30"


def test_corrupt_settings_fall_back_to_defaults(kv_store):
    kv_store.set(SETTINGS_KEY, "{{{")

    assert SettingsStore(kv_store).settings.theme is ThemeMode.LIGHT


def test_reset(kv_store):
    store = SettingsStore(kv_store)
    store.update({"theme": "dark"})

    store.reset()

    assert store.settings.theme is ThemeMode.LIGHT
    assert kv_store.get(SETTINGS_KEY) is None


def test_listeners_see_updates(kv_store):
    store = SettingsStore(kv_store)
    seen = []
    store.register_change_listener(seen.append)

    store.update({"theme": "system"})

    assert seen[0].theme is ThemeMode.SYSTEM


def test_invalid_stored_fields_fall_back_one_by_one(kv_store):
    kv_store.set_json(SETTINGS_KEY, {
        "theme": "sepia",
        "dailyReminderTime": "22:00",
        "alarms": {"fajr": {"enabled": False, "time": "4:30am"}, "esha": {"time": "21:10"}},
    })

    settings = SettingsStore(kv_store).settings

    assert settings.theme is ThemeMode.LIGHT
    assert settings.daily_reminder_time == "22:00"
    assert settings.alarms.fajr.enabled is False
    assert settings.alarms.fajr.time == "05:15"
    assert settings.alarms.esha.time == "21:10"


def test_location_only_kept_with_auto_prayer_times(kv_store):
    store = SettingsStore(kv_store)

    store.update({"location": {"lat": 21.42, "lng": 39.82}})
    assert store.settings.location is None

    store.update({"autoPrayerTimes": True, "location": {"lat": 21.42, "lng": 39.82}})
    assert store.settings.location.lng == 39.82

    store.update({"autoPrayerTimes": False})
    assert store.settings.location is None
    assert kv_store.get_json(SETTINGS_KEY)["location"] is None
