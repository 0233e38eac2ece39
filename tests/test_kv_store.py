import threading
from datetime import date

import pytest

from nurdaily.core.cache_helper import CacheHelper
from nurdaily.core.errors import StorageCorruption


def test_set_get_remove(kv_store):
    assert kv_store.get("missing") is None

    kv_store.set("a", "one")
    kv_store.set("a", "two")
    assert kv_store.get("a") == "two"

    kv_store.remove("a")
    assert kv_store.get("a") is None


def test_json_values_keep_unicode(kv_store):
    kv_store.set_json("k", {"arabic": "سُبْحَانَ ٱللَّٰهِ", "n": [1, 2]})

    assert "سُبْحَانَ" in kv_store.get("k")
    assert kv_store.get_json("k") == {"arabic": "سُبْحَانَ ٱللَّٰهِ", "n": [1, 2]}


def test_corrupt_json_raises(kv_store):
    kv_store.set("k", "{not json")

    with pytest.raises(StorageCorruption) as exc:
        kv_store.get_json("k")
    assert exc.value.key == "k"


def test_prefix_operations_treat_underscore_literally(kv_store):
    kv_store.set_json("hijri_cache:2024-03-01", "x")
    kv_store.set_json("hijri_cache:2024-03-02", "y")
    kv_store.set_json("hijriXcache:2024-03-01", "z")

    assert kv_store.keys("hijri_cache:") == ["hijri_cache:2024-03-01", "hijri_cache:2024-03-02"]
    assert kv_store.remove_prefix("hijri_cache:") == 2
    assert kv_store.keys() == ["hijriXcache:2024-03-01"]


def test_cached_content_is_same_day_only(kv_store):
    cache = CacheHelper(kv_store)
    cache.save_to_cache("daily", {"v": 1}, today=date(2024, 3, 1))

    assert kv_store.get_json("daily") == {"date": "2024-03-01", "data": {"v": 1}}
    assert cache.get_cached_content("daily", today=date(2024, 3, 1)) == {"v": 1}
    assert cache.get_cached_content("daily", today=date(2024, 3, 2)) is None


def test_corrupt_cache_entry_is_a_miss(kv_store):
    cache = CacheHelper(kv_store, "comp")
    kv_store.set("comp:key", "][")

    assert cache.read("key") is None
    assert cache.get_cached_content("key") is None


def test_clear_requires_prefix(kv_store):
    with pytest.raises(ValueError):
        CacheHelper(kv_store).clear()

    cache = CacheHelper(kv_store, "comp")
    cache.write("a", 1)
    cache.write("b", 2)
    kv_store.set_json("other", 3)

    assert cache.clear() == 2
    assert kv_store.get_json("other") == 3


def test_concurrent_first_writes_to_one_key(kv_store):
    errors = []

    def write(key, value, barrier):
        barrier.wait()
        try:
            kv_store.set(key, value)
        except Exception as e:
            errors.append(e)

    for round_no in range(20):
        key = f"race:{round_no}"
        barrier = threading.Barrier(4)
        threads = [threading.Thread(target=write, args=(key, f'"{n}"', barrier)) for n in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=10)
        assert kv_store.get(key) in {'"0"', '"1"', '"2"', '"3"'}

    assert errors == []
    assert len(kv_store.keys("race:")) == 20
