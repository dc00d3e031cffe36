from pathlib import Path

from taxonsearch.cache_manager import (
    clear_cache,
    compute_file_metadata_hash,
    get_cache_stats,
    load_cache,
    registry_cache_key,
    save_cache,
    set_cache_namespace,
)
from taxonsearch.config import config


def test_compute_file_metadata_hash_changes_when_file_updates(tmp_path):
    data_file = tmp_path / "taxa.csv"
    data_file.write_text("id,name_string\n1,Rosa canina\n")

    first = compute_file_metadata_hash([str(data_file)])
    # Ensure metadata (size + mtime) changes
    data_file.write_text("id,name_string\n1,Rosa canina\n2,Rosa arvensis\n")
    second = compute_file_metadata_hash([str(data_file)])

    assert first != second
    assert compute_file_metadata_hash([]) == ""


def test_diskcache_round_trip():
    namespace = set_cache_namespace("pytest_cache")
    assert Path(namespace).exists()
    assert config.cache_dir == str(namespace)

    payload = {"value": 42}
    checksum = "unit-test-checksum"
    save_cache("unit_test_key", payload, checksum)

    assert load_cache("unit_test_key", checksum) == payload
    assert load_cache("unit_test_key", "other-checksum") is None
    assert load_cache("missing_key", checksum) is None


def test_expired_entry_is_a_miss():
    save_cache("old_key", [1, 2, 3], "sum")
    assert load_cache("old_key", "sum", max_age=-1) is None
    assert load_cache("old_key", "sum", max_age=3600) == [1, 2, 3]


def test_stats_and_clear(tmp_path):
    key = registry_cache_key(str(tmp_path / "taxa.csv"))
    assert key.startswith("taxon_registry::")

    save_cache(key, {"1": "Rosa canina"}, "sum", metadata={"taxon_count": 1})
    save_cache("other::entry", "x", "sum")

    stats = get_cache_stats()
    assert stats["entry_count"] == 2
    assert stats["meta_count"] == 2
    assert stats["prefix_counts"] == {"taxon_registry": 1, "other": 1}

    assert clear_cache("taxon_registry") == 2
    assert clear_cache() == 2
    assert get_cache_stats()["entry_count"] == 0
