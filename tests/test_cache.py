from unittest.mock import Mock

import pytest

from transferwise_rates import (
    CallbackCacheStore,
    FileCacheStore,
    InvalidCache,
    build_cache_store,
)

from .conftest import USD_RECORDS, payload


def test_file_cache_round_trip_is_exact(cache_file):
    store = FileCacheStore(cache_file)
    text = payload(USD_RECORDS) + "\r\n"

    store.write(text)

    assert store.read() == text
    assert cache_file.read_bytes() == text.encode("utf-8")


def test_file_cache_read_before_write_is_none(cache_file):
    assert FileCacheStore(cache_file).read() is None


def test_file_cache_unwritable_target_raises_invalid_cache(tmp_path):
    store = FileCacheStore(tmp_path / "missing" / "rates.json")

    with pytest.raises(InvalidCache):
        store.write(payload(USD_RECORDS))


def test_callback_cache_single_function():
    stored = {}

    def cache(text=None):
        if text is None:
            return stored.get("rates")
        stored["rates"] = text

    store = CallbackCacheStore(cache)
    assert store.read() is None

    store.write("[]")
    assert store.read() == "[]"


def test_callback_cache_reader_writer_pair():
    reader = Mock(return_value=b'[{"target": "EUR"}]')
    writer = Mock()
    store = CallbackCacheStore(reader=reader, writer=writer)

    store.write("payload")

    writer.assert_called_once_with("payload")
    assert store.read() == '[{"target": "EUR"}]'


def test_callback_cache_requires_both_directions():
    with pytest.raises(ValueError):
        CallbackCacheStore(reader=lambda: None)


def test_build_cache_store(cache_file):
    assert build_cache_store(None) is None
    assert isinstance(build_cache_store(cache_file), FileCacheStore)
    assert isinstance(build_cache_store(str(cache_file)), FileCacheStore)
    assert isinstance(build_cache_store(lambda text=None: None), CallbackCacheStore)

    store = FileCacheStore(cache_file)
    assert build_cache_store(store) is store

    with pytest.raises(TypeError):
        build_cache_store(42)


def test_file_cache_write_replaces_previous_payload(cache_file):
    store = FileCacheStore(cache_file)
    store.write(payload(USD_RECORDS))

    store.write("[]")

    assert store.read() == "[]"
    assert [p.name for p in cache_file.parent.iterdir()] == [cache_file.name]


def test_file_cache_failed_write_keeps_old_payload(cache_file, monkeypatch):
    store = FileCacheStore(cache_file)
    store.write(payload(USD_RECORDS))

    def fail_replace(src, dst):
        raise PermissionError("read-only")

    monkeypatch.setattr("transferwise_rates.cache.os.replace", fail_replace)
    with pytest.raises(InvalidCache):
        store.write("[]")

    assert store.read() == payload(USD_RECORDS)
    assert [p.name for p in cache_file.parent.iterdir()] == [cache_file.name]


def test_callback_cache_writer_error_raises_invalid_cache():
    writer = Mock(side_effect=OSError("backend down"))
    store = CallbackCacheStore(reader=lambda: None, writer=writer)

    with pytest.raises(InvalidCache) as exc_info:
        store.write(payload(USD_RECORDS))

    assert isinstance(exc_info.value.__cause__, OSError)
