import asyncio
import json
import threading
import time

import pytest

from conftest import CONFIG_RECORD, FakeStorage, make_settings
from core.errors import ConfigError, StorageError
from core.lfs_config import ConfigProvider, parse_lfs_config


def test_parse_reads_camel_case_record():
    cfg = parse_lfs_config(json.dumps(CONFIG_RECORD).encode("utf-8"), "test")
    assert cfg.upload_expiration == 900
    assert cfg.download_expiration == 3600
    assert (cfg.repo.owner, cfg.repo.repo) == ("acme", "assets")


@pytest.mark.parametrize(
    "raw",
    [
        b"",
        b"   ",
        b"{not json",
        b'{"uploadExpiration": 900}',
        b'{"uploadExpiration": 0, "downloadExpiration": 60, "repo": {"owner": "a", "repo": "b"}}',
        b'{"uploadExpiration": 900, "downloadExpiration": 604801, "repo": {"owner": "a", "repo": "b"}}',
        b'{"uploadExpiration": 900, "downloadExpiration": 60, "repo": {"owner": "", "repo": "b"}}',
    ],
)
def test_parse_rejects_empty_or_malformed(raw):
    with pytest.raises(ConfigError):
        parse_lfs_config(raw, "test")


def test_config_is_immutable():
    cfg = parse_lfs_config(json.dumps(CONFIG_RECORD).encode("utf-8"), "test")
    with pytest.raises(Exception):
        cfg.upload_expiration = 1


@pytest.mark.asyncio
async def test_load_is_memoized():
    storage = FakeStorage()
    provider = ConfigProvider.from_settings(make_settings().lfs_config, storage)

    first = await provider.load()
    second = await provider.load()

    assert first is second
    assert storage.config_reads == 1
    assert provider.source == "s3://lfs-test/config.json"


@pytest.mark.asyncio
async def test_concurrent_first_loads_fetch_once():
    calls = []
    lock = threading.Lock()

    def slow_fetch() -> bytes:
        with lock:
            calls.append(1)
        time.sleep(0.05)
        return json.dumps(CONFIG_RECORD).encode("utf-8")

    provider = ConfigProvider(slow_fetch, source="test")
    results = await asyncio.gather(*(provider.load() for _ in range(8)))

    assert len(calls) == 1
    assert all(r is results[0] for r in results)


@pytest.mark.asyncio
async def test_fetch_failure_is_config_error_and_not_cached():
    attempts = []

    def failing_fetch() -> bytes:
        attempts.append(1)
        raise StorageError("get_object failed: AccessDenied")

    provider = ConfigProvider(failing_fetch, source="s3://lfs-test/config.json")

    with pytest.raises(ConfigError):
        await provider.load()
    with pytest.raises(ConfigError):
        await provider.load()

    # one fetch per call, no retry inside a call
    assert len(attempts) == 2


@pytest.mark.asyncio
async def test_empty_object_is_config_error():
    provider = ConfigProvider.from_settings(make_settings().lfs_config, FakeStorage(config=b""))
    with pytest.raises(ConfigError):
        await provider.load()


@pytest.mark.asyncio
async def test_file_source_reads_local_json(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps(CONFIG_RECORD), encoding="utf-8")

    settings = make_settings(config_source="file", config_path=str(path))
    provider = ConfigProvider.from_settings(settings.lfs_config, FakeStorage())

    cfg = await provider.load()
    assert cfg.repo.repo == "assets"


@pytest.mark.asyncio
async def test_missing_file_is_config_error(tmp_path):
    settings = make_settings(config_source="file", config_path=str(tmp_path / "nope.json"))
    provider = ConfigProvider.from_settings(settings.lfs_config, FakeStorage())

    with pytest.raises(ConfigError):
        await provider.load()
