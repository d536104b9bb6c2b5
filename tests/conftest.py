import base64
import json
import sys
from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple

import pytest

# Tests import top-level packages (core, batch, auth, ...) like the app does.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from auth.models import GitPermissions  # noqa: E402
from core.errors import StorageError  # noqa: E402
from core.settings import IdentitySettings, LfsConfigSettings, Settings, StorageSettings  # noqa: E402
from providers.identity import IdentityProviderError  # noqa: E402
from providers.storage import NOT_FOUND, ObjectProbe  # noqa: E402

UPLOAD_EXPIRATION = 900
DOWNLOAD_EXPIRATION = 3600

CONFIG_RECORD = {
    "uploadExpiration": UPLOAD_EXPIRATION,
    "downloadExpiration": DOWNLOAD_EXPIRATION,
    "repo": {"owner": "acme", "repo": "assets"},
}


def basic_header(username: str, token: str) -> str:
    raw = f"{username}:{token}".encode("utf-8")
    return "Basic " + base64.b64encode(raw).decode("ascii")


class FakeStorage:
    """In-memory object store; presigned URLs encode what was asked for."""

    bucket = "lfs-test"

    def __init__(self, objects: Optional[Dict[str, int]] = None, config: Optional[bytes] = None):
        self.objects = dict(objects or {})
        self.config = json.dumps(CONFIG_RECORD).encode("utf-8") if config is None else config
        self.failing: Set[str] = set()
        self.config_reads = 0
        self.uploads: List[Tuple[str, int, int]] = []
        self.downloads: List[Tuple[str, int]] = []

    def get_object(self, key: str) -> bytes:
        if key != "config.json":
            raise StorageError(f"no such key {key}")
        self.config_reads += 1
        return self.config

    def probe_object(self, oid: str) -> ObjectProbe:
        if oid in self.failing:
            raise StorageError(f"head_object failed for {oid}: AccessDenied")
        if oid in self.objects:
            return ObjectProbe(found=True, size=self.objects[oid])
        return NOT_FOUND

    def presign_upload(self, oid: str, size: int, ttl_seconds: int) -> str:
        self.uploads.append((oid, size, ttl_seconds))
        return f"https://s3.test/put/{oid}?size={size}&ttl={ttl_seconds}"

    def presign_download(self, oid: str, ttl_seconds: int) -> str:
        self.downloads.append((oid, ttl_seconds))
        return f"https://s3.test/get/{oid}?ttl={ttl_seconds}"


class FakeIdentity:
    """Token -> (login, permissions) table standing in for GitHub."""

    def __init__(self, users: Optional[Dict[str, Tuple[str, GitPermissions]]] = None):
        self.users = dict(users or {})
        self.permission_queries: List[Tuple[str, str]] = []

    async def login_for_token(self, token: str) -> str:
        if token not in self.users:
            raise IdentityProviderError("GitHub /user returned 401")
        return self.users[token][0]

    async def repository_permissions(self, token: str, owner: str, repo: str) -> GitPermissions:
        self.permission_queries.append((owner, repo))
        return self.users[token][1]


def make_settings(config_source: str = "s3", config_path: str = "") -> Settings:
    return Settings(
        storage=StorageSettings(bucket="lfs-test"),
        lfs_config=LfsConfigSettings(source=config_source, path=config_path),
        identity=IdentitySettings(github_api_url="https://api.github.test", timeout_seconds=5.0),
        log_level="DEBUG",
    )


@pytest.fixture
def storage():
    return FakeStorage(objects={"present-oid": 10})


@pytest.fixture
def identity():
    return FakeIdentity(
        users={
            "tok-writer": ("Alice", GitPermissions(push=True, pull=True)),
            "tok-reader": ("bob", GitPermissions(push=False, pull=True)),
            "tok-outsider": ("carol", GitPermissions(push=False, pull=False)),
        }
    )
