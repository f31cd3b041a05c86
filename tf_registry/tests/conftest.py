"""テスト共通フィクスチャ

S3の代わりにメモリ上のStorageBackendを使用する。
"""

import hashlib
from datetime import datetime, timezone
from typing import Dict, Optional

import pytest
from fastapi.testclient import TestClient

from tf_registry.config import RegistryConfig
from tf_registry.main import create_app
from tf_registry.services.storage import StorageBackend, StoredObject, StorageNotFoundError

LAST_MODIFIED = datetime(2025, 12, 15, 10, 0, 0, tzinfo=timezone.utc)


class MemoryStoredObject(StoredObject):
    def __init__(self, path: str, data: bytes):
        super().__init__(
            path=path,
            size=len(data),
            last_modified=LAST_MODIFIED,
            etag=f'"{hashlib.md5(data).hexdigest()}"'
        )
        self._data = data

    def iter_bytes(self, start=0, end=None, chunk_size=4):
        stop = self.size if end is None else end + 1
        for offset in range(start, stop, chunk_size):
            yield self._data[offset:min(offset + chunk_size, stop)]


class MemoryStorageBackend(StorageBackend):
    """キー→バイト列の辞書をディレクトリ階層として扱う"""

    def __init__(self, files: Optional[Dict[str, bytes]] = None, error: Optional[Exception] = None):
        self.files = dict(files or {})
        self.error = error
        self.opened = []

    def list_dir(self, path):
        if self.error:
            raise self.error
        key = path.strip('/')
        prefix = f"{key}/" if key else ''
        entries = []
        for name in self.files:
            if name.startswith(prefix):
                child = name[len(prefix):].split('/')[0]
                if child not in entries:
                    entries.append(child)
        if not entries:
            raise StorageNotFoundError(f"directory not found: {key}")
        return entries

    def open(self, path):
        if self.error:
            raise self.error
        key = path.strip('/')
        self.opened.append(key)
        if key not in self.files:
            raise StorageNotFoundError(f"object not found: {key}")
        return MemoryStoredObject(key, self.files[key])


VPC_ARCHIVE = b"\x1f\x8b\x08\x00fake-vpc-archive-bytes"


@pytest.fixture
def module_files():
    return {
        "acme/vpc/aws/1.0.0/vpc.tgz": VPC_ARCHIVE,
        "acme/vpc/aws/1.1.0/vpc.tgz": b"vpc-1.1.0",
        "acme/vpc/aws/2.0.0/vpc.tgz": b"vpc-2.0.0",
        "acme/dns/google/0.1.0/dns.tgz": b"dns-0.1.0",
    }


@pytest.fixture
def storage(module_files):
    return MemoryStorageBackend(module_files)


@pytest.fixture
def config():
    return RegistryConfig(bucket="test-bucket")


@pytest.fixture
def make_client():
    """任意の設定・ストレージでTestClientを生成"""
    def factory(config: RegistryConfig, storage: StorageBackend) -> TestClient:
        return TestClient(create_app(config, storage))
    return factory


@pytest.fixture
def client(make_client, config, storage):
    return make_client(config, storage)
