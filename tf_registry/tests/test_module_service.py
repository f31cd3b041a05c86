"""モジュールレジストリサービスのユニットテスト

テスト対象:
- get_discovery_document
- list_versions
- locate_download
- resolve_download_path
"""

import pytest
from unittest.mock import patch

from tf_registry.services.module_paths import MalformedIdentityError, ModuleIdentity, resolve_artifact_path
from tf_registry.services.module_service import (
    get_discovery_document,
    list_versions,
    locate_download,
    resolve_download_path
)
from tf_registry.services.storage import StorageAccessError, StorageNotFoundError
from tf_registry.tests.conftest import MemoryStorageBackend


# ==================== Discovery ====================

def test_discovery_document():
    assert get_discovery_document() == {"modules.v1": "/terraform/modules/v1"}


def test_discovery_document_is_not_shared():
    """呼び出し側が変更しても次の呼び出しに影響しない"""
    document = get_discovery_document()
    document["modules.v1"] = "/changed"
    assert get_discovery_document() == {"modules.v1": "/terraform/modules/v1"}


# ==================== list_versions ====================

class TestListVersions:
    """list_versions のテスト"""

    def test_lists_each_version_once(self, storage):
        """正常系: バージョンディレクトリがそのままバージョンになる"""
        versions = list_versions(storage, "", ModuleIdentity("acme", "vpc", "aws"))
        assert versions == ["1.0.0", "1.1.0", "2.0.0"]

    def test_keeps_listing_order(self):
        """ソートせず一覧取得順を維持"""
        storage = MemoryStorageBackend({
            "acme/vpc/aws/2.0.0/vpc.tgz": b"",
            "acme/vpc/aws/1.0.0/vpc.tgz": b"",
            "acme/vpc/aws/10.0.0/vpc.tgz": b"",
        })
        versions = list_versions(storage, "", ModuleIdentity("acme", "vpc", "aws"))
        assert versions == ["2.0.0", "1.0.0", "10.0.0"]

    def test_uses_prefix(self, module_files):
        """プレフィックス配下を参照する"""
        storage = MemoryStorageBackend({f"registry/{k}": v for k, v in module_files.items()})
        versions = list_versions(storage, "registry", ModuleIdentity("acme", "vpc", "aws"))
        assert versions == ["1.0.0", "1.1.0", "2.0.0"]

    def test_missing_module(self, storage):
        """異常系: モジュールが存在しない"""
        with pytest.raises(StorageNotFoundError):
            list_versions(storage, "", ModuleIdentity("acme", "missing", "aws"))

    def test_backend_error_propagates(self):
        """異常系: バックエンドエラーはそのまま伝播"""
        storage = MemoryStorageBackend(error=StorageAccessError("AccessDenied"))
        with pytest.raises(StorageAccessError):
            list_versions(storage, "", ModuleIdentity("acme", "vpc", "aws"))

    def test_malformed_identity_never_reaches_storage(self):
        storage = MemoryStorageBackend(error=AssertionError("storage must not be called"))
        with pytest.raises(MalformedIdentityError):
            list_versions(storage, "", ModuleIdentity("..", "vpc", "aws"))


# ==================== locate_download ====================

class TestLocateDownload:
    """locate_download のテスト"""

    def test_redirect_value(self):
        identity = ModuleIdentity("acme", "vpc", "aws", "1.0.0")
        assert locate_download(identity) == "/download/acme/vpc/aws/1.0.0/vpc.tgz"

    def test_version_required(self):
        with pytest.raises(MalformedIdentityError):
            locate_download(ModuleIdentity("acme", "vpc", "aws"))

    def test_rejects_traversal(self):
        with pytest.raises(MalformedIdentityError):
            locate_download(ModuleIdentity("acme", "vpc", "aws", ".."))


# ==================== resolve_download_path ====================

class TestResolveDownloadPath:
    """公開ダウンロードパス→ストレージパス変換のテスト"""

    def test_strips_download_root(self):
        path = resolve_download_path("", "/download/acme/vpc/aws/1.0.0/vpc.tgz")
        assert path == "acme/vpc/aws/1.0.0/vpc.tgz"

    def test_reroots_under_prefix(self):
        path = resolve_download_path("registry/modules", "/download/acme/vpc/aws/1.0.0/vpc.tgz")
        assert path == "registry/modules/acme/vpc/aws/1.0.0/vpc.tgz"

    def test_strips_root_only_once(self):
        """namespace が 'download' でも二重に取り除かない"""
        path = resolve_download_path("", "/download/download/vpc/aws/1.0.0/vpc.tgz")
        assert path == "download/vpc/aws/1.0.0/vpc.tgz"

    @pytest.mark.parametrize("download_path", [
        "/download/../secret.tgz",
        "/download/acme/%2E%2E/%2E%2E/secret",
        "/download/acme/vpc\\..\\x",
    ])
    def test_rejects_traversal(self, download_path):
        with pytest.raises(MalformedIdentityError):
            resolve_download_path("registry", download_path)

    def test_empty_path(self):
        with pytest.raises(StorageNotFoundError):
            resolve_download_path("", "/download/")

    def test_archive_path_uses_module_identity(self):
        """アーカイブ形式のパスはモジュール識別子として解決する"""
        with patch(
            'tf_registry.services.module_service.resolve_artifact_path',
            wraps=resolve_artifact_path
        ) as mock_resolve:
            path = resolve_download_path("registry", "/download/acme/vpc/aws/1.0.0/vpc.tgz")

        assert path == "registry/acme/vpc/aws/1.0.0/vpc.tgz"
        mock_resolve.assert_called_once_with("registry", ModuleIdentity("acme", "vpc", "aws", "1.0.0"))

    def test_other_files_are_joined_under_prefix(self):
        """アーカイブ名がモジュール名と一致しないパスはそのまま配信対象"""
        with patch('tf_registry.services.module_service.resolve_artifact_path') as mock_resolve:
            path = resolve_download_path("registry", "/download/acme/vpc/aws/1.0.0/other.tgz")

        assert path == "registry/acme/vpc/aws/1.0.0/other.tgz"
        mock_resolve.assert_not_called()
