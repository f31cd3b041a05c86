"""モジュールレジストリサービス

Terraformモジュールレジストリプロトコルとストレージの対応付けを行う:
- サービスディスカバリ
- バージョン一覧（ストレージのディレクトリ構造が唯一の情報源）
- ダウンロード先（X-Terraform-Get）の生成
- モジュールアーカイブの配信
"""

import logging
from typing import Dict, List

from fastapi import Request
from fastapi.responses import Response

from tf_registry.services.module_paths import (
    ModuleIdentity,
    join_path,
    resolve_artifact_filename,
    resolve_artifact_path,
    resolve_module_path,
    validate_identity,
    validate_segment
)
from tf_registry.services.storage import StorageBackend, StorageNotFoundError, serve_object

logger = logging.getLogger(__name__)

# モジュールAPI v1のベースパス
MODULE_BASE_PATH = "/terraform/modules/v1"

# 公開側のダウンロードルート（ストレージのプレフィックスとは別物）
DOWNLOAD_ROOT = "/download"

# Terraformクライアントが期待するヘッダー（実際の内容に関わらず固定）
ARTIFACT_CONTENT_TYPE = "application/x-gzip"
ARTIFACT_CONTENT_ENCODING = "application/octet-stream"

_DISCOVERY_DOCUMENT = {"modules.v1": MODULE_BASE_PATH}


def get_discovery_document() -> Dict[str, str]:
    """サービスディスカバリのレスポンス本体"""
    return dict(_DISCOVERY_DOCUMENT)


def list_versions(storage: StorageBackend, prefix: str, identity: ModuleIdentity) -> List[str]:
    """
    モジュールのバージョン一覧を取得する

    {prefix}/{namespace}/{name}/{provider}/ 直下のエントリ名をそのままバージョンとして扱う。
    順序はストレージの一覧取得順（ソート・重複排除はしない）。

    Args:
        storage: ストレージバックエンド
        prefix: 設定済みのパスプレフィックス
        identity: モジュール識別子（versionは無視）

    Returns:
        List[str]: バージョン識別子

    Raises:
        MalformedIdentityError: 識別子が不正な場合
        StorageNotFoundError: モジュールが存在しない場合
        StorageAccessError: 一覧取得に失敗した場合
    """
    module_path = resolve_module_path(prefix, identity.namespace, identity.name, identity.provider)
    versions = list(storage.list_dir(module_path))
    logger.debug(f"Found {len(versions)} versions under {module_path}")
    return versions


def locate_download(identity: ModuleIdentity) -> str:
    """
    X-Terraform-Get ヘッダーに設定するダウンロードパスを生成する

    ストレージへの存在確認は行わない（往復を1回減らすため）。
    アーカイブが無い場合はダウンロード時に404となる。

    Returns:
        str: /download/{namespace}/{name}/{provider}/{version}/{name}.tgz
    """
    validate_identity(identity, require_version=True)
    return '/' + join_path(
        DOWNLOAD_ROOT,
        identity.namespace,
        identity.name,
        identity.provider,
        identity.version,
        resolve_artifact_filename(identity.name)
    )


def resolve_download_path(prefix: str, download_path: str) -> str:
    """
    公開ダウンロードパスをストレージパスに変換する

    先頭の /download/ を取り除き、設定済みプレフィックス配下に置き直す。
    {namespace}/{name}/{provider}/{version}/{name}.tgz の形であれば
    モジュール識別子としてアーカイブパスを解決する。

    Raises:
        MalformedIdentityError: '..' 等のトラバーサルを含む場合
        StorageNotFoundError: パスが空の場合
    """
    relative = download_path.lstrip('/')
    root = DOWNLOAD_ROOT.strip('/') + '/'
    if relative.startswith(root):
        relative = relative[len(root):]

    segments = [s for s in relative.split('/') if s]
    if not segments:
        raise StorageNotFoundError("empty download path")
    for segment in segments:
        validate_segment("path", segment)

    if len(segments) == 5 and segments[4] == resolve_artifact_filename(segments[1]):
        identity = ModuleIdentity(*segments[:4])
        return resolve_artifact_path(prefix, identity)
    return join_path(prefix, *segments)


def serve_artifact(storage: StorageBackend, prefix: str, download_path: str, request: Request) -> Response:
    """
    モジュールアーカイブを配信する

    Range・条件付きリクエスト・ストリーミングは serve_object に委譲する。

    Raises:
        MalformedIdentityError: パスが不正な場合
        StorageNotFoundError: アーカイブが存在しない場合
        StorageAccessError: 読み込みに失敗した場合
    """
    storage_path = resolve_download_path(prefix, download_path)
    return serve_object(
        storage,
        storage_path,
        request,
        media_type=ARTIFACT_CONTENT_TYPE,
        headers={'Content-Encoding': ARTIFACT_CONTENT_ENCODING}
    )
