"""モジュールパス解決

モジュール識別子（namespace / name / provider / version）と設定済みプレフィックスから
ストレージ上のパスを組み立てる。I/Oは行わない純粋関数のみ。

ストレージ上のレイアウト:
    {prefix}/{namespace}/{name}/{provider}/{version}/{name}.tgz
"""

from dataclasses import dataclass
from typing import Optional
from urllib.parse import unquote

ARTIFACT_EXTENSION = ".tgz"

# パス区切り・制御文字
_FORBIDDEN_CHARS = ('/', '\\', '\x00')


class MalformedIdentityError(ValueError):
    """識別子がパス区切り・トラバーサルを含む、または空"""
    pass


@dataclass(frozen=True)
class ModuleIdentity:
    """モジュール座標（リクエスト毎に生成、永続化しない）"""
    namespace: str
    name: str
    provider: str
    version: Optional[str] = None


def validate_segment(field: str, value: Optional[str]) -> str:
    """
    パスセグメントとして安全な値か検証する

    パーセントデコード後の値も検査し、エンコードされた区切り文字や '..' も拒否する。

    Raises:
        MalformedIdentityError: 空、'.'/'..'、区切り文字を含む場合
    """
    if not value:
        raise MalformedIdentityError(f"{field} must not be empty")
    for candidate in (value, unquote(value)):
        if candidate in ('.', '..'):
            raise MalformedIdentityError(f"{field} must not be a relative path segment: {value!r}")
        if any(c in candidate for c in _FORBIDDEN_CHARS):
            raise MalformedIdentityError(f"{field} must not contain path separators: {value!r}")
    return value


def validate_identity(identity: ModuleIdentity, require_version: bool = False) -> ModuleIdentity:
    """識別子の全フィールドを検証する"""
    validate_segment("namespace", identity.namespace)
    validate_segment("name", identity.name)
    validate_segment("provider", identity.provider)
    if require_version or identity.version is not None:
        validate_segment("version", identity.version)
    return identity


def join_path(*segments: str) -> str:
    """スラッシュ区切りで結合する（空セグメント・前後のスラッシュは除外）"""
    parts = [s.strip('/') for s in segments]
    return '/'.join(p for p in parts if p)


def resolve_module_path(prefix: str, namespace: str, name: str, provider: str) -> str:
    """{prefix}/{namespace}/{name}/{provider} を返す（prefixが空なら省略）"""
    validate_identity(ModuleIdentity(namespace, name, provider))
    return join_path(prefix, namespace, name, provider)


def resolve_version_path(prefix: str, namespace: str, name: str, provider: str, version: str) -> str:
    """{prefix}/{namespace}/{name}/{provider}/{version} を返す"""
    validate_identity(ModuleIdentity(namespace, name, provider, version), require_version=True)
    return join_path(prefix, namespace, name, provider, version)


def resolve_artifact_filename(name: str) -> str:
    """アーカイブファイル名（{name}.tgz）"""
    validate_segment("name", name)
    return name + ARTIFACT_EXTENSION


def resolve_artifact_path(prefix: str, identity: ModuleIdentity) -> str:
    """アーカイブのストレージパス"""
    version_path = resolve_version_path(
        prefix, identity.namespace, identity.name, identity.provider, identity.version
    )
    return join_path(version_path, resolve_artifact_filename(identity.name))
