"""Storage Module - モジュール成果物ストレージ

S3上のモジュールアーカイブを階層ディレクトリとして扱うための抽象化レイヤー。
Read専用: 一覧取得とファイル読み出しのみを提供する。
"""

from .config import S3Config
from .exceptions import (
    StorageError,
    StorageNotFoundError,
    StorageAccessError,
    StorageConfigError,
    BackendConnectError
)
from .backends.base import StorageBackend, StoredObject
from .backends.s3 import S3StorageBackend
from .serving import serve_object

__all__ = [
    'S3Config',
    'StorageError',
    'StorageNotFoundError',
    'StorageAccessError',
    'StorageConfigError',
    'BackendConnectError',
    'StorageBackend',
    'StoredObject',
    'S3StorageBackend',
    'serve_object'
]
