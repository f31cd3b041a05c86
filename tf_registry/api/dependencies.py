"""FastAPI依存関係

起動時に生成した設定・ストレージをapp.stateから取り出す。
"""

from fastapi import Request

from tf_registry.config import RegistryConfig
from tf_registry.services.storage import StorageBackend


def get_config(request: Request) -> RegistryConfig:
    return request.app.state.config


def get_storage(request: Request) -> StorageBackend:
    return request.app.state.storage
