"""サービスディスカバリAPI

Terraformクライアントが最初に参照するエンドポイント:
- GET /
- GET /.well-known/terraform.json
"""

from fastapi import APIRouter

from tf_registry.api.response_model import ServiceDiscoveryResponse
from tf_registry.services.module_service import get_discovery_document

router = APIRouter(tags=["discovery"])


@router.get("/", response_model=ServiceDiscoveryResponse)
@router.get("/.well-known/terraform.json", response_model=ServiceDiscoveryResponse)
def get_service_discovery():
    """モジュールAPIのベースパスを返す（設定・ストレージの状態に依存しない）"""
    return get_discovery_document()
