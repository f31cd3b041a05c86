"""モジュールAPI（Terraform Module Registry Protocol v1）

- GET /terraform/modules/v1/{namespace}/{name}/{provider}/versions: バージョン一覧
- GET /terraform/modules/v1/{namespace}/{name}/{provider}/{version}/download: ダウンロード先

ストレージ上のレイアウト:
    {prefix}/{namespace}/{name}/{provider}/1.0.0/{name}.tgz
    {prefix}/{namespace}/{name}/{provider}/2.0.0/{name}.tgz
"""

import logging
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import PlainTextResponse, Response

from tf_registry.api.dependencies import get_config, get_storage
from tf_registry.api.response_model import ModuleVersionsResponse
from tf_registry.config import RegistryConfig
from tf_registry.services.module_paths import MalformedIdentityError, ModuleIdentity
from tf_registry.services.module_service import MODULE_BASE_PATH, list_versions, locate_download
from tf_registry.services.storage import StorageAccessError, StorageBackend, StorageNotFoundError

logger = logging.getLogger(__name__)

router = APIRouter(prefix=MODULE_BASE_PATH, tags=["modules"])


@router.get("/{namespace}/{name}/{provider}/versions", response_model=ModuleVersionsResponse)
def get_module_versions(
    namespace: str,
    name: str,
    provider: str,
    config: RegistryConfig = Depends(get_config),
    storage: StorageBackend = Depends(get_storage)
):
    """
    モジュールのバージョン一覧を取得する

    Returns:
        ModuleVersionsResponse: {"modules": [{"versions": [{"version": "1.0.0"}, ...]}]}
    """
    identity = ModuleIdentity(namespace, name, provider)
    try:
        versions = list_versions(storage, config.normalized_prefix, identity)
    except MalformedIdentityError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StorageNotFoundError:
        raise HTTPException(status_code=404, detail=f"module not found: {namespace}/{name}/{provider}")
    except StorageAccessError as e:
        logger.error(f"Failed to list versions for {namespace}/{name}/{provider}: {e}")
        return PlainTextResponse(str(e), status_code=500)

    return ModuleVersionsResponse.from_versions(versions)


@router.get("/{namespace}/{name}/{provider}/{version}/download", status_code=204, response_class=Response)
def get_download_url(
    namespace: str,
    name: str,
    provider: str,
    version: str
):
    """
    ダウンロード先を返す

    Terraformクライアントは空の204レスポンスを期待し、
    ダウンロードURLは X-Terraform-Get ヘッダーから読み取る。
    """
    try:
        location = locate_download(ModuleIdentity(namespace, name, provider, version))
    except MalformedIdentityError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return Response(
        status_code=204,
        headers={"X-Terraform-Get": location, "Content-Length": "0"}
    )
