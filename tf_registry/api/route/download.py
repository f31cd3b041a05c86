"""モジュールダウンロードAPI

- GET /download/{namespace}/{name}/{provider}/{version}/{name}.tgz

X-Terraform-Get で案内したパスに対してアーカイブ本体を返す。
"""

import logging
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import PlainTextResponse

from tf_registry.api.dependencies import get_config, get_storage
from tf_registry.config import RegistryConfig
from tf_registry.services.module_paths import MalformedIdentityError
from tf_registry.services.module_service import DOWNLOAD_ROOT, serve_artifact
from tf_registry.services.storage import StorageAccessError, StorageBackend, StorageNotFoundError

logger = logging.getLogger(__name__)

router = APIRouter(prefix=DOWNLOAD_ROOT, tags=["download"])


@router.get("/{path:path}")
def download_module(
    path: str,
    request: Request,
    config: RegistryConfig = Depends(get_config),
    storage: StorageBackend = Depends(get_storage)
):
    """
    モジュールアーカイブをストリーミングで返す

    Content-Type / Content-Encoding はTerraformクライアントの期待値に固定する。
    """
    try:
        return serve_artifact(storage, config.normalized_prefix, f"{DOWNLOAD_ROOT}/{path}", request)
    except MalformedIdentityError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StorageNotFoundError:
        raise HTTPException(status_code=404, detail=f"module archive not found: {path}")
    except StorageAccessError as e:
        logger.error(f"Failed to serve {path}: {e}")
        return PlainTextResponse(str(e), status_code=500)
