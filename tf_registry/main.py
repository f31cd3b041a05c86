import logging
import sys
import time
import uuid
from typing import List, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import uvicorn

from tf_registry.api.route import discovery, download, health, modules
from tf_registry.config import RegistryConfig, build_parser
from tf_registry.services.storage import (
    BackendConnectError,
    S3StorageBackend,
    StorageBackend,
    StorageConfigError
)

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


def _client_address(request: Request) -> str:
    """プロキシ経由の場合は X-Forwarded-For / X-Real-IP を優先"""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip
    return request.client.host if request.client else "-"


def create_app(config: RegistryConfig, storage: StorageBackend) -> FastAPI:
    """
    アプリケーションを生成する

    Args:
        config: 起動時に確定した設定（以後変更しない）
        storage: 接続済みのストレージバックエンド
    """
    app = FastAPI(title="Terraform Registry Server")
    app.state.config = config
    app.state.storage = storage

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:16]
        request.state.request_id = request_id
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        response.headers[REQUEST_ID_HEADER] = request_id
        logger.info(
            f"[{request_id}] {_client_address(request)} \"{request.method} {request.url.path}\" "
            f"{response.status_code} {elapsed_ms:.1f}ms"
        )
        return response

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        request_id = getattr(request.state, "request_id", None) or request.headers.get(REQUEST_ID_HEADER, "-")
        logger.error(
            f"Unhandled exception [request_id={request_id}]: {exc}",
            exc_info=True,
            extra={"request_id": request_id, "path": request.url.path, "method": request.method}
        )
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error", "request_id": request_id},
            headers={REQUEST_ID_HEADER: request_id}
        )

    app.include_router(health.router)
    app.include_router(discovery.router)
    app.include_router(modules.router)
    app.include_router(download.router)
    return app


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


def main(argv: Optional[List[str]] = None) -> int:
    """tf-registry コマンドのエントリポイント"""
    try:
        config = RegistryConfig.from_args(argv).validate()
    except StorageConfigError as e:
        print(f"{e}!!!\n", file=sys.stderr)
        build_parser().print_help(sys.stderr)
        return 1

    configure_logging(config.log_level)

    logger.info(f"Starting tf-registry webserver on {config.host}:{config.port}...")
    logger.info("Connecting to storage backend...")
    try:
        storage = S3StorageBackend(config.s3_config())
        storage.check_connection()
    except BackendConnectError as e:
        logger.error(f"Storage backend connection failed: {e}")
        return 1
    logger.info(f"Connection successful, serving terraform registry from: s3://{config.bucket}/{config.normalized_prefix}")


    uvicorn.run(create_app(config, storage), host=config.host, port=config.port, log_level=config.log_level.lower())
    return 0


if __name__ == "__main__":
    sys.exit(main())
