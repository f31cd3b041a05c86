"""S3ストレージバックエンド

AWS S3およびS3互換ストレージ（MinIO等）に対応。
キーのスラッシュ区切りを階層ディレクトリとして扱う。
"""

import logging
from typing import Any, Generator, List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..config import S3Config
from ..exceptions import BackendConnectError, StorageAccessError, StorageNotFoundError
from .base import DEFAULT_CHUNK_SIZE, StorageBackend, StoredObject

logger = logging.getLogger(__name__)

NOT_FOUND_CODES = {'NoSuchKey', 'NotFound', '404'}


def _error_code(e: ClientError) -> str:
    return e.response.get('Error', {}).get('Code', '')


def _to_key(path: str) -> str:
    """先頭・末尾のスラッシュを除いたS3キーに変換"""
    return path.strip('/')


class S3StoredObject(StoredObject):
    """S3オブジェクト（本体はiter_bytes呼び出し時に取得）"""

    def __init__(self, client: Any, bucket_name: str, key: str, head: dict):
        super().__init__(
            path=key,
            size=head['ContentLength'],
            last_modified=head.get('LastModified'),
            etag=head.get('ETag')
        )
        self._client = client
        self._bucket_name = bucket_name

    def iter_bytes(
        self,
        start: int = 0,
        end: Optional[int] = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE
    ) -> Generator[bytes, None, None]:
        params = {'Bucket': self._bucket_name, 'Key': self.path}
        if start > 0 or (end is not None and end < self.size - 1):
            last = self.size - 1 if end is None else end
            params['Range'] = f"bytes={start}-{last}"

        try:
            response = self._client.get_object(**params)
        except ClientError as e:
            if _error_code(e) in NOT_FOUND_CODES:
                raise StorageNotFoundError(f"object not found: {self.path}") from e
            logger.error(f"S3 get_object failed: {self.path} - {e}")
            raise StorageAccessError(str(e)) from e
        except BotoCoreError as e:
            logger.error(f"S3 get_object failed: {self.path} - {e}")
            raise StorageAccessError(str(e)) from e

        body = response['Body']
        try:
            for chunk in body.iter_chunks(chunk_size):
                if chunk:
                    yield chunk
        finally:
            body.close()


class S3StorageBackend(StorageBackend):
    """S3ストレージバックエンド"""

    def __init__(self, config: S3Config, client: Any = None):
        """
        S3バックエンドを初期化

        Args:
            config: S3設定
            client: boto3 S3クライアント。Noneの場合は名前付きプロファイルから生成

        Raises:
            BackendConnectError: プロファイルの読み込み・クライアント生成に失敗した場合
        """
        self.bucket_name = config.bucket_name

        if client is None:
            try:
                # 'default' はboto3の既定プロファイル探索に任せる（AWS_PROFILE, 環境変数の認証情報も有効）
                profile = config.profile if config.profile and config.profile != 'default' else None
                session = boto3.Session(profile_name=profile)

                client_kwargs = {}
                if config.region:
                    client_kwargs['region_name'] = config.region
                if config.endpoint_url:
                    client_kwargs['endpoint_url'] = config.endpoint_url
                client = session.client('s3', **client_kwargs)
            except BotoCoreError as e:
                raise BackendConnectError(f"failed to create S3 client: {e}") from e

        self.client = client
        logger.info(f"S3StorageBackend initialized: bucket={self.bucket_name}")

    def check_connection(self) -> None:
        try:
            self.client.head_bucket(Bucket=self.bucket_name)
        except (ClientError, BotoCoreError) as e:
            raise BackendConnectError(f"cannot access bucket {self.bucket_name}: {e}") from e

    def list_dir(self, path: str) -> List[str]:
        key = _to_key(path)
        prefix = f"{key}/" if key else ''

        entries = []
        found = False
        paginator = self.client.get_paginator('list_objects_v2')
        try:
            for page in paginator.paginate(Bucket=self.bucket_name, Prefix=prefix, Delimiter='/'):
                for common_prefix in page.get('CommonPrefixes', []):
                    found = True
                    entries.append(common_prefix['Prefix'][len(prefix):].rstrip('/'))
                for obj in page.get('Contents', []):
                    found = True
                    name = obj['Key'][len(prefix):]
                    # ディレクトリマーカー（キー == プレフィックス）は除外
                    if name:
                        entries.append(name)
        except ClientError as e:
            logger.error(f"S3 list_objects_v2 failed: {prefix} - {e}")
            raise StorageAccessError(str(e)) from e
        except BotoCoreError as e:
            logger.error(f"S3 list_objects_v2 failed: {prefix} - {e}")
            raise StorageAccessError(str(e)) from e

        if not found and prefix:
            logger.debug(f"S3 prefix not found: {prefix}")
            raise StorageNotFoundError(f"directory not found: {key}")

        return entries

    def open(self, path: str) -> StoredObject:
        key = _to_key(path)
        try:
            head = self.client.head_object(Bucket=self.bucket_name, Key=key)
        except ClientError as e:
            if _error_code(e) in NOT_FOUND_CODES:
                logger.debug(f"S3 object not found: {key}")
                raise StorageNotFoundError(f"object not found: {key}") from e
            logger.error(f"S3 head_object failed: {key} - {e}")
            raise StorageAccessError(str(e)) from e
        except BotoCoreError as e:
            logger.error(f"S3 head_object failed: {key} - {e}")
            raise StorageAccessError(str(e)) from e

        return S3StoredObject(self.client, self.bucket_name, key, head)
