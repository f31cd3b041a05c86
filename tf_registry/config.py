"""レジストリサーバー設定

コマンドライン引数・環境変数からの設定読み込みを一元管理。
起動時に一度だけ生成し、app.state経由で各ハンドラへ渡す（変更不可）。
"""

import argparse
import os
from dataclasses import dataclass
from typing import List, Optional

from tf_registry.services.storage import S3Config, StorageConfigError


def parse_port(value: str) -> int:
    """
    ポート番号を整数に変換する

    Raises:
        StorageConfigError: 整数として解釈できない場合
    """
    try:
        return int(value)
    except (TypeError, ValueError):
        raise StorageConfigError(f"invalid port: {value!r}")


@dataclass(frozen=True)
class RegistryConfig:
    """レジストリサーバー設定"""
    bucket: str = ""
    profile: str = "default"
    prefix: str = ""
    port: int = 3000
    host: str = "0.0.0.0"
    region: Optional[str] = None
    endpoint_url: Optional[str] = None
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> 'RegistryConfig':
        """
        環境変数から設定を読み込み

        Raises:
            StorageConfigError: PORTが整数でない場合
        """
        return cls(
            bucket=os.getenv('S3_BUCKET_NAME', ''),
            profile=os.getenv('AWS_PROFILE', 'default'),
            prefix=os.getenv('REGISTRY_PREFIX', ''),
            port=parse_port(os.getenv('PORT', '3000')),
            host=os.getenv('HOST', '0.0.0.0'),
            region=os.getenv('AWS_DEFAULT_REGION'),
            endpoint_url=os.getenv('S3_ENDPOINT_URL'),
            log_level=os.getenv('LOG_LEVEL', 'INFO').upper()
        )

    @classmethod
    def from_args(cls, argv: Optional[List[str]] = None) -> 'RegistryConfig':
        """
        コマンドライン引数から設定を読み込み（未指定の項目は環境変数の値）

        Raises:
            StorageConfigError: --port / PORT が整数でない場合
        """
        args = build_parser().parse_args(argv)
        return cls(
            bucket=args.bucket,
            profile=args.profile,
            prefix=args.prefix,
            port=parse_port(args.port),
            host=args.host,
            region=args.region,
            endpoint_url=args.endpoint_url,
            log_level=args.log_level.upper()
        )
    def validate(self) -> 'RegistryConfig':
        """
        必須項目を検証する

        Raises:
            StorageConfigError: バケット名未指定、ポート番号が範囲外の場合
        """
        if not self.bucket:
            raise StorageConfigError("bucket name not set")
        if not 0 < self.port < 65536:
            raise StorageConfigError(f"invalid port: {self.port}")
        return self

    @property
    def normalized_prefix(self) -> str:
        """前後のスラッシュを除いたプレフィックス"""
        return self.prefix.strip('/')

    def s3_config(self) -> S3Config:
        """S3バックエンド用の設定を取得"""
        return S3Config(
            bucket_name=self.bucket,
            profile=self.profile,
            region=self.region,
            endpoint_url=self.endpoint_url
        )


def build_parser() -> argparse.ArgumentParser:
    """コマンドライン引数パーサー（デフォルト値は環境変数から、ポートは未変換の文字列）"""
    parser = argparse.ArgumentParser(
        prog="tf-registry",
        description="Terraform Registry Server"
    )
    parser.add_argument("--bucket", default=os.getenv('S3_BUCKET_NAME', ''),
                        help="aws s3 bucket name containing terraform modules")
    parser.add_argument("--profile", default=os.getenv('AWS_PROFILE', 'default'),
                        help="aws named profile to assume")
    parser.add_argument("--prefix", default=os.getenv('REGISTRY_PREFIX', ''),
                        help="optional path prefix for modules in s3")
    parser.add_argument("--port", default=os.getenv('PORT', '3000'),
                        help="port for HTTP server")
    parser.add_argument("--host", default=os.getenv('HOST', '0.0.0.0'),
                        help="interface to bind the HTTP server to")
    parser.add_argument("--region", default=os.getenv('AWS_DEFAULT_REGION'),
                        help="aws region of the bucket")
    parser.add_argument("--endpoint-url", dest="endpoint_url", default=os.getenv('S3_ENDPOINT_URL'),
                        help="custom endpoint for S3 compatible storage")
    parser.add_argument("--log-level", dest="log_level", default=os.getenv('LOG_LEVEL', 'INFO'),
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"], type=str.upper,
                        help="logging level")
    return parser
