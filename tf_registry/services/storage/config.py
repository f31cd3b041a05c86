"""ストレージ設定クラス

S3バックエンドの接続設定。起動時に一度だけ生成し、以後変更しない。
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class S3Config:
    """S3固有設定"""
    bucket_name: str = ""
    profile: str = "default"
    region: Optional[str] = None
    endpoint_url: Optional[str] = None
