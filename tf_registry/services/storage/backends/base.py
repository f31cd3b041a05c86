"""ストレージバックエンド抽象基底クラス

すべてのストレージバックエンドが実装すべきインターフェースを定義。
Read専用: 「直下のエントリ一覧」と「パスのバイト列を開く」の2機能のみ。
ページネーショントークン等のバックエンド固有の概念はこの境界の外に出さない。
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Generator, List, Optional

DEFAULT_CHUNK_SIZE = 64 * 1024


class StoredObject(ABC):
    """open() で取得したオブジェクト（メタデータ + バイト列の読み出し）"""

    def __init__(
        self,
        path: str,
        size: int,
        last_modified: Optional[datetime] = None,
        etag: Optional[str] = None
    ):
        self.path = path
        self.size = size
        self.last_modified = last_modified
        self.etag = etag

    @abstractmethod
    def iter_bytes(
        self,
        start: int = 0,
        end: Optional[int] = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE
    ) -> Generator[bytes, None, None]:
        """
        バイト列をストリーミングで読み出す

        Args:
            start: 開始オフセット
            end: 終了オフセット（この位置を含む）。Noneの場合は末尾まで
            chunk_size: チャンクサイズ（デフォルト64KB）

        Yields:
            bytes: ファイルチャンク

        Raises:
            StorageNotFoundError: 読み出し時点でオブジェクトが消えていた場合
            StorageAccessError: 読み出しに失敗した場合
        """
        pass


class StorageBackend(ABC):
    """ストレージバックエンドの抽象基底クラス（Read専用）"""

    @abstractmethod
    def list_dir(self, path: str) -> List[str]:
        """
        指定パス直下のエントリ名一覧を取得する

        Args:
            path: ディレクトリパス（先頭・末尾のスラッシュなし）

        Returns:
            List[str]: エントリ名（ファイル・ディレクトリ両方）。
                順序はバックエンドの一覧取得順で、ソートは保証しない

        Raises:
            StorageNotFoundError: パスが存在しない場合
            StorageAccessError: 一覧取得に失敗した場合
        """
        pass

    @abstractmethod
    def open(self, path: str) -> StoredObject:
        """
        ファイルを開く

        Args:
            path: ファイルパス

        Returns:
            StoredObject: メタデータと読み出し手段

        Raises:
            StorageNotFoundError: ファイルが存在しない場合
            StorageAccessError: 読み込みに失敗した場合
        """
        pass

    def check_connection(self) -> None:
        """
        起動時の接続確認（デフォルトは何もしない）

        Raises:
            BackendConnectError: 接続できない場合
        """
        return None
