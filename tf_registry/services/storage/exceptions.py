"""カスタム例外

ストレージ関連のエラーを表す例外クラス。
"""


class StorageError(Exception):
    """ストレージ操作の基底例外"""
    pass


class StorageNotFoundError(StorageError):
    """パスに対応するオブジェクト・ディレクトリが存在しない"""
    pass


class StorageAccessError(StorageError):
    """ストレージアクセスエラー（権限・通信障害など、Not Found以外）"""
    pass


class StorageConfigError(StorageError):
    """設定エラー（バケット名未指定など）"""
    pass


class BackendConnectError(StorageError):
    """起動時にバックエンドへ接続できない"""
    pass
