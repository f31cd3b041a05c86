"""ファイル配信

StorageBackend上のファイルをHTTPレスポンスとして返す。
条件付きリクエスト（If-None-Match / If-Modified-Since）、
単一のRangeリクエスト、ストリーミングをここで一括して扱う。
"""

import itertools
import logging
from datetime import datetime, timezone
from email.utils import formatdate, parsedate_to_datetime
from typing import Dict, Optional, Tuple

from fastapi import Request
from fastapi.responses import Response, StreamingResponse

from .backends.base import StorageBackend, StoredObject

logger = logging.getLogger(__name__)


def _http_date(value: datetime) -> str:
    return formatdate(value.timestamp(), usegmt=True)


def _etag_matches(header: str, etag: Optional[str]) -> bool:
    if etag is None:
        return False
    candidates = [c.strip() for c in header.split(',')]
    # 弱いETag比較（W/ を無視）
    normalized = etag[2:] if etag.startswith('W/') else etag
    return any(c == '*' or (c[2:] if c.startswith('W/') else c) == normalized for c in candidates)


def _not_modified(request: Request, obj: StoredObject) -> bool:
    """条件付きリクエストで304を返すべきか判定"""
    if_none_match = request.headers.get('if-none-match')
    if if_none_match is not None:
        return _etag_matches(if_none_match, obj.etag)

    if_modified_since = request.headers.get('if-modified-since')
    if if_modified_since and obj.last_modified is not None:
        try:
            since = parsedate_to_datetime(if_modified_since)
        except (TypeError, ValueError):
            return False
        if since.tzinfo is None:
            since = since.replace(tzinfo=timezone.utc)
        modified = obj.last_modified
        if modified.tzinfo is None:
            modified = modified.replace(tzinfo=timezone.utc)
        # HTTP日付は秒単位
        return modified.replace(microsecond=0) <= since
    return False


def parse_range(header: str, size: int) -> Optional[Tuple[int, int]]:
    """
    Rangeヘッダーを解析する

    Args:
        header: Rangeヘッダー値（例: "bytes=0-99", "bytes=100-", "bytes=-50"）
        size: オブジェクトサイズ

    Returns:
        Optional[Tuple[int, int]]: (開始, 終了) 終了位置を含む。
            解釈できない・複数範囲の場合はNone（全体を返す）

    Raises:
        ValueError: 範囲が満たせない場合（416）
    """
    unit, _, ranges = header.partition('=')
    if unit.strip().lower() != 'bytes' or not ranges or ',' in ranges:
        return None

    first, sep, last = ranges.partition('-')
    if not sep:
        return None
    first, last = first.strip(), last.strip()

    if not first:
        # サフィックス指定: 末尾からNバイト
        if not last.isdigit():
            return None
        length = int(last)
        if length == 0 or size == 0:
            raise ValueError(f"unsatisfiable range: {header}")
        return max(size - length, 0), size - 1

    if not first.isdigit() or (last and not last.isdigit()):
        return None
    start = int(first)
    if last and int(last) < start:
        return None
    if start >= size:
        raise ValueError(f"unsatisfiable range: {header}")
    end = int(last) if last else size - 1
    return start, min(end, size - 1)


def serve_object(
    backend: StorageBackend,
    path: str,
    request: Request,
    media_type: Optional[str] = None,
    headers: Optional[Dict[str, str]] = None
) -> Response:
    """
    ストレージ上のファイルを配信する

    Args:
        backend: ストレージバックエンド
        path: ファイルパス
        request: 受信リクエスト（条件付き・Rangeヘッダーの参照用）
        media_type: Content-Type
        headers: 追加のレスポンスヘッダー

    Returns:
        Response: 200/206/304/416 のいずれか

    Raises:
        StorageNotFoundError: ファイルが存在しない場合
        StorageAccessError: 読み込みに失敗した場合
    """
    obj = backend.open(path)

    response_headers = {'Accept-Ranges': 'bytes'}
    if obj.etag:
        response_headers['ETag'] = obj.etag
    if obj.last_modified is not None:
        response_headers['Last-Modified'] = _http_date(obj.last_modified)
    if headers:
        response_headers.update(headers)

    if _not_modified(request, obj):
        return Response(status_code=304, headers=response_headers)

    byte_range = None
    range_header = request.headers.get('range')
    if_range = request.headers.get('if-range')
    if range_header and (if_range is None or _etag_matches(if_range, obj.etag)):
        try:
            byte_range = parse_range(range_header, obj.size)
        except ValueError:
            logger.debug(f"Unsatisfiable range for {path}: {range_header}")
            response_headers['Content-Range'] = f"bytes */{obj.size}"
            return Response(status_code=416, headers=response_headers)

    if byte_range is None:
        start, end, status_code = 0, None, 200
        response_headers['Content-Length'] = str(obj.size)
    else:
        start, end = byte_range
        status_code = 206
        response_headers['Content-Length'] = str(end - start + 1)
        response_headers['Content-Range'] = f"bytes {start}-{end}/{obj.size}"

    chunks = obj.iter_bytes(start, end)
    # 最初のチャンクを先に取得し、読み込みエラーをヘッダー送信前に発生させる
    first = next(chunks, b'')
    return StreamingResponse(
        itertools.chain([first], chunks),
        status_code=status_code,
        headers=response_headers,
        media_type=media_type
    )
