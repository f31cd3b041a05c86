from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

router = APIRouter(tags=["health"])

LIVENESS_PATH = "/is_alive"


# TODO: ストレージへの疎通確認を含むreadinessチェックを別パスで追加する
@router.get(LIVENESS_PATH, response_class=PlainTextResponse)
def is_alive():
    return "."
