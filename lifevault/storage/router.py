import os

from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse

router = APIRouter(prefix="/storage", tags=["storage"])


@router.get("/{token}")
async def download_blob(token: str, request: Request):
    """
    Serves the bytes behind a signed URL. The token is the only credential.
    """
    key = request.app.state.issuer.verify_download_token(token)
    iterfile = request.app.state.storage.open(key)
    filename = os.path.basename(key).split("-", 1)[-1]
    return StreamingResponse(
        iterfile,
        media_type="application/octet-stream",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
