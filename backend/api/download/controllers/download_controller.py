"""Download controller — streams pasta attachments."""

import mimetypes

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse

from config import AppConfig
from deps import get_codec, get_config, get_store
from slugs import SlugCodec
from api.download.services import download_service
from api.pastas.services.pasta_store import PastaStore

router = APIRouter(tags=["Download"])

CHUNK_SIZE = 1024 * 1024  # 1MB


@router.get("/file/{slug}/{filename}")
async def download_file(
    slug: str,
    filename: str,
    store: PastaStore = Depends(get_store),
    codec: SlugCodec = Depends(get_codec),
    config: AppConfig = Depends(get_config),
):
    """Stream a pasta's attachment."""
    filepath = await download_service.get_attachment_path(store, codec, config, slug, filename)
    if not filepath:
        raise HTTPException(status_code=404, detail="File not found or expired")

    content_type, _ = mimetypes.guess_type(filename)
    if not content_type:
        content_type = "application/octet-stream"

    file_size = filepath.stat().st_size

    def iterfile():
        with open(filepath, "rb") as f:
            while chunk := f.read(CHUNK_SIZE):
                yield chunk

    return StreamingResponse(
        iterfile(),
        media_type=content_type,
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"',
            "Content-Length": str(file_size),
        },
    )
