"""Upload controller — handles pasta submissions via multipart POST."""

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import RedirectResponse

from config import AppConfig
from deps import get_codec, get_config, get_store
from errors import CapacityError, StorageIOError
from slugs import SlugCodec
from api.pastas.services.pasta_store import PastaStore
from api.upload.services import upload_service

router = APIRouter(tags=["Upload"])


@router.post("/")
async def create_pasta(
    request: Request,
    store: PastaStore = Depends(get_store),
    codec: SlugCodec = Depends(get_codec),
    config: AppConfig = Depends(get_config),
):
    """Create a pasta and redirect to its page."""
    if config.readonly:
        return RedirectResponse(url=f"{config.public_path}/", status_code=302)

    form = await request.form()
    try:
        pasta = await upload_service.create_pasta(form, store, codec, config)
    except CapacityError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except StorageIOError as e:
        raise HTTPException(status_code=500, detail=str(e))
    finally:
        await form.close()

    slug = codec.encode(pasta.id)
    return RedirectResponse(
        url=f"{config.public_path}/{config.pasta_endpoint}/{slug}",
        status_code=302,
    )
