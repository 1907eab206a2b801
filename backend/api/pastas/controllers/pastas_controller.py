"""Pastas controller — JSON API routes for pasta management."""

from fastapi import APIRouter, Depends, HTTPException, Response, status

from config import AppConfig
from deps import get_codec, get_config, get_store
from errors import PastaNotFound, StorageIOError
from slugs import SlugCodec
from api.pastas.dto.pasta import PastaSummary
from api.pastas.services.pasta_store import PastaStore

router = APIRouter(prefix="/api/pastas", tags=["Pastas"])


@router.get("", response_model=list[PastaSummary])
async def list_pastas(
    store: PastaStore = Depends(get_store),
    config: AppConfig = Depends(get_config),
):
    if config.no_listing:
        raise HTTPException(status_code=404, detail="Listing is disabled")
    return await store.list()


@router.get("/{slug}", response_model=PastaSummary)
async def get_pasta(
    slug: str,
    store: PastaStore = Depends(get_store),
    codec: SlugCodec = Depends(get_codec),
):
    """Pasta metadata; does not count as a read."""
    try:
        pasta = await store.get(codec.decode(slug))
    except PastaNotFound:
        raise HTTPException(status_code=404, detail="Pasta not found")
    return store.summary(pasta)


@router.delete("/{slug}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_pasta(
    slug: str,
    store: PastaStore = Depends(get_store),
    codec: SlugCodec = Depends(get_codec),
    config: AppConfig = Depends(get_config),
):
    if config.readonly:
        raise HTTPException(status_code=403, detail="Read-only mode")
    try:
        await store.delete(codec.decode(slug))
    except PastaNotFound:
        pass  # deleting a missing pasta is a no-op
    except StorageIOError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
