"""Pages controller — HTML routes for the web UI."""

from datetime import datetime, timezone
from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import HTMLResponse, PlainTextResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from config import BURN_AFTER_READS, EXPIRATION_SECONDS, ETERNAL, AppConfig
from deps import get_codec, get_config, get_store
from errors import PastaNotFound, StorageIOError
from slugs import SlugCodec
from api.pastas.dto.pasta import ContentKind, Pasta
from api.pastas.services.pasta_store import PastaStore

router = APIRouter(tags=["Pages"])

TEMPLATES_DIR = Path(__file__).parent.parent.parent.parent.parent / "templates"
templates = Jinja2Templates(directory=TEMPLATES_DIR)


def _timestamp(value: int) -> str:
    if not value:
        return "never"
    return datetime.fromtimestamp(value, tz=timezone.utc).strftime("%Y-%m-%d %H:%M UTC")


def _filesize(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    if size < 1024**2:
        return f"{size / 1024:.1f} KB"
    if size < 1024**3:
        return f"{size / 1024**2:.1f} MB"
    return f"{size / 1024**3:.1f} GB"


templates.env.filters["timestamp"] = _timestamp
templates.env.filters["filesize"] = _filesize


def _not_found(request: Request, config: AppConfig) -> HTMLResponse:
    return templates.TemplateResponse(
        request, "not_found.html", {"config": config}, status_code=404
    )


async def _read(store: PastaStore, codec: SlugCodec, slug: str) -> Pasta:
    """Apply the read policy; PastaNotFound for unknown, expired or burned."""
    try:
        return await store.read(codec.decode(slug))
    except StorageIOError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/", response_class=HTMLResponse)
async def index(request: Request, config: AppConfig = Depends(get_config)):
    return templates.TemplateResponse(request, "index.html", {
        "config": config,
        "expirations": [*EXPIRATION_SECONDS, ETERNAL],
        "burn_after": list(BURN_AFTER_READS),
    })


@router.get("/list", response_class=HTMLResponse)
async def list_page(
    request: Request,
    store: PastaStore = Depends(get_store),
    config: AppConfig = Depends(get_config),
):
    if config.no_listing:
        return _not_found(request, config)
    return templates.TemplateResponse(request, "list.html", {
        "config": config,
        "pastas": await store.list(),
    })


@router.get("/remove/{slug}")
async def remove(
    slug: str,
    store: PastaStore = Depends(get_store),
    codec: SlugCodec = Depends(get_codec),
    config: AppConfig = Depends(get_config),
):
    if not config.readonly:
        try:
            await store.delete(codec.decode(slug))
        except PastaNotFound:
            pass  # already gone
        except StorageIOError as e:
            raise HTTPException(status_code=500, detail=str(e))

    target = "/" if config.no_listing else "/list"
    return RedirectResponse(url=f"{config.public_path}{target}", status_code=302)


async def view_pasta(
    request: Request,
    slug: str,
    store: PastaStore = Depends(get_store),
    codec: SlugCodec = Depends(get_codec),
    config: AppConfig = Depends(get_config),
):
    try:
        pasta = await _read(store, codec, slug)
    except PastaNotFound:
        return _not_found(request, config)
    return templates.TemplateResponse(request, "pasta.html", {
        "config": config,
        "pasta": pasta,
        "slug": slug,
        "is_url": pasta.kind == ContentKind.URL,
    })


async def raw_pasta(
    request: Request,
    slug: str,
    store: PastaStore = Depends(get_store),
    codec: SlugCodec = Depends(get_codec),
    config: AppConfig = Depends(get_config),
):
    try:
        pasta = await _read(store, codec, slug)
    except PastaNotFound:
        return _not_found(request, config)
    return PlainTextResponse(pasta.content)


async def redirect_url(
    request: Request,
    slug: str,
    store: PastaStore = Depends(get_store),
    codec: SlugCodec = Depends(get_codec),
    config: AppConfig = Depends(get_config),
):
    try:
        pasta = await _read(store, codec, slug)
    except PastaNotFound:
        return _not_found(request, config)
    if pasta.kind != ContentKind.URL:
        return _not_found(request, config)
    url = pasta.content if "://" in pasta.content else f"http://{pasta.content}"
    return RedirectResponse(url=url, status_code=302)


def build_router(config: AppConfig) -> APIRouter:
    """Routes whose first path segment is configurable."""
    pasta_router = APIRouter(tags=["Pages"])
    pasta_router.add_api_route(
        f"/{config.pasta_endpoint}/{{slug}}", view_pasta,
        methods=["GET"], response_class=HTMLResponse,
    )
    pasta_router.add_api_route(
        f"/{config.raw_endpoint}/{{slug}}", raw_pasta,
        methods=["GET"], response_class=PlainTextResponse,
    )
    pasta_router.add_api_route(
        f"/{config.url_endpoint}/{{slug}}", redirect_url,
        methods=["GET"],
    )
    return pasta_router
