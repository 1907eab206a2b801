"""Pastabox — Main application entry point."""

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import Depends, FastAPI
from fastapi.staticfiles import StaticFiles

from auth import require_auth
from cleanup import gc_interval, gc_loop
from config import AppConfig, load_config
from slugs import build_codec
from api.download.controllers.download_controller import router as download_router
from api.pages.controllers.pages_controller import build_router as build_pages_router
from api.pages.controllers.pages_controller import router as pages_router
from api.pastas.controllers.pastas_controller import router as pastas_router
from api.pastas.repositories.pastas_repository import build_repository
from api.pastas.services.pasta_store import PastaStore
from api.upload.controllers.upload_controller import router as upload_router

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).parent.parent / "static"


@asynccontextmanager
async def lifespan(app: FastAPI):
    config: AppConfig = app.state.config
    config.data_dir.mkdir(parents=True, exist_ok=True)
    config.attachments_dir.mkdir(parents=True, exist_ok=True)

    # A malformed store or name list stops startup here.
    codec = build_codec(config)
    store = PastaStore.load(
        build_repository(config),
        codec,
        config.attachments_dir,
        id_space=config.id_space,
        id_max_attempts=config.id_max_attempts,
    )
    app.state.codec = codec
    app.state.store = store

    gc_task = None
    interval = gc_interval(config)
    if interval is not None:
        gc_task = asyncio.create_task(gc_loop(store, config.gc_days, interval))
        logger.info("Garbage collection every %.0fs for pastas idle %d days", interval, config.gc_days)
    else:
        logger.info("Garbage collection disabled")

    logger.info("Pastabox starting with %d pastas in %s", len(store), config.data_dir)
    try:
        yield
    finally:
        if gc_task is not None:
            gc_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await gc_task
        await store.close()
        logger.info("Pastabox shutting down...")


def create_app(config: AppConfig | None = None) -> FastAPI:
    if config is None:
        config = load_config()

    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    app = FastAPI(
        title=config.title,
        version="0.1.0",
        lifespan=lifespan,
        dependencies=[Depends(require_auth)],
    )
    app.state.config = config

    # Static files
    app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")

    # Router registration order matters:
    # 1. Health check
    @app.get("/api/health")
    async def health():
        return {"status": "ok"}

    # 2. API routers (prefixed — match first)
    app.include_router(pastas_router)

    # 3. Pages and submissions
    app.include_router(pages_router)
    app.include_router(upload_router)
    app.include_router(download_router)

    # 4. Configurable /{endpoint}/{slug} routes
    app.include_router(build_pages_router(config))

    return app


if __name__ == "__main__":
    import uvicorn

    config = load_config()
    uvicorn.run(create_app(config), host=config.bind, port=config.port)
