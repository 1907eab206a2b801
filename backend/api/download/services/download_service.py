"""Download service — resolves the attachment of a live pasta."""

from pathlib import Path

from config import AppConfig
from errors import PastaNotFound
from slugs import SlugCodec
from api.pastas.services.pasta_store import PastaStore, now_seconds
from api.upload.services.attachment_service import attachment_dir


async def get_attachment_path(
    store: PastaStore,
    codec: SlugCodec,
    config: AppConfig,
    slug: str,
    filename: str,
) -> Path | None:
    """Validate and return the attachment path, or None if unavailable.

    Downloads do not count as reads; the pasta page that links here does.
    """
    try:
        pasta = await store.get(codec.decode(slug))
    except PastaNotFound:
        return None

    if pasta.file is None or pasta.file.name != filename:
        return None
    if pasta.is_expired(now_seconds()):
        return None

    filepath = attachment_dir(config.attachments_dir, codec.encode(pasta.id)) / pasta.file.name
    if not filepath.exists():
        return None

    return filepath
