"""Upload service — turns a submitted form into a stored pasta."""

import logging
import re

from starlette.datastructures import FormData, UploadFile

from config import (
    BURN_AFTER_READS,
    ETERNAL,
    EXPIRATION_SECONDS,
    FALLBACK_EXPIRATION,
    AppConfig,
)
from errors import ValidationError
from slugs import SlugCodec
from api.pastas.dto.pasta import ContentKind, Pasta, PastaFile
from api.pastas.services.pasta_store import PastaStore, now_seconds
from api.upload.services.attachment_service import (
    remove_attachment,
    sanitize_filename,
    save_attachment,
)

logger = logging.getLogger(__name__)

NO_CONTENT = "No Text Content"

KNOWN_FIELDS = {
    "content",
    "file",
    "editable",
    "private",
    "expiration",
    "burn_after",
    "syntax-highlight",
}

_URL_PATTERN = re.compile(
    r"^(https?://)?(www\.)?[-a-zA-Z0-9@:%._+~#=]{1,256}\.[a-zA-Z0-9()]{1,6}"
    r"\b([-a-zA-Z0-9()@:%_+.~#?&/=]*)$"
)


def is_url(content: str) -> bool:
    return _URL_PATTERN.match(content) is not None


def parse_expiration(value: str | None, now: int, config: AppConfig) -> int:
    """Map an expiration choice to an absolute timestamp; 0 means never."""
    if value is None:
        value = config.default_expiry

    if value == ETERNAL:
        if config.no_eternal_pasta:
            return now + EXPIRATION_SECONDS[FALLBACK_EXPIRATION]
        return 0

    seconds = EXPIRATION_SECONDS.get(value)
    if seconds is None:
        logger.warning("Unexpected expiration %r, using %s", value, FALLBACK_EXPIRATION)
        seconds = EXPIRATION_SECONDS[FALLBACK_EXPIRATION]
    return now + seconds


def parse_burn_after(value: str | None, config: AppConfig) -> int:
    if value is None:
        value = config.default_burn_after

    reads = BURN_AFTER_READS.get(value)
    if reads is None:
        logger.warning("Unexpected burn after value %r, disabling", value)
        return 0
    return reads


def _text_field(form: FormData, name: str) -> str | None:
    value = form.get(name)
    if value is None or isinstance(value, UploadFile):
        return None
    return value


async def _store_file(
    upload: UploadFile, slug: str, config: AppConfig
) -> PastaFile | None:
    if not upload.filename:
        return None
    try:
        name = sanitize_filename(upload.filename)
    except ValidationError as e:
        logger.warning("Dropping attachment: %s", e)
        return None
    return await save_attachment(config.attachments_dir, slug, name, upload)


async def create_pasta(
    form: FormData,
    store: PastaStore,
    codec: SlugCodec,
    config: AppConfig,
    now: int | None = None,
) -> Pasta:
    """Validate the form, store any attachment and insert the pasta.

    Unknown choices fall back to safe defaults; an unsafe file name drops the
    attachment but still creates the pasta. CapacityError, StorageIOError and
    cancellation propagate, leaving neither a record nor a file behind.
    """
    if now is None:
        now = now_seconds()

    for name in form.keys():
        if name not in KNOWN_FIELDS:
            logger.warning("Unexpected form field %r", name)

    content = _text_field(form, "content")
    if content:
        kind = ContentKind.URL if is_url(content) else ContentKind.TEXT
    else:
        content, kind = NO_CONTENT, ContentKind.TEXT

    pasta_id = await store.reserve_id()
    slug = codec.encode(pasta_id)
    file = None
    try:
        upload = form.get("file")
        if isinstance(upload, UploadFile) and not config.no_file_upload:
            file = await _store_file(upload, slug, config)
            if file is not None:
                kind = ContentKind.TEXT

        pasta = Pasta(
            id=pasta_id,
            content=content,
            kind=kind,
            file=file,
            extension=_text_field(form, "syntax-highlight") or "",
            private="private" in form,
            editable="editable" in form,
            created=now,
            expiration=parse_expiration(_text_field(form, "expiration"), now, config),
            burn_after_reads=parse_burn_after(_text_field(form, "burn_after"), config),
            read_count=0,
            last_read=now,
        )
        await store.create(pasta)
    except BaseException:
        # A record that made it in owns the file; create() removes both on rollback.
        if file is not None and not await store.exists(pasta_id):
            remove_attachment(config.attachments_dir, slug)
        await store.release(pasta_id)
        raise

    return pasta
