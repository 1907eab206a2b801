"""Attachment service — sanitizes, stores and removes pasta file attachments.

Every attachment lives at ``<root>/<slug>/<name>``. The directory comes from
the pasta's slug and the name is sanitized.
"""

import logging
import os
import re
import shutil
import tempfile
from pathlib import Path

from starlette.datastructures import UploadFile

from errors import StorageIOError, UnsafeFilename
from api.pastas.dto.pasta import PastaFile

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024  # 1MB
MAX_NAME_BYTES = 255
TEMP_PREFIX = ".upload-"

_UNSAFE_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f\x7f]')


def sanitize_filename(raw: str) -> str:
    """Reduce a client supplied file name to a safe basename."""
    name = raw.replace("\\", "/").rsplit("/", 1)[-1]
    name = name.replace(" ", "_")
    name = _UNSAFE_CHARS.sub("", name)
    name = name.encode("utf-8")[:MAX_NAME_BYTES].decode("utf-8", errors="ignore")
    name = name.lstrip(".").rstrip(". ")
    if not name:
        raise UnsafeFilename(f"unsafe file name {raw!r}")
    return name


def attachment_dir(root: Path, slug: str) -> Path:
    file_dir = root / slug
    if file_dir.resolve().parent != root.resolve():
        raise UnsafeFilename(f"slug {slug!r} escapes the attachment root")
    return file_dir


async def save_attachment(
    root: Path,
    slug: str,
    name: str,
    upload: UploadFile,
    chunk_size: int = CHUNK_SIZE,
) -> PastaFile:
    """Stream ``upload`` to ``<root>/<slug>/<name>``.

    Bytes go to a temp file next to the target and are renamed into place
    only once the whole stream has been written; on any failure, including
    cancellation, nothing is left behind.
    """
    file_dir = attachment_dir(root, slug)
    final_path = file_dir / name
    if final_path.resolve().parent != file_dir.resolve():
        raise UnsafeFilename(f"unsafe file name {name!r}")

    size = 0
    tmp_path = None
    committed = False
    try:
        file_dir.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "wb", delete=False, dir=str(file_dir), prefix=TEMP_PREFIX
        ) as tmp:
            tmp_path = Path(tmp.name)
            while chunk := await upload.read(chunk_size):
                size += len(chunk)
                tmp.write(chunk)
        os.replace(tmp_path, final_path)
        committed = True
    except OSError as e:
        raise StorageIOError(f"cannot store attachment {name!r}: {e}") from e
    finally:
        if not committed:
            if tmp_path is not None:
                tmp_path.unlink(missing_ok=True)
            _remove_if_empty(file_dir)

    logger.info("Stored attachment %s/%s (%d bytes)", slug, name, size)
    return PastaFile(name=name, size=size)


def _remove_if_empty(directory: Path) -> None:
    try:
        directory.rmdir()
    except OSError:
        pass  # not empty or already gone


def remove_attachment(root: Path, slug: str) -> None:
    """Remove the attachment directory of a pasta, if it has one."""
    file_dir = attachment_dir(root, slug)
    if file_dir.exists():
        shutil.rmtree(file_dir, ignore_errors=True)


def list_attachment_dirs(root: Path) -> list[str]:
    if not root.exists():
        return []
    return [entry.name for entry in root.iterdir() if entry.is_dir()]
