"""Pasta store — the in-memory pasta collection and its lifecycle rules.

One asyncio lock guards the collection. Every operation takes it for its
critical section and never suspends while holding it. Persistence runs after
the lock is released: the collection is snapshotted under the lock with a
generation number and written by a worker thread; writes are serialized by
a separate lock and a snapshot older than the last one written is skipped.

Attachment directories of removed pastas are deleted off the lock as well;
their ids stay reserved until the directory is gone.
"""

import asyncio
import logging
import time
from pathlib import Path

from errors import PastaNotFound, StorageIOError
from slugs import SlugCodec
from api.pastas.dto.pasta import Pasta, PastaSummary
from api.pastas.repositories.pastas_repository import PastaRepository
from api.pastas.services.id_allocator import allocate
from api.upload.services.attachment_service import (
    TEMP_PREFIX,
    list_attachment_dirs,
    remove_attachment,
)

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400


def now_seconds() -> int:
    return int(time.time())


class PastaStore:
    def __init__(
        self,
        repository: PastaRepository,
        codec: SlugCodec,
        attachments_dir: Path,
        id_space: int = 2**16,
        id_max_attempts: int = 64,
        pastas: list[Pasta] | None = None,
    ):
        self.repository = repository
        self.codec = codec
        self.attachments_dir = attachments_dir
        self.id_space = id_space
        self.id_max_attempts = id_max_attempts

        self._pastas: dict[int, Pasta] = {p.id: p for p in pastas or []}
        self._reserved: set[int] = set()
        self._lock = asyncio.Lock()

        self._write_lock = asyncio.Lock()
        self._generation = 0
        self._written_generation = 0

    @classmethod
    def load(
        cls,
        repository: PastaRepository,
        codec: SlugCodec,
        attachments_dir: Path,
        id_space: int = 2**16,
        id_max_attempts: int = 64,
    ) -> "PastaStore":
        """Build a store from the persisted collection.

        Raises CorruptStoreError when the persisted collection is malformed.
        """
        pastas = repository.load()
        logger.info("Loaded %d pastas", len(pastas))
        return cls(
            repository,
            codec,
            attachments_dir,
            id_space=id_space,
            id_max_attempts=id_max_attempts,
            pastas=pastas,
        )

    def __len__(self) -> int:
        return len(self._pastas)

    def slug(self, pasta_id: int) -> str:
        return self.codec.encode(pasta_id)

    # -- persistence ------------------------------------------------------

    def _snapshot(self) -> tuple[list[Pasta], int]:
        """Copy the collection. Caller holds the store lock."""
        self._generation += 1
        return [p.model_copy() for p in self._pastas.values()], self._generation

    async def _write(self, snapshot: list[Pasta], generation: int) -> None:
        # A cancelled caller must not release the write lock while the
        # worker thread is still saving.
        await asyncio.shield(self._locked_write(snapshot, generation))

    async def _locked_write(self, snapshot: list[Pasta], generation: int) -> None:
        async with self._write_lock:
            if generation <= self._written_generation:
                return
            await asyncio.to_thread(self.repository.save, snapshot)
            self._written_generation = generation

    def _discard(self, pasta: Pasta) -> int | None:
        """Drop a pasta from the collection. Caller holds the store lock.

        Returns the id when an attachment still has to be removed; the id
        stays reserved until _purge() has removed it.
        """
        del self._pastas[pasta.id]
        if pasta.file is None:
            return None
        self._reserved.add(pasta.id)
        return pasta.id

    async def _purge(self, pasta_ids: list[int]) -> None:
        """Remove the attachments of discarded pastas and free their ids."""
        if not pasta_ids:
            return
        await asyncio.shield(self._remove_attachments(pasta_ids))

    async def _remove_attachments(self, pasta_ids: list[int]) -> None:
        slugs = [self.slug(i) for i in pasta_ids]
        try:
            await asyncio.to_thread(self._remove_dirs, slugs)
        finally:
            async with self._lock:
                self._reserved.difference_update(pasta_ids)

    def _remove_dirs(self, slugs: list[str]) -> None:
        for slug in slugs:
            remove_attachment(self.attachments_dir, slug)

    # -- operations -------------------------------------------------------

    async def reserve_id(self) -> int:
        """Allocate an unused id and hold it until create() or release()."""
        async with self._lock:
            pasta_id = allocate(
                self._pastas.keys() | self._reserved,
                self.id_space,
                self.id_max_attempts,
            )
            self._reserved.add(pasta_id)
            return pasta_id

    async def release(self, pasta_id: int) -> None:
        async with self._lock:
            self._reserved.discard(pasta_id)

    async def exists(self, pasta_id: int) -> bool:
        async with self._lock:
            return pasta_id in self._pastas

    async def create(self, pasta: Pasta) -> int:
        async with self._lock:
            if pasta.id in self._pastas:
                raise ValueError(f"pasta id {pasta.id} is already in use")
            self._pastas[pasta.id] = pasta.model_copy()
            self._reserved.discard(pasta.id)
            snapshot, generation = self._snapshot()

        try:
            await self._write(snapshot, generation)
        except (StorageIOError, asyncio.CancelledError):
            await self._rollback_create(pasta.id)
            raise

        logger.info("Created pasta %s", self.slug(pasta.id))
        return pasta.id

    async def _rollback_create(self, pasta_id: int) -> None:
        async with self._lock:
            pasta = self._pastas.get(pasta_id)
            doomed = self._discard(pasta) if pasta is not None else None
            snapshot, generation = self._snapshot()
        await self._purge([doomed] if doomed is not None else [])
        try:
            await self._write(snapshot, generation)
        except StorageIOError:
            logger.exception("Could not persist rollback of pasta %s", pasta_id)

    async def get(self, pasta_id: int) -> Pasta:
        async with self._lock:
            pasta = self._pastas.get(pasta_id)
            if pasta is None:
                raise PastaNotFound(pasta_id)
            return pasta.model_copy()

    async def read(self, pasta_id: int, now: int | None = None) -> Pasta:
        """Serve a pasta, applying expiry and burn-after-reads.

        The pasta served by the read that exhausts its burn counter is
        returned and then deleted.
        """
        if now is None:
            now = now_seconds()

        doomed = None
        async with self._lock:
            pasta = self._pastas.get(pasta_id)
            if pasta is None:
                raise PastaNotFound(pasta_id)

            if pasta.is_expired(now):
                doomed = self._discard(pasta)
                served = None
            else:
                pasta.read_count += 1
                pasta.last_read = now
                served = pasta.model_copy()
                if pasta.is_burned():
                    doomed = self._discard(pasta)
            snapshot, generation = self._snapshot()

        await self._purge([doomed] if doomed is not None else [])
        await self._write(snapshot, generation)

        if served is None:
            logger.info("Pasta %s expired", self.slug(pasta_id))
            raise PastaNotFound(pasta_id)
        if served.is_burned():
            logger.info("Pasta %s burned after %d reads", self.slug(pasta_id), served.read_count)
        return served

    async def delete(self, pasta_id: int) -> bool:
        async with self._lock:
            pasta = self._pastas.get(pasta_id)
            if pasta is None:
                return False
            doomed = self._discard(pasta)
            snapshot, generation = self._snapshot()

        await self._purge([doomed] if doomed is not None else [])
        await self._write(snapshot, generation)
        logger.info("Deleted pasta %s", self.slug(pasta_id))
        return True

    async def list(self, now: int | None = None) -> list[PastaSummary]:
        """Public pastas that have not expired, newest first."""
        if now is None:
            now = now_seconds()

        async with self._lock:
            visible = [
                p for p in self._pastas.values()
                if not p.private and not p.is_expired(now)
            ]
            visible.sort(key=lambda p: p.created, reverse=True)
            return [self.summary(p) for p in visible]

    def summary(self, pasta: Pasta) -> PastaSummary:
        return PastaSummary(
            slug=self.slug(pasta.id),
            kind=pasta.kind,
            created=pasta.created,
            expiration=pasta.expiration,
            burn_after_reads=pasta.burn_after_reads,
            read_count=pasta.read_count,
            file=pasta.file,
        )

    async def sweep(self, now: int | None = None, gc_days: int = 0) -> int:
        """Remove idle, expired and burned pastas; return how many went.

        A pasta is idle when it was last read more than ``gc_days`` days
        before ``now``. ``gc_days == 0`` disables the idle rule.
        """
        if now is None:
            now = now_seconds()
        cutoff = now - gc_days * SECONDS_PER_DAY

        async with self._lock:
            doomed = [
                p for p in self._pastas.values()
                if (gc_days > 0 and p.last_read < cutoff)
                or p.is_expired(now)
                or p.is_burned()
            ]
            if not doomed:
                return 0
            with_files = [i for i in map(self._discard, doomed) if i is not None]
            snapshot, generation = self._snapshot()

        await self._purge(with_files)
        await self._write(snapshot, generation)
        return len(doomed)

    async def prune_orphans(self) -> int:
        """Remove attachment directories that belong to no pasta."""
        held = []
        async with self._lock:
            owned = {self.slug(i) for i in self._pastas.keys() | self._reserved}
            orphans = [
                name for name in list_attachment_dirs(self.attachments_dir)
                if name not in owned and not name.startswith(TEMP_PREFIX)
            ]
            # Hold the ids so no new upload lands in a directory being removed.
            for name in orphans:
                try:
                    pasta_id = self.codec.decode(name)
                except PastaNotFound:
                    continue
                if pasta_id not in self._pastas and pasta_id not in self._reserved:
                    self._reserved.add(pasta_id)
                    held.append(pasta_id)

        try:
            await asyncio.to_thread(self._remove_dirs, orphans)
        finally:
            async with self._lock:
                self._reserved.difference_update(held)
        return len(orphans)

    async def close(self) -> None:
        """Flush the current collection and release the repository."""
        async with self._lock:
            snapshot, generation = self._snapshot()
        await self._write(snapshot, generation)
        self.repository.close()
