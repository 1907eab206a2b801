"""Pastas repository — persists the whole pasta collection.

Both backends replace the stored collection wholesale on every save and
return the full collection on load. A missing store loads as empty; a store
that exists but cannot be parsed raises CorruptStoreError.
"""

import os
import tempfile
from collections.abc import Iterable
from pathlib import Path
from typing import Protocol

import pydantic
from pydantic import TypeAdapter
from sqlalchemy.exc import SQLAlchemyError

from config import AppConfig
from database import init_db, make_engine, make_session_factory
from errors import CorruptStoreError, StorageIOError
from api.pastas.dto.pasta import Pasta, PastaFile
from api.pastas.orm.pasta_model import PastaModel

JSON_FILENAME = "database.json"
SQLITE_FILENAME = "database.sqlite"

_pastas_adapter = TypeAdapter(list[Pasta])


class PastaRepository(Protocol):
    def load(self) -> list[Pasta]: ...

    def save(self, pastas: Iterable[Pasta]) -> None: ...

    def close(self) -> None: ...


def _check_unique(pastas: list[Pasta], source: Path) -> None:
    seen = set()
    for pasta in pastas:
        if pasta.id in seen:
            raise CorruptStoreError(f"{source}: duplicate pasta id {pasta.id}")
        seen.add(pasta.id)


class JsonPastaRepository:
    """Single JSON document, replaced atomically through a temp file."""

    def __init__(self, path: Path):
        self.path = path

    def load(self) -> list[Pasta]:
        try:
            raw = self.path.read_bytes()
        except FileNotFoundError:
            return []
        except OSError as e:
            raise CorruptStoreError(f"cannot read {self.path}: {e}") from e

        try:
            pastas = _pastas_adapter.validate_json(raw)
        except pydantic.ValidationError as e:
            raise CorruptStoreError(f"malformed store {self.path}: {e}") from e

        _check_unique(pastas, self.path)
        return pastas

    def save(self, pastas: Iterable[Pasta]) -> None:
        data = _pastas_adapter.dump_json(list(pastas), indent=2)
        tmp_path = None
        try:
            with tempfile.NamedTemporaryFile(
                "wb",
                delete=False,
                dir=str(self.path.parent),
                prefix=f".{self.path.name}.",
                suffix=".tmp",
            ) as tmp:
                tmp_path = Path(tmp.name)
                tmp.write(data)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_path, self.path)
        except OSError as e:
            if tmp_path is not None:
                tmp_path.unlink(missing_ok=True)
            raise StorageIOError(f"cannot write {self.path}: {e}") from e

    def close(self) -> None:
        pass


def _model_to_dto(model: PastaModel) -> Pasta:
    file = None
    if model.file_name is not None:
        file = PastaFile(name=model.file_name, size=model.file_size or 0)
    return Pasta(
        id=model.id,
        content=model.content,
        kind=model.kind,
        file=file,
        extension=model.extension,
        private=model.private,
        editable=model.editable,
        created=model.created,
        expiration=model.expiration,
        burn_after_reads=model.burn_after_reads,
        read_count=model.read_count,
        last_read=model.last_read,
    )


def _dto_to_model(pasta: Pasta) -> PastaModel:
    return PastaModel(
        id=pasta.id,
        content=pasta.content,
        kind=pasta.kind.value,
        extension=pasta.extension,
        private=pasta.private,
        editable=pasta.editable,
        created=pasta.created,
        expiration=pasta.expiration,
        burn_after_reads=pasta.burn_after_reads,
        read_count=pasta.read_count,
        last_read=pasta.last_read,
        file_name=pasta.file.name if pasta.file else None,
        file_size=pasta.file.size if pasta.file else None,
    )


class SqlPastaRepository:
    """SQLite table holding one row per pasta; saves replace every row."""

    def __init__(self, path: Path):
        self.path = path
        self._engine = make_engine(path)
        self._session_factory = make_session_factory(self._engine)
        self._schema_ready = False

    def _ensure_schema(self) -> None:
        if not self._schema_ready:
            init_db(self._engine)
            self._schema_ready = True

    def load(self) -> list[Pasta]:
        try:
            self._ensure_schema()
            with self._session_factory() as session:
                models = session.query(PastaModel).order_by(PastaModel.id).all()
                return [_model_to_dto(m) for m in models]
        except SQLAlchemyError as e:
            raise CorruptStoreError(f"cannot read {self.path}: {e}") from e
        except pydantic.ValidationError as e:
            raise CorruptStoreError(f"malformed row in {self.path}: {e}") from e

    def save(self, pastas: Iterable[Pasta]) -> None:
        try:
            self._ensure_schema()
            with self._session_factory() as session, session.begin():
                session.query(PastaModel).delete()
                session.add_all([_dto_to_model(p) for p in pastas])
        except SQLAlchemyError as e:
            raise StorageIOError(f"cannot write {self.path}: {e}") from e

    def close(self) -> None:
        self._engine.dispose()


def build_repository(config: AppConfig) -> PastaRepository:
    if config.storage == "sqlite":
        return SqlPastaRepository(config.data_dir / SQLITE_FILENAME)
    return JsonPastaRepository(config.data_dir / JSON_FILENAME)
