import pytest
from fastapi.testclient import TestClient

from config import AppConfig
from main import create_app
from slugs import AnimalNamesCodec
from api.pastas.dto.pasta import Pasta
from api.pastas.repositories.pastas_repository import JsonPastaRepository
from api.pastas.services.pasta_store import PastaStore

NOW = 1_700_000_000
DAY = 86400


@pytest.fixture
def config(tmp_path):
    return AppConfig(
        data_dir=tmp_path / "data",
        gc_days=0,
        enable_burn_after=True,
        private=True,
        editable=True,
    )


@pytest.fixture
def codec():
    return AnimalNamesCodec()


@pytest.fixture
def repository(config):
    config.data_dir.mkdir(parents=True, exist_ok=True)
    return JsonPastaRepository(config.data_dir / "database.json")


@pytest.fixture
def store(config, codec, repository):
    config.attachments_dir.mkdir(parents=True, exist_ok=True)
    return PastaStore(repository, codec, config.attachments_dir)


@pytest.fixture
def make_pasta():
    def _make(pasta_id, **overrides):
        values = {
            "id": pasta_id,
            "content": f"pasta {pasta_id}",
            "created": NOW,
            "last_read": NOW,
        }
        values.update(overrides)
        return Pasta(**values)

    return _make


@pytest.fixture
def client(config):
    with TestClient(create_app(config)) as client:
        yield client
