import pytest
from fastapi.testclient import TestClient

from errors import CorruptStoreError
from main import create_app
from api.pastas.repositories.pastas_repository import JsonPastaRepository
from api.pastas.services.pasta_store import PastaStore
from slugs import AnimalNamesCodec, HashidsCodec


def _create(client, **data):
    data.setdefault("content", "hello")
    resp = client.post("/", data=data, follow_redirects=False)
    assert resp.status_code == 302
    return resp.headers["location"].rsplit("/", 1)[-1]


def test_index(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert 'name="content"' in resp.text


def test_health(client):
    assert client.get("/api/health").json() == {"status": "ok"}


def test_create_redirects_to_pasta_page(client):
    resp = client.post("/", data={"content": "hello <b>", "expiration": "never"}, follow_redirects=False)

    assert resp.status_code == 302
    location = resp.headers["location"]
    assert location.startswith("/pasta/")

    page = client.get(location)
    assert page.status_code == 200
    assert "hello &lt;b&gt;" in page.text


def test_raw(client):
    slug = _create(client, content="plain text")
    resp = client.get(f"/raw/{slug}")
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/plain")
    assert resp.text == "plain text"


def test_burn_after_one_survives_the_redirect(client):
    slug = _create(client, burn_after="1")

    assert client.get(f"/pasta/{slug}").status_code == 200
    assert client.get(f"/raw/{slug}").status_code == 200
    assert client.get(f"/pasta/{slug}").status_code == 404
    assert client.get(f"/api/pastas/{slug}").status_code == 404


def test_url_endpoint(client):
    url_slug = _create(client, content="https://example.com/target")
    text_slug = _create(client, content="just words")

    resp = client.get(f"/url/{url_slug}", follow_redirects=False)
    assert resp.status_code == 302
    assert resp.headers["location"] == "https://example.com/target"
    assert client.get(f"/url/{text_slug}", follow_redirects=False).status_code == 404


def test_unknown_slug(client):
    assert client.get("/pasta/unicorn").status_code == 404
    assert client.get("/raw/ant-ant-ant").status_code == 404


def test_listing_hides_private(client):
    public = _create(client, content="public")
    private = _create(client, content="secret", private="on")

    page = client.get("/list")
    assert public in page.text
    assert f">{private}<" not in page.text

    api = client.get("/api/pastas").json()
    assert [p["slug"] for p in api] == [public]


def test_listing_can_be_disabled(config):
    config = config.model_copy(update={"no_listing": True})
    with TestClient(create_app(config)) as client:
        assert client.get("/list").status_code == 404
        assert client.get("/api/pastas").status_code == 404


def test_api_metadata_does_not_count_as_read(client):
    slug = _create(client, burn_after="10")

    for _ in range(3):
        body = client.get(f"/api/pastas/{slug}").json()

    assert body["read_count"] == 0
    assert body["burn_after_reads"] == 10


def test_delete_is_idempotent(client):
    slug = _create(client)
    assert client.delete(f"/api/pastas/{slug}").status_code == 204
    assert client.delete(f"/api/pastas/{slug}").status_code == 204
    assert client.get(f"/pasta/{slug}").status_code == 404


def test_remove_page(client):
    slug = _create(client)
    resp = client.get(f"/remove/{slug}", follow_redirects=False)
    assert resp.status_code == 302
    assert resp.headers["location"] == "/list"
    assert client.get(f"/pasta/{slug}").status_code == 404


def test_readonly_mode(config):
    config = config.model_copy(update={"readonly": True})
    with TestClient(create_app(config)) as client:
        resp = client.post("/", data={"content": "x"}, follow_redirects=False)
        assert resp.status_code == 302
        assert resp.headers["location"] == "/"
        assert client.get("/api/pastas").json() == []
        assert client.delete("/api/pastas/ant").status_code == 403


def test_file_upload_and_download(client, config):
    resp = client.post(
        "/",
        data={"content": ""},
        files={"file": ("../../etc/passwd", b"root:x:0:0", "text/plain")},
        follow_redirects=False,
    )
    slug = resp.headers["location"].rsplit("/", 1)[-1]

    assert (config.attachments_dir / slug / "passwd").read_bytes() == b"root:x:0:0"
    page = client.get(f"/pasta/{slug}")
    assert f"/file/{slug}/passwd" in page.text

    download = client.get(f"/file/{slug}/passwd")
    assert download.status_code == 200
    assert download.content == b"root:x:0:0"
    assert client.get(f"/file/{slug}/shadow").status_code == 404

    assert client.delete(f"/api/pastas/{slug}").status_code == 204
    assert not (config.attachments_dir / slug).exists()
    assert client.get(f"/file/{slug}/passwd").status_code == 404


def test_public_path_and_endpoints(config):
    config = config.model_copy(update={"public_path": "/paste", "pasta_endpoint": "p", "raw_endpoint": "r"})
    with TestClient(create_app(config)) as client:
        resp = client.post("/", data={"content": "hi"}, follow_redirects=False)
        location = resp.headers["location"]
        assert location.startswith("/paste/p/")
        slug = location.rsplit("/", 1)[-1]
        assert client.get(f"/r/{slug}").text == "hi"


def test_hash_ids(config):
    config = config.model_copy(update={"hash_ids": True})
    with TestClient(create_app(config)) as client:
        slug = _create(client, content="hashed")
        assert isinstance(client.app.state.codec, HashidsCodec)
        pasta_id = HashidsCodec().decode(slug)
        assert client.get(f"/raw/{slug}").text == "hashed"
        assert client.app.state.store.slug(pasta_id) == slug


def test_pastas_survive_restart(config):
    with TestClient(create_app(config)) as client:
        slug = _create(client, content="durable", expiration="never")

    with TestClient(create_app(config)) as client:
        assert client.get(f"/raw/{slug}").text == "durable"


def test_basic_auth(config):
    config = config.model_copy(update={"auth_username": "admin", "auth_password": "secret"})
    with TestClient(create_app(config)) as client:
        resp = client.get("/")
        assert resp.status_code == 401
        assert resp.headers["www-authenticate"] == "Basic"
        assert client.get("/", auth=("admin", "wrong")).status_code == 401
        assert client.get("/", auth=("admin", "secret")).status_code == 200


def test_basic_auth_without_password(config):
    config = config.model_copy(update={"auth_username": "admin"})
    with TestClient(create_app(config)) as client:
        assert client.get("/", auth=("admin", "anything")).status_code == 200
        assert client.get("/", auth=("someone", "anything")).status_code == 401


def test_malformed_store_is_fatal(config):
    config.data_dir.mkdir(parents=True)
    (config.data_dir / "database.json").write_text("{broken")

    with pytest.raises(CorruptStoreError):
        PastaStore.load(
            JsonPastaRepository(config.data_dir / "database.json"),
            AnimalNamesCodec(),
            config.attachments_dir,
        )


def test_private_flag_does_not_need_the_form_option(config):
    config = config.model_copy(update={"private": False})
    with TestClient(create_app(config)) as client:
        private = _create(client, content="secret", private="on")

        assert 'name="private"' not in client.get("/").text
        assert client.get("/api/pastas").json() == []
        assert client.get(f"/pasta/{private}").status_code == 200
