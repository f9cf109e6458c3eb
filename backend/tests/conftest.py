import pytest
from fastapi.testclient import TestClient

from inventory_api.main import create_app
from inventory_api.storage import DocumentStore


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "db.json"


@pytest.fixture
def store(db_path):
    store = DocumentStore(db_path)
    store.load()
    return store


@pytest.fixture
def client(store, tmp_path):
    app = create_app(store=store, public_dir=tmp_path / "public")
    with TestClient(app) as test_client:
        yield test_client
