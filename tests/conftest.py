# tests/conftest.py
import pytest
from fastapi.testclient import TestClient

from mockapi.main import app
from storefront.config import Settings
from storefront.session import build_storefront
from storefront.storage import MemoryStorage

BASE_URL = "http://testserver/api"


@pytest.fixture
def api():
    client = TestClient(app)
    client.post("/api/reset")
    return client


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def storefront(api, storage):
    sf = build_storefront(Settings(api_base_url=BASE_URL), storage=storage, session=api)
    yield sf
    sf.close()
