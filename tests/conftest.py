import asyncio
import os
import tempfile

os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="storefront-uploads-"))
os.environ.setdefault("IMAGE_STORAGE_BACKEND", "local")

import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

import database
from main import app
from storage import LocalImageStorage, get_image_storage


@pytest.fixture
def db(monkeypatch):
    mock_db = AsyncMongoMockClient(tz_aware=True)["storefront_test"]
    asyncio.run(mock_db[database.USERS].create_index([("email", 1)], unique=True))
    monkeypatch.setattr(database, "_db", mock_db)
    return mock_db


@pytest.fixture
def upload_dir(tmp_path):
    return tmp_path / "uploads"


@pytest.fixture
def client(db, upload_dir):
    app.dependency_overrides[get_image_storage] = lambda: LocalImageStorage(
        str(upload_dir), "http://testserver", max_size=1024
    )
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def order_body():
    return {
        "customer": {"name": "A", "address": "X", "phone": "1", "email": "a@b.com"},
        "items": [{"id": "1", "name": "Burger", "price": 5, "quantity": 2}],
        "total": 10,
        "paymentMethod": "cash",
    }
