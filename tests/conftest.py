import io
import os

import pytest

from parcauto import create_app
from parcauto.db import CarStore

ADMIN_PASSWORD = "correct horse battery staple"


@pytest.fixture
def app(tmp_path):
    app = create_app(
        {
            "TESTING": True,
            "SECRET_KEY": "test-secret",
            "ADMIN_PASSWORD": ADMIN_PASSWORD,
            "ADMIN_PASSWORD_HASH": None,
            "DATA_DIR": str(tmp_path / "data"),
        }
    )
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin_client(client):
    response = client.post("/login", data={"password": ADMIN_PASSWORD})
    assert response.status_code == 302
    return client


@pytest.fixture
def store(app):
    return app.extensions["parcauto.store"]


@pytest.fixture
def bare_store(tmp_path):
    store = CarStore(str(tmp_path / "store.db"))
    store.migrate()
    return store


def image_file(name, content=b"fake image bytes"):
    return (io.BytesIO(content), name)


def upload_path(app, public_path):
    return os.path.join(app.config["UPLOAD_DIR"], public_path.rsplit("/", 1)[-1])
