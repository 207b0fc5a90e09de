import logging

import pytest
from werkzeug.security import generate_password_hash

from parcauto import create_app
from parcauto.config import DEFAULT_ADMIN_PASSWORD, DEFAULT_SECRET_KEY

from conftest import ADMIN_PASSWORD

ADMIN_ROUTES = [
    ("get", "/admin/cars"),
    ("get", "/admin/cars/new"),
    ("post", "/admin/cars"),
    ("get", "/admin/cars/1/edit"),
    ("post", "/admin/cars/1"),
    ("post", "/admin/cars/1/delete"),
    ("post", "/admin/cars/1/images/1/delete"),
    ("get", "/admin/owner-photo"),
    ("post", "/admin/owner-photo"),
]


@pytest.mark.parametrize("method, path", ADMIN_ROUTES)
def test_admin_routes_redirect_anonymous_to_login(client, method, path):
    response = getattr(client, method)(path)
    assert response.status_code == 302
    assert response.headers["Location"].endswith("/login")


def test_login_page(client):
    response = client.get("/login")
    assert response.status_code == 200
    assert b'name="password"' in response.data


def test_wrong_password_stays_anonymous(client):
    response = client.post("/login", data={"password": "wrong"})

    assert response.status_code == 401
    assert b"Incorrect password." in response.data
    with client.session_transaction() as sess:
        assert not sess.get("authenticated")
    assert client.get("/admin/cars").status_code == 302


def test_empty_password_is_rejected(client):
    assert client.post("/login", data={}).status_code == 401


def test_correct_password_authenticates_session(client):
    response = client.post("/login", data={"password": ADMIN_PASSWORD})

    assert response.status_code == 302
    assert response.headers["Location"].endswith("/admin/cars")
    with client.session_transaction() as sess:
        assert sess["authenticated"] is True
        assert sess.permanent
    assert client.get("/admin/cars").status_code == 200
    assert client.get("/admin/cars/new").status_code == 200


def test_logout_ends_session(admin_client):
    response = admin_client.post("/logout")

    assert response.status_code == 302
    assert response.headers["Location"].endswith("/")
    assert admin_client.get("/admin/cars").status_code == 302


def test_logout_requires_post(client):
    assert client.get("/logout").status_code == 405


def test_plain_password_is_not_kept(app):
    assert "ADMIN_PASSWORD" not in app.config
    assert app.config["ADMIN_PASSWORD_HASH"] != ADMIN_PASSWORD


def test_prehashed_password(tmp_path):
    app = create_app(
        {
            "TESTING": True,
            "SECRET_KEY": "test-secret",
            "ADMIN_PASSWORD_HASH": generate_password_hash("from-hash"),
            "DATA_DIR": str(tmp_path),
        }
    )
    client = app.test_client()
    assert client.post("/login", data={"password": "from-hash"}).status_code == 302


def test_insecure_defaults_are_warned(tmp_path, caplog):
    with caplog.at_level(logging.WARNING, logger="parcauto"):
        create_app(
            {
                "TESTING": True,
                "SECRET_KEY": DEFAULT_SECRET_KEY,
                "ADMIN_PASSWORD": DEFAULT_ADMIN_PASSWORD,
                "ADMIN_PASSWORD_HASH": None,
                "DATA_DIR": str(tmp_path),
            }
        )
    assert "ADMIN_PASSWORD is the built-in default" in caplog.text
    assert "SESSION_SECRET is the built-in default" in caplog.text
