from unittest import mock

import pytest
from prometheus_client import REGISTRY

from listing_service.model import User


def test_register_creates_user_with_hashed_password(app, register):
    resp = register("bob", "hunter2")

    assert resp.status_code == 201
    assert resp.get_json() == {"message": "Registration successful."}
    user = User.query.filter_by(user_name="bob").one()
    assert user.password != "hunter2"


@pytest.mark.parametrize("body", [
    {},
    {"user_name": "bob"},
    {"password": "pw"},
    {"user_name": "", "password": "pw"},
    {"user_name": "bob", "password": ""},
    {"user_name": 42, "password": "pw"},
])
def test_register_requires_username_and_password(client, body):
    resp = client.post("/register", json=body)

    assert resp.status_code == 400
    assert resp.get_json() == {"error": "Username and password are required."}


def test_register_rejects_non_json_body(client):
    resp = client.post("/register", data="user_name=bob", content_type="text/plain")

    assert resp.status_code == 400


def test_register_rejects_duplicate_username(app, register):
    assert register("carol", "one").status_code == 201

    resp = register("carol", "two")

    assert resp.status_code == 400
    assert resp.get_json() == {"error": "Username already exists."}
    assert User.query.filter_by(user_name="carol").count() == 1


def test_login_returns_token(client, register):
    register("dave", "pw")

    resp = client.post("/login", json={"user_name": "dave", "password": "pw"})

    assert resp.status_code == 200
    assert resp.get_json()["token"]


def test_login_requires_credentials(client):
    resp = client.post("/login", json={"user_name": "dave"})

    assert resp.status_code == 400
    assert resp.get_json() == {"error": "Username and password are required."}


def test_login_errors_do_not_reveal_which_credential_failed(client, register):
    register("erin", "right")

    wrong_password = client.post("/login", json={"user_name": "erin", "password": "wrong"})
    unknown_user = client.post("/login", json={"user_name": "nobody", "password": "right"})

    assert wrong_password.status_code == unknown_user.status_code == 401
    assert wrong_password.get_json() == unknown_user.get_json() == {"error": "Invalid username or password."}


def test_register_race_on_unique_username_returns_400(app, register):
    assert register("frank", "one").status_code == 201

    # the existence check misses, as when two registrations interleave
    lookup = mock.Mock()
    lookup.filter_by.return_value.first.return_value = None
    with mock.patch.object(User, "query", lookup):
        resp = register("frank", "two")

    assert resp.status_code == 400
    assert resp.get_json() == {"error": "Username already exists."}
    assert User.query.filter_by(user_name="frank").count() == 1


def _login_attempts(status):
    return REGISTRY.get_sample_value("listing_service_login_attempts_total", {"status": status}) or 0.0


def test_login_attempts_are_counted(client, register):
    register("gina", "pw")
    failed_before = _login_attempts("failed")
    success_before = _login_attempts("success")

    client.post("/login", json={"user_name": "gina", "password": "wrong"})
    client.post("/login", json={"user_name": "nobody", "password": "pw"})
    client.post("/login", json={"user_name": "gina"})

    assert _login_attempts("failed") == failed_before + 3
    assert _login_attempts("success") == success_before

    client.post("/login", json={"user_name": "gina", "password": "pw"})

    assert _login_attempts("success") == success_before + 1
    assert _login_attempts("failed") == failed_before + 3
