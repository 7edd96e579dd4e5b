"""
HTTP surface: /api/v1/auth/* and /api/v1/users/me through the Flask test client.
"""
from unittest.mock import Mock

import pytest

from api import create_app
from models import UserStatus
from services.errors import MailDeliveryError
from tests.conftest import PASSWORD, inline_tasks

AUTH = "/api/v1/auth"


def _register(client, email="alice@example.com", password=PASSWORD, **extra):
    return client.post(f"{AUTH}/register", json={"email": email, "password": password, **extra})


def _bearer(token):
    return {"Authorization": f"Bearer {token}"}


def test_end_to_end_scenario(client):
    resp = _register(client)
    assert resp.status_code == 201
    body = resp.get_json()
    assert body["success"] is True
    original = body["data"]["refresh_token"]
    assert body["data"]["access_token"]
    assert original
    assert body["data"]["token_type"] == "Bearer"

    resp = client.post(f"{AUTH}/login", json={"email": "alice@example.com", "password": "wrong"})
    assert resp.status_code == 401
    assert resp.get_json()["error"] == "INVALID_CREDENTIALS"

    resp = client.post(f"{AUTH}/refresh-token", json={"refresh_token": original})
    assert resp.status_code == 201
    rotated = resp.get_json()["data"]["refresh_token"]
    assert rotated and rotated != original

    resp = client.post(f"{AUTH}/refresh-token", json={"refresh_token": original})
    assert resp.status_code == 401
    assert resp.get_json() == {
        "success": False,
        "error": "INVALID_REFRESH_TOKEN",
        "message": "Invalid or expired refresh token",
        "status": 401,
    }


def test_login_success(client, app):
    _register(client)

    resp = client.post(f"{AUTH}/login", json={"email": "alice@example.com", "password": PASSWORD})

    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert data["expires_in"] == int(app.config["ACCESS_TOKEN_EXPIRES"].total_seconds())


def test_login_unknown_email_matches_wrong_password(client):
    _register(client)

    unknown = client.post(f"{AUTH}/login", json={"email": "ghost@example.com", "password": PASSWORD})
    wrong = client.post(f"{AUTH}/login", json={"email": "alice@example.com", "password": "nope"})

    assert unknown.status_code == wrong.status_code == 401
    assert unknown.get_json() == wrong.get_json()


def test_login_inactive_user(client, app):
    _register(client)
    with app.app_context():
        users = app.extensions["user_store"]
        user = users.get_by_email("alice@example.com")
        user.status = UserStatus.INACTIVE
        users.update(user)

    resp = client.post(f"{AUTH}/login", json={"email": "alice@example.com", "password": PASSWORD})

    assert resp.status_code == 401
    assert resp.get_json()["error"] == "USER_NOT_ACTIVE"


@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"email": "not-an-email", "password": PASSWORD},
        {"email": "alice@example.com", "password": "short"},
    ],
)
def test_register_validation(client, payload):
    resp = client.post(f"{AUTH}/register", json=payload)

    assert resp.status_code == 422
    body = resp.get_json()
    assert body["error"] == "VALIDATION_ERROR"
    assert body["details"]


def test_register_duplicate_email(client):
    _register(client)

    resp = _register(client)

    assert resp.status_code == 409
    assert resp.get_json()["error"] == "EMAIL_ALREADY_EXISTS"


def test_register_sends_verification_email(client, app):
    _register(client, first_name="Alice")

    outbox = app.extensions["mailer"].outbox
    assert len(outbox) == 1
    msg = outbox[0]
    assert msg["To"] == "alice@example.com"
    assert msg["Subject"] == "Email Verification"


def test_register_succeeds_when_mail_fails():
    mailer = Mock()
    mailer.send_templated.side_effect = MailDeliveryError()

    failing_app = create_app("testing", mailer=mailer, tasks=inline_tasks())
    try:
        resp = _register(failing_app.test_client())
        assert resp.status_code == 201
    finally:
        failing_app.extensions["storage"].drop_all()


def test_refresh_requires_token(client):
    resp = client.post(f"{AUTH}/refresh-token", json={})

    assert resp.status_code == 422


def test_logout_revokes_refresh_tokens(client):
    first = _register(client).get_json()["data"]
    second = client.post(
        f"{AUTH}/login", json={"email": "alice@example.com", "password": PASSWORD}
    ).get_json()["data"]

    resp = client.post(f"{AUTH}/logout", headers=_bearer(second["access_token"]))
    assert resp.status_code == 200
    assert resp.get_json() == {"success": True}

    for data in (first, second):
        resp = client.post(f"{AUTH}/refresh-token", json={"refresh_token": data["refresh_token"]})
        assert resp.status_code == 401

    # access tokens stay valid until they expire
    assert client.get("/api/v1/users/me", headers=_bearer(second["access_token"])).status_code == 200


@pytest.mark.parametrize(
    "headers",
    [
        {},
        {"Authorization": "Token abc"},
        {"Authorization": "Bearer not-a-jwt"},
    ],
)
def test_logout_requires_bearer(client, headers):
    resp = client.post(f"{AUTH}/logout", headers=headers)

    assert resp.status_code == 401
    assert resp.get_json()["error"] == "UNAUTHORIZED"


def test_refresh_token_is_not_an_access_token(client):
    data = _register(client).get_json()["data"]

    resp = client.get("/api/v1/users/me", headers=_bearer(data["refresh_token"]))

    assert resp.status_code == 401


def test_verify_email_flow(client, app):
    data = _register(client).get_json()["data"]
    with app.app_context():
        code = app.extensions["user_store"].get_by_email("alice@example.com").verify_email_code
    headers = _bearer(data["access_token"])
    wrong = "000000" if code != "000000" else "111111"

    resp = client.post(f"{AUTH}/verify-email", json={"code": wrong}, headers=headers)
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "INVALID_VERIFY_CODE"

    resp = client.post(f"{AUTH}/verify-email", json={"code": code}, headers=headers)
    assert resp.status_code == 200

    resp = client.post(f"{AUTH}/verify-email", json={"code": code}, headers=headers)
    assert resp.status_code == 200

    me = client.get("/api/v1/users/me", headers=headers).get_json()["data"]
    assert me["email_verified"] is True


@pytest.mark.parametrize("code", ["12345", "1234567", "abc-12"])
def test_verify_email_code_shape(client, code):
    data = _register(client).get_json()["data"]

    resp = client.post(f"{AUTH}/verify-email", json={"code": code}, headers=_bearer(data["access_token"]))

    assert resp.status_code == 422


def test_send_verify_email_resends_code(client, app):
    data = _register(client).get_json()["data"]

    resp = client.post(f"{AUTH}/send-verify-email", headers=_bearer(data["access_token"]))

    assert resp.status_code == 200
    assert len(app.extensions["mailer"].outbox) == 2


def test_send_verify_email_delivery_failure(client, app):
    data = _register(client).get_json()["data"]
    app.extensions["auth_service"].mailer = Mock(**{"send_templated.side_effect": MailDeliveryError()})

    resp = client.post(f"{AUTH}/send-verify-email", headers=_bearer(data["access_token"]))

    assert resp.status_code == 502
    assert resp.get_json()["error"] == "MAIL_DELIVERY_FAILED"


def test_me_hides_secrets(client):
    data = _register(client, first_name="Alice", last_name="Liddell").get_json()["data"]

    resp = client.get("/api/v1/users/me", headers=_bearer(data["access_token"]))

    assert resp.status_code == 200
    me = resp.get_json()["data"]
    assert me["email"] == "alice@example.com"
    assert me["status"] == "ACTIVE"
    assert "password_hash" not in me
    assert "verify_email_code" not in me


def test_internal_errors_are_generic(client, app):
    app.extensions["auth_service"].login = Mock(side_effect=RuntimeError("secret detail"))
    app.config["DEBUG"] = False

    resp = client.post(f"{AUTH}/login", json={"email": "alice@example.com", "password": PASSWORD})

    assert resp.status_code == 500
    body = resp.get_json()
    assert body["error"] == "INTERNAL_ERROR"
    assert "secret detail" not in str(body)


def test_health(client):
    resp = client.get("/api/v1/health")

    assert resp.status_code == 200
    assert resp.get_json()["status"] == "ok"


def test_verify_email_code_length_follows_config():
    custom = create_app("testing", tasks=inline_tasks(), VERIFY_EMAIL_CODE_LENGTH=8)
    try:
        client = custom.test_client()
        data = _register(client).get_json()["data"]
        with custom.app_context():
            code = custom.extensions["user_store"].get_by_email("alice@example.com").verify_email_code
        headers = _bearer(data["access_token"])

        assert len(code) == 8
        assert client.post(f"{AUTH}/verify-email", json={"code": code[:6]}, headers=headers).status_code == 422
        assert client.post(f"{AUTH}/verify-email", json={"code": code}, headers=headers).status_code == 200
    finally:
        custom.extensions["storage"].drop_all()


def test_access_token_from_another_issuer_is_rejected(client, app):
    data = _register(client).get_json()["data"]
    app.config["JWT_ISSUER"] = "another-service"

    resp = client.get("/api/v1/users/me", headers=_bearer(data["access_token"]))

    assert resp.status_code == 401
