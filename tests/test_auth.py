from datetime import timedelta

from flask_jwt_extended import create_access_token

from conftest import bearer, login, register


def test_register_returns_profile_without_password(client):
    r = register(client, username="alice", full_name="Alice A")
    assert r.status_code == 201
    body = r.get_json()
    assert body["success"] is True
    data = body["data"]
    assert data["username"] == "alice"
    assert data["fullName"] == "Alice A"
    assert "password" not in data and "passwordHash" not in data


def test_register_requires_all_fields(client):
    r = client.post("/api/auth/register", json={"username": "x", "password": "secret123"})
    assert r.status_code == 400
    assert r.get_json()["code"] == "validation_error"


def test_register_rejects_short_password(client):
    r = register(client, password="123")
    assert r.status_code == 400
    assert r.get_json()["success"] is False


def test_register_duplicate_username_and_email(client):
    assert register(client, username="bob").status_code == 201
    r = register(client, username="bob", email="other@ems.local")
    assert r.status_code == 400
    assert r.get_json()["code"] == "duplicate_key"
    r = register(client, username="bobby", email="bob@ems.local")
    assert r.status_code == 400
    assert r.get_json()["code"] == "duplicate_key"


def test_login_success_and_me(client):
    register(client)
    r = login(client)
    assert r.status_code == 200
    data = r.get_json()["data"]
    assert data["token"]
    assert data["admin"]["username"] == "admin"

    me = client.get("/api/auth/me", headers=bearer(data["token"]))
    assert me.status_code == 200
    assert me.get_json()["data"]["username"] == "admin"


def test_login_failure_is_generic(client):
    register(client)
    wrong_pw = login(client, password="nope-nope")
    unknown = login(client, username="ghost")
    assert wrong_pw.status_code == unknown.status_code == 401
    assert wrong_pw.get_json()["message"] == unknown.get_json()["message"]


def test_login_requires_credentials(client):
    r = client.post("/api/auth/login", json={"username": "admin"})
    assert r.status_code == 400


def test_protected_route_without_token(client):
    r = client.get("/api/auth/me")
    assert r.status_code == 401
    assert r.get_json()["success"] is False


def test_protected_route_with_garbage_token(client):
    r = client.get("/api/auth/me", headers={"Authorization": "Bearer not.a.jwt"})
    assert r.status_code == 401


def test_expired_token_rejected(app, client):
    register(client)
    with app.test_request_context():
        token = create_access_token(identity="1", expires_delta=timedelta(minutes=-10))
    r = client.get("/api/auth/me", headers=bearer(token))
    assert r.status_code == 401
    assert r.get_json()["code"] == "unauthenticated"


def test_token_for_unknown_admin_rejected(app, client):
    with app.test_request_context():
        token = create_access_token(identity="999")
    r = client.get("/api/auth/me", headers=bearer(token))
    assert r.status_code == 401


def test_change_password(client, auth):
    bad = client.put("/api/auth/change-password", headers=auth,
                     json={"currentPassword": "wrong-one", "newPassword": "another123"})
    assert bad.status_code == 401

    r = client.put("/api/auth/change-password", headers=auth,
                   json={"currentPassword": "secret123", "newPassword": "another123"})
    assert r.status_code == 200
    assert login(client).status_code == 401
    assert login(client, password="another123").status_code == 200


def test_deleted_admin_cannot_login_and_username_is_reusable(client, auth):
    register(client, username="temp")
    temp_id = login(client, username="temp").get_json()["data"]["admin"]["id"]
    temp_token = login(client, username="temp").get_json()["data"]["token"]

    r = client.delete(f"/api/admin/{temp_id}", headers=auth)
    assert r.status_code == 200

    assert login(client, username="temp").status_code == 401
    # outstanding tokens stop working once the account is gone
    assert client.get("/api/auth/me", headers=bearer(temp_token)).status_code == 401
    # soft-deleted records do not hold on to their unique keys
    assert register(client, username="temp").status_code == 201


def test_token_rejected_right_after_expiry(app, client):
    register(client)
    with app.test_request_context():
        token = create_access_token(identity="1", expires_delta=timedelta(seconds=-5))
    r = client.get("/api/auth/me", headers=bearer(token))
    assert r.status_code == 401


def test_numeric_username_login_is_a_clean_401(client):
    register(client)
    r = client.post("/api/auth/login", json={"username": 12345, "password": "secret123"})
    assert r.status_code == 401
    assert r.get_json()["code"] == "unauthenticated"


def test_non_string_password_is_a_validation_error(client, auth):
    r = client.post("/api/auth/register", json={
        "username": "num", "password": 12345678, "email": "num@ems.local", "fullName": "Num",
    })
    assert r.status_code == 400
    assert r.get_json()["code"] == "validation_error"

    r = client.post("/api/auth/login", json={"username": "admin", "password": 12345678})
    assert r.status_code == 400

    r = client.put("/api/auth/change-password", headers=auth,
                   json={"currentPassword": "secret123", "newPassword": 12345678})
    assert r.status_code == 400
