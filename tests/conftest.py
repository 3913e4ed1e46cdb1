import os

import pytest

from ems_api import create_app
from ems_api.extensions import db


@pytest.fixture(scope="function")
def app():
    os.environ["DATABASE_URL"] = "sqlite:///:memory:"
    app = create_app(overrides={"TESTING": True, "JWT_SECRET_KEY": "test-secret-key-long-enough-for-hs256"})
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope="function")
def client(app):
    return app.test_client()


@pytest.fixture(scope="function")
def session(app):
    with app.app_context():
        yield db.session


def register(client, username="admin", password="secret123", email=None, full_name="Admin User"):
    return client.post("/api/auth/register", json={
        "username": username,
        "password": password,
        "email": email or f"{username}@ems.local",
        "fullName": full_name,
    })


def login(client, username="admin", password="secret123"):
    return client.post("/api/auth/login", json={"username": username, "password": password})


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(scope="function")
def auth(client):
    """Registered + logged-in admin; returns request headers."""
    assert register(client).status_code == 201
    r = login(client)
    assert r.status_code == 200
    return bearer(r.get_json()["data"]["token"])


def make_department(client, headers, name="Engineering", code="ENG", **extra):
    r = client.post("/api/departments", json={"name": name, "code": code, **extra}, headers=headers)
    assert r.status_code == 201, r.get_json()
    return r.get_json()["data"]


def make_employee(client, headers, dept_id, code, **extra):
    body = {
        "name": extra.pop("name", f"Employee {code}"),
        "employeeId": code,
        "email": extra.pop("email", f"{code.lower()}@ems.local"),
        "position": extra.pop("position", "Engineer"),
        "departmentId": dept_id,
    }
    body.update(extra)
    r = client.post("/api/employees", json=body, headers=headers)
    assert r.status_code == 201, r.get_json()
    return r.get_json()["data"]


def stored_count(dept_id):
    """The cached counter as persisted, without going through a reconciling read."""
    from ems_api.models.department import Department

    db.session.expire_all()
    return db.session.get(Department, dept_id).employee_count
