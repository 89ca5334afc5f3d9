"""
Shared fixtures: a fresh SQLite database per test, an API client and
account / profile factories.
"""

import os

import pytest
from fastapi.testclient import TestClient


@pytest.fixture
def sqlalchemy_db(tmp_path):
    """Configure a fresh SQLAlchemy SQLite DB (with the practice area catalogue)."""
    from lawdir.db.session import reset_engine, init_db, get_db_session
    from lawdir.specialisations import seed_specialisations

    old_db_url = os.environ.get("DATABASE_URL")
    db_path = tmp_path / "lawdir.db"
    os.environ["DATABASE_URL"] = f"sqlite:///{db_path}"
    reset_engine()
    init_db()
    with get_db_session() as db:
        seed_specialisations(db)

    yield

    if old_db_url is not None:
        os.environ["DATABASE_URL"] = old_db_url
    else:
        os.environ.pop("DATABASE_URL", None)
    reset_engine()


@pytest.fixture
def client(sqlalchemy_db):
    from lawdir.api import app
    return TestClient(app)


@pytest.fixture
def make_user(sqlalchemy_db):
    """
    Factory creating an active account and a bearer token for it.

    Returns a dict with id, email, token and ready-to-use auth headers.
    """
    from lawdir.auth import create_access_token, get_password_hash
    from lawdir.db.session import get_db_session
    from lawdir.db.models import User, UserRole

    counter = {"n": 0}

    def _make(role="LAWYER", email=None, name=None, password=None):
        counter["n"] += 1
        email = email or f"user{counter['n']}@example.com"
        with get_db_session() as db:
            user = User(
                email=email,
                name=name or f"User {counter['n']}",
                role=UserRole(role),
                is_active=True,
                password_hash=get_password_hash(password) if password else None,
            )
            db.add(user)
            db.flush()
            user_id = user.id
        token = create_access_token({"sub": user_id, "role": role})
        return {
            "id": user_id,
            "email": email,
            "token": token,
            "headers": {"Authorization": f"Bearer {token}"},
        }

    return _make


@pytest.fixture
def admin(make_user):
    return make_user("ADMIN", email="admin@example.com", name="Site Admin")


@pytest.fixture
def specialisation_ids(sqlalchemy_db):
    """Catalogue name -> id"""
    from lawdir.db.session import get_db_session
    from lawdir.db.models import Specialisation

    with get_db_session() as db:
        return {s.name: s.id for s in db.query(Specialisation).all()}


def _lawyer_payload(first="Jane", last="Doe", **overrides):
    payload = {
        "firstName": first,
        "lastName": last,
        "position": "Senior Associate",
        "yearsExperience": 12,
        "bio": "Commercial litigator.",
        "city": "Sydney",
        "state": "NSW",
        "specialisations": [],
        "courtAppearances": [],
        "languages": [],
        "certifications": [],
    }
    payload.update(overrides)
    return payload


def _firm_payload(name="Doe & Partners", **overrides):
    payload = {
        "name": name,
        "email": "office@doepartners.example",
        "phone": "02 9000 0000",
        "description": "Full service firm.",
        "locations": [{"address": "1 George St", "city": "Sydney", "state": "NSW", "postcode": "2000"}],
        "practiceAreas": [],
        "courtAppearances": [],
        "languages": [],
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def lawyer_payload():
    return _lawyer_payload


@pytest.fixture
def firm_payload():
    return _firm_payload


@pytest.fixture
def publish_lawyer(client, admin):
    """Submit a lawyer profile for `user` and approve it; returns the profile JSON"""
    def _publish(user, **overrides):
        resp = client.post("/api/lawyer/profile", json=_lawyer_payload(**overrides), headers=user["headers"])
        assert resp.status_code == 201, resp.text
        change_id = resp.json()["pendingChange"]["id"]
        resp = client.post(
            "/api/admin/approvals",
            json={"changeId": change_id, "action": "approve"},
            headers=admin["headers"],
        )
        assert resp.status_code == 200, resp.text
        return client.get("/api/lawyer/profile", headers=user["headers"]).json()["profile"]

    return _publish


@pytest.fixture
def publish_firm(client, admin):
    """Submit a firm profile for `owner` and approve it; returns the profile JSON"""
    def _publish(owner, **overrides):
        resp = client.post("/api/firm/profile", json=_firm_payload(**overrides), headers=owner["headers"])
        assert resp.status_code == 201, resp.text
        change_id = resp.json()["pendingChange"]["id"]
        resp = client.post(
            "/api/admin/approvals",
            json={"changeId": change_id, "action": "approve"},
            headers=admin["headers"],
        )
        assert resp.status_code == 200, resp.text
        return client.get("/api/firm/profile", headers=owner["headers"]).json()["profile"]

    return _publish
